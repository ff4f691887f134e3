"""init schema

Revision ID: 0001_init
Revises:
Create Date: 2026-09-14
"""
from alembic import op
import sqlalchemy as sa


revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "profiles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=200), nullable=False),
        sa.Column("full_name", sa.String(length=160), nullable=False, server_default=""),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="client"),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("locale", sa.String(length=5), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("email", name="uq_profiles_email"),
    )
    op.create_index("ix_profiles_email", "profiles", ["email"])

    op.create_table(
        "properties",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("property_address", sa.String(length=255), nullable=False),
        sa.Column("property_type", sa.String(length=20), nullable=False, server_default="residential"),
        sa.Column("area_sqm", sa.Float(), nullable=False),
        sa.Column("bedrooms", sa.Integer(), nullable=True),
        sa.Column("bathrooms", sa.Integer(), nullable=True),
        sa.Column("year_built", sa.Integer(), nullable=True),
        sa.Column("owner_name", sa.String(length=160), nullable=False),
        sa.Column("owner_contact", sa.String(length=160), nullable=False),
        sa.Column("city", sa.String(length=80), nullable=True),
        sa.Column("district", sa.String(length=80), nullable=True),
        sa.Column("location_lat", sa.Float(), nullable=True),
        sa.Column("location_lng", sa.Float(), nullable=True),
        sa.Column("location_zoom", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="intake"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_properties_user_id", "properties", ["user_id"])

    op.create_table(
        "intake_records",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("property_id", sa.Integer(), sa.ForeignKey("properties.id"), nullable=False),
        sa.Column("reference_no", sa.String(length=80), nullable=True),
        sa.Column("received_by", sa.Integer(), sa.ForeignKey("profiles.id"), nullable=True),
        sa.Column("received_at", sa.DateTime(), nullable=True),
        sa.Column("contact_verified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("building_license_no", sa.String(length=80), nullable=True),
        sa.Column("plan_no", sa.String(length=80), nullable=True),
        sa.Column("land_use", sa.String(length=80), nullable=True),
        sa.Column("onsite_services", sa.JSON(), nullable=True),
        sa.Column("parcel_no", sa.String(length=80), nullable=True),
        sa.Column("neighbor_built", sa.Boolean(), nullable=True),
        sa.Column("land_nature", sa.String(length=80), nullable=True),
        sa.Column("is_occupied", sa.Boolean(), nullable=True),
        sa.Column("documents", sa.JSON(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.UniqueConstraint("property_id", name="uq_intake_records_property"),
    )
    op.create_index("ix_intake_records_property_id", "intake_records", ["property_id"])

    op.create_table(
        "inspections",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("property_id", sa.Integer(), sa.ForeignKey("properties.id"), nullable=False),
        sa.Column("inspector_id", sa.Integer(), sa.ForeignKey("profiles.id"), nullable=True),
        sa.Column("inspection_date", sa.Date(), nullable=True),
        sa.Column("structural_condition", sa.String(length=20), nullable=True),
        sa.Column("interior_condition", sa.String(length=20), nullable=True),
        sa.Column("exterior_condition", sa.String(length=20), nullable=True),
        sa.Column("amenities", sa.JSON(), nullable=True),
        sa.Column("defects", sa.JSON(), nullable=True),
        sa.Column("photos", sa.JSON(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("building_license_no", sa.String(length=80), nullable=True),
        sa.Column("plan_no", sa.String(length=80), nullable=True),
        sa.Column("land_use", sa.String(length=80), nullable=True),
        sa.Column("onsite_services", sa.JSON(), nullable=True),
        sa.Column("parcel_no", sa.String(length=80), nullable=True),
        sa.Column("neighbor_built", sa.Boolean(), nullable=True),
        sa.Column("land_nature", sa.String(length=80), nullable=True),
        sa.Column("is_occupied", sa.Boolean(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("property_id", name="uq_inspections_property"),
    )
    op.create_index("ix_inspections_property_id", "inspections", ["property_id"])

    op.create_table(
        "appraisals",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("property_id", sa.Integer(), sa.ForeignKey("properties.id"), nullable=False),
        sa.Column("inspection_id", sa.Integer(), sa.ForeignKey("inspections.id"), nullable=True),
        sa.Column("appraiser_id", sa.Integer(), sa.ForeignKey("profiles.id"), nullable=True),
        sa.Column("market_value", sa.Float(), nullable=True),
        sa.Column("land_value", sa.Float(), nullable=True),
        sa.Column("building_value", sa.Float(), nullable=True),
        sa.Column("final_value", sa.Float(), nullable=True),
        sa.Column("valuation_method", sa.String(length=20), nullable=True),
        sa.Column("confidence_level", sa.String(length=10), nullable=True),
        sa.Column("comparable_properties", sa.JSON(), nullable=True),
        sa.Column("adjustments", sa.JSON(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("purpose", sa.String(length=160), nullable=True),
        sa.Column("value_basis", sa.String(length=160), nullable=True),
        sa.Column("method_used", sa.String(length=160), nullable=True),
        sa.Column("currency", sa.String(length=8), nullable=True),
        sa.Column("ownership_type", sa.String(length=80), nullable=True),
        sa.Column("assignment_date", sa.Date(), nullable=True),
        sa.Column("inspection_date_ro", sa.Date(), nullable=True),
        sa.Column("inspection_time_ro", sa.String(length=8), nullable=True),
        sa.Column("assumptions", sa.Text(), nullable=True),
        sa.Column("info_source_user_id", sa.Integer(), sa.ForeignKey("profiles.id"), nullable=True),
        sa.Column("deed_number", sa.String(length=80), nullable=True),
        sa.Column("deed_date", sa.Date(), nullable=True),
        sa.Column("doc_building_license_no", sa.String(length=80), nullable=True),
        sa.Column("doc_building_license_date", sa.Date(), nullable=True),
        sa.Column("boundary_north", sa.String(length=255), nullable=True),
        sa.Column("boundary_south", sa.String(length=255), nullable=True),
        sa.Column("boundary_east", sa.String(length=255), nullable=True),
        sa.Column("boundary_west", sa.String(length=255), nullable=True),
        sa.Column("public_services", sa.JSON(), nullable=True),
        sa.Column("health_services", sa.JSON(), nullable=True),
        sa.Column("attachments", sa.JSON(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("property_id", name="uq_appraisals_property"),
    )
    op.create_index("ix_appraisals_property_id", "appraisals", ["property_id"])

    op.create_table(
        "reviews",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("appraisal_id", sa.Integer(), sa.ForeignKey("appraisals.id"), nullable=False),
        sa.Column("reviewer_id", sa.Integer(), sa.ForeignKey("profiles.id"), nullable=True),
        sa.Column("review_status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("comments", sa.Text(), nullable=True),
        sa.Column("requested_changes", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("appraisal_id", name="uq_reviews_appraisal"),
    )
    op.create_index("ix_reviews_appraisal_id", "reviews", ["appraisal_id"])

    op.create_table(
        "deliveries",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("appraisal_id", sa.Integer(), sa.ForeignKey("appraisals.id"), nullable=False),
        sa.Column("delivered_by", sa.Integer(), sa.ForeignKey("profiles.id"), nullable=True),
        sa.Column("delivery_method", sa.String(length=20), nullable=False),
        sa.Column("recipient_email", sa.String(length=200), nullable=True),
        sa.Column("report_url", sa.Text(), nullable=True),
        sa.Column("delivered_at", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("appraisal_id", name="uq_deliveries_appraisal"),
    )
    op.create_index("ix_deliveries_appraisal_id", "deliveries", ["appraisal_id"])


def downgrade():
    op.drop_index("ix_deliveries_appraisal_id", table_name="deliveries")
    op.drop_table("deliveries")
    op.drop_index("ix_reviews_appraisal_id", table_name="reviews")
    op.drop_table("reviews")
    op.drop_index("ix_appraisals_property_id", table_name="appraisals")
    op.drop_table("appraisals")
    op.drop_index("ix_inspections_property_id", table_name="inspections")
    op.drop_table("inspections")
    op.drop_index("ix_intake_records_property_id", table_name="intake_records")
    op.drop_table("intake_records")
    op.drop_index("ix_properties_user_id", table_name="properties")
    op.drop_table("properties")
    op.drop_index("ix_profiles_email", table_name="profiles")
    op.drop_table("profiles")

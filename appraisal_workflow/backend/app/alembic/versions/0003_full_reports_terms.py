"""full_reports view v2: appraisal terms, documents, boundaries, services

Revision ID: 0003_full_reports_terms
Revises: 0002_full_reports_view
Create Date: 2026-10-05
"""
from alembic import op


revision = "0003_full_reports_terms"
down_revision = "0002_full_reports_view"
branch_labels = None
depends_on = None


V2_SQL = """
CREATE VIEW full_reports AS
SELECT
    a.id AS appraisal_id,
    p.id AS property_id,
    p.user_id AS owner_id,
    p.property_address AS property_address,
    p.property_type AS property_type,
    p.area_sqm AS area_sqm,
    p.bedrooms AS bedrooms,
    p.bathrooms AS bathrooms,
    p.year_built AS year_built,
    p.owner_name AS owner_name,
    p.owner_contact AS owner_contact,
    p.status AS property_status,
    p.created_at AS property_created_at,
    p.updated_at AS property_updated_at,
    i.id AS inspection_id,
    i.inspection_date AS inspection_date,
    i.structural_condition AS structural_condition,
    i.interior_condition AS interior_condition,
    i.exterior_condition AS exterior_condition,
    i.amenities AS amenities,
    i.defects AS defects,
    i.photos AS photos,
    i.notes AS inspection_notes,
    i.status AS inspection_status,
    i.created_at AS inspection_created_at,
    i.completed_at AS inspection_completed_at,
    i.building_license_no AS building_license_no,
    i.plan_no AS plan_no,
    i.land_use AS land_use,
    i.onsite_services AS onsite_services,
    i.parcel_no AS parcel_no,
    i.neighbor_built AS neighbor_built,
    i.land_nature AS land_nature,
    i.is_occupied AS is_occupied,
    a.appraiser_id AS appraiser_id,
    a.market_value AS market_value,
    a.land_value AS land_value,
    a.building_value AS building_value,
    a.valuation_method AS valuation_method,
    a.comparable_properties AS comparable_properties,
    a.adjustments AS adjustments,
    a.final_value AS final_value,
    a.confidence_level AS confidence_level,
    a.notes AS appraisal_notes,
    a.status AS appraisal_status,
    a.created_at AS appraisal_created_at,
    a.completed_at AS appraisal_completed_at,
    r.id AS review_id,
    r.reviewer_id AS reviewer_id,
    r.review_status AS review_status,
    r.comments AS comments,
    r.requested_changes AS requested_changes,
    r.created_at AS review_created_at,
    r.completed_at AS review_completed_at,
    d.id AS delivery_id,
    d.delivered_by AS delivered_by,
    d.delivery_method AS delivery_method,
    d.recipient_email AS recipient_email,
    d.report_url AS report_url,
    d.delivered_at AS delivered_at,
    d.created_at AS delivery_created_at,
    a.purpose AS purpose,
    a.value_basis AS value_basis,
    a.method_used AS method_used,
    a.currency AS currency,
    a.ownership_type AS ownership_type,
    a.assignment_date AS assignment_date,
    COALESCE(a.inspection_date_ro, i.inspection_date) AS inspection_date_ro,
    a.inspection_time_ro AS inspection_time_ro,
    a.assumptions AS assumptions,
    a.info_source_user_id AS info_source_user_id,
    a.deed_number AS deed_number,
    a.deed_date AS deed_date,
    COALESCE(a.doc_building_license_no, i.building_license_no) AS doc_building_license_no,
    a.doc_building_license_date AS doc_building_license_date,
    a.boundary_north AS boundary_north,
    a.boundary_south AS boundary_south,
    a.boundary_east AS boundary_east,
    a.boundary_west AS boundary_west,
    a.public_services AS public_services,
    a.health_services AS health_services,
    a.attachments AS attachments
FROM appraisals a
JOIN deliveries d ON d.appraisal_id = a.id
JOIN properties p ON p.id = a.property_id
LEFT JOIN inspections i ON i.id = a.inspection_id
LEFT JOIN reviews r ON r.id = (
    SELECT r2.id FROM reviews r2 WHERE r2.appraisal_id = a.id
    ORDER BY r2.created_at DESC, r2.id DESC LIMIT 1
)
WHERE a.status = 'completed'
"""


def upgrade():
    # column lists of views cannot be altered in place on every backend
    op.execute("DROP VIEW IF EXISTS full_reports")
    op.execute(V2_SQL)


# previous definition, restored on downgrade
V1_SQL = """
CREATE VIEW full_reports AS
SELECT
    a.id AS appraisal_id,
    p.id AS property_id,
    p.user_id AS owner_id,
    p.property_address AS property_address,
    p.property_type AS property_type,
    p.area_sqm AS area_sqm,
    p.bedrooms AS bedrooms,
    p.bathrooms AS bathrooms,
    p.year_built AS year_built,
    p.owner_name AS owner_name,
    p.owner_contact AS owner_contact,
    p.status AS property_status,
    p.created_at AS property_created_at,
    p.updated_at AS property_updated_at,
    i.id AS inspection_id,
    i.inspection_date AS inspection_date,
    i.structural_condition AS structural_condition,
    i.interior_condition AS interior_condition,
    i.exterior_condition AS exterior_condition,
    i.amenities AS amenities,
    i.defects AS defects,
    i.photos AS photos,
    i.notes AS inspection_notes,
    i.status AS inspection_status,
    i.created_at AS inspection_created_at,
    i.completed_at AS inspection_completed_at,
    i.building_license_no AS building_license_no,
    i.plan_no AS plan_no,
    i.land_use AS land_use,
    i.onsite_services AS onsite_services,
    i.parcel_no AS parcel_no,
    i.neighbor_built AS neighbor_built,
    i.land_nature AS land_nature,
    i.is_occupied AS is_occupied,
    a.appraiser_id AS appraiser_id,
    a.market_value AS market_value,
    a.land_value AS land_value,
    a.building_value AS building_value,
    a.valuation_method AS valuation_method,
    a.comparable_properties AS comparable_properties,
    a.adjustments AS adjustments,
    a.final_value AS final_value,
    a.confidence_level AS confidence_level,
    a.notes AS appraisal_notes,
    a.status AS appraisal_status,
    a.created_at AS appraisal_created_at,
    a.completed_at AS appraisal_completed_at,
    r.id AS review_id,
    r.reviewer_id AS reviewer_id,
    r.review_status AS review_status,
    r.comments AS comments,
    r.requested_changes AS requested_changes,
    r.created_at AS review_created_at,
    r.completed_at AS review_completed_at,
    d.id AS delivery_id,
    d.delivered_by AS delivered_by,
    d.delivery_method AS delivery_method,
    d.recipient_email AS recipient_email,
    d.report_url AS report_url,
    d.delivered_at AS delivered_at,
    d.created_at AS delivery_created_at
FROM appraisals a
JOIN deliveries d ON d.appraisal_id = a.id
JOIN properties p ON p.id = a.property_id
LEFT JOIN inspections i ON i.id = a.inspection_id
LEFT JOIN reviews r ON r.id = (
    SELECT r2.id FROM reviews r2 WHERE r2.appraisal_id = a.id
    ORDER BY r2.created_at DESC, r2.id DESC LIMIT 1
)
WHERE a.status = 'completed'
"""


def downgrade():
    op.execute("DROP VIEW IF EXISTS full_reports")
    op.execute(V1_SQL)

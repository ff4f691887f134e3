# backend/app/models.py
from __future__ import annotations

from datetime import date, datetime
from typing import Any, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .config import settings
from .db import Base


# -----------------------------
# Users
# -----------------------------
class UserProfile(Base):
    __tablename__ = "profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(200), nullable=False, unique=True, index=True)
    full_name: Mapped[str] = mapped_column(String(160), nullable=False, default="")
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="client")  # admin|appraiser|inspector|reviewer|client
    phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    locale: Mapped[Optional[str]] = mapped_column(String(5), nullable=True)  # ar|en
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


# -----------------------------
# Properties / intake
# -----------------------------
class Property(Base):
    __tablename__ = "properties"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)

    property_address: Mapped[str] = mapped_column(String(255), nullable=False)
    property_type: Mapped[str] = mapped_column(String(20), nullable=False, default="residential")
    area_sqm: Mapped[float] = mapped_column(Float, nullable=False)
    bedrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    bathrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    year_built: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    owner_name: Mapped[str] = mapped_column(String(160), nullable=False)
    owner_contact: Mapped[str] = mapped_column(String(160), nullable=False)

    city: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    district: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    location_lat: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    location_lng: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    location_zoom: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # advisory only; the derived stage is computed from child records
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="intake")

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    inspections: Mapped[List["Inspection"]] = relationship(back_populates="property")
    appraisals: Mapped[List["Appraisal"]] = relationship(back_populates="property")
    intake_record: Mapped[Optional["IntakeRecord"]] = relationship(back_populates="property", uselist=False)


class IntakeRecord(Base):
    __tablename__ = "intake_records"
    __table_args__ = (UniqueConstraint("property_id", name="uq_intake_records_property"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    property_id: Mapped[int] = mapped_column(ForeignKey("properties.id"), nullable=False, index=True)

    reference_no: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    received_by: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("profiles.id"), nullable=True)
    received_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    contact_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    building_license_no: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    plan_no: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    land_use: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    onsite_services: Mapped[Optional[list[Any]]] = mapped_column(JSON, nullable=True)
    parcel_no: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    neighbor_built: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    land_nature: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    is_occupied: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    documents: Mapped[Optional[list[Any]]] = mapped_column(JSON, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    property: Mapped["Property"] = relationship(back_populates="intake_record")


# -----------------------------
# Workflow records
# -----------------------------
class Inspection(Base):
    __tablename__ = "inspections"
    __table_args__ = (UniqueConstraint("property_id", name="uq_inspections_property"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    property_id: Mapped[int] = mapped_column(ForeignKey("properties.id"), nullable=False, index=True)
    inspector_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("profiles.id"), nullable=True)

    inspection_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    structural_condition: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    interior_condition: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    exterior_condition: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    amenities: Mapped[Optional[list[Any]]] = mapped_column(JSON, nullable=True)
    defects: Mapped[Optional[list[Any]]] = mapped_column(JSON, nullable=True)
    photos: Mapped[Optional[list[Any]]] = mapped_column(JSON, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    building_license_no: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    plan_no: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    land_use: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    onsite_services: Mapped[Optional[list[Any]]] = mapped_column(JSON, nullable=True)
    parcel_no: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    neighbor_built: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    land_nature: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    is_occupied: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")  # pending|in_progress|completed
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    property: Mapped["Property"] = relationship(back_populates="inspections")


class Appraisal(Base):
    __tablename__ = "appraisals"
    __table_args__ = (UniqueConstraint("property_id", name="uq_appraisals_property"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    property_id: Mapped[int] = mapped_column(ForeignKey("properties.id"), nullable=False, index=True)
    inspection_id: Mapped[Optional[int]] = mapped_column(ForeignKey("inspections.id"), nullable=True)
    appraiser_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("profiles.id"), nullable=True)

    market_value: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    land_value: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    building_value: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    final_value: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    valuation_method: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)  # comparative|cost|income|mixed
    confidence_level: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)  # low|medium|high
    comparable_properties: Mapped[Optional[list[Any]]] = mapped_column(JSON, nullable=True)
    adjustments: Mapped[Optional[list[Any]]] = mapped_column(JSON, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # assumptions & terms
    purpose: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    value_basis: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    method_used: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    currency: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    ownership_type: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    assignment_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    inspection_date_ro: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    inspection_time_ro: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    assumptions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    info_source_user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("profiles.id"), nullable=True)

    # documents, boundaries, services, attachments
    deed_number: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    deed_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    doc_building_license_no: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    doc_building_license_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    boundary_north: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    boundary_south: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    boundary_east: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    boundary_west: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    public_services: Mapped[Optional[list[Any]]] = mapped_column(JSON, nullable=True)
    health_services: Mapped[Optional[list[Any]]] = mapped_column(JSON, nullable=True)
    attachments: Mapped[Optional[list[Any]]] = mapped_column(JSON, nullable=True)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")  # pending|completed
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    property: Mapped["Property"] = relationship(back_populates="appraisals")
    reviews: Mapped[List["Review"]] = relationship(back_populates="appraisal")
    deliveries: Mapped[List["Delivery"]] = relationship(back_populates="appraisal")


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (UniqueConstraint("appraisal_id", name="uq_reviews_appraisal"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    appraisal_id: Mapped[int] = mapped_column(ForeignKey("appraisals.id"), nullable=False, index=True)
    reviewer_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("profiles.id"), nullable=True)

    review_status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")  # pending|approved|rejected|needs_revision
    comments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    requested_changes: Mapped[Optional[list[Any]]] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    appraisal: Mapped["Appraisal"] = relationship(back_populates="reviews")


class Delivery(Base):
    __tablename__ = "deliveries"
    __table_args__ = (UniqueConstraint("appraisal_id", name="uq_deliveries_appraisal"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    appraisal_id: Mapped[int] = mapped_column(ForeignKey("appraisals.id"), nullable=False, index=True)
    delivered_by: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("profiles.id"), nullable=True)

    delivery_method: Mapped[str] = mapped_column(String(20), nullable=False)  # email|portal|physical|courier
    recipient_email: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    report_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    delivered_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    appraisal: Mapped["Appraisal"] = relationship(back_populates="deliveries")


# -----------------------------
# full_reports view
# -----------------------------
# Columns the first published version of the view carried. Later revisions
# add TERMS_VIEW_COLUMNS; readers backfill those when an older view is live.
BASE_VIEW_COLUMNS: list[tuple[str, str]] = [
    ("appraisal_id", "a.id"),
    ("property_id", "p.id"),
    ("owner_id", "p.user_id"),
    ("property_address", "p.property_address"),
    ("property_type", "p.property_type"),
    ("area_sqm", "p.area_sqm"),
    ("bedrooms", "p.bedrooms"),
    ("bathrooms", "p.bathrooms"),
    ("year_built", "p.year_built"),
    ("owner_name", "p.owner_name"),
    ("owner_contact", "p.owner_contact"),
    ("property_status", "p.status"),
    ("property_created_at", "p.created_at"),
    ("property_updated_at", "p.updated_at"),
    ("inspection_id", "i.id"),
    ("inspection_date", "i.inspection_date"),
    ("structural_condition", "i.structural_condition"),
    ("interior_condition", "i.interior_condition"),
    ("exterior_condition", "i.exterior_condition"),
    ("amenities", "i.amenities"),
    ("defects", "i.defects"),
    ("photos", "i.photos"),
    ("inspection_notes", "i.notes"),
    ("inspection_status", "i.status"),
    ("inspection_created_at", "i.created_at"),
    ("inspection_completed_at", "i.completed_at"),
    ("building_license_no", "i.building_license_no"),
    ("plan_no", "i.plan_no"),
    ("land_use", "i.land_use"),
    ("onsite_services", "i.onsite_services"),
    ("parcel_no", "i.parcel_no"),
    ("neighbor_built", "i.neighbor_built"),
    ("land_nature", "i.land_nature"),
    ("is_occupied", "i.is_occupied"),
    ("appraiser_id", "a.appraiser_id"),
    ("market_value", "a.market_value"),
    ("land_value", "a.land_value"),
    ("building_value", "a.building_value"),
    ("valuation_method", "a.valuation_method"),
    ("comparable_properties", "a.comparable_properties"),
    ("adjustments", "a.adjustments"),
    ("final_value", "a.final_value"),
    ("confidence_level", "a.confidence_level"),
    ("appraisal_notes", "a.notes"),
    ("appraisal_status", "a.status"),
    ("appraisal_created_at", "a.created_at"),
    ("appraisal_completed_at", "a.completed_at"),
    ("review_id", "r.id"),
    ("reviewer_id", "r.reviewer_id"),
    ("review_status", "r.review_status"),
    ("comments", "r.comments"),
    ("requested_changes", "r.requested_changes"),
    ("review_created_at", "r.created_at"),
    ("review_completed_at", "r.completed_at"),
    ("delivery_id", "d.id"),
    ("delivered_by", "d.delivered_by"),
    ("delivery_method", "d.delivery_method"),
    ("recipient_email", "d.recipient_email"),
    ("report_url", "d.report_url"),
    ("delivered_at", "d.delivered_at"),
    ("delivery_created_at", "d.created_at"),
]

TERMS_VIEW_COLUMNS: list[tuple[str, str]] = [
    ("purpose", "a.purpose"),
    ("value_basis", "a.value_basis"),
    ("method_used", "a.method_used"),
    ("currency", "a.currency"),
    ("ownership_type", "a.ownership_type"),
    ("assignment_date", "a.assignment_date"),
    ("inspection_date_ro", "COALESCE(a.inspection_date_ro, i.inspection_date)"),
    ("inspection_time_ro", "a.inspection_time_ro"),
    ("assumptions", "a.assumptions"),
    ("info_source_user_id", "a.info_source_user_id"),
    ("deed_number", "a.deed_number"),
    ("deed_date", "a.deed_date"),
    ("doc_building_license_no", "COALESCE(a.doc_building_license_no, i.building_license_no)"),
    ("doc_building_license_date", "a.doc_building_license_date"),
    ("boundary_north", "a.boundary_north"),
    ("boundary_south", "a.boundary_south"),
    ("boundary_east", "a.boundary_east"),
    ("boundary_west", "a.boundary_west"),
    ("public_services", "a.public_services"),
    ("health_services", "a.health_services"),
    ("attachments", "a.attachments"),
]


def full_reports_view_sql(name: str | None = None, *, include_terms: bool = True) -> str:
    """
    One row per delivered, completed appraisal; the latest review wins.
    """
    view = name or settings.full_reports_view
    cols = list(BASE_VIEW_COLUMNS)
    if include_terms:
        cols += TERMS_VIEW_COLUMNS
    select_list = ",\n    ".join(f"{expr} AS {alias}" for alias, expr in cols)
    return (
        f"CREATE VIEW {view} AS\nSELECT\n    {select_list}\n"
        "FROM appraisals a\n"
        "JOIN deliveries d ON d.appraisal_id = a.id\n"
        "JOIN properties p ON p.id = a.property_id\n"
        "LEFT JOIN inspections i ON i.id = a.inspection_id\n"
        "LEFT JOIN reviews r ON r.id = (\n"
        "    SELECT r2.id FROM reviews r2 WHERE r2.appraisal_id = a.id\n"
        "    ORDER BY r2.created_at DESC, r2.id DESC LIMIT 1\n"
        ")\n"
        "WHERE a.status = 'completed'"
    )


def drop_full_reports_view(bind: Engine | Connection, name: str | None = None) -> None:
    view = name or settings.full_reports_view
    _exec_ddl(bind, f"DROP VIEW IF EXISTS {view}")


def create_full_reports_view(bind: Engine | Connection, *, include_terms: bool = True) -> None:
    drop_full_reports_view(bind)
    _exec_ddl(bind, full_reports_view_sql(include_terms=include_terms))


def _exec_ddl(bind: Engine | Connection, sql: str) -> None:
    if isinstance(bind, Engine):
        with bind.begin() as conn:
            conn.execute(text(sql))
    else:
        bind.execute(text(sql))

# backend/app/schemas.py
from __future__ import annotations

from datetime import date, datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .domain.report_schema import normalize_services

PropertyType = Literal["residential", "commercial", "industrial", "land"]
Condition = Literal["excellent", "good", "fair", "poor"]
InspectionStatus = Literal["pending", "in_progress", "completed"]
AppraisalStatus = Literal["pending", "completed"]
ValuationMethod = Literal["comparative", "cost", "income", "mixed"]
ConfidenceLevel = Literal["low", "medium", "high"]
ReviewStatus = Literal["pending", "approved", "rejected", "needs_revision"]
DeliveryMethod = Literal["email", "portal", "physical", "courier"]


def _blank_to_none(v: Any) -> Any:
    if isinstance(v, str) and not v.strip():
        return None
    return v


def _none_to_list(v: Any) -> Any:
    return [] if v is None else v


def _clean_list(v: Any) -> Any:
    if v is None:
        return []
    if isinstance(v, str):
        return normalize_services(v)
    if not isinstance(v, (list, tuple)):
        return v
    return [str(x).strip() for x in v if x is not None and str(x).strip()]


# -------------------- Auth --------------------

class PrincipalOut(BaseModel):
    user_id: int
    email: str
    role: str
    full_name: str = ""
    locale: str


# -------------------- Properties / intake --------------------

class PropertyCreate(BaseModel):
    property_address: str = Field(min_length=1)
    property_type: PropertyType = "residential"
    area_sqm: float = Field(gt=0)
    bedrooms: Optional[int] = Field(default=None, ge=0)
    bathrooms: Optional[int] = Field(default=None, ge=0)
    year_built: Optional[int] = Field(default=None, ge=1800, le=2100)
    owner_name: str = Field(min_length=1)
    owner_contact: str = Field(min_length=1)

    city: Optional[str] = None
    district: Optional[str] = None
    location_lat: Optional[float] = Field(default=None, ge=-90, le=90)
    location_lng: Optional[float] = Field(default=None, ge=-180, le=180)
    location_zoom: Optional[int] = Field(default=None, ge=0, le=22)

    # admins may file on behalf of a client
    user_id: Optional[int] = None

    blank_to_none = field_validator("city", "district", mode="before")(_blank_to_none)


class PropertyOut(BaseModel):
    id: int
    user_id: int
    property_address: str
    property_type: str
    area_sqm: float
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    year_built: Optional[int] = None
    owner_name: str
    owner_contact: str
    city: Optional[str] = None
    district: Optional[str] = None
    location_lat: Optional[float] = None
    location_lng: Optional[float] = None
    location_zoom: Optional[int] = None
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PropertyListItem(PropertyOut):
    derived_status: str


class PropertyGroupOut(BaseModel):
    stage: str
    properties: List[PropertyListItem] = Field(default_factory=list)


class IntakeRecordUpsert(BaseModel):
    reference_no: Optional[str] = None
    received_at: Optional[datetime] = None
    contact_verified: bool = False
    building_license_no: Optional[str] = None
    plan_no: Optional[str] = None
    land_use: Optional[str] = None
    onsite_services: List[str] = Field(default_factory=list)
    parcel_no: Optional[str] = None
    neighbor_built: Optional[bool] = None
    land_nature: Optional[str] = None
    is_occupied: Optional[bool] = None
    documents: List[Any] = Field(default_factory=list)
    notes: Optional[str] = None

    blank_to_none = field_validator(
        "reference_no", "building_license_no", "plan_no", "land_use", "parcel_no", "land_nature", "notes",
        mode="before",
    )(_blank_to_none)
    clean_lists = field_validator("onsite_services", mode="before")(_clean_list)


class IntakeRecordOut(IntakeRecordUpsert):
    id: Optional[int] = None
    property_id: int
    received_by: Optional[int] = None
    saved: bool = True


# -------------------- Inspection --------------------

class InspectionUpsert(BaseModel):
    property_id: int
    inspection_date: Optional[date] = None
    structural_condition: Optional[Condition] = None
    interior_condition: Optional[Condition] = None
    exterior_condition: Optional[Condition] = None
    amenities: List[str] = Field(default_factory=list)
    defects: List[str] = Field(default_factory=list)
    photos: List[Any] = Field(default_factory=list)
    notes: Optional[str] = None
    status: InspectionStatus = "pending"

    building_license_no: Optional[str] = None
    plan_no: Optional[str] = None
    land_use: Optional[str] = None
    onsite_services: List[str] = Field(default_factory=list)
    parcel_no: Optional[str] = None
    neighbor_built: bool = False
    land_nature: Optional[str] = None
    is_occupied: bool = False

    blank_to_none = field_validator(
        "inspection_date", "structural_condition", "interior_condition", "exterior_condition",
        "building_license_no", "plan_no", "land_use", "parcel_no", "land_nature",
        mode="before",
    )(_blank_to_none)
    clean_lists = field_validator("amenities", "defects", "onsite_services", mode="before")(_clean_list)


class InspectionOut(BaseModel):
    id: int
    property_id: int
    inspector_id: Optional[int] = None
    inspection_date: Optional[date] = None
    structural_condition: Optional[str] = None
    interior_condition: Optional[str] = None
    exterior_condition: Optional[str] = None
    amenities: List[Any] = Field(default_factory=list)
    defects: List[Any] = Field(default_factory=list)
    photos: List[Any] = Field(default_factory=list)
    notes: Optional[str] = None
    building_license_no: Optional[str] = None
    plan_no: Optional[str] = None
    land_use: Optional[str] = None
    onsite_services: List[Any] = Field(default_factory=list)
    parcel_no: Optional[str] = None
    neighbor_built: Optional[bool] = None
    land_nature: Optional[str] = None
    is_occupied: Optional[bool] = None
    status: str
    created_at: datetime
    completed_at: Optional[datetime] = None

    none_to_list = field_validator("amenities", "defects", "photos", "onsite_services", mode="before")(_none_to_list)


# -------------------- Appraisal --------------------

class AppraisalUpsert(BaseModel):
    property_id: int
    market_value: Optional[float] = Field(default=None, ge=0)
    land_value: Optional[float] = Field(default=None, ge=0)
    building_value: Optional[float] = Field(default=None, ge=0)
    final_value: Optional[float] = Field(default=None, ge=0)
    valuation_method: ValuationMethod = "comparative"
    confidence_level: ConfidenceLevel = "medium"
    comparable_properties: List[Any] = Field(default_factory=list)
    adjustments: List[Any] = Field(default_factory=list)
    notes: Optional[str] = None
    status: AppraisalStatus = "pending"

    purpose: Optional[str] = None
    value_basis: Optional[str] = None
    method_used: Optional[str] = None
    currency: Optional[str] = None
    ownership_type: Optional[str] = None
    assignment_date: Optional[date] = None
    inspection_date_ro: Optional[date] = None
    inspection_time_ro: Optional[str] = Field(default=None, pattern=r"^\d{2}:\d{2}(:\d{2})?$")
    assumptions: Optional[str] = None
    info_source_user_id: Optional[int] = None

    deed_number: Optional[str] = None
    deed_date: Optional[date] = None
    doc_building_license_no: Optional[str] = None
    doc_building_license_date: Optional[date] = None
    boundary_north: Optional[str] = None
    boundary_south: Optional[str] = None
    boundary_east: Optional[str] = None
    boundary_west: Optional[str] = None
    public_services: List[str] = Field(default_factory=list)
    health_services: List[str] = Field(default_factory=list)
    attachments: List[Any] = Field(default_factory=list)

    blank_to_none = field_validator(
        "purpose", "value_basis", "method_used", "currency", "ownership_type", "assignment_date",
        "inspection_date_ro", "inspection_time_ro", "assumptions", "deed_number", "deed_date",
        "doc_building_license_no", "doc_building_license_date",
        "boundary_north", "boundary_south", "boundary_east", "boundary_west",
        mode="before",
    )(_blank_to_none)
    clean_lists = field_validator("public_services", "health_services", mode="before")(_clean_list)


class AppraisalOut(BaseModel):
    id: int
    property_id: int
    inspection_id: Optional[int] = None
    appraiser_id: Optional[int] = None
    market_value: Optional[float] = None
    land_value: Optional[float] = None
    building_value: Optional[float] = None
    final_value: Optional[float] = None
    valuation_method: Optional[str] = None
    confidence_level: Optional[str] = None
    comparable_properties: Optional[List[Any]] = None
    adjustments: Optional[List[Any]] = None
    notes: Optional[str] = None
    status: str

    purpose: Optional[str] = None
    value_basis: Optional[str] = None
    method_used: Optional[str] = None
    currency: Optional[str] = None
    ownership_type: Optional[str] = None
    assignment_date: Optional[date] = None
    inspection_date_ro: Optional[date] = None
    inspection_time_ro: Optional[str] = None
    assumptions: Optional[str] = None
    info_source_user_id: Optional[int] = None

    deed_number: Optional[str] = None
    deed_date: Optional[date] = None
    doc_building_license_no: Optional[str] = None
    doc_building_license_date: Optional[date] = None
    boundary_north: Optional[str] = None
    boundary_south: Optional[str] = None
    boundary_east: Optional[str] = None
    boundary_west: Optional[str] = None
    public_services: Optional[List[Any]] = None
    health_services: Optional[List[Any]] = None
    attachments: Optional[List[Any]] = None

    created_at: datetime
    completed_at: Optional[datetime] = None


# -------------------- Review / Delivery --------------------

class ReviewUpsert(BaseModel):
    appraisal_id: int
    review_status: ReviewStatus = "pending"
    comments: Optional[str] = None
    requested_changes: List[str] = Field(default_factory=list)

    clean_lists = field_validator("requested_changes", mode="before")(_clean_list)


class ReviewOut(BaseModel):
    id: int
    appraisal_id: int
    reviewer_id: Optional[int] = None
    review_status: str
    comments: Optional[str] = None
    requested_changes: Optional[List[Any]] = None
    created_at: datetime
    completed_at: Optional[datetime] = None


class DeliveryCreate(BaseModel):
    appraisal_id: int
    delivery_method: DeliveryMethod = "email"
    recipient_email: Optional[str] = None
    report_url: Optional[str] = None

    blank_to_none = field_validator("recipient_email", "report_url", mode="before")(_blank_to_none)

    @model_validator(mode="after")
    def _recipient_required(self) -> "DeliveryCreate":
        if self.delivery_method in ("email", "portal"):
            email = (self.recipient_email or "").strip()
            if not email or "@" not in email:
                raise ValueError("recipient_email is required for email and portal delivery")
        return self


class DeliveryOut(BaseModel):
    id: int
    appraisal_id: int
    delivered_by: Optional[int] = None
    delivery_method: str
    recipient_email: Optional[str] = None
    report_url: Optional[str] = None
    delivered_at: datetime
    created_at: datetime


# -------------------- Workflow view --------------------

class TabAccessOut(BaseModel):
    visible: bool
    editable: bool
    ready: bool
    actionable: bool


class StepOut(BaseModel):
    id: str
    completed: bool


class PropertyDetailOut(BaseModel):
    property: PropertyOut
    derived_status: str
    inspection: Optional[InspectionOut] = None
    appraisal: Optional[AppraisalOut] = None
    review: Optional[ReviewOut] = None
    delivery: Optional[DeliveryOut] = None
    tabs: dict[str, TabAccessOut]
    steps: List[StepOut]
    show_client_info: bool


class ReportPointerOut(BaseModel):
    property_id: int
    appraisal_id: int


# -------------------- Reports --------------------

class ReportListItem(BaseModel):
    appraisal_id: int
    property_id: int
    owner_id: int
    property_address: str
    property_type: str
    area_sqm: Optional[float] = None
    owner_name: Optional[str] = None
    final_value: Optional[float] = None
    review_status: Optional[str] = None
    delivered_at: Optional[datetime] = None


# -------------------- Areas --------------------

class DistrictOut(BaseModel):
    id: str
    name: str


class CityOut(BaseModel):
    id: str
    name: str
    districts: List[DistrictOut] = Field(default_factory=list)

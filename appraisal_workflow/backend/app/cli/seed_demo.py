# backend/app/cli/seed_demo.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.db import SessionLocal, init_db
from app.domain.workflow_gate import ROLES
from app.models import Property, UserProfile
from app.services.auth_service import create_access_token


@dataclass(frozen=True)
class SeededUser:
    user_id: int
    email: str
    role: str
    token: str


@dataclass(frozen=True)
class SeedResult:
    domain: str
    users: list[SeededUser] = field(default_factory=list)
    property_id: Optional[int] = None


def _get_or_create_user(db: Session, email: str, role: str, full_name: str) -> UserProfile:
    row = db.query(UserProfile).filter(UserProfile.email == email).one_or_none()
    if row:
        return row
    row = UserProfile(email=email, role=role, full_name=full_name, locale="ar", created_at=datetime.utcnow())
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def seed_demo(
    *,
    domain: str = "demo.local",
    create_sample_property: bool = True,
    create_schema: bool = True,
) -> SeedResult:
    if create_schema:
        init_db()

    db = SessionLocal()
    try:
        users: list[SeededUser] = []
        by_role: dict[str, UserProfile] = {}
        for role in ROLES:
            u = _get_or_create_user(db, f"{role}@{domain}", role, role.title())
            by_role[role] = u
            users.append(
                SeededUser(
                    user_id=int(u.id),
                    email=u.email,
                    role=u.role,
                    token=create_access_token(user_id=int(u.id), role=u.role),
                )
            )

        property_id: Optional[int] = None
        if create_sample_property:
            client = by_role["client"]
            prop = db.query(Property).filter(Property.user_id == client.id).first()
            if not prop:
                now = datetime.utcnow()
                prop = Property(
                    user_id=client.id,
                    property_address="King Fahd Rd, Riyadh",
                    property_type="residential",
                    area_sqm=420.0,
                    bedrooms=5,
                    bathrooms=4,
                    year_built=2015,
                    owner_name="Demo Client",
                    owner_contact="+966500000000",
                    city="riyadh",
                    district="al-olaya",
                    status="intake",
                    created_at=now,
                    updated_at=now,
                )
                db.add(prop)
                db.commit()
                db.refresh(prop)
            property_id = int(prop.id)

        return SeedResult(domain=domain, users=users, property_id=property_id)
    finally:
        db.close()

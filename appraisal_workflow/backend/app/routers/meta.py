# backend/app/routers/meta.py
from __future__ import annotations

from fastapi import APIRouter

from ..domain.areas import SA_CITIES
from ..domain.workflow_gate import ROLES
from ..domain.workflow_status import STAGE_ORDER
from ..schemas import CityOut

router = APIRouter(prefix="/meta", tags=["meta"])


@router.get("/areas", response_model=list[CityOut])
def areas():
    return [c.as_dict() for c in SA_CITIES]


@router.get("/workflow", response_model=dict)
def workflow():
    return {"stages": list(STAGE_ORDER), "roles": list(ROLES)}

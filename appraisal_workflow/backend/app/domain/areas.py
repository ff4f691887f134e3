# backend/app/domain/areas.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class District:
    id: str
    name: str

    def as_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


@dataclass(frozen=True)
class City:
    id: str
    name: str
    districts: tuple[District, ...] = field(default_factory=tuple)

    def as_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "districts": [d.as_dict() for d in self.districts]}

    def find_district(self, value: str) -> Optional[District]:
        for d in self.districts:
            if value in (d.id, d.name):
                return d
        return None


def _city(cid: str, name: str, *districts: tuple[str, str]) -> City:
    return City(id=cid, name=name, districts=tuple(District(id=d, name=n) for d, n in districts))


# Short, extendable list of Saudi cities and common districts. Intake stores
# whatever the client picked (id or display name); both resolve here.
SA_CITIES: tuple[City, ...] = (
    _city(
        "riyadh", "الرياض",
        ("al-muruj", "المروج"), ("al-narjis", "النرجس"), ("al-yasmin", "الياسمين"),
        ("al-olaya", "العليا"), ("al-malaz", "الملز"),
    ),
    _city(
        "jeddah", "جدة",
        ("al-rawdah", "الروضة"), ("al-zahra", "الزهراء"), ("al-salamah", "السلامة"),
        ("al-nahdah", "النهضة"), ("al-baghdadiyah", "البغدادية"),
    ),
    _city("dammam", "الدمام", ("al-shati", "الشاطئ"), ("al-faisaliah", "الفيصلية"), ("al-anoud", "العنود")),
    _city("makkah", "مكة المكرمة", ("al-aziziyah", "العزيزية"), ("al-awali", "العوالي"), ("al-sharaie", "الشرائع")),
    _city("madinah", "المدينة المنورة", ("qaba", "قباء"), ("al-khalidiyah", "الخالدية"), ("al-aqiq", "العقيق")),
    _city("khobar", "الخبر", ("al-rawabi", "الروابي"), ("al-aziziyah-kh", "العزيزية"), ("al-yarmouk", "اليرموك")),
    _city("qassim", "القصيم", ("al-naseem", "النسيم"), ("al-rayyan", "الريان"), ("al-sulaimaniyah", "السليمانية")),
    _city("abha", "أبها", ("al-hilal", "الهلال"), ("al-mansak", "المنسك"), ("al-nahdah-abha", "النهضة")),
    _city("jazan", "جازان", ("samtah", "صامطة"), ("abu-araq", "أبو عريش"), ("sabya", "صبيا")),
)


def find_city(value: Optional[str]) -> Optional[City]:
    if not value:
        return None
    for c in SA_CITIES:
        if value in (c.id, c.name):
            return c
    return None


def district_error(city: Optional[str], district: Optional[str]) -> Optional[str]:
    """
    Message when a district is given that does not belong to a catalog city.
    Cities outside the catalog are accepted as free text.
    """
    if district and not city:
        return "district requires a city"
    c = find_city(city)
    if c is None or not district:
        return None
    if c.find_district(district) is None:
        return f"district '{district}' is not in {c.id}"
    return None

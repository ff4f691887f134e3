# backend/app/store.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Sequence, TypeVar

from sqlalchemy import MetaData, Table, inspect, or_, select, update
from sqlalchemy.exc import (
    DataError,
    DBAPIError,
    IntegrityError,
    NoSuchTableError,
    OperationalError,
    ProgrammingError,
    SQLAlchemyError,
    StatementError,
)
from sqlalchemy.orm import Session

from .config import settings
from .models import Appraisal, Delivery, Inspection, IntakeRecord, Property, Review, UserProfile

log = logging.getLogger(__name__)

T = TypeVar("T")

# -----------------------------------------------------------------------------
# Record store client
# -----------------------------------------------------------------------------
# Generic find/insert/update/upsert over named collections. Collections are
# either ORM tables or database views (reflected per call, so a view that
# appears after startup is picked up without a restart).
#
# Failure classes:
#   - no matching row           -> empty result, never an exception
#   - unknown collection/field  -> SchemaUnavailableError
#   - constraint / bad value    -> ConstraintError
#   - connectivity / other      -> StoreUnavailableError
# -----------------------------------------------------------------------------

COLLECTIONS: dict[str, type] = {
    "profiles": UserProfile,
    "properties": Property,
    "intake_records": IntakeRecord,
    "inspections": Inspection,
    "appraisals": Appraisal,
    "reviews": Review,
    "deliveries": Delivery,
}

_SCHEMA_MISS_MARKERS = (
    "no such table",
    "no such column",
    "has no column",
    "does not exist",
    "undefined column",
    "undefined table",
    "schema cache",
)


class StoreError(Exception):
    def __init__(self, message: str, *, collection: str | None = None):
        super().__init__(message)
        self.message = message
        self.collection = collection


class SchemaUnavailableError(StoreError):
    """Collection or field is not (yet) visible to the query layer."""


class ConstraintError(StoreError):
    """The store rejected the statement: constraint, type or permission."""


class StoreUnavailableError(StoreError):
    """Transient failure; the caller may retry by user action."""


@dataclass(frozen=True)
class Filter:
    field: str | tuple[str, ...]
    op: str = "eq"  # eq|gte|lte|ilike|ilike_any|in
    value: Any = None


def eq(field: str, value: Any) -> Filter:
    return Filter(field, "eq", value)


def gte(field: str, value: Any) -> Filter:
    return Filter(field, "gte", value)


def lte(field: str, value: Any) -> Filter:
    return Filter(field, "lte", value)


def ilike(field: str, value: str) -> Filter:
    return Filter(field, "ilike", value)


def ilike_any(fields: Sequence[str], value: str) -> Filter:
    return Filter(tuple(fields), "ilike_any", value)


def in_(field: str, values: Iterable[Any]) -> Filter:
    return Filter(field, "in", list(values))


def _is_schema_miss(err: Exception) -> bool:
    msg = str(getattr(err, "orig", None) or err).lower()
    return any(m in msg for m in _SCHEMA_MISS_MARKERS)


class RecordStore:
    def __init__(self, db: Session):
        self.db = db

    # ---------------- schema ----------------
    def is_view(self, collection: str) -> bool:
        return collection not in COLLECTIONS and collection == settings.full_reports_view

    def _table(self, collection: str) -> Table:
        model = COLLECTIONS.get(collection)
        if model is not None:
            return model.__table__

        if not self.is_view(collection):
            raise SchemaUnavailableError(f"collection '{collection}' not found in schema cache", collection=collection)

        try:
            return self._run(
                collection,
                lambda: Table(collection, MetaData(), autoload_with=self.db.connection()),
            )
        except NoSuchTableError:
            log.warning("view not visible to query layer", extra={"collection": collection})
            raise SchemaUnavailableError(
                f"relation '{collection}' not found in schema cache", collection=collection
            ) from None

    def _column(self, table: Table, collection: str, field: str):
        col = table.c.get(field)
        if col is None:
            raise SchemaUnavailableError(f"column {collection}.{field} does not exist", collection=collection)
        return col

    def _clause(self, table: Table, collection: str, f: Filter):
        if f.op == "ilike_any":
            cols = [self._column(table, collection, name) for name in f.field]
            return or_(*[c.icontains(str(f.value), autoescape=True) for c in cols])

        col = self._column(table, collection, str(f.field))
        if f.op == "eq":
            return col.is_(None) if f.value is None else col == f.value
        if f.op == "gte":
            return col >= f.value
        if f.op == "lte":
            return col <= f.value
        if f.op == "ilike":
            return col.icontains(str(f.value), autoescape=True)
        if f.op == "in":
            return col.in_(list(f.value))
        raise ValueError(f"unsupported filter op: {f.op}")

    def _check_fields(self, table: Table, collection: str, fields: Iterable[str]) -> None:
        for name in fields:
            self._column(table, collection, name)

    # ---------------- error translation ----------------
    def _run(self, collection: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except NoSuchTableError:
            raise
        except (IntegrityError, DataError) as e:
            self.db.rollback()
            raise ConstraintError(str(e.orig), collection=collection) from e
        except (ProgrammingError, OperationalError) as e:
            self.db.rollback()
            if _is_schema_miss(e):
                log.warning("schema miss", extra={"collection": collection})
                raise SchemaUnavailableError(str(e.orig), collection=collection) from e
            raise StoreUnavailableError(str(e.orig), collection=collection) from e
        except DBAPIError as e:
            self.db.rollback()
            raise StoreUnavailableError(str(e.orig), collection=collection) from e
        except StatementError as e:
            # bad Python-side value (e.g. a string bound to a Date column)
            self.db.rollback()
            raise ConstraintError(str(e.orig or e), collection=collection) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreUnavailableError(str(e), collection=collection) from e

    # ---------------- operations ----------------
    def find(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        single: bool = False,
    ) -> Any:
        """
        single=True returns one record dict or None ("at most one" reads);
        otherwise a list of record dicts.
        """
        table = self._table(collection)

        stmt = select(table)
        for f in filters:
            stmt = stmt.where(self._clause(table, collection, f))
        if order_by:
            col = self._column(table, collection, order_by)
            stmt = stmt.order_by(col.desc() if descending else col.asc())
        if single:
            stmt = stmt.limit(1)
        elif limit is not None:
            stmt = stmt.limit(int(limit))

        rows = self._run(collection, lambda: self.db.execute(stmt).mappings().all())
        out = [dict(r) for r in rows]
        if single:
            return out[0] if out else None
        return out

    def get(self, collection: str, record_id: Any) -> Optional[dict[str, Any]]:
        return self.find(collection, [eq("id", record_id)], single=True)

    def insert(self, collection: str, record: dict[str, Any]) -> dict[str, Any]:
        model = COLLECTIONS.get(collection)
        if model is None:
            raise ConstraintError(f"collection '{collection}' is read-only", collection=collection)
        self._check_fields(model.__table__, collection, record.keys())

        def _do() -> dict[str, Any]:
            obj = model(**record)
            self.db.add(obj)
            self.db.commit()
            self.db.refresh(obj)
            return _to_dict(obj)

        return self._run(collection, _do)

    def update(self, collection: str, filters: Sequence[Filter], values: dict[str, Any]) -> int:
        model = COLLECTIONS.get(collection)
        if model is None:
            raise ConstraintError(f"collection '{collection}' is read-only", collection=collection)
        table = model.__table__
        self._check_fields(table, collection, values.keys())

        stmt = update(table)
        for f in filters:
            stmt = stmt.where(self._clause(table, collection, f))
        stmt = stmt.values(**values)

        def _do() -> int:
            res = self.db.execute(stmt)
            self.db.commit()
            return int(res.rowcount or 0)

        return self._run(collection, _do)

    def upsert(self, collection: str, record: dict[str, Any], conflict_key: str) -> dict[str, Any]:
        if conflict_key not in record:
            raise ConstraintError(f"upsert requires '{conflict_key}'", collection=collection)

        existing = self.find(collection, [eq(conflict_key, record[conflict_key])], single=True)
        if existing is None:
            return self.insert(collection, record)

        values = {k: v for k, v in record.items() if k != "id"}
        self.update(collection, [eq("id", existing["id"])], values)
        return self.get(collection, existing["id"])


def _to_dict(obj: Any) -> dict[str, Any]:
    mapper = inspect(obj).mapper
    return {attr.key: getattr(obj, attr.key) for attr in mapper.column_attrs}

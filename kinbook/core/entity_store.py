"""
Document-style access to the four entity collections.

Every kind ("people", "families", "events", "memories") is addressed by an
opaque string id. Callers get plain ORM objects back; relation id lists are
not part of a document here, see kinbook.core.graph_reader.
"""
from __future__ import annotations

import logging
import operator
from datetime import datetime
from typing import Any, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kinbook.config import settings
from kinbook.constants import PEOPLE, FAMILIES, EVENTS, MEMORIES, PREFIX_SENTINEL
from kinbook.errors import BackendUnavailable, ValidationFailure
from kinbook.models.person import Person, build_search_name
from kinbook.models.family import Family
from kinbook.models.event import Event
from kinbook.models.memory import Memory


logger = logging.getLogger(__name__)


MODELS = {
    PEOPLE: Person,
    FAMILIES: Family,
    EVENTS: Event,
    MEMORIES: Memory,
}

FILTER_OPS = {
    "==": operator.eq,
    ">=": operator.ge,
    "<=": operator.le,
    ">": operator.gt,
    "<": operator.lt,
}

# Kinds whose documents carry updated_at
_TRACKS_UPDATES = {PEOPLE, FAMILIES}


def _search_name_for(kind: str, fields: dict[str, Any], current: Any = None) -> Optional[str]:
    if kind == PEOPLE:
        first = fields.get("first_name", getattr(current, "first_name", None))
        last = fields.get("last_name", getattr(current, "last_name", None))
        return build_search_name(first, last)

    if kind == FAMILIES:
        name = fields.get("name", getattr(current, "name", None))
        return (name or "").lower().strip()

    return None


class EntityStore:
    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------
    # HELPERS
    # ------------------------------------------------------------
    def model_for(self, kind: str):
        model = MODELS.get(kind)
        if model is None:
            raise ValidationFailure(f"Unknown entity kind: {kind}")
        return model

    def _column(self, model, field: str):
        column = getattr(model, field, None)
        if column is None or not hasattr(column, "property"):
            raise ValidationFailure(f"Unknown field for {model.__tablename__}: {field}")
        return column

    def _fail(self, action: str, kind: str, exc: SQLAlchemyError):
        self.db.rollback()
        raise BackendUnavailable(f"{action} on {kind} failed: {exc}") from exc

    # ------------------------------------------------------------
    # READS
    # ------------------------------------------------------------
    def get(self, kind: str, entity_id: str):
        """Returns the entity, or None when the id does not resolve."""
        model = self.model_for(kind)
        try:
            return self.db.get(model, entity_id)
        except SQLAlchemyError as exc:
            self._fail("get", kind, exc)

    def get_many(self, kind: str, ids: Iterable[str]) -> dict[str, Any]:
        """One IN (...) lookup. Missing ids are simply absent from the result."""
        model = self.model_for(kind)
        wanted = list(dict.fromkeys(ids))
        if not wanted:
            return {}

        try:
            rows = self.db.query(model).filter(model.id.in_(wanted)).all()
        except SQLAlchemyError as exc:
            self._fail("get_many", kind, exc)

        return {row.id: row for row in rows}

    def prefix_search(self, kind: str, term: str, limit: Optional[int] = None) -> list:
        """
        Case-insensitive name prefix search over the precomputed search_name.
        search_name >= term AND search_name <= term + sentinel
        """
        term = (term or "").strip().lower()
        if not term:
            return []

        return self.list(
            kind,
            filters=[
                ("search_name", ">=", term),
                ("search_name", "<=", term + PREFIX_SENTINEL),
            ],
            order_by="search_name",
            limit=limit or settings.SEARCH_RESULT_LIMIT,
        )

    # ------------------------------------------------------------
    # WRITES
    # ------------------------------------------------------------
    def create(self, kind: str, fields: dict[str, Any]) -> str:
        model = self.model_for(kind)
        values = dict(fields)

        search_name = _search_name_for(kind, values)
        if search_name is not None:
            values["search_name"] = search_name

        values.setdefault("created_at", datetime.utcnow())

        entity = model(**values)
        try:
            self.db.add(entity)
            self.db.commit()
            self.db.refresh(entity)
        except SQLAlchemyError as exc:
            self._fail("create", kind, exc)

        logger.info("Created %s %s", kind, entity.id)
        return entity.id

    def update(self, kind: str, entity_id: str, fields: dict[str, Any]) -> bool:
        """Partial update. Returns False when the id does not resolve."""
        entity = self.get(kind, entity_id)
        if entity is None:
            return False

        model = self.model_for(kind)
        for field, value in fields.items():
            self._column(model, field)
            setattr(entity, field, value)

        search_name = _search_name_for(kind, fields, current=entity)
        if search_name is not None:
            entity.search_name = search_name

        if kind in _TRACKS_UPDATES:
            entity.updated_at = datetime.utcnow()

        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self._fail("update", kind, exc)

        return True

    def delete(self, kind: str, entity_id: str) -> bool:
        """Returns False when the id does not resolve."""
        entity = self.get(kind, entity_id)
        if entity is None:
            return False

        try:
            self.db.delete(entity)
            self.db.commit()
        except SQLAlchemyError as exc:
            self._fail("delete", kind, exc)

        logger.info("Deleted %s %s", kind, entity_id)
        return True

    # Defined last: the name shadows the builtin inside the class body
    def list(
        self,
        kind: str,
        filters: Optional[Iterable[tuple[str, str, Any]]] = None,
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
    ):
        model = self.model_for(kind)
        query = self.db.query(model)

        for field, op, value in filters or ():
            compare = FILTER_OPS.get(op)
            if compare is None:
                raise ValidationFailure(f"Unsupported filter operator: {op}")
            query = query.filter(compare(self._column(model, field), value))

        if order_by:
            query = query.order_by(self._column(model, order_by))

        if limit:
            query = query.limit(limit)

        try:
            return query.all()
        except SQLAlchemyError as exc:
            self._fail("list", kind, exc)

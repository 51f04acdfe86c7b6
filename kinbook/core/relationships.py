"""
Relationship maintenance: parent/child, spouse and family membership.

Each relation is one row (PersonLink or FamilyMember), written in one
transaction, so the two endpoint views can never disagree. Every link
operation is idempotent: linking an already-linked pair is a no-op.
"""
import logging
from collections import deque
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from kinbook.config import settings
from kinbook.constants import LinkKind, PEOPLE, FAMILIES
from kinbook.core.entity_store import EntityStore
from kinbook.errors import (
    BackendUnavailable,
    LineageCycleError,
    NotFoundError,
    ValidationFailure,
)
from kinbook.models.family import FamilyMember
from kinbook.models.person_link import PersonLink


logger = logging.getLogger(__name__)


# Relationship names as picked in the "add family member" dialog,
# relative to the person being viewed
PARENT = "parent"
CHILD = "child"
SPOUSE = "spouse"
RELATIONSHIP_NAMES = (PARENT, CHILD, SPOUSE)


@dataclass
class LinkResult:
    kind: str
    source_id: str
    target_id: str
    created: bool


# ============================================================
# HELPERS
# ============================================================

def _require(store: EntityStore, kind: str, entity_id: str):
    entity = store.get(kind, entity_id)
    if entity is None:
        raise NotFoundError(kind, entity_id)
    return entity


def _insert_once(db: Session, row, exists_query) -> bool:
    """
    Insert row unless an equivalent one exists.
    Returns True if this call created it.
    """
    try:
        if exists_query.first() is not None:
            return False

        db.add(row)
        db.commit()
        return True

    except IntegrityError:
        # Lost a race against an identical insert: the link exists now
        db.rollback()
        return False

    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Link write failed for %s", row.__tablename__, exc_info=exc)
        raise BackendUnavailable(f"Could not write {row.__tablename__}: {exc}") from exc


def parent_ids_of(db: Session, person_id: str) -> list[str]:
    rows = (
        db.query(PersonLink.from_person_id)
        .filter(
            PersonLink.kind == LinkKind.PARENT_CHILD.value,
            PersonLink.to_person_id == person_id,
        )
        .all()
    )
    return [row[0] for row in rows]


def is_ancestor(db: Session, candidate_id: str, person_id: str) -> bool:
    """True if candidate_id appears anywhere above person_id (breadth-first)."""
    seen = {person_id}
    queue = deque([person_id])

    while queue:
        current = queue.popleft()
        for parent_id in parent_ids_of(db, current):
            if parent_id == candidate_id:
                return True
            if parent_id not in seen:
                seen.add(parent_id)
                queue.append(parent_id)

    return False


# ============================================================
# LINK OPERATIONS
# ============================================================

def link_parent_child(
    db: Session,
    parent_id: str,
    child_id: str,
    created_by: Optional[str] = None,
) -> LinkResult:
    if parent_id == child_id:
        raise ValidationFailure("A person cannot be their own parent")

    store = EntityStore(db)
    _require(store, PEOPLE, parent_id)
    _require(store, PEOPLE, child_id)

    # Opt-in: the record model itself allows loops
    if settings.ENFORCE_ACYCLIC_LINEAGE and is_ancestor(db, child_id, parent_id):
        raise LineageCycleError(parent_id, child_id)

    kind = LinkKind.PARENT_CHILD.value
    created = _insert_once(
        db,
        PersonLink(
            kind=kind,
            from_person_id=parent_id,
            to_person_id=child_id,
            created_by=created_by,
        ),
        db.query(PersonLink).filter(
            PersonLink.kind == kind,
            PersonLink.from_person_id == parent_id,
            PersonLink.to_person_id == child_id,
        ),
    )

    if created:
        logger.info("Linked parent %s -> child %s", parent_id, child_id)

    return LinkResult(kind=kind, source_id=parent_id, target_id=child_id, created=created)


def link_spouses(
    db: Session,
    a_id: str,
    b_id: str,
    created_by: Optional[str] = None,
) -> LinkResult:
    if a_id == b_id:
        raise ValidationFailure("A person cannot be their own spouse")

    store = EntityStore(db)
    _require(store, PEOPLE, a_id)
    _require(store, PEOPLE, b_id)

    low, high = sorted((a_id, b_id))
    kind = LinkKind.SPOUSE.value
    created = _insert_once(
        db,
        PersonLink(
            kind=kind,
            from_person_id=low,
            to_person_id=high,
            created_by=created_by,
        ),
        db.query(PersonLink).filter(
            PersonLink.kind == kind,
            PersonLink.from_person_id == low,
            PersonLink.to_person_id == high,
        ),
    )

    if created:
        logger.info("Linked spouses %s <-> %s", a_id, b_id)

    return LinkResult(kind=kind, source_id=a_id, target_id=b_id, created=created)


def link_person_to_family(
    db: Session,
    person_id: str,
    family_id: str,
    created_by: Optional[str] = None,
) -> LinkResult:
    store = EntityStore(db)
    _require(store, PEOPLE, person_id)
    _require(store, FAMILIES, family_id)

    created = _insert_once(
        db,
        FamilyMember(
            family_id=family_id,
            person_id=person_id,
            created_by=created_by,
        ),
        db.query(FamilyMember).filter(
            FamilyMember.family_id == family_id,
            FamilyMember.person_id == person_id,
        ),
    )

    if created:
        logger.info("Added person %s to family %s", person_id, family_id)

    return LinkResult(kind="family_member", source_id=person_id, target_id=family_id, created=created)


def link_by_relationship(
    db: Session,
    current_id: str,
    target_id: str,
    relationship: str,
    created_by: Optional[str] = None,
) -> LinkResult:
    """
    "target is my <relationship>":
      parent -> target is parent of current
      child  -> current is parent of target
      spouse -> symmetric
    """
    if relationship == PARENT:
        return link_parent_child(db, target_id, current_id, created_by=created_by)
    if relationship == CHILD:
        return link_parent_child(db, current_id, target_id, created_by=created_by)
    if relationship == SPOUSE:
        return link_spouses(db, current_id, target_id, created_by=created_by)

    raise ValidationFailure(
        f"Unknown relationship '{relationship}', expected one of {', '.join(RELATIONSHIP_NAMES)}"
    )

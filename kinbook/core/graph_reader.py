"""
Read side of the relationship graph.

resolve_related() turns id lists into entities for display. It is best
effort: ids that don't resolve are dropped, and one bad lookup never sinks
the whole list.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kinbook.constants import LinkKind, PEOPLE, FAMILIES
from kinbook.core.entity_store import EntityStore
from kinbook.errors import BackendUnavailable, NotFoundError
from kinbook.models.family import FamilyMember
from kinbook.models.person_link import PersonLink


logger = logging.getLogger(__name__)


@dataclass
class RelationIds:
    parent_ids: list[str] = field(default_factory=list)
    child_ids: list[str] = field(default_factory=list)
    spouse_ids: list[str] = field(default_factory=list)
    family_ids: list[str] = field(default_factory=list)


@dataclass
class Relatives:
    parents: list = field(default_factory=list)
    children: list = field(default_factory=list)
    spouses: list = field(default_factory=list)
    families: list = field(default_factory=list)


# ============================================================
# RESOLVE
# ============================================================

def _resolve_one_by_one(store: EntityStore, kind: str, ids: list[str]) -> list:
    resolved = []
    for entity_id in ids:
        try:
            entity = store.get(kind, entity_id)
        except BackendUnavailable as exc:
            logger.warning("Skipping %s %s: lookup failed (%s)", kind, entity_id, exc)
            continue

        if entity is not None:
            resolved.append(entity)

    return resolved


def resolve_related(db: Session, kind: str, ids: Iterable[str]) -> list:
    """
    Materialize ids into entities, preserving input order.
    Unknown ids are omitted. Uses one batched lookup, falling back to
    per-id lookups if the batch itself fails.
    """
    ids = list(ids)
    if not ids:
        return []

    store = EntityStore(db)

    try:
        found = store.get_many(kind, ids)
    except BackendUnavailable as exc:
        logger.warning("Batched %s lookup failed, resolving one by one: %s", kind, exc)
        return _resolve_one_by_one(store, kind, ids)

    missing = [entity_id for entity_id in ids if entity_id not in found]
    if missing:
        logger.debug("Omitting unresolved %s ids: %s", kind, missing)

    return [found[entity_id] for entity_id in ids if entity_id in found]


# ============================================================
# DERIVED ID VIEWS
# ============================================================

def relation_ids(db: Session, person_id: str) -> RelationIds:
    """Derive all four id-sets of a person from the link tables."""
    try:
        links = (
            db.query(PersonLink)
            .filter(
                (PersonLink.from_person_id == person_id)
                | (PersonLink.to_person_id == person_id)
            )
            .order_by(PersonLink.created_at)
            .all()
        )
        family_ids = [
            row[0]
            for row in db.query(FamilyMember.family_id)
            .filter(FamilyMember.person_id == person_id)
            .order_by(FamilyMember.joined_at)
            .all()
        ]
    except SQLAlchemyError as exc:
        raise BackendUnavailable(f"Could not read relations of {person_id}: {exc}") from exc

    ids = RelationIds(family_ids=family_ids)

    for link in links:
        if link.kind == LinkKind.PARENT_CHILD.value:
            if link.to_person_id == person_id:
                ids.parent_ids.append(link.from_person_id)
            else:
                ids.child_ids.append(link.to_person_id)

        elif link.kind == LinkKind.SPOUSE.value:
            other = link.to_person_id if link.from_person_id == person_id else link.from_person_id
            ids.spouse_ids.append(other)

    return ids


def family_member_ids(db: Session, family_id: str) -> list[str]:
    try:
        rows = (
            db.query(FamilyMember.person_id)
            .filter(FamilyMember.family_id == family_id)
            .order_by(FamilyMember.joined_at)
            .all()
        )
    except SQLAlchemyError as exc:
        raise BackendUnavailable(f"Could not read members of {family_id}: {exc}") from exc

    return [row[0] for row in rows]


def person_relatives(db: Session, person_id: str) -> Relatives:
    store = EntityStore(db)
    if store.get(PEOPLE, person_id) is None:
        raise NotFoundError(PEOPLE, person_id)

    ids = relation_ids(db, person_id)

    # One batched lookup for every person id, then split back out
    people = {
        person.id: person
        for person in resolve_related(
            db, PEOPLE, ids.parent_ids + ids.child_ids + ids.spouse_ids
        )
    }

    def pick(person_ids: list[str]) -> list:
        return [people[pid] for pid in person_ids if pid in people]

    return Relatives(
        parents=pick(ids.parent_ids),
        children=pick(ids.child_ids),
        spouses=pick(ids.spouse_ids),
        families=resolve_related(db, FAMILIES, ids.family_ids),
    )

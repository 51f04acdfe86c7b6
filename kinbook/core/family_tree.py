import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kinbook.constants import FAMILIES
from kinbook.core.entity_store import EntityStore
from kinbook.errors import BackendUnavailable, NotFoundError
from kinbook.models.family import FamilyMember
from kinbook.models.person import Person
from kinbook.schemas.tree_schema import TreeNode


logger = logging.getLogger(__name__)


def _iso(value) -> str:
    return value.isoformat() if value else ""


def family_people(db: Session, family_id: str) -> list[Person]:
    """All members of a family in one joined query, in join order."""
    try:
        return (
            db.query(Person)
            .join(FamilyMember, FamilyMember.person_id == Person.id)
            .filter(FamilyMember.family_id == family_id)
            .order_by(FamilyMember.joined_at, Person.search_name)
            .all()
        )
    except SQLAlchemyError as exc:
        raise BackendUnavailable(f"Could not load members of family {family_id}: {exc}") from exc


def build_family_tree(db: Session, family_id: str) -> TreeNode:
    """
    Flat projection: the family is the root and every member is a direct
    child. No generations are nested even though parent/child links exist;
    a multi-generation layout would start from graph_reader.relation_ids.
    """
    family = EntityStore(db).get(FAMILIES, family_id)
    if family is None:
        raise NotFoundError(FAMILIES, family_id)

    people = family_people(db, family_id)
    logger.debug("Projecting family %s with %d members", family_id, len(people))

    return TreeNode(
        name=family.name,
        attributes={"origin": family.origin or ""},
        children=[
            TreeNode(
                name=person.display_name,
                attributes={
                    "birth": _iso(person.birth_date),
                    "death": _iso(person.death_date),
                },
            )
            for person in people
        ],
    )

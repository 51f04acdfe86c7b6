from sqlalchemy.orm import Session

from kinbook.constants import PEOPLE, RoleType
from kinbook.core.entity_store import EntityStore
from kinbook.errors import NotFoundError
from kinbook.models.person import Person
from kinbook.schemas.auth_schema import CurrentSession


def require_person(db: Session, person_id: str) -> Person:
    person = EntityStore(db).get(PEOPLE, person_id)
    if person is None:
        raise NotFoundError(PEOPLE, person_id)
    return person


def split_name(full_name: str) -> tuple[str, str]:
    """'Ann Marie Lee' -> ('Ann', 'Marie Lee'); missing parts are ''."""
    parts = (full_name or "").split(" ", 1)
    first = parts[0].strip()
    last = parts[1].strip() if len(parts) > 1 else ""
    return first, last


def get_or_create_person_for_user(db: Session, session: CurrentSession) -> Person:
    """
    The person record that represents the signed-in account.
    Created on first use, named from the display name (or the email's
    local part when there is none).
    """
    store = EntityStore(db)

    existing = store.list(PEOPLE, filters=[("user_id", "==", session.user_id)], limit=1)
    if existing:
        return existing[0]

    name = session.display_name or (session.email or "").split("@")[0]
    first_name, last_name = split_name(name)

    person_id = store.create(PEOPLE, {
        "first_name": first_name,
        "last_name": last_name,
        "email": session.email or None,
        "user_id": session.user_id,
        "role_type": RoleType.MEMBER.value,
        "created_by": session.user_id,
    })
    return store.get(PEOPLE, person_id)

import logging
from typing import List

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from kinbook.auth import get_current_session
from kinbook.constants import PEOPLE, RoleType
from kinbook.core.entity_store import EntityStore
from kinbook.core.graph_reader import person_relatives, relation_ids
from kinbook.core.person_access import (
    get_or_create_person_for_user,
    require_person,
    split_name,
)
from kinbook.core.relationships import link_by_relationship
from kinbook.database import get_db
from kinbook.errors import KinbookError, ValidationFailure
from kinbook.models.person import Person
from kinbook.schemas.auth_schema import CurrentSession
from kinbook.schemas.link_schema import LinkCreate, LinkNewPersonCreate, LinkOut
from kinbook.schemas.person_schema import (
    PersonCreate,
    PersonOut,
    PersonSummaryOut,
    PersonUpdate,
    RelativesOut,
)
from kinbook.storage import delete_blob, upload_memory_photo, upload_profile_photo


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/people", tags=["People"])

# NOT NULL columns; PATCH may change them but never null them
REQUIRED_FIELDS = ("first_name", "last_name", "role_type")


# ---------------------------------------------------------------------
# INTERNAL UTIL: attach derived relation ids
# ---------------------------------------------------------------------
def serialize_person(db: Session, person: Person) -> dict:
    ids = relation_ids(db, person.id)
    out = PersonOut.model_validate(person)
    return {
        **out.model_dump(),
        "parent_ids": ids.parent_ids,
        "child_ids": ids.child_ids,
        "spouse_ids": ids.spouse_ids,
        "family_ids": ids.family_ids,
    }


def _column_values(fields: dict) -> dict:
    if isinstance(fields.get("role_type"), RoleType):
        fields["role_type"] = fields["role_type"].value
    return fields


# ---------------------------------------------------------------------
# CREATE PERSON
# ---------------------------------------------------------------------
@router.post("", response_model=PersonOut)
def create_person(
    payload: PersonCreate,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_session),
):
    store = EntityStore(db)
    fields = _column_values(payload.model_dump())
    person_id = store.create(PEOPLE, {**fields, "created_by": session.user_id})

    return serialize_person(db, store.get(PEOPLE, person_id))


# ---------------------------------------------------------------------
# MY PERSON RECORD
# ---------------------------------------------------------------------
@router.get("/me", response_model=PersonOut)
def get_my_person(
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_session),
):
    person = get_or_create_person_for_user(db, session)
    return serialize_person(db, person)


# ---------------------------------------------------------------------
# SEARCH (name prefix)
# ---------------------------------------------------------------------
@router.get("/search", response_model=List[PersonSummaryOut])
def search_people(
    q: str,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_session),
):
    return EntityStore(db).prefix_search(PEOPLE, q)


# ---------------------------------------------------------------------
# GET / UPDATE
# ---------------------------------------------------------------------
@router.get("/{person_id}", response_model=PersonOut)
def get_person(
    person_id: str,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_session),
):
    return serialize_person(db, require_person(db, person_id))


@router.patch("/{person_id}", response_model=PersonOut)
def update_person(
    person_id: str,
    payload: PersonUpdate,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_session),
):
    require_person(db, person_id)

    # Apply only fields provided
    fields = _column_values(payload.model_dump(exclude_unset=True))
    if not fields:
        raise ValidationFailure("Nothing to update")

    cleared = sorted(name for name in REQUIRED_FIELDS if name in fields and fields[name] is None)
    if cleared:
        raise ValidationFailure(f"Cannot clear required field(s): {', '.join(cleared)}")

    EntityStore(db).update(PEOPLE, person_id, fields)
    return serialize_person(db, require_person(db, person_id))


# ---------------------------------------------------------------------
# RELATIVES (profile view)
# ---------------------------------------------------------------------
@router.get("/{person_id}/relatives", response_model=RelativesOut)
def get_relatives(
    person_id: str,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_session),
):
    relatives = person_relatives(db, person_id)
    return {
        "parents": relatives.parents,
        "children": relatives.children,
        "spouses": relatives.spouses,
        "families": relatives.families,
    }


# ---------------------------------------------------------------------
# LINK EXISTING PERSON
# ---------------------------------------------------------------------
@router.post("/{person_id}/links", response_model=LinkOut)
def link_person(
    person_id: str,
    payload: LinkCreate,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_session),
):
    return link_by_relationship(
        db,
        current_id=person_id,
        target_id=payload.target_person_id,
        relationship=payload.relationship,
        created_by=session.user_id,
    )


# ---------------------------------------------------------------------
# CREATE + LINK NEW PERSON
# ---------------------------------------------------------------------
@router.post("/{person_id}/links/new", response_model=PersonOut)
def create_and_link_person(
    person_id: str,
    payload: LinkNewPersonCreate,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_session),
):
    require_person(db, person_id)

    first_name, last_name = split_name(payload.name.strip())
    if not first_name:
        raise ValidationFailure("Name is required")

    store = EntityStore(db)
    new_id = store.create(PEOPLE, {
        "first_name": first_name,
        "last_name": last_name,
        "role_type": RoleType.MEMBER.value,
        "created_by": session.user_id,
    })

    try:
        link_by_relationship(
            db,
            current_id=person_id,
            target_id=new_id,
            relationship=payload.relationship,
            created_by=session.user_id,
        )
    except KinbookError:
        # A failed link must not leave the new person behind, unlinked
        logger.warning("Link to new person %s failed, removing it", new_id)
        store.delete(PEOPLE, new_id)
        raise

    return serialize_person(db, store.get(PEOPLE, new_id))


# ---------------------------------------------------------------------
# PHOTOS
# ---------------------------------------------------------------------
@router.put("/{person_id}/photo", response_model=PersonOut)
def set_profile_photo(
    person_id: str,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_session),
):
    person = require_person(db, person_id)
    old_url = person.profile_photo_url

    url = upload_profile_photo(person_id, file)
    EntityStore(db).update(PEOPLE, person_id, {"profile_photo_url": url})

    if old_url and old_url != url:
        delete_blob(old_url)

    return serialize_person(db, require_person(db, person_id))


@router.post("/{person_id}/memories/photos")
def add_memory_photo(
    person_id: str,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_session),
):
    require_person(db, person_id)
    url = upload_memory_photo(person_id, file)
    return {"url": url, "success": True}

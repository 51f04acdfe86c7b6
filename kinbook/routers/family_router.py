from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from kinbook.auth import get_current_session
from kinbook.constants import FAMILIES, PEOPLE
from kinbook.core.entity_store import EntityStore
from kinbook.core.family_tree import build_family_tree
from kinbook.core.graph_reader import family_member_ids, resolve_related
from kinbook.core.relationships import link_person_to_family
from kinbook.database import get_db
from kinbook.errors import NotFoundError, ValidationFailure
from kinbook.models.family import Family
from kinbook.schemas.auth_schema import CurrentSession
from kinbook.schemas.family_schema import (
    FamilyCreate,
    FamilyMemberAdd,
    FamilyOut,
    FamilySummaryOut,
)
from kinbook.schemas.link_schema import LinkOut
from kinbook.schemas.person_schema import PersonSummaryOut
from kinbook.schemas.tree_schema import TreeNode


router = APIRouter(prefix="/families", tags=["Families"])


# --------------------------------------------------
# HELPERS
# --------------------------------------------------
def require_family(db: Session, family_id: str) -> Family:
    family = EntityStore(db).get(FAMILIES, family_id)
    if family is None:
        raise NotFoundError(FAMILIES, family_id)
    return family


def serialize_family(db: Session, family: Family) -> dict:
    out = FamilyOut.model_validate(family)
    return {**out.model_dump(), "members": family_member_ids(db, family.id)}


# --------------------------------------------------
# CREATE FAMILY
# --------------------------------------------------
@router.post("", response_model=FamilyOut)
def create_family(
    payload: FamilyCreate,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_session),
):
    name = payload.name.strip()
    if not name:
        raise ValidationFailure("Family name is required")

    store = EntityStore(db)
    family_id = store.create(FAMILIES, {
        "name": name,
        "description": payload.description,
        "origin": payload.origin,
        "created_by": session.user_id,
    })
    return serialize_family(db, store.get(FAMILIES, family_id))


# --------------------------------------------------
# LIST (by name)
# --------------------------------------------------
@router.get("", response_model=List[FamilySummaryOut])
def list_families(
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_session),
):
    return EntityStore(db).list(FAMILIES, order_by="name")


# --------------------------------------------------
# SEARCH (name prefix)
# --------------------------------------------------
@router.get("/search", response_model=List[FamilySummaryOut])
def search_families(
    q: str,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_session),
):
    return EntityStore(db).prefix_search(FAMILIES, q)


# --------------------------------------------------
# DETAIL
# --------------------------------------------------
@router.get("/{family_id}", response_model=FamilyOut)
def get_family(
    family_id: str,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_session),
):
    return serialize_family(db, require_family(db, family_id))


# --------------------------------------------------
# MEMBERS
# --------------------------------------------------
@router.get("/{family_id}/members", response_model=List[PersonSummaryOut])
def get_family_members(
    family_id: str,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_session),
):
    require_family(db, family_id)
    return resolve_related(db, PEOPLE, family_member_ids(db, family_id))


@router.post("/{family_id}/members", response_model=LinkOut)
def add_family_member(
    family_id: str,
    payload: FamilyMemberAdd,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_session),
):
    return link_person_to_family(
        db,
        person_id=payload.person_id,
        family_id=family_id,
        created_by=session.user_id,
    )


# --------------------------------------------------
# TREE (flat)
# --------------------------------------------------
@router.get("/{family_id}/tree", response_model=TreeNode)
def get_family_tree(
    family_id: str,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_session),
):
    return build_family_tree(db, family_id)

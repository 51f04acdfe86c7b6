from pydantic import BaseModel
from typing import Literal


RelationshipName = Literal["parent", "child", "spouse"]


class LinkCreate(BaseModel):
    """target is <relationship> of the person in the URL"""
    target_person_id: str
    relationship: RelationshipName


class LinkNewPersonCreate(BaseModel):
    """Create a person from a typed name ("First Last") and link it."""
    name: str
    relationship: RelationshipName


class LinkOut(BaseModel):
    kind: str
    source_id: str
    target_id: str
    created: bool

    class Config:
        from_attributes = True

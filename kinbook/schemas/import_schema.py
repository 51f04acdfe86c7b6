"""
Shapes of denormalized documents exported from a document database:
camelCase keys, relations duplicated as id arrays on both ends.
"""
from datetime import date, datetime
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from kinbook.constants import RoleType


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class PersonDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    first_name: str = Field("", alias="firstName")
    middle_name: Optional[str] = Field(None, alias="middleName")
    last_name: str = Field("", alias="lastName")
    preferred_name: Optional[str] = Field(None, alias="preferredName")

    birth_date: Optional[date] = Field(None, alias="birthDate")
    death_date: Optional[date] = Field(None, alias="deathDate")
    role_type: Optional[RoleType] = Field(RoleType.MEMBER, alias="roleType")

    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None

    profile_photo_url: Optional[str] = Field(None, alias="profilePhotoUrl")
    cover_photo_url: Optional[str] = Field(None, alias="coverPhotoUrl")
    facebook_url: Optional[str] = Field(None, alias="facebookUrl")
    instagram_url: Optional[str] = Field(None, alias="instagramUrl")
    church_url: Optional[str] = Field(None, alias="churchUrl")
    website_url: Optional[str] = Field(None, alias="websiteUrl")
    bio: Optional[str] = None
    notes: Optional[str] = None

    user_id: Optional[str] = Field(None, alias="userId")
    created_by: str = Field("import", alias="createdBy")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    parent_ids: List[str] = Field(default_factory=list, alias="parentIds")
    child_ids: List[str] = Field(default_factory=list, alias="childIds")
    spouse_ids: List[str] = Field(default_factory=list, alias="spouseIds")
    family_ids: List[str] = Field(default_factory=list, alias="familyIds")

    @field_validator(
        "birth_date", "death_date", "created_at", "updated_at", "role_type",
        mode="before",
    )
    @classmethod
    def blank_is_missing(cls, value):
        return _blank_to_none(value)

    @field_validator("role_type", mode="after")
    @classmethod
    def default_role(cls, value):
        return value or RoleType.MEMBER

    @field_validator("parent_ids", "child_ids", "spouse_ids", "family_ids", mode="before")
    @classmethod
    def null_list(cls, value):
        return value or []


class FamilyDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str
    description: Optional[str] = None
    origin: Optional[str] = None
    members: List[str] = Field(default_factory=list)

    created_by: str = Field("import", alias="createdBy")
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    @field_validator("created_at", mode="before")
    @classmethod
    def blank_is_missing(cls, value):
        return _blank_to_none(value)

    @field_validator("members", mode="before")
    @classmethod
    def null_list(cls, value):
        return value or []


class ImportBundle(BaseModel):
    people: List[PersonDocument] = Field(default_factory=list)
    families: List[FamilyDocument] = Field(default_factory=list)

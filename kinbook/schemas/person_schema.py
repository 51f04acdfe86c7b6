# kinbook/schemas/person_schema.py
from pydantic import BaseModel, EmailStr, field_validator
from typing import Optional, List
from datetime import date, datetime

from kinbook.constants import RoleType
from kinbook.schemas.family_schema import FamilySummaryOut


class PersonBase(BaseModel):
    first_name: str = ""
    middle_name: Optional[str] = None
    last_name: str = ""
    preferred_name: Optional[str] = None

    birth_date: Optional[date] = None
    death_date: Optional[date] = None

    role_type: RoleType = RoleType.MEMBER

    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None

    cover_photo_url: Optional[str] = None
    facebook_url: Optional[str] = None
    instagram_url: Optional[str] = None
    church_url: Optional[str] = None
    website_url: Optional[str] = None

    bio: Optional[str] = None
    notes: Optional[str] = None

    # Forms send "" for untouched optional fields
    @field_validator("birth_date", "death_date", "email", mode="before")
    @classmethod
    def blank_is_missing(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class PersonCreate(PersonBase):
    pass


class PersonUpdate(PersonBase):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role_type: Optional[RoleType] = None


class PersonOut(BaseModel):
    id: str

    first_name: str
    middle_name: Optional[str] = None
    last_name: str
    preferred_name: Optional[str] = None
    display_name: str

    birth_date: Optional[date] = None
    death_date: Optional[date] = None
    role_type: RoleType

    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None

    profile_photo_url: Optional[str] = None
    cover_photo_url: Optional[str] = None
    facebook_url: Optional[str] = None
    instagram_url: Optional[str] = None
    church_url: Optional[str] = None
    website_url: Optional[str] = None

    bio: Optional[str] = None
    notes: Optional[str] = None

    user_id: Optional[str] = None

    # Derived from the link tables on every read
    parent_ids: List[str] = []
    child_ids: List[str] = []
    spouse_ids: List[str] = []
    family_ids: List[str] = []

    created_by: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PersonSummaryOut(BaseModel):
    id: str
    display_name: str
    profile_photo_url: Optional[str] = None
    birth_date: Optional[date] = None
    death_date: Optional[date] = None

    class Config:
        from_attributes = True


class RelativesOut(BaseModel):
    parents: List[PersonSummaryOut] = []
    children: List[PersonSummaryOut] = []
    spouses: List[PersonSummaryOut] = []
    families: List[FamilySummaryOut] = []

from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime


# --------------------------------------------------
# CREATE
# --------------------------------------------------
class FamilyCreate(BaseModel):
    name: str
    description: Optional[str] = None
    origin: Optional[str] = None


# --------------------------------------------------
# ADD MEMBER
# --------------------------------------------------
class FamilyMemberAdd(BaseModel):
    person_id: str


# --------------------------------------------------
# FAMILY
# --------------------------------------------------
class FamilyOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    origin: Optional[str] = None

    # Derived from family_members on every read
    members: List[str] = []

    created_by: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# --------------------------------------------------
# SEARCH / COMPACT LIST
# --------------------------------------------------
class FamilySummaryOut(BaseModel):
    id: str
    name: str
    origin: Optional[str] = None

    class Config:
        from_attributes = True

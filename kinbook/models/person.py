import uuid
from datetime import datetime

from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.types import Date

from kinbook.database import Base


class Person(Base):
    """
    An individual in the family record.
    May exist without a user account (user_id is only set for the
    person record that belongs to a signed-in user).

    Relations are NOT stored here; see PersonLink and FamilyMember.
    """

    __tablename__ = "people"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    # -------------------------------------------------------
    # Names
    # -------------------------------------------------------
    first_name = Column(String, nullable=False, default="")
    middle_name = Column(String, nullable=True)
    last_name = Column(String, nullable=False, default="")
    preferred_name = Column(String, nullable=True)

    # Lowercase "first last", used by prefix search
    search_name = Column(String, nullable=False, default="", index=True)

    # -------------------------------------------------------
    # Life dates
    # -------------------------------------------------------
    birth_date = Column(Date, nullable=True)
    death_date = Column(Date, nullable=True)

    # member | friend | neighbor | pastor | other
    role_type = Column(String, nullable=False, default="member")

    # -------------------------------------------------------
    # Contact
    # -------------------------------------------------------
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    address = Column(String, nullable=True)
    city = Column(String, nullable=True)
    state = Column(String, nullable=True)
    country = Column(String, nullable=True)

    # -------------------------------------------------------
    # Media / links
    # -------------------------------------------------------
    profile_photo_url = Column(String, nullable=True)
    cover_photo_url = Column(String, nullable=True)
    facebook_url = Column(String, nullable=True)
    instagram_url = Column(String, nullable=True)
    church_url = Column(String, nullable=True)
    website_url = Column(String, nullable=True)

    bio = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    # Account that "is" this person, if any
    user_id = Column(String, nullable=True, index=True)

    # -------------------------------------------------------
    # Audit
    # -------------------------------------------------------
    created_by = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True)

    @property
    def display_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


def build_search_name(first_name: str | None, last_name: str | None) -> str:
    return f"{first_name or ''} {last_name or ''}".lower().strip()

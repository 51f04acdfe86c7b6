import uuid
from datetime import datetime

from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, Text
from sqlalchemy.orm import relationship

from kinbook.database import Base


class Family(Base):
    __tablename__ = "families"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)

    # Lowercase name, used by prefix search
    search_name = Column(String, nullable=False, default="", index=True)

    description = Column(Text, nullable=True)
    origin = Column(String, nullable=True)

    created_by = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True)

    memberships = relationship(
        "FamilyMember",
        back_populates="family",
        cascade="all, delete-orphan",
        order_by="FamilyMember.joined_at",
    )


class FamilyMember(Base):
    """
    Person <-> Family membership.
    One row per pair; both Person.family_ids and Family.members are read
    from here.
    """

    __tablename__ = "family_members"
    __table_args__ = (
        UniqueConstraint("family_id", "person_id", name="uq_family_member"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    family_id = Column(
        String,
        ForeignKey("families.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    person_id = Column(
        String,
        ForeignKey("people.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    joined_at = Column(DateTime, default=datetime.utcnow)
    created_by = Column(String, nullable=True)

    family = relationship("Family", back_populates="memberships")
    person = relationship("Person", foreign_keys=[person_id])

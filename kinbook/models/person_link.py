import uuid
from datetime import datetime

from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint

from kinbook.database import Base


class PersonLink(Base):
    """
    A relation between two people.
    This is the single source of truth for parent/child and spouse data;
    each endpoint's id lists are derived from it.

    parent_child: from_person_id is the parent, to_person_id the child.
    spouse:       the two ids are stored sorted so (a, b) and (b, a)
                  land on the same row.
    """

    __tablename__ = "person_links"
    __table_args__ = (
        UniqueConstraint("kind", "from_person_id", "to_person_id", name="uq_person_link"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    # parent_child | spouse
    kind = Column(String, nullable=False)

    from_person_id = Column(
        String,
        ForeignKey("people.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    to_person_id = Column(
        String,
        ForeignKey("people.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    created_by = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

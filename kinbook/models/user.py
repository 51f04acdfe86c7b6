import uuid
from datetime import datetime

from sqlalchemy import Column, String, DateTime, Boolean

from kinbook.database import Base


class User(Base):
    __tablename__ = "users"

    # String UUID so ids line up with Supabase Auth subjects
    id = Column(
        String,
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        index=True
    )

    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    display_name = Column(String, nullable=True)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class RevokedToken(Base):
    """
    Signed-out access tokens.
    JWTs are stateless, so sign-out records the token's jti until it expires.
    """
    __tablename__ = "revoked_tokens"

    jti = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    expires_at = Column(DateTime, nullable=True)
    revoked_at = Column(DateTime, default=datetime.utcnow)

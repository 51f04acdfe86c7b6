import logging
from datetime import datetime, timedelta
from typing import Optional
from uuid import uuid4

import bcrypt
from fastapi import HTTPException, Depends
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from kinbook.config import settings
from kinbook.database import get_db
from kinbook.models.user import User, RevokedToken
from kinbook.schemas.auth_schema import CurrentSession


logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/sign-in")


class AuthError(Exception):
    """Sign-up / sign-in rejected by the identity provider."""


# ============================================================
# PASSWORD HELPERS
# ============================================================

def hash_password(password: str) -> str:
    password_bytes = password.encode("utf-8")[:72]
    return bcrypt.hashpw(password_bytes, bcrypt.gensalt()).decode()


def verify_password(password: str, hashed: str) -> bool:
    password_bytes = password.encode("utf-8")[:72]
    return bcrypt.checkpw(password_bytes, hashed.encode())


# ============================================================
# LOCAL USERS
# ============================================================

def email_taken(db: Session, email: str) -> bool:
    return db.query(User).filter(User.email == email).first() is not None


def register_user(db: Session, email: str, password: str, display_name: Optional[str] = None) -> User:
    if email_taken(db, email):
        raise AuthError("Email already exists")

    user = User(
        id=str(uuid4()),
        email=email,
        hashed_password=hash_password(password),
        display_name=display_name,
    )

    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        # A concurrent sign-up took the email between the check and the insert
        db.rollback()
        raise AuthError("Email already exists") from exc

    db.refresh(user)
    return user


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    user = db.query(User).filter(User.email == email).first()
    if not user:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


# ============================================================
# TOKEN CREATION
# ============================================================

def create_access_token(data: dict) -> str:
    to_encode = data.copy()
    expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire, "jti": str(uuid4())})

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict:
    if settings.AUTH_BACKEND == "supabase":
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=["HS256"],
            audience="authenticated",
        )

    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])


# ============================================================
# IDENTITY PROVIDER
# ============================================================

def _supabase_session(response) -> dict:
    session = getattr(response, "session", None)
    user = getattr(response, "user", None)
    if session is None or user is None:
        # Sign-up with email confirmation enabled returns no session yet
        raise AuthError("No session returned; confirm the email address first")

    return {
        "access_token": session.access_token,
        "token_type": "bearer",
        "user_id": str(user.id),
    }


def sign_up(db: Session, email: str, password: str, display_name: Optional[str] = None) -> dict:
    if len(password) < 8:
        raise AuthError("Password must be at least 8 characters long")

    if settings.AUTH_BACKEND == "supabase":
        from kinbook.supabase_client import get_supabase

        try:
            response = get_supabase().auth.sign_up({
                "email": email,
                "password": password,
                "options": {"data": {"display_name": display_name}},
            })
        except Exception as exc:
            raise AuthError(str(exc)) from exc
        return _supabase_session(response)

    user = register_user(db, email=email, password=password, display_name=display_name)
    logger.info("Registered user %s", user.id)

    return {
        "access_token": create_access_token({"sub": user.id, "email": user.email}),
        "token_type": "bearer",
        "user_id": user.id,
    }


def sign_in(db: Session, email: str, password: str) -> dict:
    if settings.AUTH_BACKEND == "supabase":
        from kinbook.supabase_client import get_supabase

        try:
            response = get_supabase().auth.sign_in_with_password({
                "email": email,
                "password": password,
            })
        except Exception as exc:
            raise AuthError("Incorrect email or password") from exc
        return _supabase_session(response)

    user = authenticate_user(db, email=email, password=password)
    if not user:
        raise AuthError("Incorrect email or password")

    return {
        "access_token": create_access_token({"sub": user.id, "email": user.email}),
        "token_type": "bearer",
        "user_id": user.id,
    }


def sign_out(db: Session, session: CurrentSession, access_token: Optional[str] = None) -> None:
    """
    Revoke the presented token until it would have expired anyway.
    With Supabase the provider session is ended too, so the refresh token
    cannot mint a new access token.
    """
    if settings.AUTH_BACKEND == "supabase" and access_token:
        from kinbook.supabase_client import get_supabase

        try:
            get_supabase().auth.admin.sign_out(access_token)
        except Exception as exc:
            # The local revocation below still rejects this token here
            logger.warning("Supabase sign-out failed for user %s: %s", session.user_id, exc)

    if not session.token_id:
        return

    already = db.get(RevokedToken, session.token_id)
    if already is None:
        db.add(RevokedToken(
            jti=session.token_id,
            user_id=session.user_id,
            expires_at=session.expires_at,
        ))
        db.commit()

    logger.info("Signed out user %s", session.user_id)


# ============================================================
# CURRENT SESSION (request dependency)
# ============================================================

def get_current_session(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> CurrentSession:
    try:
        payload = decode_access_token(token)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")

    user_id = payload.get("sub")
    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid token")

    # Supabase tokens carry session_id instead of jti
    token_id = payload.get("jti") or payload.get("session_id")
    if token_id and db.get(RevokedToken, token_id) is not None:
        raise HTTPException(status_code=401, detail="Session has ended")

    display_name = None
    if settings.AUTH_BACKEND == "local":
        user = db.get(User, user_id)

        # If the DB was wiped the token is meaningless → 401, not a crash
        if not user or not user.is_active:
            raise HTTPException(status_code=401, detail="User not found")
        display_name = user.display_name
    else:
        display_name = (payload.get("user_metadata") or {}).get("display_name")

    exp = payload.get("exp")

    return CurrentSession(
        user_id=str(user_id),
        email=payload.get("email"),
        display_name=display_name,
        token_id=token_id,
        expires_at=datetime.utcfromtimestamp(exp) if exp else None,
    )

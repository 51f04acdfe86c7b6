from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from kinbook.database import get_db
from kinbook.auth import (
    AuthError,
    get_current_session,
    oauth2_scheme,
    sign_in,
    sign_out,
    sign_up,
)
from kinbook.schemas.auth_schema import (
    CurrentSession,
    SignInRequest,
    SignUpRequest,
    TokenOut,
)


router = APIRouter(prefix="/auth", tags=["Authentication"])


# ----------------- SIGN UP ------------------

@router.post("/sign-up", response_model=TokenOut)
def sign_up_route(payload: SignUpRequest, db: Session = Depends(get_db)):
    try:
        return sign_up(
            db,
            email=payload.email,
            password=payload.password,
            display_name=payload.display_name,
        )
    except AuthError as e:
        raise HTTPException(status_code=400, detail=str(e))


# ------------------- SIGN IN -------------------

@router.post("/sign-in", response_model=TokenOut)
def sign_in_route(payload: SignInRequest, db: Session = Depends(get_db)):
    try:
        return sign_in(db, email=payload.email, password=payload.password)
    except AuthError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
        )


# ------------------- SIGN OUT -------------------

@router.post("/sign-out")
def sign_out_route(
    session: CurrentSession = Depends(get_current_session),
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
):
    sign_out(db, session, access_token=token)
    return {"message": "Signed out"}


# -------------------- SESSION ---------------------

@router.get("/session", response_model=CurrentSession)
def get_session(session: CurrentSession = Depends(get_current_session)):
    return session

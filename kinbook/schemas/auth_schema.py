from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr


class SignUpRequest(BaseModel):
    email: EmailStr
    password: str
    display_name: Optional[str] = None


class SignInRequest(BaseModel):
    email: EmailStr
    password: str


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str


class CurrentSession(BaseModel):
    """
    The signed-in identity for one request.
    Routes receive it through Depends(get_current_session); nothing reads
    it from global state.
    """
    user_id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    token_id: Optional[str] = None
    expires_at: Optional[datetime] = None

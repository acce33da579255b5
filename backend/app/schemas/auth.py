from typing import Optional
from pydantic import BaseModel, Field


class AdminLogin(BaseModel):
    username: str = Field(min_length=3)
    password: str = Field(min_length=6)


class SessionStatus(BaseModel):
    authenticated: bool
    username: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


# ─── Password Reset ───

class PasswordResetRequest(BaseModel):
    username: str = Field(min_length=1)


class PasswordResetConfirm(BaseModel):
    token: str = Field(min_length=1)
    new_password: str

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth import AuthContext, get_auth_context, require_admin
from app.core.database import get_db
from app.core.errors import Unauthorized
from app.schemas.auth import (
    AdminLogin, SessionStatus, ChangePasswordRequest,
    PasswordResetRequest, PasswordResetConfirm,
)
from app.services import credentials, password_reset

router = APIRouter(prefix="/api/admin", tags=["admin-auth"])
log = logging.getLogger(__name__)


# ─── Login ───
@router.post("/login")
def login(
    data: AdminLogin,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    if not credentials.verify_credentials(db, data.username, data.password):
        log.info("Failed admin login for %s", data.username)
        raise Unauthorized("Invalid username or password")
    ctx.login(data.username)
    log.info("Admin %s logged in", data.username)
    return {"message": "Login successful"}


# ─── Logout ───
@router.post("/logout")
def logout(ctx: AuthContext = Depends(require_admin)):
    username = ctx.username
    ctx.logout()
    log.info("Admin %s logged out", username)
    return {"message": "Logged out"}


# ─── Session status ───
@router.get("/session", response_model=SessionStatus)
def session_status(ctx: AuthContext = Depends(get_auth_context)):
    return SessionStatus(authenticated=ctx.is_admin, username=ctx.username if ctx.is_admin else None)


# ─── Change password (re-verifies the current one) ───
@router.post("/change-password")
def change_password(
    payload: ChangePasswordRequest,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
):
    credentials.change_password(db, ctx.username, payload.current_password, payload.new_password)
    return {"message": "Password changed successfully"}


# ─── Password Reset: Request (public, no auth required) ───
@router.post("/request-password-reset")
def request_password_reset(payload: PasswordResetRequest, db: Session = Depends(get_db)):
    """
    Step 1 of password reset.
    Always returns the same response so the caller can't tell whether the username exists.
    """
    password_reset.issue_reset_token(db, payload.username.strip())
    return {"message": password_reset.GENERIC_RESET_MESSAGE}


# ─── Password Reset: Confirm (public, no auth required) ───
@router.post("/reset-password")
def reset_password(payload: PasswordResetConfirm, db: Session = Depends(get_db)):
    """Step 2 of password reset. Validates the token and sets the new password."""
    password_reset.consume_reset_token(db, payload.token.strip(), payload.new_password)
    return {"message": "Password has been reset successfully"}

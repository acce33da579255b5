from dataclasses import dataclass, field
from typing import Optional

import bcrypt
from fastapi import Depends, Request

from app.core.config import settings
from app.core.errors import Unauthorized, ValidationError

SESSION_ADMIN_KEY = "is_admin"
SESSION_USER_KEY = "username"

# bcrypt only looks at the first 72 bytes of its input
BCRYPT_MAX_BYTES = 72


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # malformed stored hash or over-long input
        return False


def validate_new_password(password: str) -> None:
    if len(password) < settings.PASSWORD_MIN_LENGTH:
        raise ValidationError(f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters")
    if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValidationError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")


# ─── Request-scoped session context ───

@dataclass
class AuthContext:
    """Authentication state for one request, read from the signed session cookie."""

    session: dict = field(repr=False)
    is_admin: bool = False
    username: Optional[str] = None

    def login(self, username: str) -> None:
        self.session[SESSION_ADMIN_KEY] = True
        self.session[SESSION_USER_KEY] = username
        self.is_admin = True
        self.username = username

    def logout(self) -> None:
        self.session.clear()
        self.is_admin = False
        self.username = None


def get_auth_context(request: Request) -> AuthContext:
    session = request.session
    return AuthContext(
        session=session,
        is_admin=bool(session.get(SESSION_ADMIN_KEY)),
        username=session.get(SESSION_USER_KEY),
    )


def require_admin(ctx: AuthContext = Depends(get_auth_context)) -> AuthContext:
    """Dependency that ensures the session belongs to a logged-in admin."""
    if not ctx.is_admin or not ctx.username:
        raise Unauthorized()
    return ctx

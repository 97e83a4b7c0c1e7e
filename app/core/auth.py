from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import jwt
from fastapi import Request

from app.core.config import settings
from app.core.errors import AuthenticationError


@dataclass(frozen=True)
class CurrentUser:
    id: str
    email: str | None = None


def create_access_token(user_id: str, email: str | None = None, expires_in_hours: int = 12) -> str:
    """Sign a user token. Used by tests and local tooling; login lives elsewhere."""
    payload = {
        "sub": user_id,
        "email": email,
        "exp": datetime.now(UTC) + timedelta(hours=expires_in_hours),
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> CurrentUser:
    """Decode a bearer token into the calling user.

    Raises jwt.ExpiredSignatureError or jwt.InvalidTokenError on failure.
    """
    payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    subject = payload.get("sub")
    if not subject:
        raise jwt.InvalidTokenError("Token has no subject")
    return CurrentUser(id=str(subject), email=payload.get("email"))


def get_current_user(request: Request) -> CurrentUser:
    """Resolve the authenticated user from the Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise AuthenticationError("Authentication required")

    if not auth_header.startswith("Bearer "):
        raise AuthenticationError("Invalid authorization header format")

    token = auth_header[7:]
    if not token:
        raise AuthenticationError("Access token is required")

    try:
        return decode_access_token(token)
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Your token has expired. Please log in again") from None
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid token. Please log in again") from None

from datetime import datetime, timedelta, timezone

import jwt

from taskapi.core import config
from taskapi.core.exceptions import TokenExpired, TokenInvalid, TokenVerificationFailed
from taskapi.schemas.auth import TokenPair

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def _format_lifetime(minutes: int) -> str:
    if minutes % (24 * 60) == 0:
        return f"{minutes // (24 * 60)}d"
    if minutes % 60 == 0:
        return f"{minutes // 60}h"
    return f"{minutes}m"


def _encode(claims: dict, expires_minutes: int) -> str:
    now = datetime.now(timezone.utc)
    payload = {**claims, "iat": now, "exp": now + timedelta(minutes=expires_minutes)}
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def create_access_token(user_id: str, email: str, role: str, expires_minutes: int | None = None) -> str:
    return _encode(
        {"userId": user_id, "email": email, "role": role, "type": ACCESS_TOKEN_TYPE},
        expires_minutes or config.JWT_ACCESS_EXPIRES_MINUTES,
    )


def create_refresh_token(user_id: str, expires_minutes: int | None = None) -> str:
    return _encode(
        {"userId": user_id, "type": REFRESH_TOKEN_TYPE},
        expires_minutes or config.JWT_REFRESH_EXPIRES_MINUTES,
    )


def issue_token_pair(user_id: str, email: str, role: str) -> TokenPair:
    return TokenPair(
        access_token=create_access_token(user_id, email, role),
        refresh_token=create_refresh_token(user_id),
        expires_in=_format_lifetime(config.JWT_ACCESS_EXPIRES_MINUTES),
    )


def verify_token(token: str) -> dict:
    try:
        return jwt.decode(
            token,
            config.JWT_SECRET_KEY,
            algorithms=[config.JWT_ALGORITHM],
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise TokenExpired() from exc
    except jwt.InvalidTokenError as exc:
        raise TokenInvalid() from exc
    except Exception as exc:
        raise TokenVerificationFailed() from exc


def decode_token_unverified(token: str) -> dict | None:
    """Read the claims without checking the signature. Debugging aid only."""
    try:
        return jwt.decode(token, options={"verify_signature": False})
    except jwt.InvalidTokenError:
        return None


def is_token_expired(token: str) -> bool:
    claims = decode_token_unverified(token)
    if not claims or "exp" not in claims:
        return True
    return claims["exp"] < datetime.now(timezone.utc).timestamp()


def extract_token_from_header(header_value: str | None) -> str | None:
    if not header_value:
        return None

    parts = header_value.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer":
        return None

    return parts[1] or None

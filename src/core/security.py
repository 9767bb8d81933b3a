"""Password hashing and JWT helpers."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import jwt
from pwdlib import PasswordHash

from core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

password_hash = PasswordHash.recommended()

# Argon2 hash of a random password. Verifying against it when an email is
# unknown keeps sign-in timing independent of whether the account exists.
DUMMY_HASH = "$argon2id$v=19$m=65536,t=3,p=4$MjQyZWE1MzBjYjJlZTI0Yw$YTU4NGM5ZTZmYjE2NzZlZjY0ZWY3ZGRkY2U2OWFjNjk"


def get_password_hash(password: str) -> str:
    """Hash a password with the recommended algorithm (Argon2)."""
    return password_hash.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> tuple[bool, str | None]:
    """Verify a password and return an upgraded hash when the stored one is outdated.

    Returns
    -------
    tuple[bool, str | None]
        ``(verified, updated_hash)``; ``updated_hash`` is ``None`` unless the
        stored hash should be replaced.

    """
    return password_hash.verify_and_update(plain_password, hashed_password)


def create_access_token(user_id: str, secret: str, expires_delta: timedelta, algorithm: str = "HS256") -> str:
    """Issue a signed token whose ``id`` claim identifies the user.

    Parameters
    ----------
    user_id : str
        The user the token is issued to.
    secret : str
        Signing secret.
    expires_delta : timedelta
        Token lifetime.
    algorithm : str
        JWT signing algorithm (default: ``"HS256"``).

    Returns
    -------
    str
        The encoded JWT.

    """
    expire = datetime.now(timezone.utc) + expires_delta
    return jwt.encode({"id": user_id, "exp": expire}, secret, algorithm=algorithm)


def decode_access_token(token: str, secret: str, algorithm: str = "HS256") -> str:
    """Return the user ID carried by a token.

    Raises
    ------
    AuthenticationError
        If the token is malformed, expired, badly signed or has no ``id``.

    """
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm])
    except jwt.ExpiredSignatureError as exc:
        msg = "Token expired"
        raise AuthenticationError(msg) from exc
    except jwt.InvalidTokenError as exc:
        logger.debug("Rejected token: %s", exc)
        msg = "Invalid token"
        raise AuthenticationError(msg) from exc

    user_id = payload.get("id")
    if not user_id:
        msg = "User ID not found in token"
        raise AuthenticationError(msg)
    return str(user_id)

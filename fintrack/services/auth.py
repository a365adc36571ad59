"""
Access Layer

Password hashing (bcrypt) and bearer tokens (JWT) for the HTTP API.

Tokens carry the username in the "sub" claim and expire after
AUTH_ACCESS_TOKEN_EXPIRE_MINUTES. Nothing is kept server-side, so there
is no logout beyond letting the token expire.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt

from fintrack.config import AuthSettings
from fintrack.models.ledger import User, UserCreate
from fintrack.services.storage import LedgerStorageInterface


class AuthenticationError(Exception):
    """Bad credentials, or a token that is invalid or expired."""
    pass


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in storage
        return False


def create_access_token(
    username: str,
    settings: Optional[AuthSettings] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    settings = settings or AuthSettings()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    payload = {"sub": username, "exp": expire}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str, settings: Optional[AuthSettings] = None) -> str:
    """
    Validate a token and return the username it was issued for.

    Raises:
        AuthenticationError: If the token is expired, tampered with or has no subject
    """
    settings = settings or AuthSettings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Could not validate credentials")

    username = payload.get("sub")
    if not username:
        raise AuthenticationError("Could not validate credentials")
    return username


async def register_user(storage: LedgerStorageInterface, payload: UserCreate) -> User:
    """
    Hash the password and store a new user.

    Raises:
        DuplicateError: If the username is already taken
    """
    return await storage.create_user(
        username=payload.username,
        password_hash=hash_password(payload.password),
        first_name=payload.first_name,
        last_name=payload.last_name,
    )


async def authenticate_user(
    storage: LedgerStorageInterface,
    username: str,
    password: str,
) -> User:
    """
    Check a username/password pair.

    Raises:
        AuthenticationError: If the user doesn't exist or the password is wrong
    """
    user = await storage.get_user_by_username(username)
    if user is None or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid credentials")
    return user

# vidtube/core/security.py
"""
Security module for authentication.
Handles password hashing and JWT access/refresh token creation/validation.
"""
import re
import uuid
import datetime as dt
import jwt  # PyJWT
from passlib.context import CryptContext

from vidtube.config import settings

# Password hashing context
# Argon2 with fixed cost parameters; every stored password goes through this context
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
    argon2__rounds=3,          # time cost
    argon2__memory_cost=65536,  # KiB
    argon2__parallelism=4,
)

# JWT configuration
JWT_ALG = "HS256"  # JWT signing algorithm (HMAC SHA-256)
ACCESS_TOKEN_SECRET = settings.access_token_secret
REFRESH_TOKEN_SECRET = settings.refresh_token_secret

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhdw]?)\s*$", re.IGNORECASE)
_DURATION_UNITS = {
    "": "seconds",
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
    "w": "weeks",
}


def parse_duration(value: str | int) -> dt.timedelta:
    """
    Parse an expiry setting such as "15m", "1d", "10d" or "3600".

    A bare number is a count of seconds.

    Raises:
        ValueError: If the value is not a non-negative integer with an optional s/m/h/d/w suffix
    """
    if isinstance(value, int):
        return dt.timedelta(seconds=value)
    match = _DURATION_RE.match(value or "")
    if not match:
        raise ValueError(f"invalid duration: {value!r}")
    amount, unit = match.groups()
    return dt.timedelta(**{_DURATION_UNITS[unit.lower()]: int(amount)})


ACCESS_TOKEN_TTL = parse_duration(settings.access_token_expiry)
REFRESH_TOKEN_TTL = parse_duration(settings.refresh_token_expiry)


def hash_password(plain: str) -> str:
    """
    Hash a plain text password using Argon2.

    Args:
        plain: Plain text password to hash

    Returns:
        Hashed password string (safe to store in database)
    """
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    """
    Verify a plain text password against a hashed password.

    The underlying argon2 verify compares digests in constant time.
    Returns False (instead of raising) for an empty or unrecognised hash.
    """
    if not hashed:
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        return False


def _access_secret() -> str:
    if not ACCESS_TOKEN_SECRET:
        raise RuntimeError("ACCESS_TOKEN_SECRET is missing")
    return ACCESS_TOKEN_SECRET


def _refresh_secret() -> str:
    if not REFRESH_TOKEN_SECRET:
        raise RuntimeError("REFRESH_TOKEN_SECRET is missing")
    return REFRESH_TOKEN_SECRET


def _issue(claims: dict, secret: str, ttl: dt.timedelta) -> str:
    now = dt.datetime.now(dt.timezone.utc)
    payload = {
        **claims,
        "jti": uuid.uuid4().hex,  # unique per issuance, so a rotated token never equals the old one
        "iat": now,
        "exp": now + ttl,
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALG)


def create_access_token(user) -> str:
    """
    Create a short-lived JWT access token for a user.

    Token payload includes:
        - sub: user ID
        - email, username, fullName: identity claims for clients and middleware
        - type: "access"
        - jti, iat, exp
    """
    claims = {
        "sub": str(user.id),
        "email": user.email,
        "username": user.username,
        "fullName": user.full_name,
        "type": "access",
    }
    return _issue(claims, _access_secret(), ACCESS_TOKEN_TTL)


def create_refresh_token(user) -> str:
    """
    Create a long-lived JWT refresh token. Only the user ID is embedded.
    """
    return _issue({"sub": str(user.id), "type": "refresh"}, _refresh_secret(), REFRESH_TOKEN_TTL)


def decode_access_token(token: str) -> dict:
    """
    Decode and validate a JWT access token.

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid, malformed or not an access token
    """
    payload = jwt.decode(token, _access_secret(), algorithms=[JWT_ALG])
    if payload.get("type") != "access":
        raise jwt.InvalidTokenError("not an access token")
    return payload


def decode_refresh_token(token: str) -> dict:
    """
    Decode and validate a JWT refresh token.

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid, malformed or not a refresh token
    """
    payload = jwt.decode(token, _refresh_secret(), algorithms=[JWT_ALG])
    if payload.get("type") != "refresh":
        raise jwt.InvalidTokenError("not a refresh token")
    return payload

# vidtube/services/session.py
"""
Access/refresh token issuing and rotation.

A user has at most one valid refresh token: the one stored on the record.
Every rotation overwrites it, so older refresh tokens stop working.
"""
import logging
from dataclasses import dataclass

import jwt

from vidtube.core.errors import InternalError, UnauthorizedError
from vidtube.core.security import decode_refresh_token
from vidtube.services import credential_store

logger = logging.getLogger("uvicorn.error")


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str


async def rotate(user_id) -> TokenPair:
    """
    Issue a new access/refresh pair and persist the refresh token on the user.

    Raises:
        InternalError: If the user can't be loaded or the token can't be saved
    """
    try:
        user = await credential_store.find_by_id(user_id)
        if user is None:
            raise LookupError(f"user {user_id} not found")
        access_token = user.generate_access_token()
        refresh_token = user.generate_refresh_token()
        user.refresh_token = refresh_token
        await credential_store.save_user(user, "refresh_token")
    except Exception as e:
        logger.error("[session] token rotation failed for %s: %s", user_id, e)
        raise InternalError("Something went wrong while generating access and refresh tokens.") from e
    return TokenPair(access_token=access_token, refresh_token=refresh_token)


def verify_refresh_token(token: str) -> dict:
    """
    Decode a refresh token and check signature, expiry and payload shape.

    Raises:
        UnauthorizedError: On any verification failure
    """
    try:
        payload = decode_refresh_token(token)
    except jwt.PyJWTError as e:
        raise UnauthorizedError("Invalid refresh token") from e
    if not payload.get("sub"):
        raise UnauthorizedError("Invalid refresh token")
    return payload

import jwt
from fastapi import Header, Request

from vidtube.core.errors import UnauthorizedError
from vidtube.core.security import decode_access_token
from vidtube.models.user import User
from vidtube.services import credential_store


async def get_current_user(
    request: Request,
    authorization: str | None = Header(default=None),
) -> User:
    """
    FastAPI dependency to get the current authenticated user.

    This dependency extracts and validates the JWT access token from either:
    1. Authorization header (Bearer token) - preferred method
    2. HttpOnly cookie (accessToken) - fallback method

    Returns:
        User: The authenticated user object from database

    Raises:
        UnauthorizedError (401): No token, invalid/expired token, or user no longer exists

    Usage:
        @router.get("/protected")
        async def protected_route(user: User = Depends(get_current_user)):
            return {"user_id": str(user.id)}
    """
    token = None
    # 1) Prioritize Authorization: Bearer xxx
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
    # 2) Secondly HttpOnly Cookie: accessToken
    if not token:
        token = request.cookies.get("accessToken")

    if not token:
        raise UnauthorizedError("unauthorized request.")

    try:
        payload = decode_access_token(token)
    except jwt.PyJWTError:
        raise UnauthorizedError("Invalid access token")

    user = await credential_store.find_by_id(payload.get("sub"))
    if not user:
        raise UnauthorizedError("Invalid access token")
    return user

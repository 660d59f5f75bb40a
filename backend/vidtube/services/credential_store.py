# vidtube/services/credential_store.py
"""
Persistence helpers for User records.

Thin layer over the Tortoise model so the account service never builds
queries itself.
"""
import logging
import uuid
from typing import Optional

from tortoise.exceptions import IntegrityError
from tortoise.expressions import Q

from vidtube.core.errors import ConflictError
from vidtube.models.user import User

logger = logging.getLogger("uvicorn.error")


async def find_by_username_or_email(
    username: Optional[str] = None,
    email: Optional[str] = None,
) -> Optional[User]:
    """
    Return the user matching the username OR the email.

    Only identifiers that were actually provided take part in the lookup,
    so a missing email can't accidentally match rows with a NULL email.
    When the two identifiers belong to different accounts, the username
    match wins.
    """
    conditions = []
    if username:
        conditions.append(Q(username=username))
    if email:
        conditions.append(Q(email=email))
    if not conditions:
        return None
    # Both columns are unique, so at most two rows come back
    matches = await User.filter(Q(*conditions, join_type="OR"))
    for user in matches:
        if username and user.username == username:
            return user
    return matches[0] if matches else None


async def find_by_id(user_id) -> Optional[User]:
    """Return the user with this id, or None (also for malformed ids)."""
    try:
        pk = user_id if isinstance(user_id, uuid.UUID) else uuid.UUID(str(user_id))
    except (TypeError, ValueError):
        return None
    return await User.get_or_none(id=pk)


async def create_user(**fields) -> User:
    """
    Insert a new user.

    Raises:
        ConflictError: If the username or email is already taken
    """
    try:
        return await User.create(**fields)
    except IntegrityError as exc:
        logger.info("[users] create rejected by unique constraint: %s", exc)
        raise ConflictError("email or username already in use.") from exc


async def save_user(user: User, *fields: str) -> None:
    """
    Persist a mutated user.

    With field names, only those columns (plus updated_at) are written.
    This is used for session and password writes so that the state of
    unrelated profile fields can't block them.
    """
    if fields:
        await user.save(update_fields=[*fields, "updated_at"])
    else:
        await user.save()

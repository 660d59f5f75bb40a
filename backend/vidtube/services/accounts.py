# vidtube/services/accounts.py
"""
Account service: registration, login/logout, refresh-token rotation,
password and profile updates, avatar/cover replacement and the read-only
channel profile and watch history queries.

Every function validates its input first, then talks to the credential
store, Cloudinary and the session issuer strictly in sequence. Failures are
raised as vidtube.core.errors.ApiError subclasses.
"""
import logging
from typing import Optional

from email_validator import EmailNotValidError, validate_email
from tortoise.exceptions import IntegrityError

from vidtube.core.security import hash_password
from vidtube.core.errors import (
    ConflictError,
    InternalError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from vidtube.models.subscription import Subscription
from vidtube.models.user import User
from vidtube.models.video import Video, WatchHistoryEntry
from vidtube.services import credential_store, media, session
from vidtube.services.session import TokenPair

logger = logging.getLogger("uvicorn.error")


# ------------------------------------------------------------------------------
# Projections
# ------------------------------------------------------------------------------
def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def user_projection(user: User) -> dict:
    """
    Public view of a user. Never includes password, refresh token or the
    Cloudinary asset ids.
    """
    return {
        "id": str(user.id),
        "username": user.username,
        "email": user.email,
        "fullName": user.full_name,
        "avatar": user.avatar,
        "coverImage": user.cover_image or "",
        "createdAt": _iso(user.created_at),
        "updatedAt": _iso(user.updated_at),
    }


def _video_with_owner(video: Video) -> dict:
    owner = video.owner
    return {
        "id": str(video.id),
        "videoFile": video.video_file,
        "thumbnail": video.thumbnail,
        "title": video.title,
        "description": video.description,
        "duration": video.duration,
        "views": video.views,
        "isPublished": video.is_published,
        "createdAt": _iso(video.created_at),
        "owner": {
            "fullName": owner.full_name,
            "username": owner.username,
            "avatar": owner.avatar,
        },
    }


# ------------------------------------------------------------------------------
# Input checks
# ------------------------------------------------------------------------------
def _is_blank(value: Optional[str]) -> bool:
    return value is None or value.strip() == ""


def _normalized_email(email: str) -> str:
    """Return the trimmed, lowercased email or raise ValidationError if it is not an email."""
    try:
        validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError as e:
        raise ValidationError("email is invalid.") from e
    return email.strip().lower()


def _require_lowercase_username(username: str) -> str:
    username = username.strip()
    if username != username.lower():
        raise ValidationError("username should be lowercase.")
    return username


# ------------------------------------------------------------------------------
# Registration / session lifecycle
# ------------------------------------------------------------------------------
async def register(
    full_name: Optional[str],
    email: Optional[str],
    username: Optional[str],
    password: Optional[str],
    avatar_path: Optional[str],
    cover_path: Optional[str] = None,
) -> dict:
    """
    Create a new account.

    Order of checks: required fields, email syntax, lowercase username,
    uniqueness, avatar presence. Then the avatar (and optional cover) are
    uploaded and the record is created with a hashed password.

    Args:
        avatar_path / cover_path: staged upload paths (see media.stash_upload).
            Both are removed from disk before this returns, on every path.

    Returns:
        The created user's projection

    Raises:
        ValidationError: Missing/invalid fields, missing avatar or failed avatar upload
        ConflictError: Username or email already in use
        InternalError: Created record can't be read back
    """
    try:
        if any(_is_blank(f) for f in (full_name, email, username, password)):
            raise ValidationError("all fields are required.")

        email = _normalized_email(email)
        username = _require_lowercase_username(username)

        existing = await credential_store.find_by_username_or_email(username=username, email=email)
        if existing:
            raise ConflictError("email or username already in use.")

        if not avatar_path:
            raise ValidationError("avatar is required.")

        avatar = await media.upload_on_cloudinary(avatar_path)
        if avatar is None:
            raise ValidationError("avatar upload failed, avatar is required.")
        # A failed cover upload is tolerated and stored as empty
        cover = await media.upload_on_cloudinary(cover_path) if cover_path else None

        try:
            user = await credential_store.create_user(
                full_name=full_name.strip(),
                email=email,
                username=username.lower(),
                avatar=avatar.url,
                avatar_id=avatar.asset_id,
                avatar_resource_type=avatar.resource_type,
                cover_image=cover.url if cover else "",
                cover_image_id=cover.asset_id if cover else None,
                cover_image_resource_type=cover.resource_type if cover else "image",
                password=hash_password(password),
            )
        except ConflictError:
            # Lost a race with a concurrent registration; don't leave the fresh assets behind
            await media.delete_from_cloudinary(avatar.asset_id, avatar.resource_type)
            if cover:
                await media.delete_from_cloudinary(cover.asset_id, cover.resource_type)
            raise

        created = await credential_store.find_by_id(user.id)
        if created is None:
            raise InternalError("Something went wrong while registering the user.")
        logger.info("[accounts] registered user %s", created.username)
        return user_projection(created)
    finally:
        media.discard_temp_file(avatar_path)
        media.discard_temp_file(cover_path)


async def login(
    email: Optional[str],
    username: Optional[str],
    password: Optional[str],
) -> tuple[dict, TokenPair]:
    """
    Authenticate by username OR email plus password.

    When both identifiers are given and name different accounts, the
    username's account is the one checked.

    Returns:
        (user projection, TokenPair); the refresh token is stored on the user

    Raises:
        ValidationError: No identifier, empty password, invalid email, non-lowercase username
        NotFoundError: No matching user
        UnauthorizedError: Wrong password
    """
    email = None if _is_blank(email) else email
    username = None if _is_blank(username) else username
    if email is None and username is None:
        raise ValidationError("username or email is required.")
    if _is_blank(password):
        raise ValidationError("password is required.")

    if email is not None:
        email = _normalized_email(email)
    if username is not None:
        username = _require_lowercase_username(username)

    user = await credential_store.find_by_username_or_email(username=username, email=email)
    if user is None:
        raise NotFoundError("user does not exist.")

    if not user.is_password_correct(password):
        raise UnauthorizedError("invalid user credentials.")

    tokens = await session.rotate(user.id)
    logger.info("[accounts] user %s logged in", user.username)
    return user_projection(user), tokens


async def logout(user: User) -> None:
    """Drop the stored refresh token; the session can no longer be refreshed."""
    user.refresh_token = None
    await credential_store.save_user(user, "refresh_token")
    logger.info("[accounts] user %s logged out", user.username)


async def refresh_access_token(incoming_refresh_token: Optional[str]) -> TokenPair:
    """
    Exchange the current refresh token for a new pair.

    Only the refresh token stored on the user is accepted; after rotation the
    presented token is no longer valid.

    Raises:
        UnauthorizedError: Missing, invalid, expired, unknown-user or already used token
    """
    if _is_blank(incoming_refresh_token):
        raise UnauthorizedError("unauthorized request.")

    payload = session.verify_refresh_token(incoming_refresh_token)

    user = await credential_store.find_by_id(payload["sub"])
    if user is None:
        raise UnauthorizedError("Invalid refresh token")

    if incoming_refresh_token != user.refresh_token:
        raise UnauthorizedError("refresh token is expired or used")

    tokens = await session.rotate(user.id)
    logger.info("[accounts] refreshed tokens for %s", user.username)
    return tokens


# ------------------------------------------------------------------------------
# Profile updates
# ------------------------------------------------------------------------------
async def change_password(user: User, old_password: Optional[str], new_password: Optional[str]) -> None:
    if _is_blank(old_password) or _is_blank(new_password):
        raise ValidationError("old and new password are required.")
    if not user.is_password_correct(old_password):
        raise UnauthorizedError("old password is incorrect.")
    user.set_password(new_password)
    await credential_store.save_user(user, "password")


async def update_profile_fields(user: User, full_name: Optional[str], email: Optional[str]) -> dict:
    """
    Update full name and email. Both are required.

    Raises:
        ValidationError: Missing field or invalid email
        ConflictError: Email belongs to another account
    """
    if _is_blank(full_name) or _is_blank(email):
        raise ValidationError("full name and email are required.")
    email = _normalized_email(email)

    if await User.filter(email=email).exclude(id=user.id).exists():
        raise ConflictError("email already in use.")

    user.full_name = full_name.strip()
    user.email = email
    try:
        await credential_store.save_user(user, "full_name", "email")
    except IntegrityError as e:
        raise ConflictError("email already in use.") from e
    return user_projection(user)


async def _replace_media(
    user: User,
    local_path: Optional[str],
    url_field: str,
    id_field: str,
    type_field: str,
    label: str,
) -> dict:
    try:
        if not local_path:
            raise ValidationError(f"{label} file is missing.")

        # Captured before the record changes
        previous_asset_id = getattr(user, id_field)
        previous_type = getattr(user, type_field)

        uploaded = await media.upload_on_cloudinary(local_path)
        if uploaded is None:
            raise ValidationError(f"error while uploading {label}.")

        setattr(user, url_field, uploaded.url)
        setattr(user, id_field, uploaded.asset_id)
        setattr(user, type_field, uploaded.resource_type)
        await credential_store.save_user(user, url_field, id_field, type_field)

        if previous_asset_id and previous_asset_id != uploaded.asset_id:
            deleted = await media.delete_from_cloudinary(previous_asset_id, previous_type)
            if not deleted:
                # The new asset stays committed; the old one is left orphaned on Cloudinary
                raise ValidationError(
                    f"{label} updated, but the previous {label} could not be deleted.",
                    errors=[{
                        "field": url_field,
                        "persisted": uploaded.url,
                        "orphanedAssetId": previous_asset_id,
                    }],
                )
        return user_projection(user)
    finally:
        media.discard_temp_file(local_path)


async def update_avatar(user: User, local_path: Optional[str]) -> dict:
    return await _replace_media(user, local_path, "avatar", "avatar_id", "avatar_resource_type", "avatar")


async def update_cover_image(user: User, local_path: Optional[str]) -> dict:
    return await _replace_media(user, local_path, "cover_image", "cover_image_id", "cover_image_resource_type", "cover image")


# ------------------------------------------------------------------------------
# Read-only queries
# ------------------------------------------------------------------------------
def get_current_user_data(user: User) -> dict:
    return user_projection(user)


async def get_channel_profile(username: Optional[str], requesting_user: Optional[User]) -> dict:
    """
    Channel page data: profile plus subscriber/subscription counts and whether
    the requesting user follows the channel.

    Raises:
        ValidationError: Blank username
        NotFoundError: Unknown channel
    """
    if _is_blank(username):
        raise ValidationError("username is missing.")

    channel = await User.get_or_none(username=username.strip().lower())
    if channel is None:
        raise NotFoundError("channel does not exist.")

    subscribers_count = await Subscription.filter(channel=channel).count()
    subscribed_to_count = await Subscription.filter(subscriber=channel).count()
    is_subscribed = False
    if requesting_user is not None:
        is_subscribed = await Subscription.filter(channel=channel, subscriber=requesting_user).exists()

    return {
        "id": str(channel.id),
        "fullName": channel.full_name,
        "username": channel.username,
        "email": channel.email,
        "avatar": channel.avatar,
        "coverImage": channel.cover_image or "",
        "subscribersCount": subscribers_count,
        "channelsSubscribedToCount": subscribed_to_count,
        "isSubscribed": is_subscribed,
    }


async def get_watch_history(user: User) -> list[dict]:
    """Videos the user watched, in watch order, each with its owner's public fields."""
    entries = (
        await WatchHistoryEntry.filter(user=user)
        .order_by("id")
        .prefetch_related("video__owner")
    )
    return [_video_with_owner(entry.video) for entry in entries]

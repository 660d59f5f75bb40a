# vidtube/api/v1/routers/users.py
from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile, status

from vidtube.api.v1.deps import get_current_user
from vidtube.config import settings
from vidtube.core.responses import api_response
from vidtube.models.user import User
from vidtube.schemas.user import ChangePasswordIn, LoginIn, RefreshTokenIn, UpdateUserIn
from vidtube.services import accounts, media
from vidtube.services.session import TokenPair

router = APIRouter(prefix="/users", tags=["users"])


def _set_session_cookies(response: Response, tokens: TokenPair) -> None:
    """Send both tokens as HttpOnly cookies (Secure unless COOKIE_SECURE=false)."""
    response.set_cookie("accessToken", tokens.access_token, httponly=True, secure=settings.cookie_secure)
    response.set_cookie("refreshToken", tokens.refresh_token, httponly=True, secure=settings.cookie_secure)


def _clear_session_cookies(response: Response) -> None:
    response.delete_cookie("accessToken", httponly=True, secure=settings.cookie_secure)
    response.delete_cookie("refreshToken", httponly=True, secure=settings.cookie_secure)


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    fullName: str = Form(default=""),
    email: str = Form(default=""),
    username: str = Form(default=""),
    password: str = Form(default=""),
    avatar: UploadFile | None = File(default=None),
    coverImage: UploadFile | None = File(default=None),
):
    """
    Register a new user account.

    Multipart form:
        - fullName, email, username (lowercase), password
        - avatar: required image file
        - coverImage: optional image file

    Returns:
        dict: 201 envelope whose data is the created user (no password / refreshToken)

    Error codes:
        - 400: Missing/invalid field, missing avatar or avatar upload failure
        - 409: Username or email already in use
    """
    avatar_path = await media.stash_upload(avatar)
    try:
        cover_path = await media.stash_upload(coverImage)
    except Exception:
        media.discard_temp_file(avatar_path)
        raise
    user = await accounts.register(fullName, email, username, password, avatar_path, cover_path)
    return api_response(201, user, "User registered successfully!")


@router.post("/login")
async def login(body: LoginIn, response: Response):
    """
    Authenticate by username or email plus password.

    Both tokens are returned in the body and also set as HttpOnly cookies.

    Error codes:
        - 400: No identifier, empty password, malformed email or non-lowercase username
        - 404: No such user
        - 401: Wrong password
    """
    user, tokens = await accounts.login(body.email, body.username, body.password)
    _set_session_cookies(response, tokens)
    return api_response(
        200,
        {"user": user, "accessToken": tokens.access_token, "refreshToken": tokens.refresh_token},
        "user successfully logged in.",
    )


@router.post("/logout")
async def logout(response: Response, user: User = Depends(get_current_user)):
    """
    Clear the stored refresh token and both cookies.

    The access token itself stays valid until it expires.
    """
    await accounts.logout(user)
    _clear_session_cookies(response)
    return api_response(200, {}, "user logged out successfully.")


@router.post("/refresh-token")
async def refresh_token(request: Request, response: Response, body: RefreshTokenIn | None = None):
    """
    Rotate the session: trade the current refresh token for a new pair.

    The refresh token is read from the refreshToken cookie, or from the
    JSON body when no cookie is present. The presented token stops being
    valid once this succeeds.
    """
    incoming = request.cookies.get("refreshToken") or (body.refreshToken if body else None)
    tokens = await accounts.refresh_access_token(incoming)
    _set_session_cookies(response, tokens)
    return api_response(
        200,
        {"accessToken": tokens.access_token, "refreshToken": tokens.refresh_token},
        "access token refreshed.",
    )


@router.api_route("/change-password", methods=["PUT", "PATCH"])
async def change_password(body: ChangePasswordIn, user: User = Depends(get_current_user)):
    await accounts.change_password(user, body.oldPassword, body.newPassword)
    return api_response(200, {}, "password changed successfully.")


@router.get("/user-data")
async def user_data(user: User = Depends(get_current_user)):
    return api_response(200, accounts.get_current_user_data(user), "current user fetched successfully.")


@router.api_route("/update-user", methods=["PUT", "PATCH"])
async def update_user(body: UpdateUserIn, user: User = Depends(get_current_user)):
    """Update fullName and email (both required)."""
    data = await accounts.update_profile_fields(user, body.fullName, body.email)
    return api_response(200, data, "account details updated successfully.")


@router.api_route("/update-avatar", methods=["PUT", "PATCH"])
async def update_avatar(
    avatar: UploadFile | None = File(default=None),
    user: User = Depends(get_current_user),
):
    """
    Replace the avatar. The previous Cloudinary asset is deleted after the
    new one is saved; if that delete fails the response is a 400 but the new
    avatar stays in place (its URL is reported in `errors`).
    """
    local_path = await media.stash_upload(avatar)
    data = await accounts.update_avatar(user, local_path)
    return api_response(200, data, "avatar updated successfully.")


@router.api_route("/update-cover", methods=["PUT", "PATCH"])
async def update_cover(
    coverImage: UploadFile | None = File(default=None),
    user: User = Depends(get_current_user),
):
    """Replace the cover image; same delete semantics as /update-avatar."""
    local_path = await media.stash_upload(coverImage)
    data = await accounts.update_cover_image(user, local_path)
    return api_response(200, data, "cover image updated successfully.")


@router.get("/c/{username}")
async def channel_profile(username: str, user: User = Depends(get_current_user)):
    data = await accounts.get_channel_profile(username, user)
    return api_response(200, data, "channel fetched successfully.")


@router.get("/watch-history")
async def watch_history(user: User = Depends(get_current_user)):
    data = await accounts.get_watch_history(user)
    return api_response(200, data, "watch history fetched successfully.")

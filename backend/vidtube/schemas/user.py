# vidtube/schemas/user.py
"""
Pydantic schemas for the user endpoints.
Field names follow the JSON the frontend sends (camelCase).
Registration and media updates are multipart forms and are not modelled here.
Responses are the plain dict envelopes built in the router.
"""
from typing import Optional
from pydantic import BaseModel


class LoginIn(BaseModel):
    """
    Login credentials. At least one of email / username must be present;
    that rule is enforced by the account service so it can answer with the
    standard 400 envelope.
    """
    email: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None


class RefreshTokenIn(BaseModel):
    refreshToken: Optional[str] = None  # Falls back to the refreshToken cookie


class ChangePasswordIn(BaseModel):
    oldPassword: Optional[str] = None
    newPassword: Optional[str] = None


class UpdateUserIn(BaseModel):
    fullName: Optional[str] = None
    email: Optional[str] = None

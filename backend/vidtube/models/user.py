# vidtube/models/user.py
"""
Database model for users.
Represents a channel/user account: identity, profile media hosted on Cloudinary,
credentials and the currently active refresh token.
"""
import uuid
from tortoise import fields, models

from vidtube.core import security


class User(models.Model):
    """
    User database model.

    Relationships:
    - Has many Videos (via owner foreign key in Video model)
    - Has many WatchHistoryEntry rows (ordered watch history)
    - Subscriptions in both directions (related names "subscriptions" / "subscribers")

    Security:
    - password only ever holds an argon2 hash; set it through set_password()
    - refresh_token holds the single valid refresh token (null = no active session)
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)  # Primary key: unique user identifier
    username = fields.CharField(max_length=64, unique=True, index=True)  # Stored lowercase and trimmed
    email = fields.CharField(max_length=256, unique=True)  # Stored lowercase and trimmed
    full_name = fields.CharField(max_length=128, index=True)
    avatar = fields.CharField(max_length=512)  # Cloudinary URL (required after registration)
    avatar_id = fields.CharField(max_length=256, null=True)  # Cloudinary public_id of the avatar
    avatar_resource_type = fields.CharField(max_length=16, default="image")  # Cloudinary resource type, needed by destroy
    cover_image = fields.CharField(max_length=512, default="")  # Cloudinary URL or empty
    cover_image_id = fields.CharField(max_length=256, null=True)
    cover_image_resource_type = fields.CharField(max_length=16, default="image")
    password = fields.CharField(max_length=255)  # argon2 hash, never plain text
    refresh_token = fields.TextField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "users"

    def set_password(self, plain: str) -> None:
        """Hash and store a new password. Hashing happens here, not in a save hook."""
        self.password = security.hash_password(plain)

    def is_password_correct(self, plain: str) -> bool:
        return security.verify_password(plain, self.password)

    def generate_access_token(self) -> str:
        return security.create_access_token(self)

    def generate_refresh_token(self) -> str:
        return security.create_refresh_token(self)

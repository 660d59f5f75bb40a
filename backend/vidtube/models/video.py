# vidtube/models/video.py
"""
Database models for videos and per-user watch history.

Video management itself lives outside this service; only the fields needed
to render a user's watch history are modelled here.
"""
import uuid
from tortoise import fields, models


class Video(models.Model):
    """
    Video database model.

    Relationships:
    - Belongs to a User (owner, many-to-one)
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    owner = fields.ForeignKeyField(
        "models.User",
        related_name="videos",
        on_delete=fields.CASCADE,
    )
    video_file = fields.CharField(max_length=512)  # Cloudinary URL
    thumbnail = fields.CharField(max_length=512)  # Cloudinary URL
    title = fields.CharField(max_length=256)
    description = fields.TextField(default="")
    duration = fields.FloatField(default=0)  # Seconds
    views = fields.IntField(default=0)
    is_published = fields.BooleanField(default=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "videos"


class WatchHistoryEntry(models.Model):
    """
    One entry of a user's watch history.
    Insertion order (auto-increment id) is the order of the history.
    """
    id = fields.IntField(pk=True)
    user = fields.ForeignKeyField("models.User", related_name="watch_history", on_delete=fields.CASCADE)
    video = fields.ForeignKeyField("models.Video", related_name="watch_entries", on_delete=fields.CASCADE)
    watched_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "watch_history"

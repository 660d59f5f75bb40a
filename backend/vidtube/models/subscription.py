# vidtube/models/subscription.py
import uuid
from tortoise import fields, models


class Subscription(models.Model):
    """
    A subscriber following a channel. Both sides are users.

    - channel.subscribers  -> who follows the channel
    - subscriber.subscriptions -> channels the user follows
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    subscriber = fields.ForeignKeyField("models.User", related_name="subscriptions", on_delete=fields.CASCADE)
    channel = fields.ForeignKeyField("models.User", related_name="subscribers", on_delete=fields.CASCADE)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "subscriptions"
        unique_together = (("subscriber", "channel"),)

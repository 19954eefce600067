from tortoise import fields, models
import uuid


class StateSnapshot(models.Model):
    """
    Serialized BarState. The row named 'current' is the live state saved after every
    accepted mutation; any other name is a snapshot taken on request.
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    name = fields.CharField(max_length=128, unique=True)
    payload = fields.JSONField() # BarState.model_dump(mode="json")
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "state_snapshots"
        indexes = [
            ("created_at",),  # Newest-first listing
        ]

"""Game invite model.

Invites are embedded in their Game document next to the ledger
requests, so sending and answering one commits through the same
version-checked write as every other ledger change.
"""

from datetime import datetime, timezone
from typing import Optional
import uuid

from pydantic import BaseModel, Field, field_serializer, model_validator

from homegame.models.common import InviteStatus, serialize_timestamp


class GameInvite(BaseModel):
    """The host's invitation for one user to take a seat."""

    model_config = {"populate_by_name": True}

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    invited_user_id: str
    invited_display_name: str
    invited_by: str
    message: Optional[str] = None
    status: InviteStatus = InviteStatus.PENDING
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    responded_at: Optional[datetime] = None

    @model_validator(mode="after")
    def validate_responded_at(self) -> "GameInvite":
        """Accepted and declined invites record when they were answered."""
        if (
            self.status in (InviteStatus.ACCEPTED, InviteStatus.DECLINED)
            and self.responded_at is None
        ):
            raise ValueError(
                f"responded_at is required when status is {self.status}"
            )
        return self

    @property
    def is_pending(self) -> bool:
        return self.status == InviteStatus.PENDING

    @field_serializer("created_at", "responded_at")
    def serialize_datetime(
        self, value: Optional[datetime], _info
    ) -> Optional[str]:
        return serialize_timestamp(value)

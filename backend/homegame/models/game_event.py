"""History journal entry model."""

from datetime import datetime, timezone
from typing import Optional
import uuid

from pydantic import BaseModel, Field, field_serializer

from homegame.models.common import EventKind, serialize_timestamp


class GameEvent(BaseModel):
    """One entry in a game's append-only history."""

    model_config = {"populate_by_name": True}

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    kind: EventKind
    user_id: str
    user_name: str
    amount: Optional[int] = None
    description: str

    @field_serializer("timestamp")
    def serialize_datetime(self, value: datetime, _info) -> Optional[str]:
        return serialize_timestamp(value)

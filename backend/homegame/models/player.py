"""Player domain model.

Players are embedded in their Game document. Each entry is a seat
identified by a UUID ``id``; a user who cashes out and buys in again
gets a new seat, so ``user_id`` is not a key.
"""

from datetime import datetime, timezone
from typing import Optional
import uuid

from pydantic import BaseModel, Field, field_serializer, model_validator

from homegame.models.common import PlayerStatus, serialize_timestamp


class Player(BaseModel):
    """A seat in a game.

    ``current_stack`` grows with approved buy-ins and is frozen at the
    cash-out amount once the seat is CASHED_OUT. ``total_buy_in`` is the
    money the seat has put in.
    """

    model_config = {"populate_by_name": True}

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    display_name: str
    current_stack: int = 0
    total_buy_in: int = 0
    status: PlayerStatus = PlayerStatus.ACTIVE
    joined_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    cashed_out_at: Optional[datetime] = None

    @model_validator(mode="after")
    def validate_cashed_out_at(self) -> "Player":
        """Ensure cashed_out_at is recorded when status is CASHED_OUT."""
        if (
            self.status == PlayerStatus.CASHED_OUT
            and self.cashed_out_at is None
        ):
            raise ValueError(
                "cashed_out_at is required when status is CASHED_OUT"
            )
        return self

    @property
    def is_active(self) -> bool:
        return self.status == PlayerStatus.ACTIVE

    @property
    def net_result(self) -> int:
        """Profit (positive) or loss (negative) in cents."""
        return self.current_stack - self.total_buy_in

    @field_serializer("joined_at", "cashed_out_at")
    def serialize_datetime(
        self, value: Optional[datetime], _info
    ) -> Optional[str]:
        return serialize_timestamp(value)

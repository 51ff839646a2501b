"""Ledger request domain model.

Buy-in and cash-out requests share one structure, tagged by ``kind``,
and live in the Game's ``buy_in_requests`` / ``cash_out_requests`` lists.
"""

from datetime import datetime, timezone
from typing import Optional
import uuid

from pydantic import BaseModel, Field, field_serializer, model_validator

from homegame.models.common import (
    RequestKind,
    RequestStatus,
    serialize_timestamp,
)

_TERMINAL_STATUSES = {
    RequestKind.BUY_IN: {RequestStatus.APPROVED, RequestStatus.DECLINED},
    RequestKind.CASH_OUT: {RequestStatus.PROCESSED, RequestStatus.DECLINED},
}


class LedgerRequest(BaseModel):
    """A player's buy-in (or rebuy) or cash-out request awaiting the host.

    Uses an explicit status enum with exactly one terminal transition
    out of PENDING.
    """

    model_config = {"populate_by_name": True}

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    kind: RequestKind
    user_id: str
    display_name: str
    amount: int = Field(ge=0)
    status: RequestStatus = RequestStatus.PENDING
    requested_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[str] = None

    @model_validator(mode="after")
    def validate_status_for_kind(self) -> "LedgerRequest":
        """Reject terminal statuses that do not belong to this kind."""
        if (
            self.status != RequestStatus.PENDING
            and self.status not in _TERMINAL_STATUSES[self.kind]
        ):
            raise ValueError(
                f"{self.kind} request cannot have status {self.status}"
            )
        return self

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING

    @field_serializer("requested_at", "resolved_at")
    def serialize_datetime(
        self, value: Optional[datetime], _info
    ) -> Optional[str]:
        return serialize_timestamp(value)

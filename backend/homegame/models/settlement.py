"""Settlement output models."""

from pydantic import BaseModel, Field


class SettlementTransaction(BaseModel):
    """A single peer-to-peer payment: ``from`` pays ``to`` ``amount`` cents."""

    index: int
    from_player_id: str
    from_name: str
    to_player_id: str
    to_name: str
    amount: int = Field(gt=0)


class SettlementSummary(BaseModel):
    """Settlement transactions together with the totals they were built from."""

    total_buy_ins: int
    total_cash_outs: int
    house_difference: int
    transactions: list[SettlementTransaction] = Field(default_factory=list)

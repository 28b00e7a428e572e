from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


JokerType = Literal["small", "big"]


class BetBody(BaseModel):
    bet_amount: int = Field(gt=0, alias="betAmount", description="Stake for the spin")
    extra_bet: bool = Field(False, alias="extraBet")

    model_config = ConfigDict(populate_by_name=True)


class BetRequestBody(BetBody):
    user_id: int = Field(alias="userId")


class CellItem(BaseModel):
    type: str
    isGolden: bool
    jokerType: Optional[JokerType] = None
    jokerSize: int


class WinLineItem(BaseModel):
    line: int
    symbol: str


class BetResponse(BaseModel):
    grid: List[List[CellItem]]
    newBalance: int
    winAmount: int
    lineWin: int
    multiplier: int
    winningLines: List[WinLineItem]


class BalanceResponse(BaseModel):
    balance: int


class UserCreate(BaseModel):
    username: str


class UserItem(BaseModel):
    id: int
    username: str
    balance: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

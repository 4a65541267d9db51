from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict


class EventType(str, Enum):
    DEPOSITED = "Deposited"
    WITHDRAWN = "Withdrawn"
    REWARD_PAID = "RewardPaid"


class PoolState(BaseModel):
    token: str
    reward_rate: int
    start_time: int
    end_time: int
    last_settled_time: int
    acc_reward_per_share: int = 0
    total_staked: int = 0
    total_reward_paid: int = 0

    model_config = ConfigDict(from_attributes=True)

    def is_open(self, now: int) -> bool:
        return self.start_time <= now < self.end_time


class ParticipantState(BaseModel):
    participant: str
    staked_amount: int = 0
    reward_debt: int = 0
    reward_due: int = 0
    first_staked_time: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)

    def has_active_stake(self) -> bool:
        return self.staked_amount > 0


class LedgerEvent(BaseModel):
    sequence: int
    event_type: EventType
    participant: str
    amount: int
    timestamp: int
    recorded_at: datetime


class DepositRequest(BaseModel):
    participant: str = Field(..., min_length=1, description="Address of the depositing participant")
    amount: int = Field(..., ge=0, description="Amount in token base units")
    timestamp: Optional[int] = Field(default=None, ge=0, description="Defaults to the server clock")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "participant": "0x70997970C51812dc3A010C7d01b50e0d17dc79C8",
            "amount": 100 * 10**18,
            "timestamp": 1700001000,
        }
    })


class WithdrawRequest(BaseModel):
    participant: str = Field(..., min_length=1)
    timestamp: Optional[int] = Field(default=None, ge=0)


class SettleRequest(BaseModel):
    timestamp: Optional[int] = Field(default=None, ge=0)


class WithdrawalResult(BaseModel):
    participant: ParticipantState
    principal: int
    reward: int
    message: str


class PendingRewardResponse(BaseModel):
    participant: str
    pending_reward: int
    timestamp: int


class EventHistoryResponse(BaseModel):
    events: list[LedgerEvent]
    total_count: int


class CustodianRequest(BaseModel):
    account: str = Field(..., min_length=1)
    amount: int = Field(..., ge=0)


class BalanceResponse(BaseModel):
    account: str
    balance: int
    allowance: int

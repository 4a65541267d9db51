"""
Staking Reward Ledger

This module provides:
- A time-window staking pool with a fixed reward emission rate
- Lazily settled reward-per-share accrual, O(1) per operation
- All-or-nothing deposits and withdrawals against a token custodian
- Solvency-guarded reward payouts and an event log
"""

from .config import PoolConfig, load_config
from .custodian import Custodian, InMemoryCustodian
from .errors import (
    StakingError,
    ConfigurationError,
    WindowClosed,
    ZeroAmount,
    NoActiveStake,
    InsufficientRewardFunds,
    TransferFailed,
    ArithmeticOverflow,
)
from .fixed_point import PRECISION
from .models import (
    EventType,
    PoolState,
    ParticipantState,
    LedgerEvent,
    WithdrawalResult,
)
from .service import StakingLedger, LedgerInvariantError

__all__ = [
    "PoolConfig",
    "load_config",
    "Custodian",
    "InMemoryCustodian",
    "StakingError",
    "ConfigurationError",
    "WindowClosed",
    "ZeroAmount",
    "NoActiveStake",
    "InsufficientRewardFunds",
    "TransferFailed",
    "ArithmeticOverflow",
    "PRECISION",
    "EventType",
    "PoolState",
    "ParticipantState",
    "LedgerEvent",
    "WithdrawalResult",
    "StakingLedger",
    "LedgerInvariantError",
]

import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Optional

from .config import PoolConfig
from .custodian import Custodian, InMemoryCustodian
from .errors import (
    StakingError,
    WindowClosed,
    ZeroAmount,
    NoActiveStake,
    InsufficientRewardFunds,
    TransferFailed,
    ArithmeticOverflow,
)
from .fixed_point import PRECISION, checked_add, checked_mul, checked_sub, mul_div
from .models import (
    EventType,
    PoolState,
    ParticipantState,
    LedgerEvent,
    WithdrawalResult,
    EventHistoryResponse,
)

logger = logging.getLogger(__name__)

__all__ = [
    "StakingLedger",
    "InMemoryStorage",
    "StakingError",
    "WindowClosed",
    "ZeroAmount",
    "NoActiveStake",
    "InsufficientRewardFunds",
    "TransferFailed",
    "ArithmeticOverflow",
    "LedgerInvariantError",
]


class LedgerInvariantError(StakingError):
    pass


class InMemoryStorage:
    def __init__(self, config: PoolConfig):
        self.pool: dict = {
            "token": config.token,
            "reward_rate": config.reward_rate,
            "start_time": config.start_time,
            "end_time": config.end_time,
            "last_settled_time": config.start_time,
            "acc_reward_per_share": 0,
            "total_staked": 0,
            "total_reward_paid": 0,
        }
        self.participants: dict[str, dict] = {}
        self.events: list[dict] = []


class StakingLedger:
    """
    Time-proportional reward pool.

    Reward is emitted at a fixed rate over [start_time, end_time) and split
    between participants by their share of the pool. Instead of crediting
    every participant on every tick, the pool keeps acc_reward_per_share, the
    reward earned by one unit of stake since the pool opened, and each
    participant keeps reward_debt, the part of that accumulator already priced
    into its position. The accumulator is brought up to date lazily at the
    start of every operation.

    Callers pass the current time explicitly. Operations are serialized by an
    internal lock and are all-or-nothing: the new pool and participant records
    are built on copies and only replace the stored ones after the custodian
    transfer has succeeded.
    Listeners run while the lock is held, so they see events in sequence
    order and may read the ledger but must not block on other threads.
    """

    def __init__(
        self,
        config: PoolConfig,
        custodian: Optional[Custodian] = None,
        storage: Optional[InMemoryStorage] = None,
    ):
        self.config = config
        self.custodian = custodian or InMemoryCustodian(token=config.token)
        self.storage = storage or InMemoryStorage(config)
        self._lock = threading.RLock()
        self._listeners: list[Callable[[LedgerEvent], None]] = []

    def settle(self, now: int) -> PoolState:
        with self._lock:
            pool = self._settled_pool(now)
            if pool["last_settled_time"] != self.storage.pool["last_settled_time"]:
                logger.debug(
                    "Settled pool through %d: acc_reward_per_share=%d total_staked=%d",
                    pool["last_settled_time"], pool["acc_reward_per_share"], pool["total_staked"],
                )
            self.storage.pool = pool
            return PoolState(**pool)

    def deposit(self, participant: str, amount: int, now: int) -> ParticipantState:
        if amount <= 0:
            logger.warning("Rejected deposit of %d from %s", amount, participant)
            raise ZeroAmount("Amount must be non-zero")

        with self._lock:
            current = PoolState(**self.storage.pool)
            if not current.is_open(now):
                logger.warning("Rejected deposit from %s at %d: window closed", participant, now)
                raise WindowClosed(
                    f"Deposits are accepted between {current.start_time} and {current.end_time}, got {now}"
                )

            pool = self._settled_pool(now)
            user = self._participant_record(participant)
            acc = pool["acc_reward_per_share"]

            if ParticipantState(**user).has_active_stake():
                user["reward_due"] = checked_add(user["reward_due"], self._pending(user, acc))
            else:
                user["first_staked_time"] = now

            user["staked_amount"] = checked_add(user["staked_amount"], amount)
            pool["total_staked"] = checked_add(pool["total_staked"], amount)
            user["reward_debt"] = mul_div(user["staked_amount"], acc, PRECISION)

            self.custodian.transfer_in(participant, amount)

            self._commit(pool, participant, user)
            events = [self._record_event(EventType.DEPOSITED, participant, amount, now)]
            self._notify(events)

        logger.info("Deposit of %d by %s at %d, staked=%d", amount, participant, now, user["staked_amount"])
        return ParticipantState(**user)

    def withdraw(self, participant: str, now: int) -> WithdrawalResult:
        with self._lock:
            user = self._participant_record(participant)
            if not ParticipantState(**user).has_active_stake():
                logger.warning("Rejected withdrawal by %s: no active stake", participant)
                raise NoActiveStake("There is no active stake to withdraw")

            pool = self._settled_pool(now)
            acc = pool["acc_reward_per_share"]
            user["reward_due"] = checked_add(user["reward_due"], self._pending(user, acc))

            principal = user["staked_amount"]
            reward = user["reward_due"]

            # Reward may only come from funds beyond what all participants staked.
            required = checked_add(pool["total_staked"], reward)
            held = self.custodian.balance_of(self.custodian.pool_account)
            if held < required:
                logger.warning(
                    "Rejected withdrawal by %s: reward %d needs %d in custody, %d held",
                    participant, reward, required, held,
                )
                raise InsufficientRewardFunds(
                    f"Not enough funds for reward: {required} required, {held} held"
                )

            user["staked_amount"] = 0
            user["reward_debt"] = 0
            user["reward_due"] = 0
            pool["total_staked"] = checked_sub(pool["total_staked"], principal)
            pool["total_reward_paid"] = checked_add(pool["total_reward_paid"], reward)

            self.custodian.transfer_out(participant, checked_add(principal, reward))

            self._commit(pool, participant, user)
            events = [
                self._record_event(EventType.WITHDRAWN, participant, principal, now),
                self._record_event(EventType.REWARD_PAID, participant, reward, now),
            ]
            self._notify(events)

        logger.info("Withdrawal by %s at %d: principal=%d reward=%d", participant, now, principal, reward)
        return WithdrawalResult(
            participant=ParticipantState(**user),
            principal=principal,
            reward=reward,
            message="Stake withdrawn successfully",
        )

    def pending_reward(self, participant: str, now: int) -> int:
        with self._lock:
            record = self.storage.participants.get(participant)
            if record is None:
                return 0
            pool = self._settled_pool(now)
            pending = self._pending(record, pool["acc_reward_per_share"])
            return checked_add(pending, record["reward_due"])

    def get_pool(self) -> PoolState:
        with self._lock:
            return PoolState(**self.storage.pool)

    def get_participant(self, participant: str) -> ParticipantState:
        with self._lock:
            return ParticipantState(**self._participant_record(participant))

    def get_events(
        self, participant: Optional[str] = None, limit: int = 50, offset: int = 0
    ) -> EventHistoryResponse:
        with self._lock:
            events = [
                LedgerEvent(**e) for e in self.storage.events
                if participant is None or e["participant"] == participant
            ]
        return EventHistoryResponse(events=events[offset:offset + limit], total_count=len(events))

    def subscribe(self, listener: Callable[[LedgerEvent], None]) -> None:
        with self._lock:
            self._listeners.append(listener)

    def check_invariants(self) -> None:
        with self._lock:
            pool = self.storage.pool
            staked = sum(p["staked_amount"] for p in self.storage.participants.values())
            if staked != pool["total_staked"]:
                raise LedgerInvariantError(
                    f"total_staked is {pool['total_staked']} but participants hold {staked}"
                )
            if not (pool["start_time"] <= pool["last_settled_time"] <= pool["end_time"]):
                raise LedgerInvariantError(
                    f"last_settled_time {pool['last_settled_time']} is outside the distribution window"
                )
            held = self.custodian.balance_of(self.custodian.pool_account)
            if held < pool["total_staked"]:
                raise LedgerInvariantError(f"Custody holds {held}, less than total_staked {pool['total_staked']}")

    def _settled_pool(self, now: int) -> dict:
        pool = dict(self.storage.pool)
        effective_time = min(now, pool["end_time"])
        if effective_time <= pool["last_settled_time"]:
            return pool

        if pool["total_staked"] > 0:
            elapsed = effective_time - pool["last_settled_time"]
            emitted = checked_mul(elapsed, pool["reward_rate"])
            pool["acc_reward_per_share"] = checked_add(
                pool["acc_reward_per_share"], mul_div(emitted, PRECISION, pool["total_staked"])
            )
        pool["last_settled_time"] = effective_time
        return pool

    def _participant_record(self, participant: str) -> dict:
        record = self.storage.participants.get(participant)
        if record is None:
            return ParticipantState(participant=participant).model_dump()
        return dict(record)

    def _pending(self, record: dict, acc_reward_per_share: int) -> int:
        accrued = mul_div(record["staked_amount"], acc_reward_per_share, PRECISION)
        return checked_sub(accrued, record["reward_debt"])

    def _commit(self, pool: dict, participant: str, record: dict) -> None:
        self.storage.pool = pool
        self.storage.participants[participant] = record

    def _record_event(self, event_type: EventType, participant: str, amount: int, now: int) -> LedgerEvent:
        event_data = {
            "sequence": len(self.storage.events) + 1,
            "event_type": event_type,
            "participant": participant,
            "amount": amount,
            "timestamp": now,
            "recorded_at": datetime.now(timezone.utc),
        }
        self.storage.events.append(event_data)
        return LedgerEvent(**event_data)

    def _notify(self, events: list[LedgerEvent]) -> None:
        for event in events:
            for listener in self._listeners:
                try:
                    listener(event)
                except Exception:
                    logger.exception("Listener failed on %s event #%d", event.event_type.value, event.sequence)

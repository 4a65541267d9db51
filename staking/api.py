import time
from typing import Optional

from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware

from .config import configure_logging, load_config
from .custodian import InMemoryCustodian
from .models import (
    DepositRequest, WithdrawRequest, SettleRequest, CustodianRequest,
    PoolState, ParticipantState, WithdrawalResult, BalanceResponse,
    PendingRewardResponse, EventHistoryResponse,
)
from .service import (
    StakingLedger, StakingError, WindowClosed, ZeroAmount, NoActiveStake,
    InsufficientRewardFunds, TransferFailed, ArithmeticOverflow,
)

ERROR_STATUS = {
    ZeroAmount: status.HTTP_400_BAD_REQUEST,
    WindowClosed: status.HTTP_400_BAD_REQUEST,
    NoActiveStake: status.HTTP_400_BAD_REQUEST,
    InsufficientRewardFunds: status.HTTP_409_CONFLICT,
    TransferFailed: status.HTTP_400_BAD_REQUEST,
    ArithmeticOverflow: status.HTTP_400_BAD_REQUEST,
}


def _now(timestamp: Optional[int]) -> int:
    return int(time.time()) if timestamp is None else timestamp


def _http_error(e: StakingError) -> HTTPException:
    code = ERROR_STATUS.get(type(e), status.HTTP_400_BAD_REQUEST)
    return HTTPException(status_code=code, detail=str(e))


def create_app(ledger: StakingLedger, root_path: str = "") -> FastAPI:
    app = FastAPI(
        title="Staking Reward Ledger API",
        description="Time-proportional staking pool with lazily settled reward accrual",
        version="1.0.0",
        root_path=root_path,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.ledger = ledger

    @app.get("/health", tags=["System"])
    def health_check():
        return {"status": "healthy", "service": "staking-ledger"}

    @app.get("/pool", response_model=PoolState, tags=["Pool"])
    def get_pool() -> PoolState:
        return ledger.get_pool()

    @app.post("/pool/settle", response_model=PoolState, tags=["Pool"])
    def settle_pool(request: SettleRequest) -> PoolState:
        try:
            return ledger.settle(_now(request.timestamp))
        except StakingError as e:
            raise _http_error(e)

    @app.post("/deposits", response_model=ParticipantState, status_code=status.HTTP_201_CREATED, tags=["Stakes"])
    def deposit(request: DepositRequest) -> ParticipantState:
        try:
            return ledger.deposit(request.participant, request.amount, _now(request.timestamp))
        except StakingError as e:
            raise _http_error(e)

    @app.post("/withdrawals", response_model=WithdrawalResult, tags=["Stakes"])
    def withdraw(request: WithdrawRequest) -> WithdrawalResult:
        try:
            return ledger.withdraw(request.participant, _now(request.timestamp))
        except StakingError as e:
            raise _http_error(e)

    @app.get("/participants/{participant}", response_model=ParticipantState, tags=["Participants"])
    def get_participant(participant: str) -> ParticipantState:
        return ledger.get_participant(participant)

    @app.get("/participants/{participant}/pending", response_model=PendingRewardResponse, tags=["Participants"])
    def get_pending_reward(participant: str, timestamp: Optional[int] = None) -> PendingRewardResponse:
        now = _now(timestamp)
        try:
            pending = ledger.pending_reward(participant, now)
        except StakingError as e:
            raise _http_error(e)
        return PendingRewardResponse(participant=participant, pending_reward=pending, timestamp=now)

    @app.get("/events", response_model=EventHistoryResponse, tags=["Events"])
    def get_events(participant: Optional[str] = None, limit: int = 50, offset: int = 0) -> EventHistoryResponse:
        return ledger.get_events(participant, limit, offset)

    if isinstance(ledger.custodian, InMemoryCustodian):
        _add_custodian_routes(app, ledger.custodian)

    return app


def _add_custodian_routes(app: FastAPI, custodian: InMemoryCustodian) -> None:
    def balance(account: str) -> BalanceResponse:
        return BalanceResponse(
            account=account,
            balance=custodian.balance_of(account),
            allowance=custodian.allowance(account),
        )

    @app.post("/custodian/mint", response_model=BalanceResponse, tags=["Custodian"])
    def mint(request: CustodianRequest) -> BalanceResponse:
        custodian.mint(request.account, request.amount)
        return balance(request.account)

    @app.post("/custodian/approve", response_model=BalanceResponse, tags=["Custodian"])
    def approve(request: CustodianRequest) -> BalanceResponse:
        custodian.approve(request.account, request.amount)
        return balance(request.account)

    @app.get("/custodian/balances/{account}", response_model=BalanceResponse, tags=["Custodian"])
    def get_balance(account: str) -> BalanceResponse:
        return balance(account)


def app_from_env(root_path: str = "") -> FastAPI:
    configure_logging()
    return create_app(StakingLedger(load_config()), root_path=root_path)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app_from_env(), host="0.0.0.0", port=8000)

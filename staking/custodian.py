import logging
from typing import Protocol

from .errors import TransferFailed

logger = logging.getLogger(__name__)


class Custodian(Protocol):
    """Holds the underlying token balance on the ledger's behalf."""

    pool_account: str

    def balance_of(self, account: str) -> int: ...

    def transfer_in(self, sender: str, amount: int) -> None: ...

    def transfer_out(self, recipient: str, amount: int) -> None: ...


class InMemoryCustodian:
    """
    Single-token balance sheet with ERC-20 style allowances.

    transfer_in pulls from an allowance the owner granted to the pool,
    transfer_out pays from the pool's own balance. Transfers either move the
    full amount or raise TransferFailed and move nothing.
    """

    def __init__(self, token: str = "STAKE", pool_account: str = "pool"):
        self.token = token
        self.pool_account = pool_account
        self.balances: dict[str, int] = {}
        self.allowances: dict[str, int] = {}

    def balance_of(self, account: str) -> int:
        return self.balances.get(account, 0)

    def allowance(self, owner: str) -> int:
        return self.allowances.get(owner, 0)

    def mint(self, account: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("Cannot mint a negative amount")
        self.balances[account] = self.balance_of(account) + amount

    def approve(self, owner: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("Cannot approve a negative amount")
        self.allowances[owner] = amount

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        self._move(sender, recipient, amount)

    def transfer_in(self, sender: str, amount: int) -> None:
        allowed = self.allowance(sender)
        if allowed < amount:
            raise TransferFailed(
                f"{sender} approved {allowed} {self.token}, {amount} required"
            )
        self._move(sender, self.pool_account, amount)
        self.allowances[sender] = allowed - amount

    def transfer_out(self, recipient: str, amount: int) -> None:
        self._move(self.pool_account, recipient, amount)

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        if amount < 0:
            raise TransferFailed("Cannot transfer a negative amount")
        available = self.balance_of(sender)
        if available < amount:
            raise TransferFailed(
                f"{sender} holds {available} {self.token}, cannot transfer {amount}"
            )
        self.balances[sender] = available - amount
        self.balances[recipient] = self.balance_of(recipient) + amount
        logger.debug("Moved %d %s from %s to %s", amount, self.token, sender, recipient)

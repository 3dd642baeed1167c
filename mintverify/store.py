# mintverify/store.py
"""
In-memory account store with atomic units of work.

Every write journals the account's previous state before it lands. When
an atomic unit fails, the journal is replayed backwards so the store
looks exactly as it did when the unit began.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterator, List, Optional, Tuple

from . import config
from .errors import AccountAlreadyInUse, AccountNotFound, InsufficientFunds

log = logging.getLogger(__name__)

ACCOUNT_STORAGE_OVERHEAD = 128
LAMPORTS_PER_BYTE_YEAR = 3480
EXEMPTION_THRESHOLD_YEARS = 2


def rent_exempt_minimum(space: int) -> int:
    return (ACCOUNT_STORAGE_OVERHEAD + space) * LAMPORTS_PER_BYTE_YEAR * EXEMPTION_THRESHOLD_YEARS


@dataclass(frozen=True)
class Account:
    address: str
    owner: str
    lamports: int = 0
    data: Any = None
    space: int = 0


class AccountStore:
    def __init__(self):
        self._accounts: Dict[str, Account] = {}
        self._journal: List[Tuple[str, Optional[Account]]] = []
        self._savepoints: List[int] = []

    def __contains__(self, address: str) -> bool:
        return address in self._accounts

    def __len__(self) -> int:
        return len(self._accounts)

    def get(self, address: str) -> Optional[Account]:
        return self._accounts.get(address)

    def require(self, address: str) -> Account:
        account = self._accounts.get(address)
        if account is None:
            raise AccountNotFound(address)
        return account

    def lamports(self, address: str) -> int:
        account = self._accounts.get(address)
        return account.lamports if account is not None else 0

    def snapshot(self) -> Dict[str, Account]:
        return dict(self._accounts)

    # ---------- Writes ----------

    def put(self, account: Account) -> None:
        if self._savepoints:
            self._journal.append((account.address, self._accounts.get(account.address)))
        self._accounts[account.address] = account

    def write_data(self, address: str, data: Any) -> Account:
        account = replace(self.require(address), data=data)
        self.put(account)
        return account

    def credit(self, address: str, lamports: int) -> None:
        account = self._accounts.get(address)
        if account is None:
            account = Account(address=address, owner=config.SYSTEM_PROGRAM_ID)
        self.put(replace(account, lamports=account.lamports + lamports))

    def debit(self, address: str, lamports: int) -> None:
        available = self.lamports(address)
        if available < lamports:
            raise InsufficientFunds(address, available, lamports)
        self.put(replace(self.require(address), lamports=available - lamports))

    def allocate(self, address: str, owner: str, payer: str, space: int, data: Any) -> Account:
        """
        Create a rent-exempt account at address, paid for by payer.

        Fails if the address already holds data. A prefunded address is
        accepted and the payer only covers the shortfall.
        """
        existing = self._accounts.get(address)
        if existing is not None and existing.data is not None:
            raise AccountAlreadyInUse(address)

        rent = rent_exempt_minimum(space)
        held = existing.lamports if existing is not None else 0
        topup = max(rent - held, 0)
        if topup:
            self.debit(payer, topup)
        account = Account(
            address=address, owner=owner, lamports=held + topup, data=data, space=space
        )
        self.put(account)
        log.debug(
            "allocated %s (%d bytes, %d lamports) owned by %s", address, space, account.lamports, owner
        )
        return account

    # ---------- Atomic units ----------

    @property
    def in_transaction(self) -> bool:
        return bool(self._savepoints)

    @contextmanager
    def transaction(self) -> Iterator["AccountStore"]:
        self._savepoints.append(len(self._journal))
        try:
            yield self
        except BaseException:
            self._rollback(self._savepoints.pop())
            raise
        else:
            self._savepoints.pop()
            if not self._savepoints:
                self._journal.clear()

    def _rollback(self, mark: int) -> None:
        undone = len(self._journal) - mark
        while len(self._journal) > mark:
            address, previous = self._journal.pop()
            if previous is None:
                self._accounts.pop(address, None)
            else:
                self._accounts[address] = previous
        log.warning("rolled back %d account writes", undone)

# mintverify/runtime.py

import logging
from typing import Any, Dict, Optional, Sequence

from . import config
from .core import create_program_address
from .errors import InvalidCollectionAuthority
from .logging_config import reset_transaction, set_transaction
from .program import INSTRUCTIONS, Context
from .registry import MetadataRegistry
from .store import AccountStore
from .token import TokenLedger
from .transaction import transaction_id, verify_transaction

log = logging.getLogger(__name__)


class Runtime:
    """
    Executes signed transactions against the in-memory ledger and registry.

    Signatures are checked before anything runs; the instruction itself runs
    inside a single atomic unit of the account store.
    """

    def __init__(self, program_id: Optional[str] = None, store: Optional[AccountStore] = None):
        self.program_id = program_id or config.PROGRAM_ID
        self.store = store if store is not None else AccountStore()
        self.token = TokenLedger(self.store)
        self.registry = MetadataRegistry(self.store, self.token)

    def airdrop(self, address: str, lamports: int) -> None:
        if lamports <= 0:
            raise ValueError("airdrop amount must be positive")
        self.store.credit(address, lamports)
        log.info("airdropped %d lamports to %s", lamports, address)

    def balance(self, address: str) -> int:
        return self.store.lamports(address)

    def sign_with_seeds(self, seeds: Sequence[bytes]) -> str:
        """
        Accept a program derived address as a signer by recomputing it from
        its seeds and bump under this runtime's program id.
        """
        try:
            return create_program_address(seeds, self.program_id)
        except ValueError as exc:
            raise InvalidCollectionAuthority(str(exc)) from exc

    def process(self, tx: Dict) -> Any:
        signers = verify_transaction(tx)
        name = tx["instruction"]
        handler = INSTRUCTIONS.get(name)
        if handler is None:
            raise ValueError(f"unknown instruction: {name}")

        signature = transaction_id(tx)
        token = set_transaction(signature)
        try:
            log.info("processing %s (%s)", name, signature)
            ctx = Context(runtime=self, accounts=dict(tx.get("accounts", {})), signers=signers)
            with self.store.transaction():
                result = handler(ctx, **tx.get("args", {}))
            log.info("committed %s", name)
            return result
        except Exception as exc:
            log.warning("%s aborted: %s", name, exc)
            raise
        finally:
            reset_transaction(token)

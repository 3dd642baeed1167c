# mintverify/token.py

import logging
from dataclasses import dataclass, replace
from typing import AbstractSet, Optional

from . import config
from .core import associated_token_address
from .errors import MissingRequiredSignature, TokenError
from .store import AccountStore

log = logging.getLogger(__name__)

MINT_SIZE = 82
TOKEN_ACCOUNT_SIZE = 165
U64_MAX = 2 ** 64 - 1


@dataclass(frozen=True)
class Mint:
    mint_authority: Optional[str]
    freeze_authority: Optional[str]
    decimals: int = 0
    supply: int = 0


@dataclass(frozen=True)
class TokenAccount:
    mint: str
    owner: str
    amount: int = 0


def require_signer(address: str, signers: AbstractSet[str]) -> None:
    if address not in signers:
        raise MissingRequiredSignature(address)


class TokenLedger:
    """Asset ledger: unit (mint) creation, holding accounts and issuance."""

    def __init__(self, store: AccountStore, program_id: Optional[str] = None):
        self.store = store
        self.program_id = program_id or config.TOKEN_PROGRAM_ID

    def mint(self, address: str) -> Mint:
        account = self.store.require(address)
        if account.owner != self.program_id or not isinstance(account.data, Mint):
            raise TokenError(f"{address} is not a mint")
        return account.data

    def holding(self, address: str) -> TokenAccount:
        account = self.store.require(address)
        if account.owner != self.program_id or not isinstance(account.data, TokenAccount):
            raise TokenError(f"{address} is not a token account")
        return account.data

    def create_unit(
        self,
        mint: str,
        payer: str,
        mint_authority: str,
        freeze_authority: Optional[str] = None,
        decimals: int = 0,
        signers: AbstractSet[str] = frozenset(),
    ) -> Mint:
        """
        Create and initialize a new mint at a fresh address.

        Both the payer and the new mint address must sign.
        """
        require_signer(payer, signers)
        require_signer(mint, signers)
        data = Mint(
            mint_authority=mint_authority,
            freeze_authority=freeze_authority,
            decimals=decimals,
        )
        self.store.allocate(mint, owner=self.program_id, payer=payer, space=MINT_SIZE, data=data)
        log.info("created mint %s (authority %s)", mint, mint_authority)
        return data

    def create_holding(
        self,
        payer: str,
        owner: str,
        mint: str,
        signers: AbstractSet[str] = frozenset(),
    ) -> str:
        """Create the owner's associated holding account for mint."""
        require_signer(payer, signers)
        self.mint(mint)
        address = associated_token_address(owner, mint)
        self.store.allocate(
            address,
            owner=self.program_id,
            payer=payer,
            space=TOKEN_ACCOUNT_SIZE,
            data=TokenAccount(mint=mint, owner=owner),
        )
        log.info("created holding account %s for %s", address, owner)
        return address

    def issue(
        self,
        mint: str,
        destination: str,
        quantity: int,
        authority: str,
        signers: AbstractSet[str] = frozenset(),
    ) -> None:
        if quantity <= 0:
            raise TokenError("quantity must be positive")
        unit = self.mint(mint)
        if unit.mint_authority is None:
            raise TokenError(f"mint {mint} has a fixed supply")
        if unit.mint_authority != authority:
            raise TokenError(f"{authority} is not the mint authority of {mint}")
        require_signer(authority, signers)

        holding = self.holding(destination)
        if holding.mint != mint:
            raise TokenError(f"account {destination} is not associated with mint {mint}")
        if unit.supply + quantity > U64_MAX:
            raise TokenError("supply overflow")

        self.store.write_data(mint, replace(unit, supply=unit.supply + quantity))
        self.store.write_data(destination, replace(holding, amount=holding.amount + quantity))
        log.info("issued %d of %s to %s", quantity, mint, destination)

    def set_authority(
        self,
        mint: str,
        kind: str,
        new_authority: Optional[str],
        current_authority: str,
        signers: AbstractSet[str] = frozenset(),
    ) -> None:
        unit = self.mint(mint)
        if kind == "mint":
            current = unit.mint_authority
        elif kind == "freeze":
            current = unit.freeze_authority
        else:
            raise TokenError(f"unknown authority kind: {kind!r}")
        if current is None or current != current_authority:
            raise TokenError(f"{current_authority} is not the {kind} authority of {mint}")
        require_signer(current_authority, signers)

        if kind == "mint":
            updated = replace(unit, mint_authority=new_authority)
        else:
            updated = replace(unit, freeze_authority=new_authority)
        self.store.write_data(mint, updated)

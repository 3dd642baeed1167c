# mintverify/registry.py
"""
Descriptive registry: metadata records, master edition seals and
collection membership verification.

verify_membership is the only way an item's collection reference becomes
verified, and it only succeeds when the authorizing identity is the update
authority stored on the collection's metadata.
"""

import logging
from dataclasses import dataclass, replace
from typing import AbstractSet, Optional, Tuple

from . import config
from .core import master_edition_address, metadata_address
from .errors import RegistryError
from .store import AccountStore
from .token import TokenLedger

log = logging.getLogger(__name__)

MAX_NAME_LENGTH = 32
MAX_SYMBOL_LENGTH = 10
MAX_URI_LENGTH = 200
MAX_CREATOR_LIMIT = 5
MAX_SELLER_FEE_BASIS_POINTS = 10000

METADATA_SIZE = 679
MASTER_EDITION_SIZE = 282


@dataclass(frozen=True)
class Creator:
    address: str
    verified: bool
    share: int


@dataclass(frozen=True)
class CollectionRef:
    key: str
    verified: bool = False


@dataclass(frozen=True)
class DataV2:
    name: str
    symbol: str
    uri: str
    seller_fee_basis_points: int
    creators: Tuple[Creator, ...] = ()
    collection: Optional[CollectionRef] = None


@dataclass(frozen=True)
class Metadata:
    update_authority: str
    mint: str
    data: DataV2
    is_mutable: bool = True
    primary_sale_happened: bool = False


@dataclass(frozen=True)
class MasterEdition:
    supply: int = 0
    max_supply: Optional[int] = None


def _check_data(data: DataV2, signers: AbstractSet[str]) -> None:
    if len(data.name.encode("utf-8")) > MAX_NAME_LENGTH:
        raise RegistryError("name too long")
    if len(data.symbol.encode("utf-8")) > MAX_SYMBOL_LENGTH:
        raise RegistryError("symbol too long")
    if len(data.uri.encode("utf-8")) > MAX_URI_LENGTH:
        raise RegistryError("uri too long")
    if not 0 <= data.seller_fee_basis_points <= MAX_SELLER_FEE_BASIS_POINTS:
        raise RegistryError("invalid basis points")

    if data.creators:
        if len(data.creators) > MAX_CREATOR_LIMIT:
            raise RegistryError("creators list too long")
        seen = set()
        for creator in data.creators:
            if creator.address in seen:
                raise RegistryError("no duplicate creator addresses")
            seen.add(creator.address)
            if creator.verified and creator.address not in signers:
                raise RegistryError(f"creator {creator.address} must sign to be verified")
        if sum(c.share for c in data.creators) != 100:
            raise RegistryError("share total must equal 100 for creator array")

    if data.collection is not None and data.collection.verified:
        raise RegistryError("collection cannot be verified in this instruction")


class MetadataRegistry:
    def __init__(
        self,
        store: AccountStore,
        token: TokenLedger,
        program_id: Optional[str] = None,
    ):
        self.store = store
        self.token = token
        self.program_id = program_id or config.TOKEN_METADATA_PROGRAM_ID

    def metadata(self, address: str) -> Metadata:
        account = self.store.get(address)
        if account is None or not isinstance(account.data, Metadata):
            raise RegistryError(f"no metadata at {address}")
        return account.data

    def edition(self, address: str) -> MasterEdition:
        account = self.store.get(address)
        if account is None or not isinstance(account.data, MasterEdition):
            raise RegistryError(f"no master edition at {address}")
        return account.data

    def register(
        self,
        metadata: str,
        mint: str,
        mint_authority: str,
        payer: str,
        update_authority: str,
        data: DataV2,
        is_mutable: bool,
        update_authority_is_signer: bool,
        signers: AbstractSet[str] = frozenset(),
    ) -> Metadata:
        if metadata != metadata_address(mint):
            raise RegistryError("derived key invalid")
        if payer not in signers:
            raise RegistryError(f"payer {payer} must sign")
        if update_authority_is_signer and update_authority not in signers:
            raise RegistryError(f"update authority {update_authority} must sign")

        unit = self.token.mint(mint)
        if unit.mint_authority != mint_authority:
            raise RegistryError("mint authority provided does not match the authority on the mint")
        if mint_authority not in signers:
            raise RegistryError(f"mint authority {mint_authority} must sign")

        _check_data(data, signers)

        record = Metadata(
            update_authority=update_authority,
            mint=mint,
            data=data,
            is_mutable=is_mutable,
        )
        self.store.allocate(
            metadata, owner=self.program_id, payer=payer, space=METADATA_SIZE, data=record
        )
        log.info("registered metadata %s for mint %s (%s)", metadata, mint, data.name)
        return record

    def seal(
        self,
        edition: str,
        mint: str,
        update_authority: str,
        mint_authority: str,
        payer: str,
        metadata: str,
        max_supply: Optional[int],
        signers: AbstractSet[str] = frozenset(),
    ) -> MasterEdition:
        """
        Mark a metadata record as a master edition.

        The mint's supply must be exactly one. Mint and freeze authority
        pass to the edition address, so no further units can be issued.
        """
        record = self.metadata(metadata)
        if record.mint != mint:
            raise RegistryError("mint does not match metadata")
        if edition != master_edition_address(mint):
            raise RegistryError("derived key invalid")
        if update_authority != record.update_authority:
            raise RegistryError("update authority is invalid")
        if update_authority not in signers:
            raise RegistryError(f"update authority {update_authority} must sign")
        if payer not in signers:
            raise RegistryError(f"payer {payer} must sign")

        unit = self.token.mint(mint)
        if unit.mint_authority != mint_authority:
            raise RegistryError("mint authority provided does not match the authority on the mint")
        if unit.supply != 1:
            raise RegistryError("editions must have exactly one token")

        sealed = MasterEdition(supply=0, max_supply=max_supply)
        self.store.allocate(
            edition, owner=self.program_id, payer=payer, space=MASTER_EDITION_SIZE, data=sealed
        )
        self.token.set_authority(mint, "mint", edition, mint_authority, signers)
        if unit.freeze_authority is not None:
            self.token.set_authority(mint, "freeze", edition, unit.freeze_authority, signers)
        log.info("sealed %s as master edition %s (max supply %s)", mint, edition, max_supply)
        return sealed

    def verify_membership(
        self,
        metadata: str,
        collection_authority: str,
        payer: str,
        collection_mint: str,
        collection_metadata: str,
        collection_edition: str,
        signers: AbstractSet[str] = frozenset(),
    ) -> Metadata:
        if collection_authority not in signers:
            raise RegistryError(f"collection authority {collection_authority} must sign")
        if payer not in signers:
            raise RegistryError(f"payer {payer} must sign")

        item = self.metadata(metadata)
        if item.data.collection is None:
            raise RegistryError("collection not set on metadata")
        if item.data.collection.key != collection_mint:
            raise RegistryError("collection key on metadata does not match the collection mint")

        if collection_metadata != metadata_address(collection_mint):
            raise RegistryError("collection metadata derived key invalid")
        collection = self.metadata(collection_metadata)
        if collection.mint != collection_mint:
            raise RegistryError("collection metadata does not match the collection mint")
        if collection.update_authority != collection_authority:
            raise RegistryError("invalid collection update authority")

        if collection_edition != master_edition_address(collection_mint):
            raise RegistryError("collection master edition derived key invalid")
        if self.edition(collection_edition).max_supply != 0:
            raise RegistryError("collection must be a unique master edition")

        verified = replace(item, data=replace(item.data, collection=replace(item.data.collection, verified=True)))
        self.store.write_data(metadata, verified)
        log.info("verified %s as a member of collection %s", item.mint, collection_mint)
        return verified

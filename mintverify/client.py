# mintverify/client.py
"""
Client for the mint-verify program.

Builds and signs transactions for collection bootstrap, item issuance and
the authority update stub, and reads back what landed in the registry.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from nacl import signing

from . import config
from .core import (
    MAX_COLLECTION_SEED_LENGTH,
    address_of,
    derive_collection_authority,
    generate_keypair,
    metadata_address,
)
from .errors import RegistryError
from .program import (
    MAX_METADATA_NAME_LENGTH,
    MAX_METADATA_SYMBOL_LENGTH,
    MAX_METADATA_URI_LENGTH,
    MAX_SELLER_FEE_BASIS_POINTS,
    MetadataArgs,
)
from .runtime import Runtime
from .transaction import build_transaction, transaction_id

log = logging.getLogger(__name__)

SEED_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")

MetadataLike = Union[MetadataArgs, Mapping[str, Any]]


@dataclass(frozen=True)
class CollectionResult:
    signature: str
    collection_mint: str
    collection_metadata: str
    collection_master_edition: str
    collection_authority: str
    collection_authority_bump: int
    admin_token_account: str


@dataclass(frozen=True)
class MintResult:
    signature: str
    nft_mint: str
    nft_metadata: str
    nft_master_edition: str
    user_token_account: str
    collection_mint: str
    collection_authority: str


def validate_collection_seed(seed: str) -> None:
    if not seed:
        raise ValueError("Collection seed cannot be empty")
    if len(seed) > MAX_COLLECTION_SEED_LENGTH:
        raise ValueError(
            f"Collection seed too long. Maximum length: {MAX_COLLECTION_SEED_LENGTH}"
        )
    if not SEED_PATTERN.match(seed):
        raise ValueError(
            "Collection seed can only contain alphanumeric characters and underscores"
        )


def validate_metadata(metadata: MetadataArgs) -> None:
    if not metadata.name:
        raise ValueError("Name cannot be empty")
    if len(metadata.name.encode("utf-8")) > MAX_METADATA_NAME_LENGTH:
        raise ValueError(f"Name too long. Maximum length: {MAX_METADATA_NAME_LENGTH} bytes")
    if not metadata.symbol:
        raise ValueError("Symbol cannot be empty")
    if len(metadata.symbol.encode("utf-8")) > MAX_METADATA_SYMBOL_LENGTH:
        raise ValueError(f"Symbol too long. Maximum length: {MAX_METADATA_SYMBOL_LENGTH} bytes")
    if not metadata.uri:
        raise ValueError("URI cannot be empty")
    if len(metadata.uri.encode("utf-8")) > MAX_METADATA_URI_LENGTH:
        raise ValueError(f"URI too long. Maximum length: {MAX_METADATA_URI_LENGTH} bytes")
    if not 0 <= metadata.seller_fee_basis_points <= MAX_SELLER_FEE_BASIS_POINTS:
        raise ValueError(
            "Invalid seller fee basis points. "
            f"Must be between 0 and {MAX_SELLER_FEE_BASIS_POINTS}"
        )


def _as_metadata(metadata: MetadataLike) -> MetadataArgs:
    if isinstance(metadata, MetadataArgs):
        return metadata
    return MetadataArgs.from_dict(metadata)


class MintVerifyClient:
    def __init__(self, runtime: Runtime, validate: bool = True):
        self.runtime = runtime
        self.validate = validate

    @property
    def program_id(self) -> str:
        return self.runtime.program_id

    def get_collection_authority(self, collection_seed: str) -> Tuple[str, int]:
        return derive_collection_authority(collection_seed, self.program_id)

    def airdrop(self, address: str, sol: float) -> None:
        self.runtime.airdrop(address, config.sol_to_lamports(sol))

    def _warn_low_balance(self, address: str, minimum: int) -> None:
        balance = self.runtime.balance(address)
        if balance < minimum:
            log.warning(
                "%s holds %.4f SOL, below the recommended %.4f SOL",
                address, config.lamports_to_sol(balance), config.lamports_to_sol(minimum),
            )

    # ---------- Instructions ----------

    def initialize_collection(
        self,
        admin: signing.SigningKey,
        collection_seed: str,
        metadata: MetadataLike,
        collection_mint: Optional[signing.SigningKey] = None,
    ) -> CollectionResult:
        """
        Bootstrap a collection whose metadata is controlled by the
        program-derived collection authority.

        A fresh collection mint key is generated unless one is given.
        """
        args = _as_metadata(metadata)
        if self.validate:
            validate_collection_seed(collection_seed)
            validate_metadata(args)

        mint_key = collection_mint or generate_keypair()
        admin_address = address_of(admin)
        authority, _ = self.get_collection_authority(collection_seed)
        self._warn_low_balance(admin_address, config.MIN_ADMIN_BALANCE)

        log.info("initializing collection %r (mint %s)", collection_seed, address_of(mint_key))
        tx = build_transaction(
            "initialize_collection",
            {"collection_seed": collection_seed, "collection_metadata": args.to_dict()},
            {
                "admin": admin_address,
                "collection_mint": address_of(mint_key),
                "collection_authority": authority,
            },
            [admin, mint_key],
        )
        result = self.runtime.process(tx)
        return CollectionResult(signature=transaction_id(tx), **result)

    def mint_and_verify_nft(
        self,
        user: signing.SigningKey,
        collection_seed: str,
        collection_mint: str,
        metadata: MetadataLike,
        nft_mint: Optional[signing.SigningKey] = None,
    ) -> MintResult:
        args = _as_metadata(metadata)
        if self.validate:
            validate_collection_seed(collection_seed)
            validate_metadata(args)

        mint_key = nft_mint or generate_keypair()
        user_address = address_of(user)
        authority, _ = self.get_collection_authority(collection_seed)
        self._warn_low_balance(user_address, config.MIN_USER_BALANCE)

        log.info("minting %r into collection %s", args.name, collection_mint)
        tx = build_transaction(
            "mint_and_verify_nft",
            {"collection_seed": collection_seed, "nft_metadata": args.to_dict()},
            {
                "user": user_address,
                "nft_mint": address_of(mint_key),
                "collection_mint": collection_mint,
                "collection_authority": authority,
            },
            [user, mint_key],
        )
        result = self.runtime.process(tx)
        return MintResult(signature=transaction_id(tx), **result)

    def update_collection_authority(
        self,
        admin: signing.SigningKey,
        collection_seed: str,
        new_authority: str,
    ) -> str:
        authority, _ = self.get_collection_authority(collection_seed)
        tx = build_transaction(
            "update_collection_authority",
            {"collection_seed": collection_seed, "new_authority": new_authority},
            {"admin": address_of(admin), "collection_authority": authority},
            [admin],
        )
        self.runtime.process(tx)
        return transaction_id(tx)

    # ---------- Queries ----------

    def collection_exists(self, collection_mint: str) -> bool:
        if self.runtime.store.get(collection_mint) is None:
            log.info("collection mint %s not found", collection_mint)
            return False
        try:
            self.runtime.registry.metadata(metadata_address(collection_mint))
        except RegistryError:
            log.info("collection metadata for %s not found", collection_mint)
            return False
        return True

    def is_verified_in_collection(self, nft_mint: str) -> bool:
        try:
            record = self.runtime.registry.metadata(metadata_address(nft_mint))
        except RegistryError:
            return False
        return record.data.collection is not None and record.data.collection.verified

    def collection_of(self, nft_mint: str) -> Optional[Dict[str, Any]]:
        try:
            record = self.runtime.registry.metadata(metadata_address(nft_mint))
        except RegistryError:
            return None
        if record.data.collection is None:
            return None
        return {"key": record.data.collection.key, "verified": record.data.collection.verified}

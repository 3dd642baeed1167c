# mintverify/program.py
"""
The mint-verify program: collection bootstrap, item issuance with
automatic collection verification, and the authority update stub.

Each handler runs inside one atomic unit opened by the runtime. Handlers
never clean up after themselves; a raised error discards every write the
unit made.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Tuple

from .core import (
    collection_authority_seeds,
    decode_address,
    find_program_address,
    master_edition_address,
    metadata_address,
)
from .errors import (
    InvalidCollectionAuthority,
    MetadataCreationFailed,
    RegistryError,
    Unauthorized,
    VerificationFailed,
)
from .registry import CollectionRef, Creator, DataV2
from .registry import MAX_NAME_LENGTH as MAX_METADATA_NAME_LENGTH
from .registry import MAX_SELLER_FEE_BASIS_POINTS
from .registry import MAX_SYMBOL_LENGTH as MAX_METADATA_SYMBOL_LENGTH
from .registry import MAX_URI_LENGTH as MAX_METADATA_URI_LENGTH

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetadataArgs:
    """Name, symbol, uri and royalty for a collection or an item."""

    name: str
    symbol: str
    uri: str
    seller_fee_basis_points: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MetadataArgs":
        try:
            fields = {key: data[key] for key in ("name", "symbol", "uri", "seller_fee_basis_points")}
        except (KeyError, TypeError) as exc:
            raise MetadataCreationFailed(f"malformed metadata: {exc}") from exc
        for key in ("name", "symbol", "uri"):
            if not isinstance(fields[key], str):
                raise MetadataCreationFailed(f"malformed metadata: {key} must be a string")
        # bool is an int subclass
        fee = fields["seller_fee_basis_points"]
        if isinstance(fee, bool) or not isinstance(fee, int):
            raise MetadataCreationFailed(
                "malformed metadata: seller_fee_basis_points must be an integer"
            )
        return cls(**fields)


def check_metadata_bounds(args: MetadataArgs) -> None:
    if len(args.name.encode("utf-8")) > MAX_METADATA_NAME_LENGTH:
        raise MetadataCreationFailed(f"name exceeds {MAX_METADATA_NAME_LENGTH} bytes")
    if len(args.symbol.encode("utf-8")) > MAX_METADATA_SYMBOL_LENGTH:
        raise MetadataCreationFailed(f"symbol exceeds {MAX_METADATA_SYMBOL_LENGTH} bytes")
    if len(args.uri.encode("utf-8")) > MAX_METADATA_URI_LENGTH:
        raise MetadataCreationFailed(f"uri exceeds {MAX_METADATA_URI_LENGTH} bytes")
    if not 0 <= args.seller_fee_basis_points <= MAX_SELLER_FEE_BASIS_POINTS:
        raise MetadataCreationFailed(
            f"seller fee basis points must be between 0 and {MAX_SELLER_FEE_BASIS_POINTS}"
        )


@dataclass
class Context:
    runtime: Any
    accounts: Mapping[str, str]
    signers: FrozenSet[str]

    def account(self, role: str) -> str:
        try:
            return self.accounts[role]
        except KeyError:
            raise ValueError(f"missing account: {role}") from None

    def require_signer(self, role: str) -> str:
        address = self.account(role)
        if address not in self.signers:
            raise Unauthorized(f"{role} {address} did not sign")
        return address


def _collection_authority(ctx: Context, collection_seed: str) -> Tuple[str, List[bytes]]:
    """
    Derive the collection authority and the signer seeds the runtime will
    accept for it. A caller-supplied authority must match the derivation.
    """
    seeds = collection_authority_seeds(collection_seed)
    authority, bump = find_program_address(seeds, ctx.runtime.program_id)
    supplied = ctx.accounts.get("collection_authority")
    if supplied is not None and supplied != authority:
        raise InvalidCollectionAuthority(f"expected {authority}, got {supplied}")
    return authority, seeds + [bytes([bump])]


def initialize_collection(
    ctx: Context, collection_seed: str, collection_metadata: Mapping[str, Any]
) -> Dict[str, Any]:
    """Create the collection mint, its metadata and its master edition."""
    log.info("Initializing collection with program authority")

    admin = ctx.require_signer("admin")
    authority, signer_seeds = _collection_authority(ctx, collection_seed)
    args = MetadataArgs.from_dict(collection_metadata)
    check_metadata_bounds(args)

    token = ctx.runtime.token
    registry = ctx.runtime.registry
    mint = ctx.account("collection_mint")

    token.create_unit(
        mint, payer=admin, mint_authority=admin, freeze_authority=admin, decimals=0,
        signers=ctx.signers,
    )
    holding = token.create_holding(payer=admin, owner=admin, mint=mint, signers=ctx.signers)
    token.issue(mint, holding, 1, authority=admin, signers=ctx.signers)

    data = DataV2(
        name=args.name,
        symbol=args.symbol,
        uri=args.uri,
        seller_fee_basis_points=args.seller_fee_basis_points,
        creators=(Creator(address=admin, verified=False, share=100),),
        collection=None,
    )
    metadata = metadata_address(mint)
    edition = master_edition_address(mint)
    program_signers = ctx.signers | {ctx.runtime.sign_with_seeds(signer_seeds)}

    try:
        registry.register(
            metadata, mint,
            mint_authority=admin,
            payer=admin,
            update_authority=authority,
            data=data,
            is_mutable=True,
            update_authority_is_signer=False,
            signers=ctx.signers,
        )
        registry.seal(
            edition, mint,
            update_authority=authority,
            mint_authority=admin,
            payer=admin,
            metadata=metadata,
            max_supply=0,
            signers=program_signers,
        )
    except RegistryError as exc:
        raise MetadataCreationFailed(str(exc)) from exc

    log.info("Collection initialized successfully with program authority")
    return {
        "collection_mint": mint,
        "collection_metadata": metadata,
        "collection_master_edition": edition,
        "collection_authority": authority,
        "collection_authority_bump": signer_seeds[-1][0],
        "admin_token_account": holding,
    }


def mint_and_verify_nft(
    ctx: Context, collection_seed: str, nft_metadata: Mapping[str, Any]
) -> Dict[str, Any]:
    """
    Mint one item to the user, register and seal its metadata, then verify
    it into the collection using the collection authority.
    """
    log.info("Starting automated mint and verify process")

    user = ctx.require_signer("user")
    authority, signer_seeds = _collection_authority(ctx, collection_seed)
    args = MetadataArgs.from_dict(nft_metadata)
    check_metadata_bounds(args)

    token = ctx.runtime.token
    registry = ctx.runtime.registry
    nft_mint = ctx.account("nft_mint")
    collection_mint = ctx.account("collection_mint")
    token.mint(collection_mint)

    # 1. mint one unit to the user
    token.create_unit(
        nft_mint, payer=user, mint_authority=user, freeze_authority=user, decimals=0,
        signers=ctx.signers,
    )
    holding = token.create_holding(payer=user, owner=user, mint=nft_mint, signers=ctx.signers)
    token.issue(nft_mint, holding, 1, authority=user, signers=ctx.signers)

    # 2. metadata with an unverified collection reference
    data = DataV2(
        name=args.name,
        symbol=args.symbol,
        uri=args.uri,
        seller_fee_basis_points=args.seller_fee_basis_points,
        creators=(Creator(address=user, verified=True, share=100),),
        collection=CollectionRef(key=collection_mint, verified=False),
    )
    metadata = metadata_address(nft_mint)
    edition = master_edition_address(nft_mint)

    # 3. register, then seal as master edition
    try:
        registry.register(
            metadata, nft_mint,
            mint_authority=user,
            payer=user,
            update_authority=user,
            data=data,
            is_mutable=True,
            update_authority_is_signer=True,
            signers=ctx.signers,
        )
        registry.seal(
            edition, nft_mint,
            update_authority=user,
            mint_authority=user,
            payer=user,
            metadata=metadata,
            max_supply=0,
            signers=ctx.signers,
        )
    except RegistryError as exc:
        raise MetadataCreationFailed(str(exc)) from exc

    # 4. automatic verification, signed by the collection authority
    log.info("Performing automatic collection verification")
    program_signers = ctx.signers | {ctx.runtime.sign_with_seeds(signer_seeds)}
    try:
        registry.verify_membership(
            metadata,
            collection_authority=authority,
            payer=user,
            collection_mint=collection_mint,
            collection_metadata=metadata_address(collection_mint),
            collection_edition=master_edition_address(collection_mint),
            signers=program_signers,
        )
    except RegistryError as exc:
        raise VerificationFailed(str(exc)) from exc

    log.info("NFT minted and automatically verified in collection!")
    return {
        "nft_mint": nft_mint,
        "nft_metadata": metadata,
        "nft_master_edition": edition,
        "user_token_account": holding,
        "collection_mint": collection_mint,
        "collection_authority": authority,
    }


def update_collection_authority(ctx: Context, collection_seed: str, new_authority: str) -> None:
    # TODO: decide whether rotation means re-deriving from a new seed or
    # handing the collection to a key-holding authority; until then this
    # only records the request.
    admin = ctx.require_signer("admin")
    authority, _ = _collection_authority(ctx, collection_seed)
    try:
        decode_address(new_authority)
    except (TypeError, ValueError) as exc:
        raise InvalidCollectionAuthority(f"proposed authority is not an address: {exc}") from exc
    log.info(
        "Collection authority update requested (admin %s, authority %s, proposed %s)",
        admin, authority, new_authority,
    )
    return None


INSTRUCTIONS: Dict[str, Callable[..., Any]] = {
    "initialize_collection": initialize_collection,
    "mint_and_verify_nft": mint_and_verify_nft,
    "update_collection_authority": update_collection_authority,
}

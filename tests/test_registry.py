import pytest

from mintverify.core import (
    address_of,
    associated_token_address,
    generate_keypair,
    master_edition_address,
    metadata_address,
)
from mintverify.errors import MissingRequiredSignature, RegistryError, TokenError
from mintverify.registry import CollectionRef, Creator, DataV2
from mintverify.runtime import Runtime


def _new_address():
    return address_of(generate_keypair())


def _minted(runtime, owner, supply=1):
    """Create a mint owned by owner holding `supply` units; returns (mint, holding)."""
    mint = _new_address()
    signers = {owner, mint}
    runtime.token.create_unit(mint, payer=owner, mint_authority=owner, freeze_authority=owner, signers=signers)
    holding = runtime.token.create_holding(payer=owner, owner=owner, mint=mint, signers=signers)
    if supply:
        runtime.token.issue(mint, holding, supply, authority=owner, signers=signers)
    return mint, holding


def _data(creator, verified=False, collection=None):
    return DataV2(
        name="Genesis",
        symbol="GEN",
        uri="https://example.com/genesis.json",
        seller_fee_basis_points=500,
        creators=(Creator(address=creator, verified=verified, share=100),),
        collection=collection,
    )


def _setup():
    runtime = Runtime()
    owner = _new_address()
    runtime.airdrop(owner, 1_000_000_000)
    return runtime, owner


def _sealed_collection(runtime, owner, authority):
    mint, _ = _minted(runtime, owner)
    signers = {owner, authority}
    runtime.registry.register(
        metadata_address(mint), mint, mint_authority=owner, payer=owner,
        update_authority=authority, data=_data(owner), is_mutable=True,
        update_authority_is_signer=False, signers={owner},
    )
    runtime.registry.seal(
        master_edition_address(mint), mint, update_authority=authority, mint_authority=owner,
        payer=owner, metadata=metadata_address(mint), max_supply=0, signers=signers,
    )
    return mint


def _item(runtime, owner, collection_mint):
    mint, _ = _minted(runtime, owner)
    runtime.registry.register(
        metadata_address(mint), mint, mint_authority=owner, payer=owner,
        update_authority=owner, data=_data(owner, verified=True, collection=CollectionRef(collection_mint)),
        is_mutable=True, update_authority_is_signer=True, signers={owner},
    )
    return mint


def test_issue_requires_mint_authority():
    runtime, owner = _setup()
    mint, holding = _minted(runtime, owner, supply=0)
    stranger = _new_address()

    with pytest.raises(TokenError):
        runtime.token.issue(mint, holding, 1, authority=stranger, signers={stranger})
    with pytest.raises(MissingRequiredSignature):
        runtime.token.issue(mint, holding, 1, authority=owner, signers=set())


def test_create_unit_requires_new_mint_signature():
    runtime, owner = _setup()

    with pytest.raises(MissingRequiredSignature):
        runtime.token.create_unit(_new_address(), payer=owner, mint_authority=owner, signers={owner})


def test_register_rejects_wrong_address():
    runtime, owner = _setup()
    mint, _ = _minted(runtime, owner)

    with pytest.raises(RegistryError, match="derived key"):
        runtime.registry.register(
            master_edition_address(mint), mint, mint_authority=owner, payer=owner,
            update_authority=owner, data=_data(owner), is_mutable=True,
            update_authority_is_signer=False, signers={owner},
        )


def test_register_rejects_unsigned_verified_creator():
    runtime, owner = _setup()
    mint, _ = _minted(runtime, owner)
    other = _new_address()

    with pytest.raises(RegistryError, match="must sign"):
        runtime.registry.register(
            metadata_address(mint), mint, mint_authority=owner, payer=owner,
            update_authority=owner, data=_data(other, verified=True), is_mutable=True,
            update_authority_is_signer=False, signers={owner},
        )


def test_register_rejects_pre_verified_collection():
    runtime, owner = _setup()
    mint, _ = _minted(runtime, owner)
    collection = CollectionRef(key=_new_address(), verified=True)

    with pytest.raises(RegistryError, match="cannot be verified"):
        runtime.registry.register(
            metadata_address(mint), mint, mint_authority=owner, payer=owner,
            update_authority=owner, data=_data(owner, collection=collection), is_mutable=True,
            update_authority_is_signer=False, signers={owner},
        )


def test_register_rejects_long_symbol():
    runtime, owner = _setup()
    mint, _ = _minted(runtime, owner)
    data = DataV2(name="Genesis", symbol="S" * 11, uri="u", seller_fee_basis_points=0)

    with pytest.raises(RegistryError, match="symbol"):
        runtime.registry.register(
            metadata_address(mint), mint, mint_authority=owner, payer=owner,
            update_authority=owner, data=data, is_mutable=True,
            update_authority_is_signer=False, signers={owner},
        )


def test_seal_requires_supply_of_one():
    runtime, owner = _setup()
    mint, _ = _minted(runtime, owner, supply=2)
    runtime.registry.register(
        metadata_address(mint), mint, mint_authority=owner, payer=owner,
        update_authority=owner, data=_data(owner), is_mutable=True,
        update_authority_is_signer=False, signers={owner},
    )

    with pytest.raises(RegistryError, match="exactly one"):
        runtime.registry.seal(
            master_edition_address(mint), mint, update_authority=owner, mint_authority=owner,
            payer=owner, metadata=metadata_address(mint), max_supply=0, signers={owner},
        )


def test_seal_hands_mint_authority_to_edition():
    runtime, owner = _setup()
    authority = _new_address()
    mint = _sealed_collection(runtime, owner, authority)
    edition = master_edition_address(mint)

    unit = runtime.token.mint(mint)
    assert unit.mint_authority == edition
    assert unit.freeze_authority == edition
    assert runtime.registry.edition(edition).max_supply == 0


def test_sealed_mint_cannot_issue_more():
    runtime, owner = _setup()
    authority = _new_address()
    mint = _sealed_collection(runtime, owner, authority)

    with pytest.raises(TokenError):
        runtime.token.issue(
            mint, associated_token_address(owner, mint), 1, authority=owner, signers={owner}
        )


def test_verify_membership_sets_flag():
    runtime, owner = _setup()
    authority = _new_address()
    collection = _sealed_collection(runtime, owner, authority)
    item = _item(runtime, owner, collection)

    record = runtime.registry.verify_membership(
        metadata_address(item), collection_authority=authority, payer=owner,
        collection_mint=collection, collection_metadata=metadata_address(collection),
        collection_edition=master_edition_address(collection), signers={owner, authority},
    )

    assert record.data.collection.verified
    assert runtime.registry.metadata(metadata_address(item)).data.collection.verified


def test_verify_membership_rejects_other_authority():
    runtime, owner = _setup()
    authority = _new_address()
    impostor = _new_address()
    collection = _sealed_collection(runtime, owner, authority)
    item = _item(runtime, owner, collection)

    with pytest.raises(RegistryError, match="update authority"):
        runtime.registry.verify_membership(
            metadata_address(item), collection_authority=impostor, payer=owner,
            collection_mint=collection, collection_metadata=metadata_address(collection),
            collection_edition=master_edition_address(collection), signers={owner, impostor},
        )

    assert not runtime.registry.metadata(metadata_address(item)).data.collection.verified


def test_verify_membership_requires_authority_signature():
    runtime, owner = _setup()
    authority = _new_address()
    collection = _sealed_collection(runtime, owner, authority)
    item = _item(runtime, owner, collection)

    with pytest.raises(RegistryError, match="must sign"):
        runtime.registry.verify_membership(
            metadata_address(item), collection_authority=authority, payer=owner,
            collection_mint=collection, collection_metadata=metadata_address(collection),
            collection_edition=master_edition_address(collection), signers={owner},
        )


def test_verify_membership_rejects_other_collection():
    runtime, owner = _setup()
    authority = _new_address()
    collection = _sealed_collection(runtime, owner, authority)
    other = _sealed_collection(runtime, owner, authority)
    item = _item(runtime, owner, collection)

    with pytest.raises(RegistryError, match="collection key"):
        runtime.registry.verify_membership(
            metadata_address(item), collection_authority=authority, payer=owner,
            collection_mint=other, collection_metadata=metadata_address(other),
            collection_edition=master_edition_address(other), signers={owner, authority},
        )


def test_verify_membership_requires_sealed_collection():
    runtime, owner = _setup()
    authority = _new_address()
    collection, _ = _minted(runtime, owner)
    runtime.registry.register(
        metadata_address(collection), collection, mint_authority=owner, payer=owner,
        update_authority=authority, data=_data(owner), is_mutable=True,
        update_authority_is_signer=False, signers={owner},
    )
    item = _item(runtime, owner, collection)

    with pytest.raises(RegistryError, match="master edition"):
        runtime.registry.verify_membership(
            metadata_address(item), collection_authority=authority, payer=owner,
            collection_mint=collection, collection_metadata=metadata_address(collection),
            collection_edition=master_edition_address(collection), signers={owner, authority},
        )


def test_program_guard_uses_registry_limits():
    from mintverify import program, registry

    assert program.MAX_METADATA_NAME_LENGTH == registry.MAX_NAME_LENGTH
    assert program.MAX_METADATA_SYMBOL_LENGTH == registry.MAX_SYMBOL_LENGTH
    assert program.MAX_METADATA_URI_LENGTH == registry.MAX_URI_LENGTH

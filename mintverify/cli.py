#!/usr/bin/env python3
import argparse
import json
import sys
from dataclasses import asdict

from . import config
from .client import MintVerifyClient
from .core import (
    address_of,
    derive_collection_authority,
    generate_keypair,
    master_edition_address,
    metadata_address,
)
from .errors import MintVerifyError, ServiceError
from .logging_config import configure_logging
from .runtime import Runtime


def cmd_derive(args):
    """
    mintverify derive --seed GEN1 [--seed GEN2 ...]
    """
    out = []
    for seed in args.seed:
        authority, bump = derive_collection_authority(seed, args.program_id)
        out.append({"seed": seed, "authority": authority, "bump": bump})
    print(json.dumps(out if len(out) > 1 else out[0], indent=2))


def cmd_addresses(args):
    """
    mintverify addresses --mint <address>
    """
    out = {
        "mint": args.mint,
        "metadata": metadata_address(args.mint),
        "master_edition": master_edition_address(args.mint),
    }
    print(json.dumps(out, indent=2))


def cmd_demo(args):
    """
    mintverify demo --seed GEN1 --name Genesis --symbol GEN

    Bootstraps a collection and issues one item against a fresh in-memory
    runtime.
    """
    runtime = Runtime(program_id=args.program_id)
    client = MintVerifyClient(runtime)

    admin = generate_keypair()
    user = generate_keypair()
    client.airdrop(address_of(admin), 2)
    client.airdrop(address_of(user), 1)

    collection = client.initialize_collection(
        admin,
        args.seed,
        {
            "name": args.name,
            "symbol": args.symbol,
            "uri": args.uri,
            "seller_fee_basis_points": args.royalty,
        },
    )
    item = client.mint_and_verify_nft(
        user,
        args.seed,
        collection.collection_mint,
        {
            "name": f"{args.name} #1",
            "symbol": args.symbol,
            "uri": args.item_uri,
            "seller_fee_basis_points": args.royalty,
        },
    )

    out = {
        "collection": asdict(collection),
        "item": asdict(item),
        "verified": client.is_verified_in_collection(item.nft_mint),
        "explorer": config.explorer_url(item.signature),
    }
    print(json.dumps(out, indent=2))


def build_parser():
    p = argparse.ArgumentParser(prog="mintverify", description="Collection mint and verify tools")
    p.add_argument("--program-id", default=config.PROGRAM_ID, help="program id (base58)")
    p.add_argument("--log-level", default=config.LOG_LEVEL, help="logging level")
    sub = p.add_subparsers(dest="cmd")

    # derive
    d = sub.add_parser("derive", help="derive the collection authority for a seed")
    d.add_argument("--seed", required=True, action="append", help="collection seed, repeatable")
    d.set_defaults(func=cmd_derive)

    # addresses
    a = sub.add_parser("addresses", help="metadata and master edition addresses for a mint")
    a.add_argument("--mint", required=True, help="mint address (base58)")
    a.set_defaults(func=cmd_addresses)

    # demo
    m = sub.add_parser("demo", help="bootstrap a collection and mint one verified item in memory")
    m.add_argument("--seed", default=config.DEFAULT_COLLECTION_CONFIG["seed"])
    m.add_argument("--name", default=config.DEFAULT_COLLECTION_CONFIG["metadata"]["name"])
    m.add_argument("--symbol", default=config.DEFAULT_COLLECTION_CONFIG["metadata"]["symbol"])
    m.add_argument("--uri", default=config.DEFAULT_COLLECTION_CONFIG["metadata"]["uri"])
    m.add_argument("--item-uri", default=config.DEFAULT_NFT_CONFIG["uri"])
    m.add_argument(
        "--royalty", type=int,
        default=config.DEFAULT_COLLECTION_CONFIG["metadata"]["seller_fee_basis_points"],
        help="seller fee in basis points",
    )
    m.set_defaults(func=cmd_demo)

    return p


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    configure_logging(level=args.log_level, json_format=config.LOG_JSON)

    try:
        args.func(args)
    except (MintVerifyError, ServiceError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

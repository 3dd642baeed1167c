# mintverify/config.py
"""
Configuration for mintverify.

Settings are read once from the environment at import time. Program ids
default to the deployed mint-verify program and the standard ledger
programs.
"""

import os
from typing import Any, Dict, Optional

# ---------- Program ids ----------

PROGRAM_ID = os.getenv(
    "MINTVERIFY_PROGRAM_ID", "avnQdm8yHVaiRt6nGuVWnUhzUnEbqcRN5v3cMATrV2X"
)
TOKEN_METADATA_PROGRAM_ID = "metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s"
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
ASSOCIATED_TOKEN_PROGRAM_ID = "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"
SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"

# ---------- Network ----------

NETWORK_CONFIG: Dict[str, Dict[str, str]] = {
    "devnet": {
        "rpc_url": "https://api.devnet.solana.com",
        "commitment": "confirmed",
        "explorer_url": "https://explorer.solana.com",
        "cluster": "devnet",
    },
    "testnet": {
        "rpc_url": "https://api.testnet.solana.com",
        "commitment": "confirmed",
        "explorer_url": "https://explorer.solana.com",
        "cluster": "testnet",
    },
    "mainnet": {
        "rpc_url": "https://api.mainnet-beta.solana.com",
        "commitment": "confirmed",
        "explorer_url": "https://explorer.solana.com",
        "cluster": "mainnet-beta",
    },
    "localhost": {
        "rpc_url": "http://127.0.0.1:8899",
        "commitment": "confirmed",
        "explorer_url": "https://explorer.solana.com",
        "cluster": "localnet",
    },
}

CLUSTER = os.getenv("MINTVERIFY_CLUSTER", "devnet")

# ---------- Balances ----------

LAMPORTS_PER_SOL = 1_000_000_000

# Client-side warning thresholds, not enforced by the program.
MIN_ADMIN_BALANCE = LAMPORTS_PER_SOL // 10
MIN_USER_BALANCE = LAMPORTS_PER_SOL // 20

# ---------- Logging ----------

LOG_LEVEL = os.getenv("MINTVERIFY_LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("MINTVERIFY_LOG_JSON", "1").lower() in ("1", "true", "yes")

# ---------- Defaults ----------

DEFAULT_COLLECTION_CONFIG: Dict[str, Any] = {
    "seed": "default_collection_v1",
    "metadata": {
        "name": "Default NFT Collection",
        "symbol": "DNC",
        "uri": "https://example.com/default-collection.json",
        "seller_fee_basis_points": 500,
    },
}

DEFAULT_NFT_CONFIG: Dict[str, Any] = {
    "name": "Default NFT #001",
    "symbol": "DNC",
    "uri": "https://example.com/default-nft.json",
    "seller_fee_basis_points": 250,
}


def network_config(cluster: Optional[str] = None) -> Dict[str, str]:
    name = cluster or CLUSTER
    if name not in NETWORK_CONFIG:
        raise ValueError(f"unknown cluster: {name!r}")
    return NETWORK_CONFIG[name]


def explorer_url(signature: str, kind: str = "tx", cluster: Optional[str] = None) -> str:
    """
    Explorer link for a transaction signature (kind="tx") or an
    account address (kind="address").
    """
    if kind not in ("tx", "address"):
        raise ValueError(f"unknown explorer link kind: {kind!r}")
    net = network_config(cluster)
    suffix = "" if net["cluster"] == "mainnet-beta" else f"?cluster={net['cluster']}"
    return f"{net['explorer_url']}/{kind}/{signature}{suffix}"


def sol_to_lamports(sol: float) -> int:
    return int(round(sol * LAMPORTS_PER_SOL))


def lamports_to_sol(lamports: int) -> float:
    return lamports / LAMPORTS_PER_SOL

# mintverify/core.py

import hashlib
from typing import List, Optional, Sequence, Tuple

from nacl import signing

from . import config
from .errors import InvalidCollectionSeed

COLLECTION_AUTHORITY_SEED = b"collection_authority"
METADATA_SEED = b"metadata"
EDITION_SEED = b"edition"

MAX_COLLECTION_SEED_LENGTH = 32
MAX_SEED_LEN = 32
MAX_SEEDS = 16
PDA_MARKER = b"ProgramDerivedAddress"


# ---------- Base58 (account addresses) ----------

ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"


def b58encode(data: bytes) -> str:
    n = int.from_bytes(data, "big")
    out: List[str] = []
    while n > 0:
        n, rem = divmod(n, 58)
        out.append(ALPHABET[rem])
    # each leading zero byte is written as a literal "1"
    pad = len(data) - len(data.lstrip(b"\x00"))
    return "1" * pad + "".join(reversed(out))


def b58decode(text: str) -> bytes:
    n = 0
    for ch in text:
        idx = ALPHABET.find(ch)
        if idx < 0:
            raise ValueError(f"invalid base58 character: {ch!r}")
        n = n * 58 + idx
    pad = len(text) - len(text.lstrip("1"))
    body = n.to_bytes((n.bit_length() + 7) // 8, "big") if n else b""
    return b"\x00" * pad + body


def decode_address(address: str) -> bytes:
    raw = b58decode(address)
    if len(raw) != 32:
        raise ValueError(f"address must decode to 32 bytes: {address!r}")
    return raw


# ---------- Ed25519 curve membership ----------

P = 2 ** 255 - 19
D = (-121665 * pow(121666, P - 2, P)) % P


def is_on_curve(point: bytes) -> bool:
    """
    True if the 32 bytes decompress to a point on the Ed25519 curve.

    Follows point decompression: y is the low 255 bits, and the point
    exists iff x^2 = (y^2 - 1) / (d*y^2 + 1) has a root mod p. Subgroup
    membership is not checked.
    """
    if len(point) != 32:
        return False
    y = (int.from_bytes(point, "little") & ((1 << 255) - 1)) % P
    u = (y * y - 1) % P
    v = (D * y * y + 1) % P
    if v == 0:
        return u == 0
    x2 = u * pow(v, P - 2, P) % P
    return x2 == 0 or pow(x2, (P - 1) // 2, P) == 1


# ---------- Program derived addresses ----------

def create_program_address(seeds: Sequence[bytes], program_id: str) -> str:
    """
    Hash seeds and program id into an address with no private key.

    Raises ValueError if a seed is too long or the hash is a valid curve
    point (a real key could exist for it).
    """
    if len(seeds) > MAX_SEEDS:
        raise ValueError(f"at most {MAX_SEEDS} seeds allowed")

    h = hashlib.sha256()
    for seed in seeds:
        if len(seed) > MAX_SEED_LEN:
            raise ValueError(f"seed exceeds {MAX_SEED_LEN} bytes")
        h.update(seed)
    h.update(decode_address(program_id))
    h.update(PDA_MARKER)
    digest = h.digest()

    if is_on_curve(digest):
        raise ValueError("invalid seeds, address must fall off the curve")
    return b58encode(digest)


def find_program_address(seeds: Sequence[bytes], program_id: str) -> Tuple[str, int]:
    """
    Search bumps from 255 downwards and return the first (address, bump)
    whose address falls off the curve.
    """
    if len(seeds) >= MAX_SEEDS:
        raise ValueError(f"at most {MAX_SEEDS - 1} seeds allowed before the bump")
    for seed in seeds:
        if len(seed) > MAX_SEED_LEN:
            raise ValueError(f"seed exceeds {MAX_SEED_LEN} bytes")

    for bump in range(255, 0, -1):
        try:
            address = create_program_address(list(seeds) + [bytes([bump])], program_id)
        except ValueError:
            continue
        return address, bump
    raise ValueError("unable to find a viable program address bump seed")


def collection_authority_seeds(collection_seed: str) -> List[bytes]:
    seed_bytes = collection_seed.encode("utf-8")
    if len(seed_bytes) > MAX_COLLECTION_SEED_LENGTH:
        raise InvalidCollectionSeed(
            f"seed is {len(seed_bytes)} bytes, maximum {MAX_COLLECTION_SEED_LENGTH}"
        )
    return [COLLECTION_AUTHORITY_SEED, seed_bytes]


def derive_collection_authority(
    collection_seed: str, program_id: Optional[str] = None
) -> Tuple[str, int]:
    """
    Deterministically derive the collection authority address and bump
    for a collection seed.

    Same seed and program id always give the same (address, bump).
    """
    return find_program_address(
        collection_authority_seeds(collection_seed),
        program_id or config.PROGRAM_ID,
    )


def metadata_address(mint: str) -> str:
    registry = config.TOKEN_METADATA_PROGRAM_ID
    address, _ = find_program_address(
        [METADATA_SEED, decode_address(registry), decode_address(mint)], registry
    )
    return address


def master_edition_address(mint: str) -> str:
    registry = config.TOKEN_METADATA_PROGRAM_ID
    address, _ = find_program_address(
        [METADATA_SEED, decode_address(registry), decode_address(mint), EDITION_SEED],
        registry,
    )
    return address


def associated_token_address(owner: str, mint: str) -> str:
    address, _ = find_program_address(
        [
            decode_address(owner),
            decode_address(config.TOKEN_PROGRAM_ID),
            decode_address(mint),
        ],
        config.ASSOCIATED_TOKEN_PROGRAM_ID,
    )
    return address


# ---------- Key helpers ----------

def generate_keypair() -> signing.SigningKey:
    return signing.SigningKey.generate()


def signing_key_from_seed_hex(seed_hex: str) -> signing.SigningKey:
    seed = bytes.fromhex(seed_hex)
    if len(seed) != 32:
        raise ValueError("key seed must be 32 bytes (64 hex chars)")
    return signing.SigningKey(seed)


def address_from_verify_key(vk: signing.VerifyKey) -> str:
    return b58encode(vk.encode())


def address_of(sk: signing.SigningKey) -> str:
    return address_from_verify_key(sk.verify_key)

# mintverify/transaction.py

import binascii
import json
from typing import Any, Dict, FrozenSet, Mapping, Sequence

from nacl import signing
from nacl.exceptions import BadSignatureError

from .core import address_from_verify_key, b58encode, decode_address
from .errors import Unauthorized


def transaction_message(instruction: str, args: Mapping[str, Any], accounts: Mapping[str, str]) -> bytes:
    """
    Canonical bytes every signer signs: compact, key-sorted UTF-8 JSON of
    the instruction name, its arguments and its named accounts.
    """
    body = {"instruction": instruction, "args": args, "accounts": accounts}
    return json.dumps(body, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def build_transaction(
    instruction: str,
    args: Dict[str, Any],
    accounts: Dict[str, str],
    signing_keys: Sequence[signing.SigningKey],
) -> Dict:
    """
    Build a signed transaction dict.

    - instruction: program instruction name
    - args: JSON-serializable instruction arguments
    - accounts: role name -> address
    - signatures: [[address, hex_signature], ...] in signing_keys order;
      the first signer pays fees and names the transaction
    """
    message = transaction_message(instruction, args, accounts)
    signatures = [
        [address_from_verify_key(sk.verify_key), sk.sign(message).signature.hex()]
        for sk in signing_keys
    ]
    return {
        "instruction": instruction,
        "args": args,
        "accounts": accounts,
        "signatures": signatures,
    }


def transaction_id(tx: Dict) -> str:
    signatures = tx.get("signatures") or []
    if not signatures:
        return ""
    try:
        return b58encode(binascii.unhexlify(signatures[0][1]))
    except (binascii.Error, ValueError, TypeError, IndexError):
        return ""


def verify_transaction(tx: Dict) -> FrozenSet[str]:
    """
    Check every signature on tx against its message.

    Returns:
        The set of addresses that validly signed.

    Raises:
        Unauthorized if the transaction is malformed, unsigned, or any
        signature fails to verify.
    """
    instruction = tx.get("instruction")
    if not isinstance(instruction, str):
        raise Unauthorized("transaction has no instruction")
    signatures = tx.get("signatures")
    if not signatures:
        raise Unauthorized("transaction carries no signatures")

    message = transaction_message(instruction, tx.get("args", {}), tx.get("accounts", {}))

    signers = set()
    for entry in signatures:
        if not isinstance(entry, (list, tuple)) or len(entry) != 2:
            raise Unauthorized("malformed signature entry")
        address, sig_hex = entry
        try:
            vk = signing.VerifyKey(decode_address(address))
            vk.verify(message, binascii.unhexlify(sig_hex))
        except (BadSignatureError, binascii.Error, ValueError, TypeError) as exc:
            raise Unauthorized(f"signature verification failed for {address}") from exc
        signers.add(address)

    return frozenset(signers)

# mintverify/__init__.py

from .core import (
    b58encode,
    b58decode,
    is_on_curve,
    create_program_address,
    find_program_address,
    derive_collection_authority,
    metadata_address,
    master_edition_address,
    associated_token_address,
    generate_keypair,
    address_of,
)
from .errors import (
    MintVerifyError,
    InvalidCollectionAuthority,
    MetadataCreationFailed,
    VerificationFailed,
    Unauthorized,
    InvalidCollectionSeed,
    ServiceError,
    LedgerError,
    RegistryError,
)
from .transaction import (
    build_transaction,
    verify_transaction,
)
from .runtime import Runtime
from .client import MintVerifyClient, CollectionResult, MintResult

__all__ = [
    "b58encode",
    "b58decode",
    "is_on_curve",
    "create_program_address",
    "find_program_address",
    "derive_collection_authority",
    "metadata_address",
    "master_edition_address",
    "associated_token_address",
    "generate_keypair",
    "address_of",
    "MintVerifyError",
    "InvalidCollectionAuthority",
    "MetadataCreationFailed",
    "VerificationFailed",
    "Unauthorized",
    "InvalidCollectionSeed",
    "ServiceError",
    "LedgerError",
    "RegistryError",
    "build_transaction",
    "verify_transaction",
    "Runtime",
    "MintVerifyClient",
    "CollectionResult",
    "MintResult",
]

# mintverify/errors.py

from typing import Optional


class MintVerifyError(Exception):
    """
    Base class for errors raised by the mint-verify program itself.

    Codes follow the program's error table, starting at 6000.
    """

    code = 6000
    msg = "Mint verify program error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail
        if detail:
            super().__init__(f"{self.msg}: {detail}")
        else:
            super().__init__(self.msg)

    @property
    def name(self) -> str:
        return type(self).__name__


class InvalidCollectionAuthority(MintVerifyError):
    code = 6000
    msg = "Collection authority PDA derivation failed"


class MetadataCreationFailed(MintVerifyError):
    code = 6001
    msg = "NFT metadata creation failed"


class VerificationFailed(MintVerifyError):
    code = 6002
    msg = "Collection verification failed"


class Unauthorized(MintVerifyError):
    code = 6003
    msg = "Unauthorized access"


class InvalidCollectionSeed(MintVerifyError):
    code = 6004
    msg = "Invalid collection seed"


# ---------- Collaborator errors ----------

class ServiceError(Exception):
    """Raised by the ledger and registry services, never by the program."""


class LedgerError(ServiceError):
    pass


class AccountAlreadyInUse(LedgerError):
    def __init__(self, address: str):
        self.address = address
        super().__init__(f"account {address} already in use")


class InsufficientFunds(LedgerError):
    def __init__(self, address: str, available: int, required: int):
        self.address = address
        self.available = available
        self.required = required
        super().__init__(
            f"insufficient lamports {available}, need {required} ({address})"
        )


class AccountNotFound(LedgerError):
    def __init__(self, address: str):
        self.address = address
        super().__init__(f"account {address} not found")


class MissingRequiredSignature(LedgerError):
    def __init__(self, address: str):
        self.address = address
        super().__init__(f"missing required signature for {address}")


class TokenError(LedgerError):
    pass


class RegistryError(ServiceError):
    pass

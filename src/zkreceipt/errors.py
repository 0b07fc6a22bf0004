"""Exception hierarchy for zkreceipt."""

from typing import Tuple


class ZkReceiptError(ValueError):
    """Base class for all errors raised on bad receipts or claims."""


class DecodeError(ZkReceiptError):
    """Serialized bytes could not be decoded into a receipt structure."""


class InvalidExitCodeError(ZkReceiptError):
    """A (system, user) pair that does not name a valid exit code."""

    def __init__(self, sys_exit: int, user_exit: int):
        self.sys_exit = sys_exit
        self.user_exit = user_exit
        super().__init__(f"invalid exit code pair: ({sys_exit}, {user_exit})")

    @property
    def pair(self) -> Tuple[int, int]:
        return (self.sys_exit, self.user_exit)


class UnsupportedReceiptError(ZkReceiptError):
    """The receipt's proof strategy is not handled by the operation."""

    def __init__(self, variant: str):
        self.variant = variant
        super().__init__(f"unsupported receipt type: {variant}")


class UnsupportedHashFunctionError(ZkReceiptError):
    """No hash suite is registered under the given name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"unsupported hash function: {name}")


class PrunedValueError(ZkReceiptError):
    """A pruned value was accessed as if it were present."""

    def __init__(self, digest):
        self.digest = digest
        super().__init__(f"value is pruned: {digest}")


class ReceiptError(ZkReceiptError):
    """A receipt is structurally inconsistent."""


class JournalMismatchError(ReceiptError):
    """The journal does not match the journal digest committed in the claim."""


class MerkleProofError(ZkReceiptError):
    """A Merkle inclusion proof does not lead to the expected root."""

"""
Digestible Values and Selective Disclosure

Every committed type exposes ``digest(engine)``. The base cases:

- bytes digest to H(bytes), untagged (leaf content)
- None digests to Digest.ZERO
- a sequence of digestibles folds from the tail, H(accum ‖ item)

MaybePruned lets any subtree be replaced by its digest. The digest of a
MaybePruned is the same whether or not the payload is present, so a
pruned claim commits to exactly what the full claim commits to.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, Optional, Sequence, TypeVar

from .digest import Digest
from .errors import PrunedValueError
from .sha import HashEngine, default_engine

T = TypeVar('T')


class Digestible(ABC):
    """A value with a canonical, collision-resistant digest."""

    @abstractmethod
    def digest(self, engine: Optional[HashEngine] = None) -> Digest:
        pass


def digest_sequence(items: Sequence[Any], engine: Optional[HashEngine] = None) -> Digest:
    """
    Default incremental digest of a sequence of digestible items.

    Not a PRF and not domain separated: given the digest of a list, anyone
    can compute the digest of that list with items prepended, and the empty
    list digests to ZERO. Kept as-is because external verifiers depend on it.
    """
    engine = engine or default_engine()
    accum = Digest.ZERO
    for item in reversed(list(items)):
        accum = engine.hash_bytes(accum.as_bytes() + digest_of(item, engine).as_bytes())
    return accum


def digest_of(value: Any, engine: Optional[HashEngine] = None) -> Digest:
    """Digest of any committed value."""
    engine = engine or default_engine()

    if isinstance(value, Digestible):
        return value.digest(engine)

    elif isinstance(value, (bytes, bytearray, memoryview)):
        return engine.hash_bytes(bytes(value))

    elif value is None:
        return Digest.ZERO

    elif isinstance(value, (list, tuple)):
        return digest_sequence(value, engine)

    else:
        raise TypeError(f"Value of type {type(value).__name__} is not digestible")


# =============================================================================
# MAYBE PRUNED
# =============================================================================

class MaybePruned(Digestible, Generic[T]):
    """
    Either a full value (Value) or only its digest (Pruned).

    Abstract: only the two variants can be instantiated.
    """

    def digest(self, engine: Optional[HashEngine] = None) -> Digest:
        if self.is_pruned:
            return self.pruned
        return digest_of(self.value, engine)

    @property
    @abstractmethod
    def is_pruned(self) -> bool:
        pass

    def as_value(self) -> T:
        """Return the payload, or raise PrunedValueError if it was pruned."""
        if self.is_pruned:
            raise PrunedValueError(self.pruned)
        return self.value

    def pruned_copy(self, engine: Optional[HashEngine] = None) -> 'Pruned[T]':
        """The same commitment with the payload elided."""
        return Pruned(self.digest(engine))


@dataclass(frozen=True)
class Value(MaybePruned[T]):
    """Unpruned value."""
    value: T

    @property
    def is_pruned(self) -> bool:
        return False


@dataclass(frozen=True)
class Pruned(MaybePruned[T]):
    """Pruned value, represented by its digest."""
    pruned: Digest

    @property
    def is_pruned(self) -> bool:
        return True

    def __post_init__(self):
        if not isinstance(self.pruned, Digest):
            raise TypeError(f"Pruned expects a Digest, got {type(self.pruned).__name__}")

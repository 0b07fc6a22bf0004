"""
Receipt Envelope

The same logical claim can be backed by different proof strategies:

- CompositeReceipt: one STARK per segment, plus receipts for assumptions
- SuccinctReceipt: a single STARK, bound to a recursion program by control ID
- Groth16Receipt: a single SNARK wrapping a succinct proof
- FakeReceipt: no cryptographic material, for development only

InnerReceipt is the closed set of strategies for a top-level Receipt.
InnerAssumptionReceipt is the closed set for a receipt that backs an
assumption, whose claim type is not yet specified (Unknown).
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import ClassVar, Generic, Optional, Tuple, TypeVar, Union

from .claim import Assumptions, Output, ReceiptClaim, Unknown, _check_u32
from .digest import Digest, WORD_SIZE, words_to_bytes
from .digestible import Digestible, MaybePruned, Value
from .errors import JournalMismatchError, ReceiptError
from .merkle import MerkleProof
from .sha import HashEngine, default_engine, hash_suite_from_name

C = TypeVar('C', bound=Digestible)


# =============================================================================
# JOURNAL AND METADATA
# =============================================================================

@dataclass(frozen=True)
class Journal(Digestible):
    """Raw bytes the guest committed to."""
    bytes: bytes = b''

    def __post_init__(self):
        object.__setattr__(self, 'bytes', bytes(self.bytes))

    def digest(self, engine: Optional[HashEngine] = None) -> Digest:
        return (engine or default_engine()).hash_bytes(self.bytes)

    def __repr__(self) -> str:
        return f"Journal({len(self.bytes)} bytes)"


@dataclass(frozen=True)
class ReceiptMetadata:
    """
    Information used to pick a compatible verifier when several proof
    system versions are in circulation.
    """
    verifier_parameters: Digest


# =============================================================================
# PROOF STRATEGIES
# =============================================================================

@dataclass(frozen=True)
class SegmentReceipt:
    """
    Proof of one execution segment.

    ``verifier_parameters`` fingerprints the proof system and circuit
    version; it is not the parameters themselves.
    """
    seal: Tuple[int, ...]
    index: int
    hashfn: str
    verifier_parameters: Digest
    claim: ReceiptClaim

    def __post_init__(self):
        object.__setattr__(self, 'seal', tuple(self.seal))
        _check_u32("index", self.index)

    def get_seal_bytes(self) -> bytes:
        return words_to_bytes(self.seal)

    def seal_size(self) -> int:
        return len(self.seal) * WORD_SIZE

    def __repr__(self) -> str:
        return (
            f"SegmentReceipt(seal={self.seal_size()} bytes, index={self.index}, "
            f"hashfn={self.hashfn!r}, claim={self.claim!r})"
        )


@dataclass(frozen=True)
class CompositeReceipt:
    """Multi-segment proof with receipts for the assumptions it resolves."""
    segments: Tuple[SegmentReceipt, ...]
    assumption_receipts: Tuple['InnerAssumptionReceipt', ...]
    verifier_parameters: Digest

    VARIANT: ClassVar[str] = "Composite"

    def __post_init__(self):
        object.__setattr__(self, 'segments', tuple(self.segments))
        object.__setattr__(self, 'assumption_receipts', tuple(self.assumption_receipts))

    def claim(self) -> ReceiptClaim:
        """
        Claim proven by the whole continuation.

        ``pre`` and ``input`` come from the first segment, ``post``,
        ``exit_code`` and ``output`` from the last. Assumptions are cleared
        from the output because the assumption receipts resolve them.
        """
        if not self.segments:
            raise ReceiptError("composite receipt contains no segments")
        first = self.segments[0].claim
        last = self.segments[-1].claim

        if last.output.is_pruned:
            raise ReceiptError("output of the last segment is pruned")
        output = last.output.as_value()
        if output is not None:
            output = Output(journal=output.journal, assumptions=Value(Assumptions()))

        return ReceiptClaim(
            pre=first.pre,
            post=last.post,
            exit_code=last.exit_code,
            input=first.input,
            output=Value(output),
        )

    def seal_size(self) -> int:
        return (
            sum(s.seal_size() for s in self.segments)
            + sum(inner_seal_size(a) for a in self.assumption_receipts)
        )


@dataclass(frozen=True)
class SuccinctReceipt(Generic[C]):
    """Single STARK proof, bound to a recursion program by ``control_id``."""
    seal: Tuple[int, ...]
    control_id: Digest
    claim: MaybePruned[C]
    hashfn: str
    verifier_parameters: Digest
    control_inclusion_proof: MerkleProof

    VARIANT: ClassVar[str] = "Succinct"

    def __post_init__(self):
        object.__setattr__(self, 'seal', tuple(self.seal))

    def get_seal_bytes(self) -> bytes:
        return words_to_bytes(self.seal)

    def seal_size(self) -> int:
        return len(self.seal) * WORD_SIZE

    def control_root(self) -> Digest:
        """
        Root of the control tree this receipt claims membership in.

        The caller compares this against a trusted control root.
        """
        engine = hash_suite_from_name(self.hashfn)
        return self.control_inclusion_proof.root(self.control_id, engine)

    def __repr__(self) -> str:
        return (
            f"SuccinctReceipt(seal={self.seal_size()} bytes, control_id={self.control_id}, "
            f"claim={self.claim!r}, hashfn={self.hashfn!r})"
        )


@dataclass(frozen=True)
class Groth16Receipt(Generic[C]):
    """Single Groth16 SNARK; the seal is raw bytes."""
    seal: bytes
    claim: MaybePruned[C]
    verifier_parameters: Digest

    VARIANT: ClassVar[str] = "Groth16"

    def __post_init__(self):
        object.__setattr__(self, 'seal', bytes(self.seal))

    def seal_size(self) -> int:
        return len(self.seal)

    def __repr__(self) -> str:
        return f"Groth16Receipt(seal={len(self.seal)} bytes, claim={self.claim!r})"


@dataclass(frozen=True)
class FakeReceipt(Generic[C]):
    """Claim only, no integrity. Never accept one in production."""
    claim: MaybePruned[C]

    VARIANT: ClassVar[str] = "Fake"

    def seal_size(self) -> int:
        return 0


InnerReceipt = Union[
    CompositeReceipt,
    SuccinctReceipt[ReceiptClaim],
    Groth16Receipt[ReceiptClaim],
    FakeReceipt[ReceiptClaim],
]

InnerAssumptionReceipt = Union[
    CompositeReceipt,
    SuccinctReceipt[Unknown],
    Groth16Receipt[Unknown],
    FakeReceipt[Unknown],
]

INNER_RECEIPT_TYPES = (CompositeReceipt, SuccinctReceipt, Groth16Receipt, FakeReceipt)


# =============================================================================
# VARIANT DISPATCH
# =============================================================================

def variant_name(inner: InnerReceipt) -> str:
    if isinstance(inner, INNER_RECEIPT_TYPES):
        return inner.VARIANT
    raise TypeError(f"Not an inner receipt: {type(inner).__name__}")


def inner_claim(inner: InnerReceipt) -> MaybePruned[ReceiptClaim]:
    """The (possibly pruned) claim proven by any proof strategy."""
    if isinstance(inner, CompositeReceipt):
        return Value(inner.claim())
    elif isinstance(inner, (SuccinctReceipt, Groth16Receipt, FakeReceipt)):
        return inner.claim
    raise TypeError(f"Not an inner receipt: {type(inner).__name__}")


def inner_verifier_parameters(inner: InnerReceipt) -> Digest:
    if isinstance(inner, (CompositeReceipt, SuccinctReceipt, Groth16Receipt)):
        return inner.verifier_parameters
    elif isinstance(inner, FakeReceipt):
        # Fake receipts are never verified by a real verifier.
        return Digest.ZERO
    raise TypeError(f"Not an inner receipt: {type(inner).__name__}")


def inner_seal_size(inner: InnerReceipt) -> int:
    if isinstance(inner, INNER_RECEIPT_TYPES):
        return inner.seal_size()
    raise TypeError(f"Not an inner receipt: {type(inner).__name__}")


# =============================================================================
# RECEIPT
# =============================================================================

@dataclass(frozen=True)
class Receipt:
    """The top-level artifact a verifier consumes."""
    inner: InnerReceipt
    journal: Journal
    metadata: ReceiptMetadata

    def __post_init__(self):
        if not isinstance(self.inner, INNER_RECEIPT_TYPES):
            raise TypeError(f"Not an inner receipt: {type(self.inner).__name__}")

    def claim(self) -> MaybePruned[ReceiptClaim]:
        return inner_claim(self.inner)

    def claim_digest(self, engine: Optional[HashEngine] = None) -> Digest:
        return self.claim().digest(engine)

    def check_journal(self, engine: Optional[HashEngine] = None) -> None:
        """
        Check the journal against the journal digest committed in the claim.

        Raises JournalMismatchError if they differ, PrunedValueError if the
        claim or its output has been pruned.
        """
        engine = engine or default_engine()
        output = self.claim().as_value().output.as_value()
        if output is None:
            if self.journal.bytes:
                raise JournalMismatchError("claim has no output but the journal is not empty")
            return

        expected = output.journal.digest(engine)
        actual = self.journal.digest(engine)
        if expected != actual:
            raise JournalMismatchError(
                f"journal digest {actual} does not match claim journal digest {expected}"
            )

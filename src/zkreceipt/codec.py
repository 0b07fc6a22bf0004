"""
Receipt Wire Codec

Receipts travel in the bincode layout (version 1 defaults):

- integers: fixed width, little-endian
- byte strings, strings, sequences: u64 length prefix
- enums: u32 variant index (declaration order), then the payload
- options: u8 flag (0 = None, 1 = Some), then the payload
- structs and fixed arrays (Digest): fields in order, no prefix

Variant indices:

    InnerReceipt / InnerAssumptionReceipt  Composite=0 Succinct=1 Groth16=2 Fake=3
    MaybePruned                            Value=0 Pruned=1
    ExitCode                               Halted=0 Paused=1 SystemSplit=2 SessionLimit=3
"""

from __future__ import annotations
import logging
import struct
from typing import Callable, List, Optional, TypeVar

from .claim import (
    Assumption, Assumptions, ExitCode, ExitKind, Output, ReceiptClaim, SystemState,
)
from .config import MAX_NESTING
from .digest import DIGEST_BYTES, Digest
from .digestible import MaybePruned, Pruned, Value
from .errors import DecodeError
from .merkle import MerkleProof
from .receipt import (
    CompositeReceipt, FakeReceipt, Groth16Receipt, Journal, Receipt,
    ReceiptMetadata, SegmentReceipt, SuccinctReceipt,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')

INNER_VARIANTS = (CompositeReceipt, SuccinctReceipt, Groth16Receipt, FakeReceipt)

VALUE = 0
PRUNED = 1


# =============================================================================
# DECODING
# =============================================================================

class ReceiptDecoder:
    """Decode bincode bytes into receipt structures."""

    def __init__(self, data: bytes):
        self.data = bytes(data)
        self.offset = 0
        self.depth = 0

    @classmethod
    def decode_receipt(cls, data: bytes, strict: bool = False) -> Receipt:
        """
        Decode a Receipt from the start of ``data``.

        Bytes after the receipt are ignored, as bincode does by default.
        With ``strict=True`` they raise DecodeError instead.
        """
        decoder = cls(data)
        receipt = decoder.receipt()
        decoder.finish(strict)
        logger.debug(
            "decoded %s receipt: %d bytes, journal %d bytes",
            receipt.inner.VARIANT, len(data), len(receipt.journal.bytes),
        )
        return receipt

    def finish(self, strict: bool = False) -> None:
        remaining = len(self.data) - self.offset
        if not remaining:
            return
        if strict:
            raise DecodeError(f"Trailing bytes after receipt: {remaining}")
        logger.debug("ignoring %d trailing bytes after receipt", remaining)

    # -------------------------------------------------------------------------
    # Primitives
    # -------------------------------------------------------------------------

    def _take(self, n: int) -> bytes:
        end = self.offset + n
        if end > len(self.data):
            raise DecodeError(
                f"Truncated input: need {n} bytes at offset {self.offset}, "
                f"have {len(self.data) - self.offset}"
            )
        chunk = self.data[self.offset:end]
        self.offset = end
        return chunk

    def u8(self) -> int:
        return self._take(1)[0]

    def u32(self) -> int:
        return struct.unpack('<I', self._take(4))[0]

    def u64(self) -> int:
        return struct.unpack('<Q', self._take(8))[0]

    def length(self, item_size: int = 1) -> int:
        """Read a sequence length, rejecting lengths the input cannot hold."""
        n = self.u64()
        if n * item_size > len(self.data) - self.offset:
            raise DecodeError(f"Sequence length {n} exceeds remaining input")
        return n

    def raw_bytes(self) -> bytes:
        return self._take(self.length())

    def string(self) -> str:
        raw = self.raw_bytes()
        try:
            return raw.decode('utf-8')
        except UnicodeDecodeError as e:
            raise DecodeError(f"Invalid UTF-8 in string: {e}") from e

    def words(self) -> List[int]:
        n = self.length(4)
        return list(struct.unpack(f'<{n}I', self._take(4 * n)))

    def digest(self) -> Digest:
        return Digest(self._take(DIGEST_BYTES))

    def vec(self, item: Callable[[], T]) -> List[T]:
        # Every element occupies at least one byte.
        return [item() for _ in range(self.length())]

    def option(self, item: Callable[[], T]) -> Optional[T]:
        flag = self.u8()
        if flag == 0:
            return None
        elif flag == 1:
            return item()
        raise DecodeError(f"Invalid option flag: {flag}")

    def variant(self, name: str, count: int) -> int:
        index = self.u32()
        if index >= count:
            raise DecodeError(f"Invalid {name} variant index: {index}")
        return index

    def maybe_pruned(self, item: Callable[[], T]) -> MaybePruned[T]:
        if self.variant("MaybePruned", 2) == VALUE:
            return Value(item())
        return Pruned(self.digest())

    def uninhabited(self, name: str) -> Callable[[], T]:
        def fail():
            raise DecodeError(f"{name} is uninhabited and has no encoding")
        return fail

    # -------------------------------------------------------------------------
    # Claims
    # -------------------------------------------------------------------------

    def system_state(self) -> SystemState:
        return SystemState(pc=self.u32(), merkle_root=self.digest())

    def exit_code(self) -> ExitCode:
        kind = ExitKind(self.variant("ExitCode", 4))
        if kind in (ExitKind.HALTED, ExitKind.PAUSED):
            return ExitCode(kind, self.u32())
        return ExitCode(kind)

    def assumption(self) -> Assumption:
        return Assumption(claim=self.digest(), control_root=self.digest())

    def assumptions(self) -> Assumptions:
        return Assumptions(self.vec(lambda: self.maybe_pruned(self.assumption)))

    def output(self) -> Output:
        return Output(
            journal=self.maybe_pruned(self.raw_bytes),
            assumptions=self.maybe_pruned(self.assumptions),
        )

    def receipt_claim(self) -> ReceiptClaim:
        return ReceiptClaim(
            pre=self.maybe_pruned(self.system_state),
            post=self.maybe_pruned(self.system_state),
            exit_code=self.exit_code(),
            input=self.maybe_pruned(lambda: self.option(self.uninhabited("Input"))),
            output=self.maybe_pruned(lambda: self.option(self.output)),
        )

    # -------------------------------------------------------------------------
    # Receipts
    # -------------------------------------------------------------------------

    def merkle_proof(self) -> MerkleProof:
        index = self.u32()
        return MerkleProof(index=index, digests=self.vec(self.digest))

    def segment_receipt(self) -> SegmentReceipt:
        return SegmentReceipt(
            seal=self.words(),
            index=self.u32(),
            hashfn=self.string(),
            verifier_parameters=self.digest(),
            claim=self.receipt_claim(),
        )

    def composite_receipt(self) -> CompositeReceipt:
        return CompositeReceipt(
            segments=self.vec(self.segment_receipt),
            assumption_receipts=self.vec(self.inner_assumption_receipt),
            verifier_parameters=self.digest(),
        )

    def succinct_receipt(self, claim: Callable[[], T]) -> SuccinctReceipt:
        return SuccinctReceipt(
            seal=self.words(),
            control_id=self.digest(),
            claim=self.maybe_pruned(claim),
            hashfn=self.string(),
            verifier_parameters=self.digest(),
            control_inclusion_proof=self.merkle_proof(),
        )

    def groth16_receipt(self, claim: Callable[[], T]) -> Groth16Receipt:
        return Groth16Receipt(
            seal=self.raw_bytes(),
            claim=self.maybe_pruned(claim),
            verifier_parameters=self.digest(),
        )

    def fake_receipt(self, claim: Callable[[], T]) -> FakeReceipt:
        return FakeReceipt(claim=self.maybe_pruned(claim))

    def _inner(self, name: str, claim: Callable[[], T]):
        index = self.variant(name, len(INNER_VARIANTS))
        if index == 0:
            if self.depth >= MAX_NESTING:
                raise DecodeError(f"Composite receipts nested deeper than {MAX_NESTING}")
            self.depth += 1
            try:
                return self.composite_receipt()
            finally:
                self.depth -= 1
        elif index == 1:
            return self.succinct_receipt(claim)
        elif index == 2:
            return self.groth16_receipt(claim)
        else:
            return self.fake_receipt(claim)

    def inner_receipt(self):
        return self._inner("InnerReceipt", self.receipt_claim)

    def inner_assumption_receipt(self):
        return self._inner("InnerAssumptionReceipt", self.uninhabited("Unknown"))

    def receipt(self) -> Receipt:
        return Receipt(
            inner=self.inner_receipt(),
            journal=Journal(self.raw_bytes()),
            metadata=ReceiptMetadata(verifier_parameters=self.digest()),
        )


# =============================================================================
# ENCODING
# =============================================================================

class ReceiptEncoder:
    """Encode receipt structures to bincode bytes."""

    def __init__(self):
        self.parts: List[bytes] = []

    @classmethod
    def encode_receipt(cls, receipt: Receipt) -> bytes:
        encoder = cls()
        encoder.receipt(receipt)
        return encoder.to_bytes()

    def to_bytes(self) -> bytes:
        return b''.join(self.parts)

    # -------------------------------------------------------------------------
    # Primitives
    # -------------------------------------------------------------------------

    def u8(self, value: int) -> None:
        self.parts.append(struct.pack('<B', value))

    def u32(self, value: int) -> None:
        self.parts.append(struct.pack('<I', value))

    def u64(self, value: int) -> None:
        self.parts.append(struct.pack('<Q', value))

    def raw_bytes(self, value: bytes) -> None:
        self.u64(len(value))
        self.parts.append(bytes(value))

    def string(self, value: str) -> None:
        self.raw_bytes(value.encode('utf-8'))

    def words(self, values) -> None:
        values = list(values)
        self.u64(len(values))
        self.parts.append(struct.pack(f'<{len(values)}I', *values))

    def digest(self, value: Digest) -> None:
        self.parts.append(value.as_bytes())

    def vec(self, items, item: Callable) -> None:
        items = list(items)
        self.u64(len(items))
        for x in items:
            item(x)

    def option(self, value, item: Callable) -> None:
        if value is None:
            self.u8(0)
        else:
            self.u8(1)
            item(value)

    def maybe_pruned(self, value: MaybePruned, item: Callable) -> None:
        if isinstance(value, Pruned):
            self.u32(PRUNED)
            self.digest(value.pruned)
        elif isinstance(value, Value):
            self.u32(VALUE)
            item(value.value)
        else:
            raise TypeError(f"Expected MaybePruned, got {type(value).__name__}")

    def uninhabited(self, value) -> None:
        raise TypeError(f"{type(value).__name__} is uninhabited and has no encoding")

    # -------------------------------------------------------------------------
    # Claims
    # -------------------------------------------------------------------------

    def system_state(self, value: SystemState) -> None:
        self.u32(value.pc)
        self.digest(value.merkle_root)

    def exit_code(self, value: ExitCode) -> None:
        self.u32(int(value.kind))
        if value.kind in (ExitKind.HALTED, ExitKind.PAUSED):
            self.u32(value.user_exit)

    def assumption(self, value: Assumption) -> None:
        self.digest(value.claim)
        self.digest(value.control_root)

    def assumptions(self, value: Assumptions) -> None:
        self.vec(value.items, lambda a: self.maybe_pruned(a, self.assumption))

    def output(self, value: Output) -> None:
        self.maybe_pruned(value.journal, self.raw_bytes)
        self.maybe_pruned(value.assumptions, self.assumptions)

    def receipt_claim(self, value: ReceiptClaim) -> None:
        self.maybe_pruned(value.pre, self.system_state)
        self.maybe_pruned(value.post, self.system_state)
        self.exit_code(value.exit_code)
        self.maybe_pruned(value.input, lambda v: self.option(v, self.uninhabited))
        self.maybe_pruned(value.output, lambda v: self.option(v, self.output))

    # -------------------------------------------------------------------------
    # Receipts
    # -------------------------------------------------------------------------

    def merkle_proof(self, value: MerkleProof) -> None:
        self.u32(value.index)
        self.vec(value.digests, self.digest)

    def segment_receipt(self, value: SegmentReceipt) -> None:
        self.words(value.seal)
        self.u32(value.index)
        self.string(value.hashfn)
        self.digest(value.verifier_parameters)
        self.receipt_claim(value.claim)

    def _inner(self, value, claim: Callable) -> None:
        if isinstance(value, CompositeReceipt):
            self.u32(0)
            self.vec(value.segments, self.segment_receipt)
            self.vec(value.assumption_receipts, self.inner_assumption_receipt)
            self.digest(value.verifier_parameters)
        elif isinstance(value, SuccinctReceipt):
            self.u32(1)
            self.words(value.seal)
            self.digest(value.control_id)
            self.maybe_pruned(value.claim, claim)
            self.string(value.hashfn)
            self.digest(value.verifier_parameters)
            self.merkle_proof(value.control_inclusion_proof)
        elif isinstance(value, Groth16Receipt):
            self.u32(2)
            self.raw_bytes(value.seal)
            self.maybe_pruned(value.claim, claim)
            self.digest(value.verifier_parameters)
        elif isinstance(value, FakeReceipt):
            self.u32(3)
            self.maybe_pruned(value.claim, claim)
        else:
            raise TypeError(f"Not an inner receipt: {type(value).__name__}")

    def inner_receipt(self, value) -> None:
        self._inner(value, self.receipt_claim)

    def inner_assumption_receipt(self, value) -> None:
        self._inner(value, self.uninhabited)

    def receipt(self, value: Receipt) -> None:
        self.inner_receipt(value.inner)
        self.raw_bytes(value.journal.bytes)
        self.digest(value.metadata.verifier_parameters)


def decode_receipt(data: bytes, strict: bool = False) -> Receipt:
    return ReceiptDecoder.decode_receipt(data, strict)


def encode_receipt(receipt: Receipt) -> bytes:
    return ReceiptEncoder.encode_receipt(receipt)

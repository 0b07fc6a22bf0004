"""
Digest: the 32-byte identifier every hashing operation produces and consumes

A Digest is 8 u32 words. The byte view is the little-endian reinterpretation
of the words, which is the in-memory layout on every supported host, so
words and bytes are two views of the same 32 bytes.
"""

from __future__ import annotations
import struct
from dataclasses import dataclass
from typing import ClassVar, Iterable, Tuple

WORD_SIZE = 4
DIGEST_WORDS = 8
DIGEST_BYTES = DIGEST_WORDS * WORD_SIZE
BLOCK_WORDS = DIGEST_WORDS * 2
BLOCK_BYTES = BLOCK_WORDS * WORD_SIZE

_WORDS_FMT = f'<{DIGEST_WORDS}I'


@dataclass(frozen=True, order=True)
class Digest:
    """
    Immutable 32-byte digest.

    Equality, ordering and hashing are byte-wise.
    """
    data: bytes

    ZERO: ClassVar['Digest']

    def __post_init__(self):
        if not isinstance(self.data, (bytes, bytearray)):
            raise TypeError(f"Digest data must be bytes, got {type(self.data).__name__}")
        if len(self.data) != DIGEST_BYTES:
            raise ValueError(f"Digest must be {DIGEST_BYTES} bytes, got {len(self.data)}")
        if isinstance(self.data, bytearray):
            object.__setattr__(self, 'data', bytes(self.data))

    @classmethod
    def from_words(cls, words: Iterable[int]) -> 'Digest':
        """Build a digest from 8 native-order u32 words."""
        words = tuple(words)
        if len(words) != DIGEST_WORDS:
            raise ValueError(f"Digest must be {DIGEST_WORDS} words, got {len(words)}")
        return cls(struct.pack(_WORDS_FMT, *words))

    @classmethod
    def from_bytes(cls, data: bytes) -> 'Digest':
        """
        Build a digest from its big-endian byte form.

        Each word is read big-endian and then converted from big-endian to
        native order, so the resulting byte view equals ``data``. This is the
        constructor for published constants written as byte strings.
        """
        return cls(bytes(data))

    @classmethod
    def from_hex(cls, text: str) -> 'Digest':
        return cls.from_bytes(bytes.fromhex(text))

    def as_words(self) -> Tuple[int, ...]:
        return struct.unpack(_WORDS_FMT, self.data)

    def as_bytes(self) -> bytes:
        return self.data

    def hex(self) -> str:
        return self.data.hex()

    def __bytes__(self) -> bytes:
        return self.data

    def __str__(self) -> str:
        return self.data.hex()

    def __repr__(self) -> str:
        return f"Digest({self.data.hex()})"


Digest.ZERO = Digest(bytes(DIGEST_BYTES))


# Initial SHA-256 state (FIPS 180-4 section 5.3.3), stored big-endian.
SHA256_INIT = Digest.from_hex(
    "6a09e667" "bb67ae85" "3c6ef372" "a54ff53a"
    "510e527f" "9b05688c" "1f83d9ab" "5be0cd19"
)


@dataclass(frozen=True)
class Block:
    """One 64-byte compression block (16 words)."""
    data: bytes

    def __post_init__(self):
        if len(self.data) != BLOCK_BYTES:
            raise ValueError(f"Block must be {BLOCK_BYTES} bytes, got {len(self.data)}")

    @classmethod
    def from_halves(cls, half1: Digest, half2: Digest) -> 'Block':
        return cls(half1.data + half2.data)

    def halves(self) -> Tuple[Digest, Digest]:
        return Digest(self.data[:DIGEST_BYTES]), Digest(self.data[DIGEST_BYTES:])


def words_to_bytes(words: Iterable[int]) -> bytes:
    """Little-endian byte view of a sequence of u32 words."""
    words = list(words)
    return struct.pack(f'<{len(words)}I', *words)


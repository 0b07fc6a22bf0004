"""
Hash Engine: the SHA-256 capability every digest is computed through

The tagged hashing and claim logic never call a hash function directly.
They take a HashEngine, so alternate implementations (accelerated,
instrumented, or a different family selected by a receipt's ``hashfn``
name) can be substituted without touching the commitment code.

Sha256Engine is the reference implementation:
- hash_bytes delegates to hashlib (FIPS 180-4 compliant)
- compress is the raw SHA-256 compression function in pure Python,
  since hashlib does not expose it
"""

from __future__ import annotations
import hashlib
import struct
from abc import ABC, abstractmethod
from typing import Dict, Iterable, Sequence

from .config import DEFAULT_HASHFN, SHA256_HASHFN
from .digest import (
    BLOCK_BYTES, SHA256_INIT, Block, Digest, words_to_bytes,
)
from .errors import UnsupportedHashFunctionError


# =============================================================================
# CAPABILITY CONTRACT
# =============================================================================

class HashEngine(ABC):
    """
    Abstract SHA-256-family hash capability.

    Implementations must be deterministic and free of side effects; every
    call is independent of every other call.
    """

    @abstractmethod
    def hash_bytes(self, data: bytes) -> Digest:
        """Standard hash of ``data``, with padding and length trailer."""
        pass

    def hash_words(self, words: Sequence[int]) -> Digest:
        """hash_bytes over the little-endian byte view of ``words``."""
        return self.hash_bytes(words_to_bytes(words))

    def hash_pair(self, a: Digest, b: Digest) -> Digest:
        """
        Compress the block ``a ‖ b`` from the initial state.

        Not a standards-compliant hash of any preimage.
        """
        return self.compress(SHA256_INIT, a, b)

    @abstractmethod
    def compress(self, state: Digest, block_half1: Digest, block_half2: Digest) -> Digest:
        """
        One application of the compression function.

        DANGER: this is a building block of SHA-256, not the full algorithm.
        """
        pass

    @abstractmethod
    def compress_slice(self, state: Digest, blocks: Iterable[Block]) -> Digest:
        """Merkle-Damgard iteration of compress over full blocks."""
        pass

    @abstractmethod
    def hash_raw_data_slice(self, data: bytes) -> Digest:
        """
        Zero-pad ``data`` to the block size and compress from the initial
        state. No length trailer is added, so this is not a standard hash.
        """
        pass


# =============================================================================
# REFERENCE SHA-256
# =============================================================================

_K = (
    0x428a2f98, 0x71374491, 0xb5c0fbcf, 0xe9b5dba5, 0x3956c25b, 0x59f111f1, 0x923f82a4, 0xab1c5ed5,
    0xd807aa98, 0x12835b01, 0x243185be, 0x550c7dc3, 0x72be5d74, 0x80deb1fe, 0x9bdc06a7, 0xc19bf174,
    0xe49b69c1, 0xefbe4786, 0x0fc19dc6, 0x240ca1cc, 0x2de92c6f, 0x4a7484aa, 0x5cb0a9dc, 0x76f988da,
    0x983e5152, 0xa831c66d, 0xb00327c8, 0xbf597fc7, 0xc6e00bf3, 0xd5a79147, 0x06ca6351, 0x14292967,
    0x27b70a85, 0x2e1b2138, 0x4d2c6dfc, 0x53380d13, 0x650a7354, 0x766a0abb, 0x81c2c92e, 0x92722c85,
    0xa2bfe8a1, 0xa81a664b, 0xc24b8b70, 0xc76c51a3, 0xd192e819, 0xd6990624, 0xf40e3585, 0x106aa070,
    0x19a4c116, 0x1e376c08, 0x2748774c, 0x34b0bcb5, 0x391c0cb3, 0x4ed8aa4a, 0x5b9cca4f, 0x682e6ff3,
    0x748f82ee, 0x78a5636f, 0x84c87814, 0x8cc70208, 0x90befffa, 0xa4506ceb, 0xbef9a3f7, 0xc67178f2,
)

_MASK = 0xFFFFFFFF


def _rotr(x: int, n: int) -> int:
    return ((x >> n) | (x << (32 - n))) & _MASK


def _compress_block(state: Sequence[int], block: bytes) -> tuple:
    """FIPS 180-4 section 6.2.2 on one 64-byte block."""
    w = list(struct.unpack('>16I', block))
    for t in range(16, 64):
        s0 = _rotr(w[t-15], 7) ^ _rotr(w[t-15], 18) ^ (w[t-15] >> 3)
        s1 = _rotr(w[t-2], 17) ^ _rotr(w[t-2], 19) ^ (w[t-2] >> 10)
        w.append((w[t-16] + s0 + w[t-7] + s1) & _MASK)

    a, b, c, d, e, f, g, h = state
    for t in range(64):
        S1 = _rotr(e, 6) ^ _rotr(e, 11) ^ _rotr(e, 25)
        ch = (e & f) ^ (~e & g)
        t1 = (h + S1 + ch + _K[t] + w[t]) & _MASK
        S0 = _rotr(a, 2) ^ _rotr(a, 13) ^ _rotr(a, 22)
        maj = (a & b) ^ (a & c) ^ (b & c)
        t2 = (S0 + maj) & _MASK
        h, g, f, e, d, c, b, a = g, f, e, (d + t1) & _MASK, c, b, a, (t1 + t2) & _MASK

    return tuple((x + y) & _MASK for x, y in zip(state, (a, b, c, d, e, f, g, h)))


def _state_words(state: Digest) -> tuple:
    # State words are stored big-endian, matching SHA256_INIT.
    return struct.unpack('>8I', state.as_bytes())


def _state_digest(words: Sequence[int]) -> Digest:
    return Digest(struct.pack('>8I', *words))


class Sha256Engine(HashEngine):
    """Reference SHA-256 engine."""

    name = SHA256_HASHFN

    def hash_bytes(self, data: bytes) -> Digest:
        return Digest(hashlib.sha256(bytes(data)).digest())

    def compress(self, state: Digest, block_half1: Digest, block_half2: Digest) -> Digest:
        words = _compress_block(
            _state_words(state), Block.from_halves(block_half1, block_half2).data
        )
        return _state_digest(words)

    def compress_slice(self, state: Digest, blocks: Iterable[Block]) -> Digest:
        words = _state_words(state)
        for block in blocks:
            words = _compress_block(words, block.data)
        return _state_digest(words)

    def hash_raw_data_slice(self, data: bytes) -> Digest:
        data = bytes(data)
        remainder = len(data) % BLOCK_BYTES
        if remainder:
            data += bytes(BLOCK_BYTES - remainder)
        blocks = [
            Block(data[i:i + BLOCK_BYTES])
            for i in range(0, len(data), BLOCK_BYTES)
        ]
        return self.compress_slice(SHA256_INIT, blocks)

    def __repr__(self) -> str:
        return f"Sha256Engine(name={self.name!r})"


# =============================================================================
# HASH SUITE REGISTRY
# =============================================================================

_HASH_SUITES: Dict[str, HashEngine] = {}


def register_hash_suite(name: str, engine: HashEngine) -> None:
    """Make ``engine`` available under the ``hashfn`` name ``name``."""
    if not isinstance(engine, HashEngine):
        raise TypeError(f"Expected a HashEngine, got {type(engine).__name__}")
    _HASH_SUITES[name] = engine


def hash_suite_from_name(name: str) -> HashEngine:
    """Look up the engine registered for a receipt's ``hashfn`` string."""
    try:
        return _HASH_SUITES[name]
    except KeyError:
        raise UnsupportedHashFunctionError(name) from None


def default_engine() -> HashEngine:
    return _HASH_SUITES[DEFAULT_HASHFN]


register_hash_suite(SHA256_HASHFN, Sha256Engine())

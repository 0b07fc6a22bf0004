"""
Merkle Inclusion Proofs for Control IDs

A succinct receipt names the recursion program that produced it by its
control ID, and proves that ID is a leaf of the trusted control tree.
The proof is the sibling path from the leaf up to (not including) the root.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple

from .digest import Digest
from .errors import MerkleProofError
from .sha import HashEngine, default_engine


@dataclass(frozen=True)
class MerkleProof:
    """Authentication path for a leaf in a binary Merkle tree."""
    index: int
    digests: Tuple[Digest, ...] = ()

    def __post_init__(self):
        if not 0 <= self.index <= 0xFFFFFFFF:
            raise ValueError(f"index must be a u32, got {self.index}")
        object.__setattr__(self, 'digests', tuple(self.digests))

    def root(self, leaf: Digest, engine: Optional[HashEngine] = None) -> Digest:
        """
        Recompute the root from ``leaf`` and the sibling path.

        The low bit of the index at each level says whether the current
        node is a left (0) or right (1) child.
        """
        engine = engine or default_engine()
        current = leaf
        index = self.index
        for sibling in self.digests:
            if index & 1 == 0:
                current = engine.hash_pair(current, sibling)
            else:
                current = engine.hash_pair(sibling, current)
            index >>= 1
        return current

    def verify(self, leaf: Digest, root: Digest, engine: Optional[HashEngine] = None) -> None:
        """Raise MerkleProofError unless ``leaf`` is included under ``root``."""
        computed = self.root(leaf, engine)
        if computed != root:
            raise MerkleProofError(
                f"merkle proof for index {self.index} computes root {computed}, expected {root}"
            )

"""
Claim Data Model

ReceiptClaim is the statement every receipt proves:

    execution went from ``pre`` to ``post``, terminating with ``exit_code``,
    given ``input``, producing ``output``

Each record digests through tagged_struct with a pinned tag and field
order. Changing either changes every digest.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import IntEnum
from typing import ClassVar, Iterator, Optional, Tuple

from .config import (
    TAG_ASSUMPTION, TAG_ASSUMPTIONS, TAG_OUTPUT,
    TAG_RECEIPT_CLAIM, TAG_SYSTEM_STATE,
)
from .digest import Digest
from .digestible import Digestible, MaybePruned, Pruned, Value
from .errors import InvalidExitCodeError
from .sha import HashEngine, default_engine
from .tagged import tagged_list, tagged_struct

U32_MAX = 0xFFFFFFFF


def _check_u32(name: str, value: int) -> None:
    if not isinstance(value, int) or not 0 <= value <= U32_MAX:
        raise ValueError(f"{name} must be a u32, got {value!r}")


# =============================================================================
# EXIT CODE
# =============================================================================

class ExitKind(IntEnum):
    """Exit code variants, numbered in declaration order."""
    HALTED = 0
    PAUSED = 1
    SYSTEM_SPLIT = 2
    SESSION_LIMIT = 3


@dataclass(frozen=True)
class ExitCode:
    """
    How an execution terminated.

    Halted and Paused carry the guest's user exit code. SystemSplit and
    SessionLimit are system-initiated and carry none.
    """
    kind: ExitKind
    user_exit: int = 0

    SYSTEM_SPLIT: ClassVar['ExitCode']
    SESSION_LIMIT: ClassVar['ExitCode']

    def __post_init__(self):
        object.__setattr__(self, 'kind', ExitKind(self.kind))
        _check_u32("user_exit", self.user_exit)
        if self.kind in (ExitKind.SYSTEM_SPLIT, ExitKind.SESSION_LIMIT) and self.user_exit:
            raise ValueError(f"{self.kind.name} does not carry a user exit code")

    @classmethod
    def halted(cls, user_exit: int) -> 'ExitCode':
        return cls(ExitKind.HALTED, user_exit)

    @classmethod
    def paused(cls, user_exit: int) -> 'ExitCode':
        return cls(ExitKind.PAUSED, user_exit)

    def into_pair(self) -> Tuple[int, int]:
        """(system, user) form, e.g. Halted(255) -> (0, 255)."""
        if self.kind == ExitKind.HALTED:
            return (0, self.user_exit)
        elif self.kind == ExitKind.PAUSED:
            return (1, self.user_exit)
        elif self.kind == ExitKind.SYSTEM_SPLIT:
            return (2, 0)
        else:
            return (2, 2)

    @classmethod
    def from_pair(cls, sys_exit: int, user_exit: int) -> 'ExitCode':
        """
        Inverse of into_pair, e.g. (0, 255) -> Halted(255).

        Lossy on purpose: (2, u) for any u other than 2 is SystemSplit and
        re-encodes as (2, 0), as the zkVM itself reads it.
        """
        if sys_exit == 0:
            return cls.halted(user_exit)
        elif sys_exit == 1:
            return cls.paused(user_exit)
        elif sys_exit == 2:
            if user_exit == 2:
                return cls.SESSION_LIMIT
            return cls.SYSTEM_SPLIT
        raise InvalidExitCodeError(sys_exit, user_exit)

    def expects_output(self) -> bool:
        """
        Whether the verifier should expect an output field. Only guest
        exits (Halted, Paused) can carry output.
        """
        return self.kind in (ExitKind.HALTED, ExitKind.PAUSED)

    def is_ok(self) -> bool:
        """True only for Halted(0)."""
        return self.kind == ExitKind.HALTED and self.user_exit == 0

    def __repr__(self) -> str:
        if self.kind in (ExitKind.HALTED, ExitKind.PAUSED):
            return f"{self.kind.name.title()}({self.user_exit})"
        return ''.join(part.title() for part in self.kind.name.split('_'))


ExitCode.SYSTEM_SPLIT = ExitCode(ExitKind.SYSTEM_SPLIT)
ExitCode.SESSION_LIMIT = ExitCode(ExitKind.SESSION_LIMIT)


# =============================================================================
# UNINHABITED TYPES
# =============================================================================

class Unknown(Digestible):
    """
    Uninhabited claim type.

    Used where the claim shape is not yet specified. No instance can
    exist, so MaybePruned[Unknown] is always Pruned.
    """

    def __new__(cls, *args, **kwargs):
        raise TypeError(f"{cls.__name__} is uninhabited and cannot be constructed")

    def digest(self, engine: Optional[HashEngine] = None) -> Digest:
        raise AssertionError("unreachable")


class Input(Digestible):
    """
    Guest input. Currently uninhabited so it can be given a shape later
    without changing the digest of claims that carry no input.
    """

    def __new__(cls, *args, **kwargs):
        raise TypeError(f"{cls.__name__} is uninhabited and cannot be constructed")

    def digest(self, engine: Optional[HashEngine] = None) -> Digest:
        raise AssertionError("unreachable")


# =============================================================================
# CLAIM RECORDS
# =============================================================================

@dataclass(frozen=True)
class SystemState(Digestible):
    """Committed machine state: program counter and memory image root."""
    pc: int
    merkle_root: Digest

    def __post_init__(self):
        _check_u32("pc", self.pc)

    def digest(self, engine: Optional[HashEngine] = None) -> Digest:
        return tagged_struct(TAG_SYSTEM_STATE, [self.merkle_root], [self.pc], engine)


@dataclass(frozen=True)
class Assumption(Digestible):
    """A claim this execution depends on and the control root to verify it under."""
    claim: Digest
    control_root: Digest

    def digest(self, engine: Optional[HashEngine] = None) -> Digest:
        return tagged_struct(TAG_ASSUMPTION, [self.claim, self.control_root], [], engine)


@dataclass(frozen=True)
class Assumptions(Digestible):
    """Ordered list of (possibly pruned) assumptions."""
    items: Tuple[MaybePruned[Assumption], ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'items', tuple(self.items))

    def __iter__(self) -> Iterator[MaybePruned[Assumption]]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def digest(self, engine: Optional[HashEngine] = None) -> Digest:
        engine = engine or default_engine()
        return tagged_list(TAG_ASSUMPTIONS, [a.digest(engine) for a in self.items], engine)


@dataclass(frozen=True)
class Output(Digestible):
    """
    Externally visible result of execution.

    ``assumptions`` lists the claims the guest verified via composition.
    While it is non-empty the journal is only conditionally trustworthy:
    each assumption must be proven by its own receipt.
    """
    journal: MaybePruned[bytes]
    assumptions: MaybePruned[Assumptions] = field(default_factory=lambda: Value(Assumptions()))

    def digest(self, engine: Optional[HashEngine] = None) -> Digest:
        engine = engine or default_engine()
        return tagged_struct(
            TAG_OUTPUT,
            [self.journal.digest(engine), self.assumptions.digest(engine)],
            [],
            engine,
        )

    def __repr__(self) -> str:
        if isinstance(self.journal, Value):
            journal = f"{len(self.journal.value)} bytes"
        else:
            journal = repr(self.journal)
        return f"Output(journal={journal}, assumptions={self.assumptions!r})"


@dataclass(frozen=True)
class ReceiptClaim(Digestible):
    """Public claim about a zkVM guest execution."""
    pre: MaybePruned[SystemState]
    post: MaybePruned[SystemState]
    exit_code: ExitCode
    input: MaybePruned[Optional[Input]]
    output: MaybePruned[Optional[Output]]

    def digest(self, engine: Optional[HashEngine] = None) -> Digest:
        engine = engine or default_engine()
        sys_exit, user_exit = self.exit_code.into_pair()
        return tagged_struct(
            TAG_RECEIPT_CLAIM,
            [
                self.input.digest(engine),
                self.pre.digest(engine),
                self.post.digest(engine),
                self.output.digest(engine),
            ],
            [sys_exit, user_exit],
            engine,
        )

    @classmethod
    def ok(cls, image_id: Digest, journal: bytes) -> 'ReceiptClaim':
        """Claim for a guest with ``image_id`` that halted with code 0."""
        return cls._terminated(image_id, ExitCode.halted(0), journal)

    @classmethod
    def paused(cls, image_id: Digest, journal: bytes) -> 'ReceiptClaim':
        """Claim for a guest with ``image_id`` that paused with code 0."""
        return cls._terminated(image_id, ExitCode.paused(0), journal)

    @classmethod
    def _terminated(cls, image_id: Digest, exit_code: ExitCode, journal: bytes) -> 'ReceiptClaim':
        return cls(
            pre=Pruned(image_id),
            post=Value(SystemState(pc=0, merkle_root=Digest.ZERO)),
            exit_code=exit_code,
            input=Value(None),
            output=Value(Output(journal=Value(bytes(journal)))),
        )

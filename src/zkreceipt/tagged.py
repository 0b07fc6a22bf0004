"""
Tagged Structural Hashing

Turns an ordered set of child digests and raw words into one digest:

    tagged_struct(tag, down, data) =
        H( H(tag) ‖ down[0] ‖ … ‖ down[n-1] ‖ le32(data[0]) ‖ … ‖ le16(n) )

The tag digest domain-separates struct types. The trailing child count
separates structs of different arity whose byte content would otherwise
collide.

Lists are cons-lists folded from the tail:

    tagged_list(tag, [a, b, c]) = cons(a, cons(b, cons(c, ZERO)))

so the empty list is Digest.ZERO and prepending is one extra hash.
"""

from __future__ import annotations
import struct
from typing import Iterable, Optional, Sequence

from .config import MAX_STRUCT_CHILDREN
from .digest import Digest
from .sha import HashEngine, default_engine


def tagged_struct(
    tag: str,
    down: Sequence[Digest],
    data: Sequence[int] = (),
    engine: Optional[HashEngine] = None,
) -> Digest:
    """Hash a struct with the given tag, child digests and u32 data words."""
    assert len(down) <= MAX_STRUCT_CHILDREN, "struct defined with more than 2^16 fields"
    engine = engine or default_engine()

    tag_digest = engine.hash_bytes(tag.encode('utf-8'))
    parts = [tag_digest.as_bytes()]
    parts.extend(d.as_bytes() for d in down)
    parts.append(struct.pack(f'<{len(data)}I', *data))
    parts.append(struct.pack('<H', len(down)))
    return engine.hash_bytes(b''.join(parts))


def tagged_list_cons(
    tag: str,
    head: Digest,
    tail: Digest,
    engine: Optional[HashEngine] = None,
) -> Digest:
    """Prepend ``head`` to the list whose digest is ``tail``."""
    return tagged_struct(tag, (head, tail), (), engine)


def tagged_iter(
    tag: str,
    items: Iterable[Digest],
    engine: Optional[HashEngine] = None,
) -> Digest:
    """Right fold of tagged_list_cons over ``items``, seeded with ZERO."""
    engine = engine or default_engine()
    result = Digest.ZERO
    for item in reversed(list(items)):
        result = tagged_list_cons(tag, item, result, engine)
    return result


def tagged_list(
    tag: str,
    items: Sequence[Digest],
    engine: Optional[HashEngine] = None,
) -> Digest:
    return tagged_iter(tag, items, engine)

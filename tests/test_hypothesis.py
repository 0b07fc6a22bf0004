"""
Property-Based Testing with Hypothesis

Properties checked over generated inputs:

- ExitCode pair codec round-trips and rejects invalid system codes
- Pruning any subtree of a claim leaves its digest unchanged
- Tagged structs and lists are order sensitive
- Decoding an encoded receipt preserves its claim digest
"""

import pytest
from hypothesis import given, strategies as st, settings, assume
from hypothesis.strategies import composite

from zkreceipt import (
    Assumption, Assumptions, Digest, ExitCode, FakeReceipt, Groth16Receipt,
    InvalidExitCodeError, Journal, Output, Pruned, Receipt, ReceiptClaim,
    ReceiptMetadata, SystemState, Value, decode_receipt, encode_receipt,
    encode_seal, tagged_list, tagged_struct,
)


# =============================================================================
# STRATEGIES
# =============================================================================

u32s = st.integers(min_value=0, max_value=0xFFFFFFFF)
digests = st.binary(min_size=32, max_size=32).map(Digest)


@composite
def exit_codes(draw):
    choice = draw(st.integers(min_value=0, max_value=3))
    if choice == 0:
        return ExitCode.halted(draw(u32s))
    elif choice == 1:
        return ExitCode.paused(draw(u32s))
    elif choice == 2:
        return ExitCode.SYSTEM_SPLIT
    return ExitCode.SESSION_LIMIT


@composite
def system_states(draw):
    return SystemState(pc=draw(u32s), merkle_root=draw(digests))


@composite
def outputs(draw):
    items = draw(st.lists(st.builds(Assumption, digests, digests), max_size=3))
    return Output(
        journal=Value(draw(st.binary(max_size=64))),
        assumptions=Value(Assumptions([Value(a) for a in items])),
    )


@composite
def receipt_claims(draw):
    return ReceiptClaim(
        pre=Value(draw(system_states())),
        post=Value(draw(system_states())),
        exit_code=draw(exit_codes()),
        input=Value(None),
        output=Value(draw(st.one_of(st.none(), outputs()))),
    )


def prune_some(claim: ReceiptClaim, mask: int) -> ReceiptClaim:
    """Prune the subtrees selected by the bits of ``mask``."""
    output = claim.output
    if output.as_value() is not None and mask & 0b10000:
        inner = output.as_value()
        output = Value(Output(
            journal=inner.journal.pruned_copy(),
            assumptions=inner.assumptions.pruned_copy() if mask & 0b100000 else inner.assumptions,
        ))
    return ReceiptClaim(
        pre=claim.pre.pruned_copy() if mask & 0b1 else claim.pre,
        post=claim.post.pruned_copy() if mask & 0b10 else claim.post,
        exit_code=claim.exit_code,
        input=claim.input.pruned_copy() if mask & 0b100 else claim.input,
        output=output.pruned_copy() if mask & 0b1000 else output,
    )


# =============================================================================
# EXIT CODE
# =============================================================================

class TestExitCodeProperties:

    @given(code=exit_codes())
    def test_round_trip(self, code):
        """from_pair inverts into_pair for every valid exit code."""
        assert ExitCode.from_pair(*code.into_pair()) == code

    @given(sys_exit=st.integers(min_value=3, max_value=0xFFFFFFFF), user_exit=u32s)
    def test_invalid_system_code(self, sys_exit, user_exit):
        with pytest.raises(InvalidExitCodeError) as excinfo:
            ExitCode.from_pair(sys_exit, user_exit)
        assert excinfo.value.pair == (sys_exit, user_exit)


# =============================================================================
# PRUNING TRANSPARENCY
# =============================================================================

class TestPruningProperties:

    @given(state=system_states())
    def test_value_digest(self, state):
        assert Value(state).digest() == state.digest()

    @given(digest=digests)
    def test_pruned_digest(self, digest):
        assert Pruned(digest).digest() == digest

    @given(claim=receipt_claims(), mask=st.integers(min_value=0, max_value=63))
    @settings(max_examples=100)
    def test_partial_pruning(self, claim, mask):
        """Any combination of pruned subtrees commits to the same digest."""
        assert prune_some(claim, mask).digest() == claim.digest()


# =============================================================================
# TAGGED HASHING
# =============================================================================

class TestTaggedProperties:

    @given(a=digests, b=digests)
    def test_struct_order_sensitive(self, a, b):
        assume(a != b)
        assert tagged_struct("t", [a, b], []) != tagged_struct("t", [b, a], [])

    @given(items=st.lists(digests, min_size=1, max_size=5))
    def test_list_truncation_changes_digest(self, items):
        assert tagged_list("t", items) != tagged_list("t", items[:-1])

    @given(items=st.lists(digests, max_size=5), data=st.lists(u32s, max_size=5))
    def test_struct_deterministic(self, items, data):
        assert tagged_struct("t", items, data) == tagged_struct("t", items, data)


# =============================================================================
# CODEC
# =============================================================================

class TestCodecProperties:

    @given(claim=receipt_claims(), seal=st.binary(max_size=64), params=digests,
           journal=st.binary(max_size=64))
    @settings(max_examples=100)
    def test_groth16_round_trip(self, claim, seal, params, journal):
        receipt = Receipt(
            inner=Groth16Receipt(seal=seal, claim=Value(claim), verifier_parameters=params),
            journal=Journal(journal),
            metadata=ReceiptMetadata(verifier_parameters=params),
        )
        decoded = decode_receipt(encode_receipt(receipt))
        assert decoded.claim_digest() == claim.digest()
        assert encode_seal(decoded) == params.as_bytes()[:4] + seal
        assert decoded.journal.bytes == journal

    @given(claim=receipt_claims(), mask=st.integers(min_value=0, max_value=63))
    @settings(max_examples=50)
    def test_pruned_round_trip(self, claim, mask):
        pruned = prune_some(claim, mask)
        receipt = Receipt(
            inner=FakeReceipt(claim=Value(pruned)),
            journal=Journal(b""),
            metadata=ReceiptMetadata(verifier_parameters=Digest.ZERO),
        )
        assert decode_receipt(encode_receipt(receipt)) == receipt

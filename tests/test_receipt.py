"""
Tests for the Receipt Envelope

- Merkle control root recomputation
- Claim access across proof strategies
- Wire codec (bincode layout)
- Seal extraction and end-to-end conversion
- Command line
"""

import json
import struct

import pytest

from zkreceipt import (
    Assumption, Assumptions, CompositeReceipt, DecodeError, Digest, ExitCode,
    FakeReceipt, Groth16Receipt, Journal, JournalMismatchError, MerkleProof,
    MerkleProofError, Output, ProofData, Pruned, PrunedValueError, Receipt,
    ReceiptClaim, ReceiptError, ReceiptMetadata, SegmentReceipt, Sha256Engine,
    SuccinctReceipt, SystemState, UnsupportedHashFunctionError,
    UnsupportedReceiptError, Value, convert, decode_receipt, encode_receipt,
    encode_seal, inner_claim, variant_name,
)
from zkreceipt.config import MAX_NESTING
from zkreceipt.receipt import inner_verifier_parameters
from zkreceipt.cli import main


def d(byte: int) -> Digest:
    return Digest(bytes([byte]) * 32)


PARAMS = Digest(bytes([0xAA, 0xBB, 0xCC, 0xDD]) + bytes(28))
IMAGE_ID = d(0x42)


def ok_claim(journal: bytes = b"\x10\x20") -> ReceiptClaim:
    return ReceiptClaim.ok(IMAGE_ID, journal)


def segment(index: int, claim: ReceiptClaim) -> SegmentReceipt:
    return SegmentReceipt(
        seal=[index, 0xdeadbeef],
        index=index,
        hashfn="sha-256",
        verifier_parameters=PARAMS,
        claim=claim,
    )


def succinct(claim, hashfn: str = "sha-256") -> SuccinctReceipt:
    return SuccinctReceipt(
        seal=[1, 2, 3],
        control_id=d(0x0c),
        claim=claim,
        hashfn=hashfn,
        verifier_parameters=PARAMS,
        control_inclusion_proof=MerkleProof(index=1, digests=[d(0x0d)]),
    )


def wrap(inner, journal: bytes = b"\x10\x20") -> Receipt:
    return Receipt(
        inner=inner,
        journal=Journal(journal),
        metadata=ReceiptMetadata(verifier_parameters=PARAMS),
    )


def groth16_receipt() -> Receipt:
    return wrap(Groth16Receipt(seal=b"\x01\x02", claim=Value(ok_claim()), verifier_parameters=PARAMS))


def nested_composites(depth: int) -> bytes:
    """A receipt of `depth` composites, each holding the next as its only assumption."""
    inner = struct.pack('<II', 3, 1) + bytes(32)  # Fake with a pruned claim
    for _ in range(depth):
        inner = struct.pack('<IQQ', 0, 0, 1) + inner + PARAMS.as_bytes()
    return inner + struct.pack('<Q', 0) + PARAMS.as_bytes()


# =============================================================================
# MERKLE PROOF
# =============================================================================

class TestMerkleProof:
    """Tests for control root recomputation."""

    def setup_method(self):
        self.engine = Sha256Engine()
        self.leaves = [d(i) for i in range(4)]
        l0, l1, l2, l3 = self.leaves
        self.n01 = self.engine.hash_pair(l0, l1)
        self.n23 = self.engine.hash_pair(l2, l3)
        self.root = self.engine.hash_pair(self.n01, self.n23)

    def test_every_leaf(self):
        paths = {
            0: [self.leaves[1], self.n23],
            1: [self.leaves[0], self.n23],
            2: [self.leaves[3], self.n01],
            3: [self.leaves[2], self.n01],
        }
        for index, path in paths.items():
            proof = MerkleProof(index=index, digests=path)
            assert proof.root(self.leaves[index], self.engine) == self.root

    def test_empty_path_is_leaf(self):
        assert MerkleProof(index=0).root(d(5)) == d(5)

    def test_wrong_index(self):
        proof = MerkleProof(index=1, digests=[self.leaves[3], self.n01])
        assert proof.root(self.leaves[2]) != self.root

    def test_verify(self):
        proof = MerkleProof(index=2, digests=[self.leaves[3], self.n01])
        proof.verify(self.leaves[2], self.root)
        with pytest.raises(MerkleProofError):
            proof.verify(self.leaves[1], self.root)

    def test_index_is_u32(self):
        with pytest.raises(ValueError):
            MerkleProof(index=-1)


# =============================================================================
# RECEIPTS
# =============================================================================

class TestReceipts:
    """Tests for claim access on every proof strategy."""

    def test_seal_bytes(self):
        seg = segment(0, ok_claim())
        assert seg.get_seal_bytes() == struct.pack('<2I', 0, 0xdeadbeef)
        assert seg.seal_size() == 8
        assert succinct(Value(ok_claim())).seal_size() == 12

    def test_variant_names(self):
        assert variant_name(groth16_receipt().inner) == "Groth16"
        assert variant_name(FakeReceipt(Value(ok_claim()))) == "Fake"
        assert variant_name(succinct(Value(ok_claim()))) == "Succinct"
        with pytest.raises(TypeError):
            variant_name(object())

    def test_inner_claim(self):
        claim = Value(ok_claim())
        assert inner_claim(FakeReceipt(claim)) == claim
        assert inner_claim(succinct(claim)) == claim
        assert groth16_receipt().claim() == claim

    def test_verifier_parameters(self):
        assert inner_verifier_parameters(groth16_receipt().inner) == PARAMS
        assert inner_verifier_parameters(succinct(Value(ok_claim()))) == PARAMS
        assert inner_verifier_parameters(FakeReceipt(Value(ok_claim()))) == Digest.ZERO

    def test_receipt_rejects_foreign_inner(self):
        with pytest.raises(TypeError):
            wrap(ok_claim())

    def test_control_root(self):
        engine = Sha256Engine()
        receipt = succinct(Value(ok_claim()))
        assert receipt.control_root() == engine.hash_pair(d(0x0d), d(0x0c))

    def test_control_root_unknown_hashfn(self):
        with pytest.raises(UnsupportedHashFunctionError):
            succinct(Value(ok_claim()), hashfn="poseidon2").control_root()

    def test_composite_claim(self):
        """pre/input from the first segment, the rest from the last."""
        first = ReceiptClaim(
            pre=Pruned(IMAGE_ID),
            post=Value(SystemState(pc=0x2000, merkle_root=d(0x07))),
            exit_code=ExitCode.SYSTEM_SPLIT,
            input=Value(None),
            output=Value(None),
        )
        last = ReceiptClaim(
            pre=Value(SystemState(pc=0x2000, merkle_root=d(0x07))),
            post=Value(SystemState(pc=0, merkle_root=Digest.ZERO)),
            exit_code=ExitCode.halted(0),
            input=Value(None),
            output=Value(Output(
                journal=Value(b"\x10\x20"),
                assumptions=Value(Assumptions([Value(Assumption(d(1), d(2)))])),
            )),
        )
        composite = CompositeReceipt(
            segments=[segment(0, first), segment(1, last)],
            assumption_receipts=[],
            verifier_parameters=PARAMS,
        )
        claim = composite.claim()
        assert claim.pre == Pruned(IMAGE_ID)
        assert claim.post == last.post
        assert claim.exit_code == ExitCode.halted(0)
        assert claim.output.as_value().assumptions.as_value().digest() == Digest.ZERO
        # Resolved assumptions make it the plain ok claim.
        assert claim.digest() == ok_claim().digest()
        assert composite.seal_size() == 16

    def test_composite_without_segments(self):
        composite = CompositeReceipt(segments=[], assumption_receipts=[], verifier_parameters=PARAMS)
        with pytest.raises(ReceiptError):
            composite.claim()

    def test_composite_with_pruned_output(self):
        claim = ok_claim()
        pruned = ReceiptClaim(
            pre=claim.pre, post=claim.post, exit_code=claim.exit_code,
            input=claim.input, output=claim.output.pruned_copy(),
        )
        composite = CompositeReceipt(
            segments=[segment(0, pruned)], assumption_receipts=[], verifier_parameters=PARAMS,
        )
        with pytest.raises(ReceiptError):
            composite.claim()

    def test_check_journal(self):
        receipt = wrap(FakeReceipt(Value(ok_claim(b"hi"))), journal=b"hi")
        receipt.check_journal()
        assert receipt.claim_digest() == ok_claim(b"hi").digest()

    def test_check_journal_mismatch(self):
        receipt = wrap(FakeReceipt(Value(ok_claim(b"hi"))), journal=b"no")
        with pytest.raises(JournalMismatchError):
            receipt.check_journal()

    def test_check_journal_pruned_claim(self):
        receipt = wrap(FakeReceipt(Pruned(ok_claim().digest())))
        with pytest.raises(PrunedValueError):
            receipt.check_journal()


# =============================================================================
# CODEC
# =============================================================================

class TestCodec:
    """Tests for the bincode wire layout."""

    def test_groth16_layout(self):
        """Hand-built bytes pin the layout independently of the encoder."""
        claim_digest = d(0x33)
        data = (
            struct.pack('<I', 2)                       # InnerReceipt::Groth16
            + struct.pack('<Q', 2) + b"\x01\x02"       # seal
            + struct.pack('<I', 1) + claim_digest.as_bytes()  # MaybePruned::Pruned
            + PARAMS.as_bytes()                        # verifier_parameters
            + struct.pack('<Q', 2) + b"\x10\x20"       # journal
            + PARAMS.as_bytes()                        # metadata
        )
        receipt = decode_receipt(data)
        assert isinstance(receipt.inner, Groth16Receipt)
        assert receipt.inner.seal == b"\x01\x02"
        assert receipt.inner.claim == Pruned(claim_digest)
        assert receipt.journal.bytes == b"\x10\x20"
        assert encode_receipt(receipt) == data

    def test_round_trip_preserves_digests(self):
        receipts = [
            groth16_receipt(),
            wrap(FakeReceipt(Value(ok_claim()))),
            wrap(succinct(Value(ok_claim()))),
            wrap(CompositeReceipt(
                segments=[segment(0, ok_claim())],
                assumption_receipts=[
                    FakeReceipt(Pruned(d(0x55))),
                    succinct(Pruned(d(0x66))),
                ],
                verifier_parameters=PARAMS,
            )),
        ]
        for receipt in receipts:
            decoded = decode_receipt(encode_receipt(receipt))
            assert decoded == receipt
            assert decoded.claim_digest() == receipt.claim_digest()

    def test_exit_codes_encode(self):
        for code in [ExitCode.paused(9), ExitCode.SYSTEM_SPLIT, ExitCode.SESSION_LIMIT]:
            claim = ReceiptClaim(
                pre=Pruned(IMAGE_ID), post=Pruned(d(1)), exit_code=code,
                input=Pruned(Digest.ZERO), output=Value(None),
            )
            receipt = wrap(FakeReceipt(Value(claim)))
            assert decode_receipt(encode_receipt(receipt)).claim().as_value().exit_code == code

    def test_truncated(self):
        data = encode_receipt(groth16_receipt())
        with pytest.raises(DecodeError):
            decode_receipt(data[:-1])

    def test_trailing_bytes_ignored(self):
        data = encode_receipt(groth16_receipt())
        receipt = decode_receipt(data + b"\x00\xff")
        assert receipt.inner.seal == b"\x01\x02"
        assert receipt.claim_digest() == groth16_receipt().claim_digest()

    def test_trailing_bytes_strict(self):
        data = encode_receipt(groth16_receipt())
        decode_receipt(data, strict=True)
        with pytest.raises(DecodeError):
            decode_receipt(data + b"\x00", strict=True)

    def test_nested_composites_within_limit(self):
        receipt = decode_receipt(nested_composites(3))
        inner = receipt.inner
        for _ in range(2):
            (inner,) = inner.assumption_receipts
            assert isinstance(inner, CompositeReceipt)
        (leaf,) = inner.assumption_receipts
        assert isinstance(leaf, FakeReceipt)

    def test_nesting_limit(self):
        decode_receipt(nested_composites(MAX_NESTING))
        with pytest.raises(DecodeError):
            decode_receipt(nested_composites(MAX_NESTING + 1))

    def test_deep_nesting_is_decode_error(self):
        with pytest.raises(DecodeError):
            decode_receipt(nested_composites(2000))

    def test_bad_inner_variant(self):
        with pytest.raises(DecodeError):
            decode_receipt(struct.pack('<I', 7) + bytes(64))

    def test_empty_input(self):
        with pytest.raises(DecodeError):
            decode_receipt(b"")

    def test_oversized_length(self):
        data = struct.pack('<I', 2) + struct.pack('<Q', 1 << 40)
        with pytest.raises(DecodeError):
            decode_receipt(data)

    def test_present_input_rejected(self):
        """Input is uninhabited, so Some(input) cannot be decoded."""
        data = bytearray(encode_receipt(wrap(FakeReceipt(Value(ok_claim())))))
        # Fake(4) + Value(4) + pre Pruned(4+32) + post Value(4+4+32) + Halted(4+4)
        # + input Value(4), then the option flag.
        offset = 4 + 4 + 36 + 40 + 8 + 4
        assert data[offset] == 0
        data[offset] = 1
        with pytest.raises(DecodeError):
            decode_receipt(bytes(data))

    def test_invalid_option_flag(self):
        data = bytearray(encode_receipt(wrap(FakeReceipt(Value(ok_claim())))))
        data[4 + 4 + 36 + 40 + 8 + 4] = 2
        with pytest.raises(DecodeError):
            decode_receipt(bytes(data))

    def test_unknown_claim_value_rejected(self):
        """Assumption receipts cannot carry an unpruned claim."""
        data = (
            struct.pack('<I', 0)                 # Composite
            + struct.pack('<Q', 0)               # no segments
            + struct.pack('<Q', 1)               # one assumption receipt
            + struct.pack('<I', 3)               # Fake
            + struct.pack('<I', 0)               # MaybePruned::Value
            + bytes(100)
        )
        with pytest.raises(DecodeError):
            decode_receipt(data)

    def test_invalid_utf8_hashfn(self):
        data = (
            struct.pack('<I', 1)                 # Succinct
            + struct.pack('<Q', 0)               # seal
            + d(1).as_bytes()                    # control_id
            + struct.pack('<I', 1) + d(2).as_bytes()
            + struct.pack('<Q', 2) + b"\xff\xfe"  # hashfn
            + bytes(200)
        )
        with pytest.raises(DecodeError):
            decode_receipt(data)


# =============================================================================
# SEAL EXTRACTION
# =============================================================================

class TestSeal:
    """Tests for encode_seal and convert."""

    def test_groth16_seal(self):
        assert encode_seal(groth16_receipt()) == b"\xAA\xBB\xCC\xDD\x01\x02"

    @pytest.mark.parametrize("inner,variant", [
        (FakeReceipt(Value(ok_claim())), "Fake"),
        (CompositeReceipt(segments=[], assumption_receipts=[], verifier_parameters=PARAMS), "Composite"),
        (succinct(Value(ok_claim())), "Succinct"),
    ])
    def test_unsupported(self, inner, variant):
        with pytest.raises(UnsupportedReceiptError) as excinfo:
            encode_seal(wrap(inner))
        assert excinfo.value.variant == variant
        assert "unsupported receipt type" in str(excinfo.value)

    def test_convert(self):
        proof = convert(encode_receipt(groth16_receipt()))
        assert proof == ProofData(
            seal=bytes([0xAA, 0xBB, 0xCC, 0xDD, 0x01, 0x02]),
            journal=bytes([0x10, 0x20]),
        )
        assert proof.to_dict() == {'seal': 'aabbccdd0102', 'journal': '1020'}

    def test_convert_decode_error(self):
        with pytest.raises(DecodeError):
            convert(b"\x02\x00")

    def test_convert_ignores_trailing_bytes(self):
        proof = convert(encode_receipt(groth16_receipt()) + b"\x00")
        assert proof.seal == bytes([0xAA, 0xBB, 0xCC, 0xDD, 0x01, 0x02])

    def test_convert_deep_nesting(self):
        with pytest.raises(DecodeError):
            convert(nested_composites(2000))

    def test_convert_unsupported(self):
        with pytest.raises(UnsupportedReceiptError):
            convert(encode_receipt(wrap(FakeReceipt(Value(ok_claim())))))


# =============================================================================
# CLI
# =============================================================================

class TestCli:
    """Tests for the zkreceipt command."""

    def test_convert(self, tmp_path, capsys):
        path = tmp_path / "receipt.bin"
        path.write_bytes(encode_receipt(groth16_receipt()))
        assert main(["convert", str(path)]) == 0
        out = capsys.readouterr().out
        assert "aabbccdd0102" in out
        assert "1020" in out

    def test_convert_json(self, tmp_path, capsys):
        path = tmp_path / "receipt.bin"
        path.write_bytes(encode_receipt(groth16_receipt()))
        assert main(["convert", str(path), "--json"]) == 0
        assert json.loads(capsys.readouterr().out) == {'seal': 'aabbccdd0102', 'journal': '1020'}

    def test_claim(self, tmp_path, capsys):
        path = tmp_path / "receipt.bin"
        path.write_bytes(encode_receipt(groth16_receipt()))
        assert main(["claim", str(path)]) == 0
        out = capsys.readouterr().out
        assert "Groth16" in out
        assert ok_claim().digest().hex() in out

    def test_unsupported_receipt(self, tmp_path, capsys):
        path = tmp_path / "receipt.bin"
        path.write_bytes(encode_receipt(wrap(FakeReceipt(Value(ok_claim())))))
        assert main(["convert", str(path)]) == 1
        assert "unsupported receipt type" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        assert main(["convert", str(tmp_path / "missing.bin")]) == 1
        assert "error" in capsys.readouterr().err

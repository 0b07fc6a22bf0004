"""
zkreceipt: Receipts and Claims for zkVM Execution

Domain-separated structural hashing of execution claims, with a receipt
envelope that backs the same claim by different proof strategies.

Usage:
    from zkreceipt import ReceiptClaim, Digest

    claim = ReceiptClaim.ok(image_id, b"journal")
    claim_digest = claim.digest()

    # Extract a verifier seal from a bincode receipt
    from zkreceipt import convert
    proof = convert(receipt_bytes)
    proof.seal, proof.journal
"""

# Digests and hashing
from .digest import Digest, Block, SHA256_INIT, DIGEST_BYTES, DIGEST_WORDS
from .sha import (
    HashEngine,
    Sha256Engine,
    register_hash_suite,
    hash_suite_from_name,
    default_engine,
)
from .tagged import tagged_struct, tagged_list, tagged_iter, tagged_list_cons
from .digestible import (
    Digestible,
    MaybePruned,
    Value,
    Pruned,
    digest_of,
    digest_sequence,
)

# Claims
from .claim import (
    ExitCode,
    ExitKind,
    SystemState,
    Unknown,
    Input,
    Assumption,
    Assumptions,
    Output,
    ReceiptClaim,
)

# Receipts
from .merkle import MerkleProof
from .receipt import (
    Journal,
    ReceiptMetadata,
    SegmentReceipt,
    CompositeReceipt,
    SuccinctReceipt,
    Groth16Receipt,
    FakeReceipt,
    InnerReceipt,
    InnerAssumptionReceipt,
    Receipt,
    inner_claim,
    variant_name,
)

# Wire format and seals
from .codec import ReceiptDecoder, ReceiptEncoder, decode_receipt, encode_receipt
from .seal import encode_seal, ProofData, convert

# Errors
from .errors import (
    ZkReceiptError,
    DecodeError,
    InvalidExitCodeError,
    UnsupportedReceiptError,
    UnsupportedHashFunctionError,
    PrunedValueError,
    ReceiptError,
    JournalMismatchError,
    MerkleProofError,
)

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Digests and hashing
    "Digest",
    "Block",
    "SHA256_INIT",
    "DIGEST_BYTES",
    "DIGEST_WORDS",
    "HashEngine",
    "Sha256Engine",
    "register_hash_suite",
    "hash_suite_from_name",
    "default_engine",
    "tagged_struct",
    "tagged_list",
    "tagged_iter",
    "tagged_list_cons",
    "Digestible",
    "MaybePruned",
    "Value",
    "Pruned",
    "digest_of",
    "digest_sequence",
    # Claims
    "ExitCode",
    "ExitKind",
    "SystemState",
    "Unknown",
    "Input",
    "Assumption",
    "Assumptions",
    "Output",
    "ReceiptClaim",
    # Receipts
    "MerkleProof",
    "Journal",
    "ReceiptMetadata",
    "SegmentReceipt",
    "CompositeReceipt",
    "SuccinctReceipt",
    "Groth16Receipt",
    "FakeReceipt",
    "InnerReceipt",
    "InnerAssumptionReceipt",
    "Receipt",
    "inner_claim",
    "variant_name",
    # Wire format and seals
    "ReceiptDecoder",
    "ReceiptEncoder",
    "decode_receipt",
    "encode_receipt",
    "encode_seal",
    "ProofData",
    "convert",
    # Errors
    "ZkReceiptError",
    "DecodeError",
    "InvalidExitCodeError",
    "UnsupportedReceiptError",
    "UnsupportedHashFunctionError",
    "PrunedValueError",
    "ReceiptError",
    "JournalMismatchError",
    "MerkleProofError",
]

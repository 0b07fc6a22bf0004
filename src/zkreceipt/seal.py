"""
Seal Extraction

Produces the flat seal an external verifier consumes:

    seal = verifier_parameters.as_bytes()[:4] ‖ groth16_seal

The 4-byte selector identifies which verifier (proof system version) the
seal is for. Only Groth16 receipts have this encoding; other strategies
need their own handling and are rejected.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass

from .codec import decode_receipt
from .config import SELECTOR_BYTES
from .receipt import Groth16Receipt, Receipt, variant_name
from .errors import UnsupportedReceiptError

logger = logging.getLogger(__name__)


def encode_seal(receipt: Receipt) -> bytes:
    """Selector-prefixed seal of a Groth16 receipt."""
    inner = receipt.inner
    if isinstance(inner, Groth16Receipt):
        selector = inner.verifier_parameters.as_bytes()[:SELECTOR_BYTES]
        return selector + inner.seal
    raise UnsupportedReceiptError(variant_name(inner))


@dataclass(frozen=True)
class ProofData:
    """Seal and journal ready for an external verifier."""
    seal: bytes
    journal: bytes

    def to_dict(self) -> dict:
        return {'seal': self.seal.hex(), 'journal': self.journal.hex()}


def convert(serialized_receipt: bytes) -> ProofData:
    """
    Decode a bincode receipt and extract its seal and journal.

    Raises DecodeError on malformed input and UnsupportedReceiptError for
    receipts that are not Groth16.
    """
    receipt = decode_receipt(serialized_receipt)
    seal = encode_seal(receipt)
    logger.debug("extracted %d byte seal from %s receipt", len(seal), variant_name(receipt.inner))
    return ProofData(seal=seal, journal=receipt.journal.bytes)

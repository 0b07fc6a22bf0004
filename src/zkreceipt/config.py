"""
Pinned Constants for zkreceipt

Tag strings and hash-suite names are part of the commitment format.
These values are PINNED - changing them changes every digest.
"""

# =============================================================================
# HASH SUITES
# =============================================================================

SHA256_HASHFN = "sha-256"
DEFAULT_HASHFN = SHA256_HASHFN

# =============================================================================
# STRUCT TAGS (domain separation)
# =============================================================================

TAG_SYSTEM_STATE = "risc0.SystemState"
TAG_ASSUMPTION = "risc0.Assumption"
TAG_ASSUMPTIONS = "risc0.Assumptions"
TAG_OUTPUT = "risc0.Output"
TAG_RECEIPT_CLAIM = "risc0.ReceiptClaim"

# =============================================================================
# LIMITS
# =============================================================================

# Child count is encoded as a little-endian u16.
MAX_STRUCT_CHILDREN = 0xFFFF

# Leading bytes of the verifier parameters digest used as a seal selector.
SELECTOR_BYTES = 4

# Deepest chain of composite receipts the decoder follows through
# assumption receipts before rejecting the input.
MAX_NESTING = 64

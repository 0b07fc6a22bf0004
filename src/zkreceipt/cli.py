"""
zkreceipt command line

Usage:
    zkreceipt convert RECEIPT [--json]
    zkreceipt claim RECEIPT
"""

from __future__ import annotations
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .codec import decode_receipt
from .errors import ZkReceiptError
from .receipt import variant_name
from .seal import convert

logger = logging.getLogger(__name__)


def _cmd_convert(args: argparse.Namespace) -> int:
    proof = convert(args.receipt.read_bytes())
    if args.json:
        print(json.dumps(proof.to_dict(), indent=2))
    else:
        print(f"seal:    {proof.seal.hex()}")
        print(f"journal: {proof.journal.hex()}")
    return 0


def _cmd_claim(args: argparse.Namespace) -> int:
    receipt = decode_receipt(args.receipt.read_bytes())
    claim = receipt.claim()
    print(f"variant: {variant_name(receipt.inner)}")
    print(f"pruned:  {claim.is_pruned}")
    print(f"digest:  {claim.digest()}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog='zkreceipt',
        description='Inspect and convert bincode-encoded zkVM receipts',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    zkreceipt convert receipt.bin          # Print seal and journal as hex
    zkreceipt convert receipt.bin --json   # Same, as a JSON object
    zkreceipt claim receipt.bin            # Print the claim digest
        """
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug logging'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    convert_parser = subparsers.add_parser('convert', help='Extract seal and journal')
    convert_parser.add_argument('receipt', type=Path, help='Path to a bincode receipt')
    convert_parser.add_argument('--json', action='store_true', help='Emit JSON')
    convert_parser.set_defaults(func=_cmd_convert)

    claim_parser = subparsers.add_parser('claim', help='Show the claim digest')
    claim_parser.add_argument('receipt', type=Path, help='Path to a bincode receipt')
    claim_parser.set_defaults(func=_cmd_claim)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    try:
        return args.func(args)
    except (ZkReceiptError, OSError) as e:
        logger.debug("command %s failed", args.command, exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())

"""
OneSig Merkle Service - Command Line Interface

Commands:
- encode: Encode leaves from a JSON file and build the Merkle tree
- merkle: Build the Merkle tree from pre-encoded leaves
- verify: Verify an inclusion proof
- serve: Run the HTTP API

Example:
    onesig-merkle encode --file-path input.json --leaf-encoding-version 1
    onesig-merkle merkle --encoded-input "0xabc...,0xdef..." --sorted-pairs
"""

import argparse
import json
import sys
from pathlib import Path

import pydantic
import structlog

from onesig_merkle.core.config import settings
from onesig_merkle.core.logging import setup_logging
from onesig_merkle.crypto.errors import OneSigMerkleError
from onesig_merkle.crypto.merkle import TreeOptions
from onesig_merkle.models import EncodedLeavesInput, LeavesInput
from onesig_merkle.services.merkle_service import MerkleService, parse_encoded_string

logger = structlog.get_logger(__name__)


def _print_json(payload: dict) -> None:
    print(json.dumps(payload, indent=2))


def cmd_encode(args: argparse.Namespace, service: MerkleService) -> int:
    """Encode leaves and generate the Merkle tree from a JSON file."""
    data = json.loads(Path(args.file_path).read_text())
    request = LeavesInput.model_validate(data)

    result = service.generate_from_records(
        request.leaves,
        version=args.leaf_encoding_version,
        options=TreeOptions(sorted_pairs=args.sorted_pairs, sort_leaves=args.sort_leaves),
    )
    _print_json(result.model_dump(by_alias=True))
    return 0


def load_encoded_input(value: str) -> list[str]:
    """
    Resolve --encoded-input into hex leaves.

    A value containing a comma is a list of leaves; otherwise an existing
    file is read as {"encodedLeaves": [...]}, and anything else is a single
    leaf.
    """
    if "," in value:
        return parse_encoded_string(value)

    path = Path(value)
    if path.is_file():
        request = EncodedLeavesInput.model_validate(json.loads(path.read_text()))
        return request.encoded_leaves

    return parse_encoded_string(value)


def cmd_merkle(args: argparse.Namespace, service: MerkleService) -> int:
    """Generate the Merkle tree from pre-encoded leaves."""
    result = service.generate_from_encoded_leaves(
        load_encoded_input(args.encoded_input),
        options=TreeOptions(sorted_pairs=args.sorted_pairs, sort_leaves=args.sort_leaves),
    )
    _print_json(result.model_dump(by_alias=True))
    return 0


def cmd_verify(args: argparse.Namespace, service: MerkleService) -> int:
    """Verify an inclusion proof."""
    proof = parse_encoded_string(args.proof) if args.proof else []
    valid = service.verify_proof_hex(
        args.root,
        args.leaf,
        proof,
        TreeOptions(sorted_pairs=args.sorted_pairs),
        leaf_index=args.leaf_index,
        leaf_count=args.leaf_count,
    )
    _print_json({"valid": valid})
    return 0


def cmd_serve(args: argparse.Namespace, service: MerkleService) -> int:
    """Run the HTTP API."""
    from onesig_merkle.main import main as serve

    serve()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="onesig-merkle",
        description="OneSig Merkle root and proof generator",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    encode = subparsers.add_parser("encode", help="Encode leaves and generate Merkle tree from JSON input")
    encode.add_argument("-f", "--file-path", required=True, help="Path to the JSON file containing the leaves")
    encode.add_argument(
        "-v",
        "--leaf-encoding-version",
        "--leafEncodingVersion",
        type=int,
        default=settings.LEAF_ENCODING_VERSION,
        help="Encoding version to use for the leaves",
    )
    encode.add_argument(
        "--sorted-pairs",
        "--sortedPairs",
        action=argparse.BooleanOptionalAction,
        default=settings.ENCODE_SORTED_PAIRS,
        help="Sort each pair before hashing",
    )
    encode.add_argument(
        "--sort-leaves",
        "--sortLeaves",
        action=argparse.BooleanOptionalAction,
        default=settings.ENCODE_SORT_LEAVES,
        help="Sort leaves before building the tree",
    )
    encode.set_defaults(handler=cmd_encode)

    merkle = subparsers.add_parser("merkle", help="Generate Merkle tree from pre-encoded leaves")
    merkle.add_argument(
        "-i",
        "--encoded-input",
        "--encodedInput",
        required=True,
        help="File with {\"encodedLeaves\": [...]} or comma-separated leaves",
    )
    merkle.add_argument(
        "-s",
        "--sorted-pairs",
        "--sortedPairs",
        action=argparse.BooleanOptionalAction,
        default=settings.MERKLE_SORTED_PAIRS,
        help="Sort each pair before hashing (MerkleTreeJS default: off)",
    )
    merkle.add_argument(
        "-l",
        "--sort-leaves",
        "--sortLeaves",
        action=argparse.BooleanOptionalAction,
        default=settings.MERKLE_SORT_LEAVES,
        help="Sort leaves before building the tree (MerkleTreeJS default: off)",
    )
    merkle.set_defaults(handler=cmd_merkle)

    verify = subparsers.add_parser("verify", help="Verify an inclusion proof")
    verify.add_argument("--root", required=True, help="Merkle root (0x hex)")
    verify.add_argument("--leaf", required=True, help="Leaf (0x hex)")
    verify.add_argument("--proof", default="", help="Comma-separated proof elements")
    verify.add_argument("--sorted-pairs", action=argparse.BooleanOptionalAction, default=False)
    verify.add_argument("--leaf-index", type=int, default=None, help="Leaf position, for unsorted pairs")
    verify.add_argument("--leaf-count", type=int, default=None, help="Tree size, for unsorted pairs")
    verify.set_defaults(handler=cmd_verify)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.set_defaults(handler=cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse arguments and dispatch; returns the process exit status."""
    args = build_parser().parse_args(argv)
    if args.command != "serve":
        setup_logging(stream=sys.stderr)

    try:
        return args.handler(args, MerkleService())
    except (OneSigMerkleError, pydantic.ValidationError, json.JSONDecodeError, OSError) as e:
        logger.debug("Command failed", command=args.command, error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()

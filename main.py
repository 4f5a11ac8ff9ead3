#!/usr/bin/env python3
"""
X12 270 Command Line Tool

Parses X12 270 eligibility inquiries to JSON, validates them, and builds
new interchanges from JSON.

Usage:
    python main.py parse inquiry.x12                        # Print parsed JSON
    python main.py parse inquiry.x12 --output out.json      # Save parsed JSON
    python main.py validate inquiry.x12                     # Report errors and warnings
    python main.py build inquiry.json --output inquiry.x12  # Build a 270 from JSON
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from x12_config import load_config
from x12_exceptions import X12Error
from x12_service import X12ParserService

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s:%(lineno)d] - %(message)s"


def parse_command(service: X12ParserService, args: argparse.Namespace) -> int:
    """Parse an X12 file and print or save the structured result."""
    print(f"X12 Parser - Processing {args.file}")
    print("=" * 50)

    json_output = service.parse_file_to_json(args.file, pretty_print=args.pretty)
    if args.output:
        service.save_to_file(json_output, args.output)
        print(f"JSON output saved to: {args.output}")
        print(f"Output size: {len(json_output):,} characters")
    else:
        print(json_output)
    return 0


def validate_command(service: X12ParserService, args: argparse.Namespace) -> int:
    print(f"Validating {args.file}")
    result = service.validate_file(args.file)

    for warning in result.warnings:
        print(f"  Warning: {warning}")
    if result.is_successful():
        print(f"X12 {result.transaction_type} document is valid!")
        return 0

    print(f"Validation found {len(result.errors)} errors:")
    for i, error in enumerate(result.errors):
        print(f"  {i+1}. {error}")
    return 1


def build_command(service: X12ParserService, args: argparse.Namespace) -> int:
    """Build an X12 interchange from a JSON file."""
    with open(args.json_file, "r") as f:
        json_data = json.load(f)

    if args.output:
        service.build_and_save(json_data, args.output, args.type)
        print(f"X12 {args.type} saved to: {args.output}")
    else:
        print(service.build_from_json(json_data, args.type))
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Parse, validate and build X12 270 eligibility inquiries",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py parse inquiry.x12 --pretty
  python main.py validate inquiry.x12
  python main.py build inquiry.json --output inquiry.x12
        """
    )
    parser.add_argument("--config", help="JSON configuration file (default: built-in settings)")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level (default: WARNING)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    parse_parser = subparsers.add_parser("parse", help="Parse an X12 file to JSON")
    parse_parser.add_argument("file", help="Input X12 file")
    parse_parser.add_argument("--output", help="Output JSON file (default: print to stdout)")
    parse_parser.add_argument("--pretty", action="store_true", help="Indent the JSON output")
    parse_parser.set_defaults(handler=parse_command)

    validate_parser = subparsers.add_parser("validate", help="Validate an X12 file")
    validate_parser.add_argument("file", help="Input X12 file")
    validate_parser.set_defaults(handler=validate_command)

    build_parser = subparsers.add_parser("build", help="Build an X12 file from JSON")
    build_parser.add_argument("json_file", help="Input JSON file with subscriber_* fields and inquiries")
    build_parser.add_argument("--output", help="Output X12 file (default: print to stdout)")
    build_parser.add_argument("--type", default="270", help="Transaction type (default: 270)")
    build_parser.set_defaults(handler=build_command)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point with command line argument parsing."""
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level, format=LOG_FORMAT, stream=sys.stderr)

    try:
        service = X12ParserService.from_config(load_config(args.config))
        return args.handler(service, args)
    except X12Error as e:
        print(f"Error: {e}")
        return 1
    except (OSError, json.JSONDecodeError) as e:
        print(f"Error reading input: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())

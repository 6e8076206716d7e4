from __future__ import annotations

"""Command line interface for the MJML toolkit.

Subcommands:

- ``parse``    MJML markup -> canonical JSON block tree
- ``build``    JSON block tree -> MJML markup
- ``validate`` report structural violations of an MJML or JSON document
- ``tree``     print an indented outline of a document

Files are read from the given path, or from stdin when the path is ``-`` or
omitted. Errors are printed to stderr and return exit code 1.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from mjml_toolkit.core.exceptions import MjmlToolkitError
from mjml_toolkit.core.generators import build_mjml
from mjml_toolkit.core.models import EmailBlock
from mjml_toolkit.core.parser import parse_mjml
from mjml_toolkit.core.registry import display_name
from mjml_toolkit.core.validator import validate_document
from mjml_toolkit.logging_config import setup_logging

__all__ = ["main", "parse_args"]

logger = logging.getLogger(__name__)


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="mjml-toolkit",
        description="Parse, validate and rebuild MJML email templates",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    parse_cmd = subparsers.add_parser("parse", help="Convert MJML markup to a JSON block tree")
    parse_cmd.add_argument("file", nargs="?", default="-", help="MJML file (stdin if omitted)")
    parse_cmd.add_argument("--indent", type=int, default=2, help="JSON indentation (default: 2)")

    build_cmd = subparsers.add_parser("build", help="Convert a JSON block tree to MJML markup")
    build_cmd.add_argument("file", nargs="?", default="-", help="JSON file (stdin if omitted)")
    build_cmd.add_argument(
        "--compact",
        action="store_false",
        dest="pretty",
        default=True,
        help="Emit markup on a single line",
    )
    build_cmd.add_argument(
        "--xml-declaration",
        action="store_true",
        help="Prefix the output with an XML declaration",
    )
    build_cmd.add_argument(
        "--no-validate",
        action="store_false",
        dest="validate",
        default=True,
        help="Skip structural validation before building",
    )

    validate_cmd = subparsers.add_parser("validate", help="Report structural violations")
    validate_cmd.add_argument("file", nargs="?", default="-", help="MJML or JSON file (stdin if omitted)")

    tree_cmd = subparsers.add_parser("tree", help="Print an outline of the block tree")
    tree_cmd.add_argument("file", nargs="?", default="-", help="MJML or JSON file (stdin if omitted)")
    tree_cmd.add_argument("--ids", action="store_true", help="Show block ids")

    return parser.parse_args(args)


def read_input(filepath: str) -> str:
    """Read from file or stdin."""
    if filepath == "-":
        return sys.stdin.read()
    return Path(filepath).read_text(encoding="utf-8")


def load_document(text: str) -> EmailBlock:
    """Load *text* as JSON when it looks like JSON, else as MJML."""
    if text.lstrip().startswith("{"):
        return EmailBlock.from_json(text)
    return parse_mjml(text)


def format_outline(tree: EmailBlock, show_ids: bool = False) -> str:
    lines = []

    def _walk(block: EmailBlock, depth: int) -> None:
        label = f"{'  ' * depth}{block.type.value} ({display_name(block.type)})"
        if show_ids:
            label += f" [{block.id}]"
        width = block.attributes.get("width")
        if width:
            label += f" width={width}"
        lines.append(label)
        for child in block.child_list:
            _walk(child, depth + 1)

    _walk(tree, 0)
    return "\n".join(lines)


def _run(parsed: argparse.Namespace) -> int:
    text = read_input(parsed.file)

    if parsed.command == "parse":
        print(parse_mjml(text).to_json(indent=parsed.indent))
        return 0

    if parsed.command == "build":
        tree = EmailBlock.from_json(text)
        print(build_mjml(tree, pretty=parsed.pretty,
                         include_xml_declaration=parsed.xml_declaration,
                         validate=parsed.validate))
        return 0

    tree = load_document(text)
    if parsed.command == "tree":
        print(format_outline(tree, show_ids=parsed.ids))
        return 0

    violations = validate_document(tree)
    if not violations:
        print("OK: no structural violations")
        return 0
    for violation in violations:
        print(f"{violation.code}: {violation.message} [{violation.block_id}]")
    return 1


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parsed = parse_args(args)
    setup_logging()

    try:
        return _run(parsed)
    except FileNotFoundError:
        print(f"Error: File not found: {parsed.file}", file=sys.stderr)
        return 1
    except MjmlToolkitError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

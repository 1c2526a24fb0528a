#!/usr/bin/env python3
"""Print the outline of an HTML document.

Renders the structural (HTML5) outline, the heading-level outline, or a
JSON dump of the section tree for the <body> of an HTML file.

Usage:
    # Structural outline as indented text
    python3 scripts/outline_report.py page.html

    # Heading-level outline, with [missing] fill-ins for skipped levels
    python3 scripts/outline_report.py page.html --format heading-level

    # Structural outline as an HTML ordered list, written to a file
    python3 scripts/outline_report.py page.html --format html --output outline.html

    # JSON section tree (reads stdin when no file is given)
    curl -s https://example.org | python3 scripts/outline_report.py --format json
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import orjson

from outliner.document_outline import DocumentOutline, outline_document
from outliner.dom import read_file
from outliner.outline_formatter import (
    format_heading_level_text,
    format_outline_html,
    format_outline_text,
)
from outliner.outline_types import outline_to_dict

log = logging.getLogger("outline_report")

FORMATS = ("text", "html", "heading-level", "json")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Print the outline of an HTML document."
    )
    parser.add_argument(
        "input",
        nargs="?",
        type=Path,
        default=None,
        help="HTML file to outline (default: read stdin)",
    )
    parser.add_argument(
        "--format",
        choices=FORMATS,
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the report to this file instead of stdout",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Verbose logging",
    )
    return parser


def build_report(document: DocumentOutline, fmt: str) -> bytes:
    """Render *document* in output format *fmt*."""
    if fmt == "json":
        payload = {
            "outline": outline_to_dict(document.outline),
            "standalone_outlines": [
                outline_to_dict(o) for o in document.standalone_outlines
            ],
            "leftover_frames": len(document.leftover_frames),
        }
        return orjson.dumps(payload, option=orjson.OPT_INDENT_2) + b"\n"
    if fmt == "html":
        text = format_outline_html(document.outline)
    elif fmt == "heading-level":
        text = format_heading_level_text(document.heading_levels())
    else:
        text = format_outline_text(document.outline)
    return (text + "\n").encode("utf-8")


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )

    if args.input is None:
        source = sys.stdin.read()
    else:
        if not args.input.exists():
            print(f"Error: input not found: {args.input}", file=sys.stderr)
            sys.exit(1)
        source = read_file(args.input)

    document = outline_document(source)
    if document is None:
        print("Error: no <body> element; no outline was created", file=sys.stderr)
        sys.exit(1)

    if document.leftover_frames:
        log.warning(
            "Unbalanced nesting: %d frame(s) left open", len(document.leftover_frames),
        )
    log.info(
        "Outlined %d section(s), %d outline owner(s)",
        sum(1 for _ in document.outline.walk()),
        len(document.owners),
    )

    try:
        report = build_report(document, args.format)
    except orjson.JSONEncodeError as exc:
        # orjson refuses structures nested past its depth limit.
        print(f"Error: cannot encode outline as JSON: {exc}", file=sys.stderr)
        sys.exit(1)

    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_bytes(report)
        log.info("Wrote %s report to %s", args.format, args.output)
    else:
        sys.stdout.buffer.write(report)


if __name__ == "__main__":
    main()

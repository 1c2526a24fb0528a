"""Outline an HTML source string end to end.

Parses the source, locates its ``<body>`` element and runs the outline
builder on it. A source without a body produces no outline.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from outliner.dom import TreeNode, find_body, parse_html
from outliner.outline_builder import OutlineBuilder
from outliner.outline_formatter import (
    HeadingLevelEntry,
    format_outline_html,
    heading_level_outline,
)
from outliner.outline_types import Frame, Outline, Owner

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DocumentOutline:
    """Result of outlining one document."""

    body: TreeNode
    outline: Outline
    owners: tuple[Owner, ...]
    leftover_frames: tuple[Frame, ...]

    @property
    def standalone_outlines(self) -> tuple[Outline, ...]:
        """Outlines of nested sectioning roots (blockquote, figure, td, ...)."""
        return tuple(
            owner.outline
            for owner in self.owners[1:]
            if owner.category == "sectioning_root"
        )

    def render_html(self) -> str:
        return format_outline_html(self.outline)

    def heading_levels(self) -> list[HeadingLevelEntry]:
        return heading_level_outline(self.outline)


def outline_document(source: str) -> DocumentOutline | None:
    """Outline the ``<body>`` of *source*; None when it has no body."""
    body = find_body(parse_html(source))
    if body is None:
        log.debug("No <body> element in %d chars of source", len(source))
        return None

    builder = OutlineBuilder()
    outline = builder.build(body)
    return DocumentOutline(
        body=body,
        outline=outline,
        owners=builder.owners,
        leftover_frames=builder.leftover_frames,
    )


def render_outline(source: str) -> str | None:
    """Structural outline of *source* as an HTML ordered list, if any."""
    document = outline_document(source)
    if document is None:
        return None
    return document.render_html()

"""HTML5 document outliner: sections and headings from parsed HTML trees."""

from outliner.document_outline import DocumentOutline, outline_document, render_outline
from outliner.dom import SoupNode, TreeNode, find_body, parse_html, read_file
from outliner.node_classifier import NodeCategory, classify, heading_rank
from outliner.outline_builder import OutlineBuilder, build_outline
from outliner.outline_formatter import (
    HeadingLevelEntry,
    format_heading_level_text,
    format_outline_html,
    format_outline_text,
    heading_level_outline,
)
from outliner.outline_types import (
    Explicit,
    HeadingState,
    Implied,
    Outline,
    Owner,
    Section,
    SectionArena,
    Unset,
    outline_to_dict,
)

__all__ = [
    "DocumentOutline",
    "Explicit",
    "HeadingLevelEntry",
    "HeadingState",
    "Implied",
    "NodeCategory",
    "Outline",
    "OutlineBuilder",
    "Owner",
    "Section",
    "SectionArena",
    "SoupNode",
    "TreeNode",
    "Unset",
    "build_outline",
    "classify",
    "find_body",
    "format_heading_level_text",
    "format_outline_html",
    "format_outline_text",
    "heading_level_outline",
    "heading_rank",
    "outline_document",
    "outline_to_dict",
    "parse_html",
    "read_file",
    "render_outline",
]

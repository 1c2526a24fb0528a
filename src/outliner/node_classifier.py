"""Content-category classification of tree nodes.

Maps a node to the category the outline algorithm cares about. Evaluation
order matters: a ``hidden`` attribute wins over any tag name, and an
``hgroup`` only counts as heading content when it actually contains an
h1-h6 element.
"""
from __future__ import annotations

from typing import Literal, TypeAlias

from outliner.dom import TreeNode, iter_descendants

# ---------------------------------------------------------------------------
# Tag sets
# ---------------------------------------------------------------------------

NodeCategory: TypeAlias = Literal[
    "hidden", "heading", "sectioning_root", "sectioning_content",
]

HEADING_TAGS: tuple[str, ...] = ("h1", "h2", "h3", "h4", "h5", "h6")

SECTIONING_ROOT_TAGS: frozenset[str] = frozenset({
    "blockquote", "body", "details", "fieldset", "figure", "td",
})

SECTIONING_CONTENT_TAGS: frozenset[str] = frozenset({
    "article", "aside", "nav", "section",
})


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def classify(node: TreeNode | None) -> NodeCategory | None:
    """Return the outline category of *node*, or None for ordinary content.

    Total: text, comments and ``None`` all classify as None.
    """
    if node is None or node.kind != "element":
        return None
    if node.has_attribute("hidden"):
        return "hidden"
    if ranking_heading(node) is not None:
        return "heading"
    tag = node.tag_name
    if tag in SECTIONING_ROOT_TAGS:
        return "sectioning_root"
    if tag in SECTIONING_CONTENT_TAGS:
        return "sectioning_content"
    return None


# ---------------------------------------------------------------------------
# Heading rank
# ---------------------------------------------------------------------------


def ranking_heading(node: TreeNode) -> TreeNode | None:
    """Return the heading element that fixes *node*'s rank.

    An h1-h6 element ranks itself. An hgroup takes the first descendant
    found scanning h1 -> h6, i.e. its strongest heading. Anything else,
    including an hgroup without headings, has no ranking heading.
    """
    if node.kind != "element":
        return None
    tag = node.tag_name
    if tag in HEADING_TAGS:
        return node
    if tag != "hgroup":
        return None

    first_by_tag: dict[str, TreeNode] = {}
    for descendant in iter_descendants(node):
        if descendant.kind != "element":
            continue
        name = descendant.tag_name
        if name in HEADING_TAGS and name not in first_by_tag:
            first_by_tag[name] = descendant
    for name in HEADING_TAGS:
        if name in first_by_tag:
            return first_by_tag[name]
    return None


def heading_rank(node: TreeNode) -> int:
    """Rank of a heading or hgroup: 1 (h1, strongest) to 6 (h6, weakest).

    Raises:
        ValueError: *node* is not heading content.
    """
    heading = ranking_heading(node)
    if heading is None:
        raise ValueError(f"{node!r} is not heading content")
    return int(heading.tag_name[1])


def outranks(a: TreeNode, b: TreeNode) -> bool:
    """True when heading *a* is strictly stronger than heading *b*."""
    return heading_rank(a) < heading_rank(b)

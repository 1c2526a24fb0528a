"""Read-only tree adapter and encoding-safe HTML loading.

The outline builder never touches a parser object directly. It walks a
``TreeNode``: a minimal, read-only view exposing node kind, tag name,
attribute lookup, first-child / next-sibling navigation and text content.

``SoupNode`` implements ``TreeNode`` over BeautifulSoup. Node equality is
identity of the wrapped element: BeautifulSoup's own ``Tag.__eq__`` compares
markup structurally, so two empty ``<p>`` elements would otherwise be
indistinguishable on the traversal stack.

Loading:
- ``parse_html`` — tolerant parse of an HTML string, wrapped in ``<html>``.
- ``find_body`` — first ``<body>`` element of a parsed tree.
- ``read_file`` — UTF-8 -> CP1252 -> replace fallback.
"""
from __future__ import annotations

import warnings
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Protocol, TypeAlias

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning
from bs4.element import Comment, Declaration, Doctype, NavigableString, PageElement, ProcessingInstruction, Tag

# ---------------------------------------------------------------------------
# Node protocol
# ---------------------------------------------------------------------------


NodeKind: TypeAlias = Literal["element", "text", "comment"]


class TreeNode(Protocol):
    """Opaque handle into an already-parsed markup tree."""

    @property
    def kind(self) -> NodeKind: ...

    @property
    def tag_name(self) -> str: ...

    def has_attribute(self, name: str) -> bool: ...

    def get_attribute(self, name: str) -> str | None: ...

    def first_child(self) -> TreeNode | None: ...

    def next_sibling(self) -> TreeNode | None: ...

    def text_content(self) -> str: ...


def iter_children(node: TreeNode) -> Iterator[TreeNode]:
    """Yield the children of *node* in document order."""
    child = node.first_child()
    while child is not None:
        yield child
        child = child.next_sibling()


def iter_descendants(node: TreeNode) -> Iterator[TreeNode]:
    """Yield every descendant of *node* in document (pre-)order.

    Iterative, so arbitrarily deep markup does not hit the recursion limit.
    """
    pending = list(iter_children(node))
    pending.reverse()
    while pending:
        current = pending.pop()
        yield current
        children = list(iter_children(current))
        children.reverse()
        pending.extend(children)


def find_descendant(node: TreeNode, tag_name: str) -> TreeNode | None:
    """First element descendant of *node* named *tag_name*, or None."""
    for descendant in iter_descendants(node):
        if descendant.kind == "element" and descendant.tag_name == tag_name:
            return descendant
    return None


# ---------------------------------------------------------------------------
# BeautifulSoup implementation
# ---------------------------------------------------------------------------

# Markup declarations carry no outline content; they are reported as comments.
_NON_TEXT_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)


@dataclass(frozen=True, slots=True, eq=False)
class SoupNode:
    """``TreeNode`` backed by a BeautifulSoup ``PageElement``."""

    element: PageElement

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SoupNode):
            return NotImplemented
        return self.element is other.element

    def __hash__(self) -> int:
        return id(self.element)

    @property
    def kind(self) -> NodeKind:
        if isinstance(self.element, Tag):
            return "element"
        if isinstance(self.element, _NON_TEXT_STRINGS):
            return "comment"
        return "text"

    @property
    def tag_name(self) -> str:
        if isinstance(self.element, Tag):
            return (self.element.name or "").lower()
        return ""

    def has_attribute(self, name: str) -> bool:
        return isinstance(self.element, Tag) and self.element.has_attr(name)

    def get_attribute(self, name: str) -> str | None:
        if not isinstance(self.element, Tag):
            return None
        value = self.element.get(name)
        if value is None:
            return None
        # Multi-valued attributes (class, rel, ...) come back as lists.
        if isinstance(value, list):
            return " ".join(value)
        return str(value)

    def first_child(self) -> SoupNode | None:
        if isinstance(self.element, Tag) and self.element.contents:
            return SoupNode(self.element.contents[0])
        return None

    def next_sibling(self) -> SoupNode | None:
        sibling = self.element.next_sibling
        if sibling is None:
            return None
        return SoupNode(sibling)

    def text_content(self) -> str:
        if isinstance(self.element, Tag):
            return self.element.get_text()
        if isinstance(self.element, NavigableString):
            return str(self.element)
        return ""

    def __repr__(self) -> str:
        if self.kind == "element":
            return f"<SoupNode {self.tag_name}>"
        preview = self.text_content()[:20]
        return f"<SoupNode {self.kind} {preview!r}>"


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def parse_html(source: str) -> SoupNode:
    """Parse *source* into a navigable tree rooted at the document node.

    The source is wrapped in an ``<html>`` element so that fragments and
    full documents share a single root element. Parse problems are
    absorbed by the parser; nothing is raised for malformed markup.
    """
    with warnings.catch_warnings():
        # Short sources that look like file names or URLs are still markup.
        warnings.simplefilter("ignore", MarkupResemblesLocatorWarning)
        soup = BeautifulSoup(f"<html>{source}</html>", "html.parser")
    return SoupNode(soup)


def find_body(root: TreeNode) -> TreeNode | None:
    """Return the first ``<body>`` element at or below *root*, if any."""
    if root.kind == "element" and root.tag_name == "body":
        return root
    return find_descendant(root, "body")


def read_file(fpath: Path) -> str:
    """Read an HTML file: UTF-8, then CP1252, then UTF-8 with replacement.

    Returns an empty string when the file cannot be read at all.
    """
    try:
        data = fpath.read_bytes()
    except OSError:
        return ""
    for encoding in ("utf-8", "cp1252"):
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    return data.decode("utf-8", errors="replace")

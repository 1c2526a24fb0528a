"""Outline construction: the document outline algorithm as a tree walk.

Implements the W3C/WHATWG "creating an outline" steps as a single
depth-first pass. Entering a sectioning element opens a nested outline;
entering a heading either names the current section or starts a new one,
placed by rank. Leaving a sectioning element closes its outline: sectioning
roots keep theirs standalone, sectioning content merges its top-level
sections into the ambient outline.

The walk uses an explicit work stack instead of recursion, so markup nested
deeper than the interpreter's recursion limit still produces an outline.

Usage::

    outline = build_outline(find_body(parse_html(source)))
    for depth, section in outline.walk():
        ...
"""
from __future__ import annotations

import logging

from outliner.dom import TreeNode, iter_children
from outliner.node_classifier import NodeCategory, classify, heading_rank, outranks
from outliner.outline_types import (
    Explicit,
    Frame,
    Implied,
    NodeFrame,
    Outline,
    Owner,
    OwnerCategory,
    OwnerFrame,
    Section,
    SectionArena,
    Unset,
)

log = logging.getLogger(__name__)


class OutlineBuilder:
    """Single-use builder holding the transient state of one walk.

    ``current_owner`` and ``current_section`` are the owner and section the
    algorithm is currently filling in. The stack holds heading and hidden
    elements (whose content is skipped until they are left) and suspended
    owners (resumed when a nested outline closes).
    """

    def __init__(self) -> None:
        self.arena = SectionArena()
        self._owners: list[Owner] = []
        self._stack: list[Frame] = []
        self._current_owner: Owner | None = None
        self._current_section: Section | None = None
        self._root: TreeNode | None = None
        self._used = False

    # -- public API ---------------------------------------------------------

    @property
    def owners(self) -> tuple[Owner, ...]:
        """Every owner created, in the order its element was entered."""
        return tuple(self._owners)

    @property
    def leftover_frames(self) -> tuple[Frame, ...]:
        """Frames still on the stack after the walk (malformed nesting)."""
        return tuple(self._stack)

    def owner_of(self, element: TreeNode) -> Owner | None:
        for owner in self._owners:
            if owner.element == element:
                return owner
        return None

    def build(self, root: TreeNode) -> Outline:
        """Walk *root* and return the outline of its owner."""
        if self._used:
            raise RuntimeError("OutlineBuilder instances are single use")
        self._used = True
        self._root = root

        self._walk(root)

        if self._stack:
            log.debug(
                "Outline walk ended with %d frame(s) on the stack", len(self._stack),
            )
        # Sections left open by malformed nesting still get a heading state.
        for section in self.arena:
            section.finalize_heading()

        return self._owners[0].outline

    # -- traversal ----------------------------------------------------------

    def _walk(self, root: TreeNode) -> None:
        # (leaving, node): children are pushed in reverse so they pop in order.
        work: list[tuple[bool, TreeNode]] = [(False, root)]
        while work:
            leaving, node = work.pop()
            if leaving:
                self._exit_node(node)
                continue
            self._enter_node(node)
            work.append((True, node))
            children = list(iter_children(node))
            children.reverse()
            work.extend((False, child) for child in children)

    def _classify(self, node: TreeNode | None) -> NodeCategory | None:
        # The traversal root always owns an outline, whatever its tag.
        if node is not None and self._root is not None and node == self._root:
            if classify(node) == "sectioning_content":
                return "sectioning_content"
            return "sectioning_root"
        return classify(node)

    def _stack_top(self) -> TreeNode | None:
        if not self._stack:
            return None
        match self._stack[-1]:
            case OwnerFrame(owner_id=oid):
                return self._owners[oid].element
            case NodeFrame(node=node):
                return node

    def _stack_top_category(self) -> NodeCategory | None:
        if not self._stack:
            return None
        match self._stack[-1]:
            case OwnerFrame(owner_id=oid):
                return self._owners[oid].category
            case NodeFrame(category=category):
                return category

    def _enter_node(self, node: TreeNode) -> None:
        if self._stack_top_category() in ("heading", "hidden"):
            return

        category = self._classify(node)

        if category == "hidden":
            self._stack.append(NodeFrame(node, "hidden"))
            return

        if category == "sectioning_root" or category == "sectioning_content":
            self._open_outline(node, category)
            return

        if category == "heading":
            section = self._section()
            if isinstance(section.heading, Unset):
                section.heading = Explicit(node)
            else:
                self._add_heading_section(node)
            self._stack.append(NodeFrame(node, "heading"))

    def _exit_node(self, node: TreeNode) -> None:
        if self._stack_top() == node:
            self._stack.pop()

        top_category = self._stack_top_category()
        if top_category == "heading":
            return
        if top_category == "hidden":
            self._section().associate_node(node)
            return

        category = self._classify(node)
        if category == "sectioning_root" or category == "sectioning_content":
            self._close_outline(category)
            return

        self._section().associate_node(node)

    # -- nested outlines ----------------------------------------------------

    def _open_outline(self, element: TreeNode, category: OwnerCategory) -> None:
        if self._current_owner is not None:
            self._stack.append(OwnerFrame(self._current_owner.owner_id))
            if category == "sectioning_content":
                self._section().finalize_heading()

        section = self.arena.new_section(element)
        owner = Owner(
            owner_id=len(self._owners),
            element=element,
            category=category,
            outline=Outline(self.arena, [section.section_id]),
        )
        if category == "sectioning_root" and self._current_section is not None:
            owner.parent_section_id = self._current_section.section_id
        self._owners.append(owner)

        self._current_owner = owner
        self._current_section = section

    def _close_outline(self, category: OwnerCategory) -> None:
        self._section().finalize_heading()

        if not self._stack:
            return

        closing = self._owner()
        frame = self._stack.pop()
        if not isinstance(frame, OwnerFrame):
            log.debug("Expected a suspended owner on the stack, found %r", frame)
            return
        resumed = self._owners[frame.owner_id]

        if category == "sectioning_root":
            if closing.parent_section_id is not None:
                self._current_section = self.arena.get(closing.parent_section_id)
            self._current_owner = resumed
            return

        reentry = resumed.outline.last_section
        for section in closing.outline.sections:
            self.arena.append_subsection(reentry, section)
        self._current_owner = resumed
        self._current_section = reentry

    # -- headings -----------------------------------------------------------

    def _add_heading_section(self, heading: TreeNode) -> None:
        outline = self._owner().outline
        rank = heading_rank(heading)
        last_heading = outline.last_section.heading

        # Same rank or stronger than the last top-level heading: new sibling
        # at the top of the outline.
        if isinstance(last_heading, Implied) or rank <= _rank_of(last_heading):
            section = self.arena.new_section(heading, Explicit(heading))
            outline.append_section(section)
            self._current_section = section
            return

        # Otherwise nest under the nearest ancestor that strictly outranks it.
        candidate: Section | None = self._section()
        while candidate is not None:
            if isinstance(candidate.heading, Explicit) and outranks(candidate.heading.node, heading):
                section = self.arena.new_section(heading, Explicit(heading))
                self.arena.append_subsection(candidate, section)
                self._current_section = section
                return
            candidate = self.arena.parent(candidate)

        log.debug("No outranking ancestor for %r; appending at top level", heading)
        section = self.arena.new_section(heading, Explicit(heading))
        outline.append_section(section)
        self._current_section = section

    # -- state accessors ----------------------------------------------------

    def _section(self) -> Section:
        if self._current_section is None:
            raise RuntimeError("no current section; the walk has not opened an outline")
        return self._current_section

    def _owner(self) -> Owner:
        if self._current_owner is None:
            raise RuntimeError("no current outline owner")
        return self._current_owner


def _rank_of(state: Explicit | Unset) -> int:
    # An unset last heading cannot outrank anything.
    if isinstance(state, Explicit):
        return heading_rank(state.node)
    return 7


def build_outline(root: TreeNode) -> Outline:
    """Return the outline of *root* using a fresh builder."""
    return OutlineBuilder().build(root)

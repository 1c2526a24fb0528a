"""Data model for document outlines.

Type hierarchy:
  Unset / Implied / Explicit — three-way heading state of a section
  Section      — one outline section: associated nodes, heading, subsections
  SectionArena — owns every Section of one build, addressed by SectionId
  Outline      — ordered top-level sections of one owner
  Owner        — element possessing an outline (sectioning element or root)
  NodeFrame / OwnerFrame — traversal stack frames

Sections reference their parent and subsections by id, never by object, so
the section tree carries no reference cycles. All outlines produced by one
build share one arena; a merged sectioning-content outline's sections are
therefore reachable from the ambient outline without copying.
"""
from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Literal, TypeAlias

from outliner.dom import TreeNode

SectionId: TypeAlias = int
OwnerId: TypeAlias = int
OwnerCategory: TypeAlias = Literal["sectioning_root", "sectioning_content"]


# ---------------------------------------------------------------------------
# Heading state
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Unset:
    """No heading seen yet; only valid while the section is still open."""


@dataclass(frozen=True, slots=True)
class Implied:
    """The section has no heading element and is represented by a placeholder."""


@dataclass(frozen=True, slots=True)
class Explicit:
    """The section is headed by an h1-h6 or hgroup element.

    Usage::

        match section.heading:
            case Explicit(node=h): print(h.tag_name)
            case Implied(): print("no heading")
    """
    node: TreeNode


HeadingState: TypeAlias = Unset | Implied | Explicit

UNSET = Unset()
IMPLIED = Implied()


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class Section:
    """A section of an outline.

    ``nodes`` always starts with the node that opened the section (a
    heading, hgroup or sectioning element) followed by every node later
    associated with it, in document order.
    """

    section_id: SectionId
    nodes: list[TreeNode]
    heading: HeadingState = UNSET
    subsection_ids: list[SectionId] = field(default_factory=list)
    parent_id: SectionId | None = None

    def __post_init__(self) -> None:
        if self.section_id < 0:
            raise ValueError(f"section_id must be >= 0, got {self.section_id}")
        if not self.nodes:
            raise ValueError("a section must be opened by a node")

    @property
    def opening_node(self) -> TreeNode:
        return self.nodes[0]

    @property
    def is_finished(self) -> bool:
        return not isinstance(self.heading, Unset)

    def associate_node(self, node: TreeNode) -> None:
        # A heading that opened the section is already nodes[0].
        if node == self.nodes[0]:
            return
        self.nodes.append(node)

    def finalize_heading(self) -> None:
        """Resolve an unset heading to implied; explicit headings are kept."""
        if isinstance(self.heading, Unset):
            self.heading = IMPLIED


class SectionArena:
    """Owns every Section of one outline build."""

    __slots__ = ("_sections",)

    def __init__(self) -> None:
        self._sections: list[Section] = []

    def __len__(self) -> int:
        return len(self._sections)

    def __iter__(self) -> Iterator[Section]:
        return iter(self._sections)

    def new_section(
        self,
        node: TreeNode,
        heading: HeadingState = UNSET,
    ) -> Section:
        section = Section(
            section_id=len(self._sections),
            nodes=[node],
            heading=heading,
        )
        self._sections.append(section)
        return section

    def get(self, section_id: SectionId) -> Section:
        if not 0 <= section_id < len(self._sections):
            raise KeyError(f"unknown section id {section_id}")
        return self._sections[section_id]

    def parent(self, section: Section) -> Section | None:
        if section.parent_id is None:
            return None
        return self.get(section.parent_id)

    def subsections(self, section: Section) -> tuple[Section, ...]:
        return tuple(self.get(sid) for sid in section.subsection_ids)

    def append_subsection(self, parent: Section, child: Section) -> None:
        """Make *child* the last subsection of *parent*."""
        parent.subsection_ids.append(child.section_id)
        child.parent_id = parent.section_id


# ---------------------------------------------------------------------------
# Outlines and owners
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class Outline:
    """Ordered top-level sections belonging to one outline owner."""

    arena: SectionArena
    section_ids: list[SectionId]

    def __post_init__(self) -> None:
        if not self.section_ids:
            raise ValueError("an outline starts with its owner's section")

    @property
    def sections(self) -> tuple[Section, ...]:
        return tuple(self.arena.get(sid) for sid in self.section_ids)

    @property
    def last_section(self) -> Section:
        return self.arena.get(self.section_ids[-1])

    def append_section(self, section: Section) -> None:
        self.section_ids.append(section.section_id)

    def subsections(self, section: Section) -> tuple[Section, ...]:
        return self.arena.subsections(section)

    def parent(self, section: Section) -> Section | None:
        return self.arena.parent(section)

    def walk(self) -> Iterator[tuple[int, Section]]:
        """Yield ``(depth, section)`` pairs in pre-order; top level is depth 0."""
        pending = [(0, s) for s in reversed(self.sections)]
        while pending:
            depth, section = pending.pop()
            yield depth, section
            pending.extend(
                (depth + 1, sub) for sub in reversed(self.subsections(section))
            )


@dataclass(slots=True)
class Owner:
    """An element for which an outline is created.

    ``parent_section_id`` is only recorded for sectioning-root owners; it is
    the section that was current when the owner opened and becomes current
    again when it closes.
    """

    owner_id: OwnerId
    element: TreeNode
    category: OwnerCategory
    outline: Outline
    parent_section_id: SectionId | None = None


# ---------------------------------------------------------------------------
# Traversal stack frames
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NodeFrame:
    """A heading or hidden element set aside on the traversal stack.

    ``category`` is the classification taken when the frame was pushed.
    """

    node: TreeNode
    category: Literal["heading", "hidden"]


@dataclass(frozen=True, slots=True)
class OwnerFrame:
    """A suspended outline owner, resumed when its nested outline closes."""

    owner_id: OwnerId


Frame: TypeAlias = NodeFrame | OwnerFrame


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def heading_kind(state: HeadingState) -> str:
    match state:
        case Explicit():
            return "explicit"
        case Implied():
            return "implied"
        case _:
            return "unset"


def _section_fields(section: Section) -> tuple[dict[str, object], list[dict[str, object]]]:
    heading_tag: str | None = None
    heading_text: str | None = None
    if isinstance(section.heading, Explicit):
        heading_tag = section.heading.node.tag_name
        heading_text = " ".join(section.heading.node.text_content().split())
    subsections: list[dict[str, object]] = []
    entry: dict[str, object] = {
        "section_id": section.section_id,
        "heading": heading_kind(section.heading),
        "heading_tag": heading_tag,
        "heading_text": heading_text,
        "opened_by": section.opening_node.tag_name,
        "node_count": len(section.nodes),
        "subsections": subsections,
    }
    return entry, subsections


def section_to_dict(outline: Outline, section: Section) -> dict[str, object]:
    """Serialize *section* and its subsections for JSON reports.

    Built with an explicit stack, so outlines nested deeper than the
    recursion limit still serialize.
    """
    entry, subsections = _section_fields(section)
    pending = [(section, subsections)]
    while pending:
        current, target = pending.pop()
        for sub in outline.subsections(current):
            child, child_subsections = _section_fields(sub)
            target.append(child)
            pending.append((sub, child_subsections))
    return entry


def outline_to_dict(outline: Outline) -> dict[str, object]:
    """Serialize an outline for deterministic snapshots."""
    return {
        "section_count": sum(1 for _ in outline.walk()),
        "sections": [section_to_dict(outline, s) for s in outline.sections],
    }

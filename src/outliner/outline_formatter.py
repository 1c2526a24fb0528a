"""Human-readable renderings of an outline.

Two outlines are produced, mirroring the W3C Markup Validation Service:

- the structural outline — sections and subsections as a nested list;
- the heading-level outline — every heading in order, indented by level,
  with ``[missing]`` fill-ins where levels are skipped.

Labelling policy lives here, not in the builder: implied headings become
``[<tag> element with no heading]``, headings without text (and without an
image ``alt`` to fall back on) become ``[<tag> element with empty
heading]``, and an hgroup is shown as its headings joined by a colon.
"""
from __future__ import annotations

from dataclasses import dataclass
from html import escape

from outliner.dom import TreeNode, find_descendant, iter_descendants
from outliner.node_classifier import HEADING_TAGS
from outliner.outline_types import Explicit, Outline, Section

CSS_PREFIX = "outliner"

_IMPLIED_NOTICE = "[{tag} element with no heading]"
_EMPTY_NOTICE = "[{tag} element with empty heading]"
_MISSING_TEXT = "[missing]"
_EMPTY_TEXT = "[empty]"


# ---------------------------------------------------------------------------
# Heading labels
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class HeadingLabel:
    """One displayable heading: tag (``None`` for an implied notice) and text."""

    tag: str | None
    text: str
    is_notice: bool = False

    @property
    def tag_display(self) -> str:
        return f"<{self.tag.upper()}>" if self.tag else ""


def heading_text(heading: TreeNode) -> str:
    """Whitespace-collapsed text of *heading*, else its first image's alt."""
    text = " ".join(heading.text_content().split())
    if text:
        return text
    img = find_descendant(heading, "img")
    if img is not None:
        return (img.get_attribute("alt") or "").strip()
    return ""


def _heading_label(
    heading: TreeNode,
    section_tag: str,
    hgroup_index: int | None = None,
) -> HeadingLabel:
    tag = heading.tag_name
    text = heading_text(heading)
    if text:
        return HeadingLabel(tag, text)
    # Cite the heading itself when it opened the section or trails inside an
    # hgroup; otherwise cite the sectioning element it heads.
    if tag == section_tag or (hgroup_index is not None and hgroup_index > 0):
        name = tag
    else:
        name = section_tag
    return HeadingLabel(tag, _EMPTY_NOTICE.format(tag=name), is_notice=True)


def hgroup_headings(hgroup: TreeNode) -> list[tuple[int, TreeNode]]:
    """h1-h6 elements inside *hgroup* with their index among its elements."""
    elements = [d for d in iter_descendants(hgroup) if d.kind == "element"]
    return [
        (index, element)
        for index, element in enumerate(elements)
        if element.tag_name in HEADING_TAGS
    ]


def section_labels(section: Section) -> tuple[HeadingLabel, ...]:
    """Labels representing *section*'s heading, one per displayed heading."""
    section_tag = section.opening_node.tag_name
    heading = section.heading
    if not isinstance(heading, Explicit):
        return (HeadingLabel(None, _IMPLIED_NOTICE.format(tag=section_tag), is_notice=True),)

    node = heading.node
    if node.tag_name == "hgroup":
        return tuple(
            _heading_label(h, section_tag, index)
            for index, h in hgroup_headings(node)
        )
    return (_heading_label(node, section_tag),)


# ---------------------------------------------------------------------------
# Structural outline
# ---------------------------------------------------------------------------


def _label_html(label: HeadingLabel) -> str:
    text_class = f"{CSS_PREFIX}-h-text"
    if label.is_notice:
        text_class += f" {CSS_PREFIX}-heading-notice"
    return (
        f'<b class="{CSS_PREFIX}-h-tag">{escape(label.tag_display)}</b> '
        f'<span class="{text_class}">{escape(label.text)}</span>'
    )


def _section_heading_html(section: Section) -> str:
    labels = section_labels(section)
    if not isinstance(section.heading, Explicit):
        return f'<p class="{CSS_PREFIX}-heading-notice">{escape(labels[0].text)}</p>'
    parts = [f'<p class="{CSS_PREFIX}-heading">{_label_html(label)}</p>' for label in labels]
    if section.heading.node.tag_name != "hgroup":
        return parts[0]
    return f'<div class="{CSS_PREFIX}-hgroup">' + " <b>:</b> ".join(parts) + "</div>"


def format_outline_html(outline: Outline) -> str:
    """Render the structural outline as a nested HTML ordered list."""
    parts = ["<ol>"]
    # One closing run per open parent section; depth equals its length.
    closers: list[str] = []
    for depth, section in outline.walk():
        while len(closers) > depth:
            parts.append(closers.pop())
        heading = _section_heading_html(section)
        if not outline.subsections(section):
            parts.append(f"<li>{heading}</li>")
            continue
        parts.append(
            f'<li><details class="{CSS_PREFIX}-subsections" open>'
            f'<summary class="{CSS_PREFIX}-parent-heading-container">{heading}</summary>'
            "<ol>"
        )
        closers.append("</ol></details></li>")
    parts.extend(reversed(closers))
    parts.append("</ol>")
    return "".join(parts)


def format_label_text(labels: tuple[HeadingLabel, ...]) -> str:
    rendered = []
    for label in labels:
        if label.tag is None:
            rendered.append(label.text)
        else:
            rendered.append(f"{label.tag_display} {label.text}")
    return " : ".join(rendered)


def format_outline_text(outline: Outline, *, indent: str = "  ") -> str:
    """Render the structural outline as indented plain text, one section per line."""
    lines = [
        f"{indent * depth}{format_label_text(section_labels(section))}"
        for depth, section in outline.walk()
    ]
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Heading-level outline
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class HeadingLevelEntry:
    """A line of the heading-level outline."""

    level: int
    text: str
    missing: bool = False

    def __post_init__(self) -> None:
        if not 1 <= self.level <= 6:
            raise ValueError(f"level must be in [1, 6], got {self.level}")


def heading_level_outline(outline: Outline) -> list[HeadingLevelEntry]:
    """Every explicit heading of *outline* in structural order.

    Headings inside an hgroup are listed individually. When a heading skips
    one or more levels below the previous one, a ``[missing]`` entry is
    inserted for each skipped level.
    """
    entries: list[HeadingLevelEntry] = []
    prev_level = 1
    for _, section in outline.walk():
        if not isinstance(section.heading, Explicit):
            continue
        node = section.heading.node
        if node.tag_name == "hgroup":
            headings = [h for _, h in hgroup_headings(node)]
        else:
            headings = [node]
        for heading in headings:
            level = int(heading.tag_name[1])
            for skipped in range(prev_level + 1, level):
                entries.append(HeadingLevelEntry(skipped, _MISSING_TEXT, missing=True))
            entries.append(HeadingLevelEntry(level, heading_text(heading) or _EMPTY_TEXT))
            prev_level = level
    return entries


def format_heading_level_text(
    entries: list[HeadingLevelEntry],
    *,
    indent: str = "  ",
) -> str:
    return "\n".join(
        f"{indent * (entry.level - 1)}<H{entry.level}> {entry.text}"
        for entry in entries
    )

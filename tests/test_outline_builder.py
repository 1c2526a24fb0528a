"""Tests for outliner.outline_builder module."""
import pytest

from outliner.dom import TreeNode, find_body, find_descendant, parse_html
from outliner.node_classifier import NodeCategory
from outliner.outline_builder import OutlineBuilder, build_outline
from outliner.outline_types import Explicit, Implied, Outline, Section, outline_to_dict


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _body(markup: str) -> TreeNode:
    body = find_body(parse_html(f"<body>{markup}</body>"))
    assert body is not None
    return body


def _title(section: Section) -> str:
    assert isinstance(section.heading, Explicit)
    return section.heading.node.text_content()


def _titles(sections: tuple[Section, ...]) -> list[str]:
    return [_title(s) for s in sections]


def _shape(outline: Outline) -> list[tuple[int, str]]:
    """(depth, title) pairs; implied headings read as '*'."""
    rows = []
    for depth, section in outline.walk():
        if isinstance(section.heading, Implied):
            rows.append((depth, "*"))
        else:
            rows.append((depth, _title(section)))
    return rows


def _texts(section: Section) -> list[str]:
    return [n.text_content() for n in section.nodes if n.kind == "text"]


# ---------------------------------------------------------------------------
# Basic outlines
# ---------------------------------------------------------------------------


class TestNoHeadings:
    def test_single_implied_section(self) -> None:
        outline = build_outline(_body("<p>x</p><div>y</div>"))
        assert len(outline.sections) == 1
        assert isinstance(outline.sections[0].heading, Implied)

    def test_empty_body(self) -> None:
        body = _body("")
        outline = build_outline(body)
        assert len(outline.sections) == 1
        section = outline.sections[0]
        assert isinstance(section.heading, Implied)
        assert section.nodes == [body]

    def test_content_associated_in_document_order(self) -> None:
        outline = build_outline(_body("<p>one</p><p>two</p>"))
        section = outline.sections[0]
        assert section.opening_node.tag_name == "body"
        assert _texts(section) == ["one", "two"]
        tags = [n.tag_name for n in section.nodes if n.kind == "element"]
        assert tags == ["body", "p", "p"]


class TestHeadingRanks:
    def test_first_heading_names_the_root_section(self) -> None:
        outline = build_outline(_body("<h1>A</h1><p>x</p>"))
        assert _titles(outline.sections) == ["A"]
        assert _texts(outline.sections[0]) == ["x"]

    def test_mixed_ranks(self) -> None:
        outline = build_outline(
            _body("<h1>A</h1><p>x</p><h2>B</h2><h3>C</h3><h2>D</h2>")
        )
        assert _shape(outline) == [(0, "A"), (1, "B"), (2, "C"), (1, "D")]
        a = outline.sections[0]
        b, d = outline.subsections(a)
        assert _titles(outline.subsections(b)) == ["C"]
        assert outline.subsections(d) == ()

    def test_equal_rank_headings_are_siblings(self) -> None:
        outline = build_outline(_body("<h2>A</h2><h2>B</h2><h2>C</h2>"))
        assert _titles(outline.sections) == ["A", "B", "C"]
        assert all(outline.subsections(s) == () for s in outline.sections)

    def test_equal_rank_nested_headings_are_siblings(self) -> None:
        outline = build_outline(_body("<h1>A</h1><h3>B</h3><h3>C</h3>"))
        assert _shape(outline) == [(0, "A"), (1, "B"), (1, "C")]

    def test_stronger_heading_starts_top_level_section(self) -> None:
        outline = build_outline(_body("<h2>A</h2><h1>B</h1>"))
        assert _titles(outline.sections) == ["A", "B"]

    def test_weaker_then_middle_rank(self) -> None:
        outline = build_outline(_body("<h1>A</h1><h3>B</h3><h2>C</h2>"))
        assert _shape(outline) == [(0, "A"), (1, "B"), (1, "C")]

    def test_heading_after_deep_subsection_climbs_to_outranking_ancestor(self) -> None:
        outline = build_outline(
            _body("<h1>A</h1><h2>B</h2><h4>C</h4><h3>D</h3>")
        )
        assert _shape(outline) == [(0, "A"), (1, "B"), (2, "C"), (2, "D")]

    def test_subsection_parent_links(self) -> None:
        outline = build_outline(_body("<h1>A</h1><h2>B</h2>"))
        a = outline.sections[0]
        (b,) = outline.subsections(a)
        assert outline.parent(b) is a
        assert outline.parent(a) is None

    def test_heading_section_nodes(self) -> None:
        outline = build_outline(_body("<h1>A</h1><h2>B</h2><p>x</p>"))
        (b,) = outline.subsections(outline.sections[0])
        assert b.opening_node.tag_name == "h2"
        assert [n.tag_name for n in b.nodes if n.kind == "element"] == ["h2", "p"]
        assert _texts(b) == ["x"]

    def test_content_inside_heading_is_not_outlined(self) -> None:
        outline = build_outline(_body("<h1>A<h2>B</h2></h1>"))
        assert _shape(outline) == [(0, "AB")]


# ---------------------------------------------------------------------------
# Sectioning content
# ---------------------------------------------------------------------------


class TestSectioningContent:
    def test_section_merges_into_ambient_section(self) -> None:
        body = _body("<section><h1>S</h1></section><p>after</p>")
        outline = build_outline(body)
        assert len(outline.sections) == 1
        ambient = outline.sections[0]
        assert isinstance(ambient.heading, Implied)
        assert _titles(outline.subsections(ambient)) == ["S"]
        assert _texts(ambient) == ["after"]
        (merged,) = outline.subsections(ambient)
        assert "after" not in [n.text_content() for n in merged.nodes]

    def test_section_under_explicit_heading(self) -> None:
        outline = build_outline(
            _body("<h1>A</h1><section><h2>B</h2></section><p>after</p>")
        )
        assert _shape(outline) == [(0, "A"), (1, "B")]
        assert _texts(outline.sections[0]) == ["after"]

    def test_section_rank_does_not_matter(self) -> None:
        outline = build_outline(_body("<h3>A</h3><article><h1>B</h1></article>"))
        assert _shape(outline) == [(0, "A"), (1, "B")]

    def test_heading_after_section_starts_new_top_level_section(self) -> None:
        outline = build_outline(_body("<section><h2>S</h2></section><h1>T</h1>"))
        assert _shape(outline) == [(0, "*"), (1, "S"), (0, "T")]

    def test_section_without_heading_is_implied(self) -> None:
        outline = build_outline(_body("<h1>A</h1><nav><p>links</p></nav>"))
        assert _shape(outline) == [(0, "A"), (1, "*")]
        (nav,) = outline.subsections(outline.sections[0])
        assert nav.opening_node.tag_name == "nav"
        assert _texts(nav) == ["links"]

    def test_section_with_several_headings_merges_all_top_level_sections(self) -> None:
        outline = build_outline(
            _body("<h1>A</h1><aside><h2>X</h2><h2>Y</h2></aside>")
        )
        assert _shape(outline) == [(0, "A"), (1, "X"), (1, "Y")]

    def test_nested_sections(self) -> None:
        outline = build_outline(
            _body(
                "<section><h1>S</h1>"
                "<article><h1>X</h1><p>x</p></article>"
                "<p>s</p></section>"
            )
        )
        assert _shape(outline) == [(0, "*"), (1, "S"), (2, "X")]
        (s,) = outline.subsections(outline.sections[0])
        assert _texts(s) == ["s"]

    def test_merged_section_parent(self) -> None:
        outline = build_outline(_body("<h1>A</h1><section><h1>S</h1></section>"))
        a = outline.sections[0]
        (s,) = outline.subsections(a)
        assert outline.parent(s) is a


# ---------------------------------------------------------------------------
# Sectioning roots
# ---------------------------------------------------------------------------


class TestSectioningRoots:
    def test_blockquote_outline_is_standalone(self) -> None:
        body = _body("<blockquote><h2>Q</h2></blockquote>")
        builder = OutlineBuilder()
        outline = builder.build(body)

        assert len(outline.sections) == 1
        root_section = outline.sections[0]
        assert isinstance(root_section.heading, Implied)
        assert outline.subsections(root_section) == ()

        blockquote = find_descendant(body, "blockquote")
        assert blockquote is not None
        owner = builder.owner_of(blockquote)
        assert owner is not None
        assert owner.category == "sectioning_root"
        assert _titles(owner.outline.sections) == ["Q"]

    def test_context_restored_after_root(self) -> None:
        outline = build_outline(
            _body(
                "<h1>A</h1><h2>B</h2>"
                "<figure><h1>F</h1></figure>"
                "<h3>C</h3><p>c</p>"
            )
        )
        assert _shape(outline) == [(0, "A"), (1, "B"), (2, "C")]

    def test_root_does_not_finalize_ambient_heading(self) -> None:
        outline = build_outline(
            _body("<details><h1>D</h1></details><h2>After</h2>")
        )
        assert _shape(outline) == [(0, "After")]

    def test_content_after_root_attaches_to_ambient_section(self) -> None:
        outline = build_outline(
            _body("<h1>A</h1><fieldset><p>in</p></fieldset><p>out</p>")
        )
        assert _texts(outline.sections[0]) == ["out"]

    def test_owner_per_sectioning_element(self) -> None:
        builder = OutlineBuilder()
        builder.build(
            _body(
                "<blockquote><h1>Q</h1></blockquote>"
                "<section><h1>S</h1><table><tr><td>cell</td></tr></table></section>"
            )
        )
        tags = [owner.element.tag_name for owner in builder.owners]
        assert tags == ["body", "blockquote", "section", "td"]
        assert builder.owners[0].parent_section_id is None
        assert builder.owners[1].parent_section_id == builder.owners[0].outline.section_ids[0]
        assert builder.owners[2].parent_section_id is None


# ---------------------------------------------------------------------------
# hgroup and hidden content
# ---------------------------------------------------------------------------


class TestHgroup:
    def test_hgroup_heads_section(self) -> None:
        outline = build_outline(_body("<hgroup><h1>Title</h1><h2>Sub</h2></hgroup>"))
        assert len(outline.sections) == 1
        heading = outline.sections[0].heading
        assert isinstance(heading, Explicit)
        assert heading.node.tag_name == "hgroup"

    def test_hgroup_ranks_as_strongest_heading(self) -> None:
        outline = build_outline(
            _body("<hgroup><h2>Sub</h2><h1>Title</h1></hgroup><h2>Next</h2>")
        )
        assert _shape(outline) == [(0, "SubTitle"), (1, "Next")]

    def test_empty_hgroup_is_content(self) -> None:
        outline = build_outline(_body("<hgroup><p>x</p></hgroup>"))
        section = outline.sections[0]
        assert isinstance(section.heading, Implied)
        assert "hgroup" in [n.tag_name for n in section.nodes]


class TestHidden:
    def test_hidden_subtree_is_excluded(self) -> None:
        body = _body(
            "<h1>A</h1>"
            "<div hidden><h1>H</h1><section><h2>S</h2></section></div>"
            "<p>y</p>"
        )
        builder = OutlineBuilder()
        outline = builder.build(body)
        assert _shape(outline) == [(0, "A")]
        assert [o.element.tag_name for o in builder.owners] == ["body"]

    def test_hidden_node_is_associated(self) -> None:
        body = _body("<h1>A</h1><div hidden><h2>H</h2></div>")
        outline = build_outline(body)
        hidden = find_descendant(body, "div")
        assert hidden in outline.sections[0].nodes

    def test_hidden_heading(self) -> None:
        outline = build_outline(_body("<h1 hidden>X</h1><p>y</p>"))
        assert isinstance(outline.sections[0].heading, Implied)

    def test_hidden_sectioning_element(self) -> None:
        outline = build_outline(_body("<h1>A</h1><section hidden><h1>S</h1></section>"))
        assert _shape(outline) == [(0, "A")]


# ---------------------------------------------------------------------------
# Roots, reuse and robustness
# ---------------------------------------------------------------------------


class TestTraversalRoot:
    def test_sectioning_content_root(self) -> None:
        body = _body("<article><h2>A</h2><h3>B</h3></article>")
        article = find_descendant(body, "article")
        assert article is not None
        outline = build_outline(article)
        assert _shape(outline) == [(0, "A"), (1, "B")]
        assert outline.sections[0].opening_node == article

    def test_non_sectioning_root_owns_an_outline(self) -> None:
        body = _body("<div><h1>A</h1><h2>B</h2></div>")
        div = find_descendant(body, "div")
        assert div is not None
        assert _shape(build_outline(div)) == [(0, "A"), (1, "B")]

    def test_document_root(self) -> None:
        outline = build_outline(parse_html("<body><h1>A</h1></body>"))
        # <body> is a sectioning root: its outline stays standalone.
        assert _shape(outline) == [(0, "*")]
        assert outline.sections[0].opening_node.tag_name == "[document]"

    def test_hidden_root_still_outlined(self) -> None:
        body = find_body(parse_html("<body hidden><h1>A</h1></body>"))
        assert body is not None
        assert _shape(build_outline(body)) == [(0, "A")]


class TestBuilderLifecycle:
    def test_builder_is_single_use(self) -> None:
        builder = OutlineBuilder()
        builder.build(_body("<p>x</p>"))
        with pytest.raises(RuntimeError):
            builder.build(_body("<p>y</p>"))

    def test_balanced_tree_leaves_empty_stack(self) -> None:
        builder = OutlineBuilder()
        builder.build(_body("<h1>A</h1><section><h2>B</h2></section><blockquote>q</blockquote>"))
        assert builder.leftover_frames == ()

    def test_idempotent(self) -> None:
        body = _body(
            "<h1>A</h1><section><h2>B</h2><p>b</p></section>"
            "<hgroup><h1>C</h1><h2>c</h2></hgroup><h3>D</h3>"
        )
        first = outline_to_dict(build_outline(body))
        second = outline_to_dict(build_outline(body))
        assert first == second

    def test_every_section_finished(self) -> None:
        builder = OutlineBuilder()
        builder.build(
            _body("<section><article><aside><p>x</p></aside></article></section><h2>z</h2>")
        )
        assert all(section.is_finished for section in builder.arena)

    def test_deep_nesting_does_not_recurse(self) -> None:
        depth = 3000
        markup = "<div>" * depth + "<h1>Deep</h1>" + "</div>" * depth
        outline = build_outline(_body(markup))
        assert _shape(outline) == [(0, "Deep")]

    def test_structurally_equal_elements_are_distinct(self) -> None:
        outline = build_outline(_body("<h1>A</h1><p></p><p></p>"))
        paragraphs = [n for n in outline.sections[0].nodes if n.tag_name == "p"]
        assert len(paragraphs) == 2
        assert paragraphs[0] != paragraphs[1]

    def test_deep_sectioning_chain(self) -> None:
        depth = 1200
        markup = "<section><h1>S</h1>" * depth + "</section>" * depth
        outline = build_outline(_body(markup))
        rows = _shape(outline)
        assert len(rows) == depth + 1
        assert rows[0] == (0, "*")
        assert rows[-1] == (depth, "S")

    def test_hgroup_descendants_do_not_reclassify_hgroup(
        self, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        import outliner.outline_builder as outline_builder

        seen: list[str | None] = []
        real_classify = outline_builder.classify

        def counting_classify(node: TreeNode | None) -> NodeCategory | None:
            seen.append(node.tag_name if node is not None else None)
            return real_classify(node)

        monkeypatch.setattr(outline_builder, "classify", counting_classify)
        spans = "<span>x</span>" * 200
        outline = build_outline(_body(f"<hgroup><h1>T</h1>{spans}</hgroup>"))
        assert _shape(outline) == [(0, "T" + "x" * 200)]
        # Once on enter, once on exit; never while inside it.
        assert seen.count("hgroup") == 2
        assert "span" not in seen

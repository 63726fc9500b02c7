import logging
import textwrap

import pytest

from TermRender import markdown_parser
from TermRender.model import (
    Blank,
    Blockquote,
    CodeBlock,
    FootnoteRef,
    Header,
    HorizontalRule,
    ListItem,
    MathBlock,
    Matrix,
    Paragraph,
    Table,
    TaskItem,
    Text,
)


def test_parse_blocks_and_inline():
    md_text = textwrap.dedent(
        """\
        # Introduction

        Text with *italics*, **bold** and inline math $E=mc^2$.

        - first
        2. second
        - [x] done
        - [ ] open
        > > nested quote

        ---
        ### Details ###
        """
    )
    document = markdown_parser.parse_markdown(md_text)
    blocks = document.blocks
    assert blocks[0] == Header(level=1, runs=[Text("Introduction")])
    assert isinstance(blocks[1], Blank)
    assert isinstance(blocks[2], Paragraph)
    assert blocks[2].text == "Text with italics, bold and inline math E=mc²."
    assert blocks[4] == ListItem(ordered=False, runs=[Text("first")])
    assert blocks[5] == ListItem(ordered=True, runs=[Text("second")], index=2)
    assert blocks[6] == TaskItem(checked=True, runs=[Text("done")])
    assert blocks[7] == TaskItem(checked=False, runs=[Text("open")])
    assert blocks[8] == Blockquote(depth=2, runs=[Text("nested quote")])
    assert isinstance(blocks[10], HorizontalRule)
    assert blocks[11] == Header(level=3, runs=[Text("Details")])
    assert len(blocks) == 12


def test_nested_list_indent_is_kept():
    document = markdown_parser.parse_markdown("- top\n  - inner")
    assert [block.indent for block in document.blocks] == [0, 2]


def test_unterminated_code_fence_is_closed():
    document = markdown_parser.parse_markdown("```py\nprint(1)")
    assert document.blocks == [CodeBlock(language="py", raw_text="print(1)")]


def test_code_block_keeps_markup_verbatim():
    document = markdown_parser.parse_markdown("```\n# not a heading\n| a |\n```\nafter")
    assert document.blocks[0] == CodeBlock(language=None, raw_text="# not a heading\n| a |")
    assert document.blocks[1] == Paragraph(runs=[Text("after")])


def test_table_with_alignment_and_missing_cell():
    document = markdown_parser.parse_markdown("| A | B |\n|---|:-:|\n| 1 |")
    table = document.blocks[0]
    assert isinstance(table, Table)
    assert table.headers == ["A", "B"]
    assert table.rows == [["1"]]
    assert table.alignments == ["left", "center"]
    assert table.widths == [8, 8]


def test_table_ends_at_first_non_row():
    document = markdown_parser.parse_markdown("| A |\n| 1 |\nplain")
    assert isinstance(document.blocks[0], Table)
    assert document.blocks[0].rows == [["1"]]
    assert document.blocks[1] == Paragraph(runs=[Text("plain")])


def test_escaped_pipe_stays_in_cell():
    assert markdown_parser.split_table_row(r"| a \| b | c |") == ["a | b", "c"]


def test_footnotes_resolve_before_definition():
    document = markdown_parser.parse_markdown("Text[^1]\n\n[^1]: Explanation")
    assert document.resolve_footnote("1") == "Explanation"
    paragraph = document.blocks[0]
    assert paragraph.runs == [Text("Text"), FootnoteRef(ref="1", definition="Explanation")]
    assert len(document.blocks) == 2


def test_footnote_defined_after_sentence():
    document = markdown_parser.parse_markdown("See[^1].\n\n[^1]: Explanation.")
    assert document.blocks[0].runs[1].definition == "Explanation."


def test_footnote_inside_code_is_ignored():
    document = markdown_parser.parse_markdown("```\n[^1]: not a note\n```")
    assert document.footnotes == {}


def test_math_blocks():
    document = markdown_parser.parse_markdown("$$\nE = mc^2\n$$\n$$x^2$$\n\\[\n\\alpha\n\\]")
    assert document.blocks == [
        MathBlock(raw_text="E = mc^2", text="E = mc²"),
        MathBlock(raw_text="x^2", text="x²"),
        MathBlock(raw_text="\\alpha", text="α"),
    ]


def test_unterminated_math_is_closed():
    document = markdown_parser.parse_markdown("$$\n\\alpha")
    assert document.blocks == [MathBlock(raw_text="\\alpha", text="α")]


def test_matrix_inside_math_block():
    md_text = "$$\n\\begin{pmatrix}\na & b \\\\\nc & d\n\\end{pmatrix}\n$$"
    document = markdown_parser.parse_markdown(md_text)
    assert document.blocks == [
        Matrix(kind="pmatrix", rows=[["a", "b"], ["c", "d"]], label="", lines=["(a  b)", "(c  d)"])
    ]


def test_single_line_labelled_matrix():
    md_text = "$$A = \\begin{bmatrix} 1 & 2 \\\\ 3 & 4 \\end{bmatrix}$$"
    document = markdown_parser.parse_markdown(md_text)
    assert document.blocks == [
        Matrix(kind="bmatrix", rows=[["1", "2"], ["3", "4"]], label="A =", lines=["[1  2]", "[3  4]"])
    ]


def test_matrix_cells_are_beautified():
    document = markdown_parser.parse_markdown("\\begin{vmatrix} \\alpha & x^2 \\end{vmatrix}")
    assert document.blocks[0].rows == [["α", "x²"]]
    assert document.blocks[0].lines == ["|α  x²|"]


def test_unterminated_matrix_is_closed():
    document = markdown_parser.parse_markdown("\\begin{pmatrix}\n1 & 2")
    assert document.blocks == [Matrix(kind="pmatrix", rows=[["1", "2"]], label="", lines=["(1  2)"])]


def test_blank_lines_are_kept():
    document = markdown_parser.parse_markdown("a\n\n\nb")
    assert [type(block) for block in document.blocks] == [Paragraph, Blank, Blank, Paragraph]


def test_last_footnote_definition_wins():
    document = markdown_parser.parse_markdown("A[^1]\n[^1]: one\n[^1]: two")
    assert document.footnotes == {"1": "two"}
    assert document.blocks[0].runs[1].definition == "two"


def test_footnotes_follow_scanner_block_boundaries():
    md_text = "$$\n```\n$$\n\nSee[^1]\n\n[^1]: Note"
    document = markdown_parser.parse_markdown(md_text)
    assert document.footnotes == {"1": "Note"}
    assert document.blocks[0] == MathBlock(raw_text="```", text="```")
    assert document.blocks[2].runs[1] == FootnoteRef(ref="1", definition="Note")


def test_footnote_definition_inside_matrix_is_not_collected():
    md_text = "\\begin{pmatrix}\n[^1]: a & b\n\\end{pmatrix}"
    assert markdown_parser.parse_markdown(md_text).footnotes == {}


def test_table_layout_failure_falls_back_to_paragraphs(monkeypatch, caplog):
    def broken_layout(*args, **kwargs):
        raise RuntimeError("layout exploded")

    monkeypatch.setattr(markdown_parser, "layout_table", broken_layout)
    with caplog.at_level(logging.WARNING, logger="TermRender.markdown_parser"):
        document = markdown_parser.parse_markdown("| A |\n| 1 |")
    assert document.blocks == [
        Paragraph(runs=[Text("| A |")]),
        Paragraph(runs=[Text("| 1 |")]),
    ]
    assert "Table layout failed" in caplog.text


def test_table_layout_value_error_propagates(monkeypatch):
    def misuse(*args, **kwargs):
        raise ValueError("min_width must be non-negative")

    monkeypatch.setattr(markdown_parser, "layout_table", misuse)
    with pytest.raises(ValueError):
        markdown_parser.parse_markdown("| A |\n| 1 |")


def test_two_display_formulas_on_one_line_are_not_one_block():
    document = markdown_parser.parse_markdown("$$a$$ and $$b$$")
    assert not any(isinstance(block, MathBlock) for block in document.blocks)
    assert isinstance(document.blocks[0], Paragraph)

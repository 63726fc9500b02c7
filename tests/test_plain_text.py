import textwrap

from TermRender import markdown_parser
from TermRender.model import Document
from TermRender.renderer_text import format_plain_text, language_title, to_markdown
from TermRender.streaming import render


def test_headings():
    assert format_plain_text(render("# hello")) == "HELLO\n═════"
    assert format_plain_text(render("## Part")) == "Part\n────"
    assert format_plain_text(render("### Sub")) == "▸ Sub"
    assert format_plain_text(render("#### Deeper")) == "  ▪ Deeper"


def test_title_rule_is_capped():
    title = "x" * 80
    underline = format_plain_text(render(f"# {title}")).split("\n")[1]
    assert underline == "═" * 50


def test_code_block_gets_language_title():
    assert format_plain_text(render("```py\nprint(1)\n```")) == "⚡ PYTHON\n  print(1)"
    assert format_plain_text(render("```\nls\n```")).startswith("⚡ CODE")
    assert language_title("Haskell") == "HASKELL"


def test_lists_tasks_and_quotes():
    text = format_plain_text(render("- a\n1. b\n- [ ] t\n- [x] d\n> q"))
    assert text.split("\n") == ["• a", "1. b", "⬜ t", "✅ d", "│ q"]


def test_inline_glyphs():
    assert format_plain_text(render("[site](https://x.io)")) == "site → https://x.io"
    assert format_plain_text(render("$x^2$")) == "⟨ x² ⟩"
    assert format_plain_text(render("![](pic.png)")) == "🖼️  Untitled (pic.png)"


def test_table_lines():
    lines = format_plain_text(render("| A | B |\n|---|---|\n| 1 |")).split("\n")
    assert lines == [
        "A" + " " * 7 + "  " + "B" + " " * 7,
        "─" * 18,
        "1" + " " * 7 + "  " + " " * 8,
    ]


def test_math_and_matrix():
    assert format_plain_text(render("$$\\alpha + \\beta$$")) == "📐 α + β"
    assert format_plain_text(render("$$A = \\begin{pmatrix} 1 & 2 \\\\ 3 & 4 \\end{pmatrix}$$")) == (
        "A = (1  2)\n    (3  4)"
    )


def test_footnote_section():
    lines = format_plain_text(render("A[^1]\n\n[^1]: Explanation")).split("\n")
    assert lines == ["A[1]", "", "─" * 50, "📝 FOOTNOTES:", "", "[1] Explanation"]


def test_cursor_marks_unfinished_output():
    assert format_plain_text(render("hello", finished=False)) == "hello▋"
    assert format_plain_text(Document(blocks=[], finished=False)) == "▋"
    assert format_plain_text(render("hello")) == "hello"


def test_canonical_markdown_round_trip():
    md_text = textwrap.dedent(
        """\
        # Title

        Some **bold** and *italic* text with `code` and [a] brackets.
        Note[^1] with \\(x^2\\) and a [link](https://x.io).

        - first
        2. second
        - [x] done
        > quoted

        | A | B |
        |---|--:|
        | 1 | 2 |

        ```py
        print(1)
        ```

        $$
        E = mc^2
        $$

        ---

        [^1]: Explanation
        """
    )
    first = markdown_parser.parse_markdown(md_text)
    second = markdown_parser.parse_markdown(to_markdown(first))
    assert second.blocks == first.blocks
    assert second.footnotes == first.footnotes

from TermRender.inline_parser import PLACEHOLDER_OPEN, parse_inline
from TermRender.model import (
    Bold,
    Code,
    FootnoteRef,
    Highlight,
    Image,
    Italic,
    Kbd,
    Link,
    Math,
    Strikethrough,
    Text,
    plain_text,
)


def test_plain_line_is_single_text_run():
    assert parse_inline("just words") == [Text("just words")]


def test_code_inside_bold_is_claimed_once():
    assert parse_inline("**`code`**") == [Bold(content="code", children=[Code("code")])]


def test_emphasis_runs():
    assert parse_inline("a *b* c") == [Text("a "), Italic(content="b", children=[Text("b")]), Text(" c")]
    assert parse_inline("~~old~~") == [Strikethrough(content="old", children=[Text("old")])]
    assert parse_inline("==new==") == [Highlight(content="new", children=[Text("new")])]
    assert parse_inline("***x***") == [Bold(content="x", children=[Italic(content="x", children=[Text("x")])])]


def test_code_protects_markup():
    runs = parse_inline("use `*args` here")
    assert runs == [Text("use "), Code("*args"), Text(" here")]


def test_inline_math_is_beautified():
    runs = parse_inline("x $E=mc^2$ y")
    assert runs == [Text("x "), Math(content="E=mc²", latex="E=mc^2"), Text(" y")]
    assert parse_inline(r"\(\alpha\)") == [Math(content="α", latex=r"\alpha")]


def test_currency_is_not_math():
    assert plain_text(parse_inline("costs $5 and $10")) == "costs $5 and $10"


def test_backslash_escapes():
    assert plain_text(parse_inline(r"\*not italic\*")) == "*not italic*"
    assert not any(isinstance(run, Italic) for run in parse_inline(r"\*not italic\*"))


def test_links_images_and_autolinks():
    assert parse_inline("[site](https://x.io)") == [
        Link(content="site", url="https://x.io", children=[Text("site")])
    ]
    assert parse_inline("![diagram](img.png)") == [Image(alt="diagram", url="img.png")]
    url = "https://example.com/a"
    assert parse_inline(f"<{url}>") == [Link(content=url, url=url, children=[Text(url)])]


def test_footnote_reference_carries_definition():
    runs = parse_inline("See[^1]", {"1": "Explanation"})
    assert runs == [Text("See"), FootnoteRef(ref="1", definition="Explanation")]
    assert parse_inline("See[^2]")[1].definition is None


def test_kbd():
    assert parse_inline("press <kbd>Ctrl</kbd>") == [Text("press "), Kbd("Ctrl")]


def test_snake_case_is_not_italic():
    assert parse_inline("call snake_case_name now") == [Text("call snake_case_name now")]


def test_entities_are_decoded():
    assert parse_inline("a &amp; b") == [Text("a & b")]


def test_placeholder_characters_in_input_are_dropped():
    assert parse_inline(f"a{PLACEHOLDER_OPEN}0b") == [Text("a0b")]

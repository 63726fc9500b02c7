import pytest

from TermRender.math_beautifier import MATH_RULES, beautify, to_subscript, to_superscript


def test_greek_and_operators():
    assert beautify(r"\alpha + \beta \leq \infty") == "α + β ≤ ∞"
    assert beautify(r"a \times b \cdot c") == "a × b · c"


def test_fractions_resolve_from_the_inside_out():
    assert beautify(r"\frac{a}{b}") == "(a/b)"
    assert beautify(r"\frac{\frac{1}{2}}{3}") == "((1/2)/3)"
    assert beautify(r"\dfrac{x}{y}") == "(x/y)"


def test_structure_arguments_may_hold_braced_groups():
    assert beautify(r"\frac{x^{2}}{y}") == "(x²/y)"
    assert beautify(r"\sqrt{a^{2}+b^{2}}") == "√(a²+b²)"
    assert beautify(r"\frac{\hat{x}}{2}") == "(x\u0302/2)"
    assert beautify(r"\sqrt[3]{x_{i}}") == "√[3](xi)"


def test_roots():
    assert beautify(r"\sqrt{x}") == "√(x)"
    assert beautify(r"\sqrt[3]{x}") == "√[3](x)"
    assert beautify(r"\sqrt{\frac{a}{b}}") == "√((a/b))"


@pytest.mark.parametrize(
    ("latex", "expected"),
    [
        ("x^2", "x²"),
        ("x^{10}", "x¹⁰"),
        ("a_1", "a₁"),
        ("a_{12}", "a₁₂"),
        ("E=mc^2", "E=mc²"),
    ],
)
def test_scripts(latex, expected):
    assert beautify(latex) == expected


def test_script_characters_without_glyph_pass_through():
    assert to_superscript("n+1") == "n⁺¹"
    assert to_subscript("ij") == "ij"


def test_big_operators_keep_limits():
    assert beautify(r"\sum_{i=1}^{n}") == "∑_i=1^n"
    assert beautify(r"\int_0^1 x\,dx") == "∫₀¹ x dx"


def test_accents_and_fonts():
    assert beautify(r"\hat{x}") == "x\u0302"
    assert beautify(r"\vec v") == "v\u20d7"
    assert beautify(r"\mathbf{F} = m a") == "F = m a"
    assert beautify(r"\text{if } x") == "if  x"


def test_sizing_spacing_and_braces():
    assert beautify(r"\left( x \right)") == "( x )"
    assert beautify(r"a\,b") == "a b"
    assert beautify(r"\{x\}") == "{x}"


def test_alignment_and_line_breaks():
    assert beautify(r"a &= b \\ c &= d") == "a = b\nc = d"


def test_unknown_commands_are_bracketed():
    assert beautify(r"\foo") == r"[\foo]"
    assert beautify(r"\foo + \alpha") == r"[\foo] + α"


def test_plain_text_is_untouched():
    assert beautify("") == ""
    assert beautify("a + b = c") == "a + b = c"


def test_rule_order_puts_fallback_last():
    names = [rule.name for rule in MATH_RULES]
    assert names[-1] == "unknown_command"
    assert names.index("frac") < names.index("symbol") < names.index("unknown_command")


@pytest.mark.parametrize("latex", ["\\", "{", "^", "_{", r"\frac{", r"\sqrt[", "}}{{", r"\begin{x"])
def test_beautify_is_total(latex):
    assert isinstance(beautify(latex), str)

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Union

MAX_NESTING_PASSES = 10

GREEK = {
    "alpha": "α",
    "beta": "β",
    "gamma": "γ",
    "delta": "δ",
    "epsilon": "ε",
    "varepsilon": "ε",
    "zeta": "ζ",
    "eta": "η",
    "theta": "θ",
    "vartheta": "ϑ",
    "iota": "ι",
    "kappa": "κ",
    "lambda": "λ",
    "mu": "μ",
    "nu": "ν",
    "xi": "ξ",
    "omicron": "ο",
    "pi": "π",
    "rho": "ρ",
    "sigma": "σ",
    "tau": "τ",
    "upsilon": "υ",
    "phi": "φ",
    "varphi": "φ",
    "chi": "χ",
    "psi": "ψ",
    "omega": "ω",
    "Gamma": "Γ",
    "Delta": "Δ",
    "Theta": "Θ",
    "Lambda": "Λ",
    "Xi": "Ξ",
    "Pi": "Π",
    "Sigma": "Σ",
    "Upsilon": "Υ",
    "Phi": "Φ",
    "Psi": "Ψ",
    "Omega": "Ω",
}

OPERATORS = {
    "cdot": "·",
    "times": "×",
    "div": "÷",
    "pm": "±",
    "mp": "∓",
    "leq": "≤",
    "le": "≤",
    "geq": "≥",
    "ge": "≥",
    "neq": "≠",
    "ne": "≠",
    "approx": "≈",
    "sim": "∼",
    "simeq": "≃",
    "cong": "≅",
    "equiv": "≡",
    "propto": "∝",
    "infty": "∞",
    "partial": "∂",
    "nabla": "∇",
    "hbar": "ħ",
    "ell": "ℓ",
    "in": "∈",
    "notin": "∉",
    "ni": "∋",
    "subset": "⊂",
    "supset": "⊃",
    "subseteq": "⊆",
    "supseteq": "⊇",
    "cup": "∪",
    "cap": "∩",
    "emptyset": "∅",
    "varnothing": "∅",
    "forall": "∀",
    "exists": "∃",
    "neg": "¬",
    "land": "∧",
    "wedge": "∧",
    "lor": "∨",
    "vee": "∨",
    "oplus": "⊕",
    "otimes": "⊗",
    "perp": "⊥",
    "parallel": "∥",
    "angle": "∠",
    "degree": "°",
    "circ": "∘",
    "bullet": "•",
    "star": "⋆",
    "to": "→",
    "rightarrow": "→",
    "leftarrow": "←",
    "gets": "←",
    "leftrightarrow": "↔",
    "Rightarrow": "⇒",
    "Leftarrow": "⇐",
    "Leftrightarrow": "⇔",
    "implies": "⇒",
    "iff": "⇔",
    "mapsto": "↦",
    "uparrow": "↑",
    "downarrow": "↓",
    "cdots": "⋯",
    "ldots": "…",
    "dots": "…",
    "vdots": "⋮",
    "ddots": "⋱",
    "langle": "⟨",
    "rangle": "⟩",
    "lceil": "⌈",
    "rceil": "⌉",
    "lfloor": "⌊",
    "rfloor": "⌋",
    "mid": "|",
    "vert": "|",
    "Vert": "‖",
    "Re": "ℜ",
    "Im": "ℑ",
    "aleph": "ℵ",
    "prime": "′",
    "quad": "  ",
    "qquad": "    ",
    "sin": "sin",
    "cos": "cos",
    "tan": "tan",
    "cot": "cot",
    "sec": "sec",
    "csc": "csc",
    "arcsin": "arcsin",
    "arccos": "arccos",
    "arctan": "arctan",
    "sinh": "sinh",
    "cosh": "cosh",
    "tanh": "tanh",
    "log": "log",
    "ln": "ln",
    "exp": "exp",
    "max": "max",
    "min": "min",
    "sup": "sup",
    "inf": "inf",
    "det": "det",
    "dim": "dim",
    "gcd": "gcd",
    "deg": "deg",
    "arg": "arg",
}

SYMBOLS = {**GREEK, **OPERATORS}

BIG_OPERATORS = {
    "sum": "∑",
    "prod": "∏",
    "coprod": "∐",
    "int": "∫",
    "iint": "∬",
    "iiint": "∭",
    "oint": "∮",
    "bigcup": "⋃",
    "bigcap": "⋂",
    "lim": "lim",
}

ACCENTS = {
    "hat": "\u0302",
    "widehat": "\u0302",
    "bar": "\u0305",
    "overline": "\u0305",
    "underline": "\u0332",
    "vec": "\u20d7",
    "tilde": "\u0303",
    "widetilde": "\u0303",
    "dot": "\u0307",
    "ddot": "\u0308",
}

FONT_WRAPPERS = (
    "mathbf",
    "mathrm",
    "mathit",
    "mathsf",
    "mathtt",
    "mathcal",
    "mathbb",
    "mathfrak",
    "boldsymbol",
    "text",
    "textbf",
    "textit",
    "textrm",
    "operatorname",
)

SUPERSCRIPTS = {
    "0": "⁰",
    "1": "¹",
    "2": "²",
    "3": "³",
    "4": "⁴",
    "5": "⁵",
    "6": "⁶",
    "7": "⁷",
    "8": "⁸",
    "9": "⁹",
    "+": "⁺",
    "-": "⁻",
    "=": "⁼",
    "(": "⁽",
    ")": "⁾",
}

SUBSCRIPTS = {
    "0": "₀",
    "1": "₁",
    "2": "₂",
    "3": "₃",
    "4": "₄",
    "5": "₅",
    "6": "₆",
    "7": "₇",
    "8": "₈",
    "9": "₉",
    "+": "₊",
    "-": "₋",
    "=": "₌",
    "(": "₍",
    ")": "₎",
}

Replacement = Union[str, Callable[[re.Match[str]], str]]


@dataclass(frozen=True)
class MathRule:
    name: str
    pattern: re.Pattern[str]
    replacement: Replacement

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text)


def to_superscript(text: str) -> str:
    return "".join(SUPERSCRIPTS.get(ch, ch) for ch in text)


def to_subscript(text: str) -> str:
    return "".join(SUBSCRIPTS.get(ch, ch) for ch in text)


def _big_operator(match: re.Match[str]) -> str:
    symbol = BIG_OPERATORS[match.group("op")]
    lower = match.group("lo_braced") if match.group("lo_braced") is not None else match.group("lo")
    upper = match.group("up_braced") if match.group("up_braced") is not None else match.group("up")
    out = symbol
    if lower:
        out += f"_{lower}"
    if upper:
        out += f"^{upper}"
    return out


def _symbol(match: re.Match[str]) -> str:
    name = match.group(1)
    return SYMBOLS.get(name, match.group(0))


def _accent(match: re.Match[str]) -> str:
    mark = ACCENTS[match.group("cmd")]
    arg = match.group("arg") if match.group("arg") is not None else match.group("single")
    return "".join(ch + mark for ch in arg)


def _script_arg(name: str) -> str:
    return r"(?:\{(?P<" + name + r"_braced>[^{}]*)\}|(?P<" + name + r">[A-Za-z0-9]))"


# one level of nested braces, e.g. \frac{x^{2}}{y}
_BRACED = r"\{((?:[^{}]|\{[^{}]*\})*)\}"

STRUCTURAL_RULES = (
    MathRule(
        "frac",
        re.compile(r"\\[dt]?frac\s*" + _BRACED + r"\s*" + _BRACED),
        r"(\1/\2)",
    ),
    MathRule(
        "sqrt_n",
        re.compile(r"\\sqrt\s*\[([^\]]+)\]\s*" + _BRACED),
        r"√[\1](\2)",
    ),
    MathRule("sqrt", re.compile(r"\\sqrt\s*" + _BRACED), r"√(\1)"),
)

MATH_RULES = (
    MathRule("sizing", re.compile(r"\\(?:left|right|big|Big|bigg|Bigg)(?![A-Za-z])\s*"), ""),
    MathRule("environment", re.compile(r"\\(?:begin|end)\{[A-Za-z*]+\}"), ""),
    MathRule("line_break", re.compile(r"[ \t]*\\\\[ \t]*"), "\n"),
    MathRule("alignment", re.compile(r"[ \t]*&[ \t]*"), " "),
    MathRule(
        "font",
        re.compile(r"\\(?:%s)\s*\{([^{}]*)\}" % "|".join(FONT_WRAPPERS)),
        r"\1",
    ),
    # frac/sqrt are applied by _resolve_structure (repeated), listed here for ordering.
    *STRUCTURAL_RULES,
    MathRule(
        "big_operator",
        re.compile(
            r"\\(?P<op>%s)(?![A-Za-z])\s*(?:_%s)?\s*(?:\^%s)?"
            % (
                "|".join(sorted(BIG_OPERATORS, key=len, reverse=True)),
                _script_arg("lo"),
                _script_arg("up"),
            )
        ),
        _big_operator,
    ),
    MathRule("symbol", re.compile(r"\\([A-Za-z]+)"), _symbol),
    MathRule("spacing", re.compile(r"\\[,;:! ]"), " "),
    MathRule("brace", re.compile(r"\\([{}])"), r"\1"),
    MathRule(
        "accent",
        re.compile(
            r"\\(?P<cmd>%s)(?![A-Za-z])\s*(?:\{(?P<arg>[^{}]*)\}|(?P<single>\S))"
            % "|".join(sorted(ACCENTS, key=len, reverse=True))
        ),
        _accent,
    ),
    MathRule("superscript_group", re.compile(r"\^\{([^{}]*)\}"), lambda m: to_superscript(m.group(1))),
    MathRule("superscript", re.compile(r"\^(\d+)"), lambda m: to_superscript(m.group(1))),
    MathRule("subscript_group", re.compile(r"_\{([^{}]*)\}"), lambda m: to_subscript(m.group(1))),
    MathRule("subscript", re.compile(r"_(\d+)"), lambda m: to_subscript(m.group(1))),
    MathRule("unknown_command", re.compile(r"\\([A-Za-z]+)"), r"[\\\1]"),
)

_STRUCTURAL_NAMES = {rule.name for rule in STRUCTURAL_RULES}


def _resolve_structure(text: str) -> str:
    for _ in range(MAX_NESTING_PASSES):
        previous = text
        for rule in STRUCTURAL_RULES:
            text = rule.apply(text)
        if text == previous:
            break
    return text


def beautify(latex: str) -> str:
    """Convert a LaTeX fragment into Unicode text. Never raises for str input."""
    text = latex
    structure_done = False
    for rule in MATH_RULES:
        if rule.name in _STRUCTURAL_NAMES:
            if not structure_done:
                text = _resolve_structure(text)
                structure_done = True
            continue
        text = rule.apply(text)
    return text

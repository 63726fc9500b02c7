from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Mapping

from markdown_it.common.utils import unescapeAll

from .math_beautifier import beautify
from .model import (
    Bold,
    Code,
    FootnoteRef,
    Highlight,
    Image,
    InlineRun,
    Italic,
    Kbd,
    Link,
    Math,
    Strikethrough,
    Text,
    plain_text,
)

PLACEHOLDER_OPEN = "\ue000"
PLACEHOLDER_CLOSE = "\ue001"

_PLACEHOLDER_SPLIT_RE = re.compile(f"({PLACEHOLDER_OPEN}\\d+{PLACEHOLDER_CLOSE})")
_PLACEHOLDER_RE = re.compile(f"{PLACEHOLDER_OPEN}(\\d+){PLACEHOLDER_CLOSE}")


class _Claims:
    """Runs claimed so far for one line, indexed by placeholder number."""

    def __init__(self, footnotes: Mapping[str, str] | None) -> None:
        self.footnotes = footnotes or {}
        self.runs: list[InlineRun] = []
        self.sources: list[str] = []

    def claim(self, run: InlineRun, source: str) -> str:
        self.runs.append(run)
        self.sources.append(source)
        return f"{PLACEHOLDER_OPEN}{len(self.runs) - 1}{PLACEHOLDER_CLOSE}"

    def restore(self, text: str) -> str:
        """Put the original source text back in place of any placeholders."""
        return _PLACEHOLDER_RE.sub(lambda m: self._source(int(m.group(1))), text)

    def assemble(self, text: str) -> List[InlineRun]:
        runs: List[InlineRun] = []
        for part in _PLACEHOLDER_SPLIT_RE.split(text):
            if not part:
                continue
            match = _PLACEHOLDER_RE.fullmatch(part)
            if match and int(match.group(1)) < len(self.runs):
                runs.append(self.runs[int(match.group(1))])
            else:
                runs.append(Text(unescapeAll(part)))
        return runs

    def _source(self, index: int) -> str:
        return self.sources[index] if index < len(self.sources) else ""


@dataclass(frozen=True)
class InlineMatcher:
    name: str
    pattern: re.Pattern[str]
    build: Callable[[re.Match[str], _Claims], InlineRun]


def _math(match: re.Match[str], claims: _Claims) -> InlineRun:
    latex = claims.restore(match.group(1)).strip()
    return Math(content=beautify(latex), latex=latex)


def _code(match: re.Match[str], claims: _Claims) -> InlineRun:
    content = claims.restore(match.group(2))
    if len(content) > 2 and content.startswith(" ") and content.endswith(" ") and content.strip():
        content = content[1:-1]
    return Code(content)


def _escape(match: re.Match[str], claims: _Claims) -> InlineRun:
    return Text(match.group(1))


def _autolink(match: re.Match[str], claims: _Claims) -> InlineRun:
    url = match.group(1)
    return Link(content=url, url=url, children=[Text(url)])


def _image(match: re.Match[str], claims: _Claims) -> InlineRun:
    alt = plain_text(claims.assemble(match.group(1)))
    return Image(alt=alt, url=claims.restore(match.group(2)))


def _footnote_ref(match: re.Match[str], claims: _Claims) -> InlineRun:
    ref = match.group(1)
    return FootnoteRef(ref=ref, definition=claims.footnotes.get(ref))


def _styled(run_type) -> Callable[[re.Match[str], _Claims], InlineRun]:
    def build(match: re.Match[str], claims: _Claims) -> InlineRun:
        children = claims.assemble(match.group(1))
        return run_type(content=plain_text(children), children=children)

    return build


def _bold_italic(match: re.Match[str], claims: _Claims) -> InlineRun:
    children = claims.assemble(match.group(1))
    content = plain_text(children)
    return Bold(content=content, children=[Italic(content=content, children=children)])


def _kbd(match: re.Match[str], claims: _Claims) -> InlineRun:
    return Kbd(claims.restore(match.group(1)).strip())


def _link(match: re.Match[str], claims: _Claims) -> InlineRun:
    children = claims.assemble(match.group(1))
    return Link(content=plain_text(children), url=claims.restore(match.group(2)), children=children)


_LINK_TARGET = r"\(([^)\s]+)(?:\s+\"[^\"]*\")?\)"

INLINE_MATCHERS = (
    InlineMatcher("math", re.compile(r"\\\((.+?)\\\)"), _math),
    InlineMatcher("display_math", re.compile(r"\\\[(.+?)\\\]"), _math),
    InlineMatcher("code", re.compile(r"(`+)(?!`)(.+?)(?<!`)\1(?!`)"), _code),
    InlineMatcher("escape", re.compile(r"\\([\\`*_{}\[\]()#+\-.!|~=<>$])"), _escape),
    InlineMatcher(
        "dollar_math",
        re.compile(r"(?<![\\$\w])\$(?=[^\s$])([^$\n]+?)(?<=[^\s\\])\$(?![\w$])"),
        _math,
    ),
    InlineMatcher("autolink", re.compile(r"<(https?://[^>\s]+)>"), _autolink),
    InlineMatcher("image", re.compile(r"!\[([^\]]*)\]" + _LINK_TARGET), _image),
    InlineMatcher("footnote_ref", re.compile(r"\[\^([^\]\s]+)\]"), _footnote_ref),
    InlineMatcher("bold_italic", re.compile(r"\*\*\*(?=\S)(.+?)(?<=\S)\*\*\*"), _bold_italic),
    InlineMatcher("bold", re.compile(r"\*\*(?=\S)(.+?)(?<=\S)\*\*"), _styled(Bold)),
    InlineMatcher("bold_underscore", re.compile(r"(?<!\w)__(?=\S)(.+?)(?<=\S)__(?!\w)"), _styled(Bold)),
    InlineMatcher("italic", re.compile(r"(?<!\*)\*(?=[^\s*])(.+?)(?<=[^\s*])\*(?!\*)"), _styled(Italic)),
    InlineMatcher(
        "italic_underscore",
        re.compile(r"(?<!\w)_(?=[^\s_])(.+?)(?<=[^\s_])_(?!\w)"),
        _styled(Italic),
    ),
    InlineMatcher("strikethrough", re.compile(r"~~(?=\S)(.+?)(?<=\S)~~"), _styled(Strikethrough)),
    InlineMatcher("highlight", re.compile(r"==(?=\S)(.+?)(?<=\S)=="), _styled(Highlight)),
    InlineMatcher("kbd", re.compile(r"<kbd>(.+?)</kbd>"), _kbd),
    InlineMatcher("link", re.compile(r"\[([^\]]+)\]" + _LINK_TARGET), _link),
)


def parse_inline(line: str, footnotes: Mapping[str, str] | None = None) -> List[InlineRun]:
    """Split one line of raw text into an ordered list of non-overlapping runs."""
    claims = _Claims(footnotes)
    working = line.replace(PLACEHOLDER_OPEN, "").replace(PLACEHOLDER_CLOSE, "")
    for matcher in INLINE_MATCHERS:
        working = matcher.pattern.sub(
            lambda m: claims.claim(matcher.build(m, claims), claims.restore(m.group(0))),
            working,
        )
    return claims.assemble(working)

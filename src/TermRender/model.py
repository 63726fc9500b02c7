from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence


@dataclass
class InlineRun:
    """Base class for inline nodes."""

    @property
    def plain(self) -> str:
        return getattr(self, "content", "")


@dataclass
class Text(InlineRun):
    content: str


@dataclass
class Bold(InlineRun):
    content: str
    children: List[InlineRun] = field(default_factory=list)


@dataclass
class Italic(InlineRun):
    content: str
    children: List[InlineRun] = field(default_factory=list)


@dataclass
class Code(InlineRun):
    content: str


@dataclass
class Strikethrough(InlineRun):
    content: str
    children: List[InlineRun] = field(default_factory=list)


@dataclass
class Highlight(InlineRun):
    content: str
    children: List[InlineRun] = field(default_factory=list)


@dataclass
class Kbd(InlineRun):
    content: str


@dataclass
class Math(InlineRun):
    content: str
    latex: str = ""


@dataclass
class Link(InlineRun):
    content: str
    url: str
    children: List[InlineRun] = field(default_factory=list)


@dataclass
class Image(InlineRun):
    alt: str
    url: str

    @property
    def plain(self) -> str:
        return self.alt or self.url


@dataclass
class FootnoteRef(InlineRun):
    ref: str
    definition: str | None = None

    @property
    def plain(self) -> str:
        return f"[{self.ref}]"


def plain_text(runs: Iterable[InlineRun]) -> str:
    return "".join(run.plain for run in runs)


@dataclass
class Block:
    """Base class for block-level nodes."""


@dataclass
class Header(Block):
    level: int
    runs: List[InlineRun]

    @property
    def text(self) -> str:
        return plain_text(self.runs)


@dataclass
class Paragraph(Block):
    runs: List[InlineRun]

    @property
    def text(self) -> str:
        return plain_text(self.runs)


@dataclass
class CodeBlock(Block):
    language: str | None
    raw_text: str


@dataclass
class MathBlock(Block):
    raw_text: str
    text: str = ""


@dataclass
class Table(Block):
    headers: Sequence[str]
    rows: Sequence[Sequence[str]]
    alignments: Sequence[str] = ()
    widths: Sequence[int] = ()


@dataclass
class Matrix(Block):
    kind: str
    rows: Sequence[Sequence[str]]
    label: str = ""
    lines: Sequence[str] = ()


@dataclass
class ListItem(Block):
    ordered: bool
    runs: List[InlineRun]
    index: Optional[int] = None
    indent: int = 0

    @property
    def text(self) -> str:
        return plain_text(self.runs)


@dataclass
class TaskItem(Block):
    checked: bool
    runs: List[InlineRun]
    indent: int = 0

    @property
    def text(self) -> str:
        return plain_text(self.runs)


@dataclass
class Blockquote(Block):
    depth: int
    runs: List[InlineRun]

    @property
    def text(self) -> str:
        return plain_text(self.runs)


@dataclass
class HorizontalRule(Block):
    """Horizontal rule / thematic break."""


@dataclass
class FootnoteDef(Block):
    ref: str
    text: str


@dataclass
class FootnoteSection(Block):
    """Trailing footnote listing appended once a stream has finished."""

    entries: List[FootnoteDef]


@dataclass
class Blank(Block):
    """Empty source line."""


@dataclass
class Document:
    blocks: List[Block]
    footnotes: dict[str, str] = field(default_factory=dict)
    finished: bool = True

    def resolve_footnote(self, ref: str) -> str | None:
        return self.footnotes.get(ref)

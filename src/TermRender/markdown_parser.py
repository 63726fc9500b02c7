from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Iterable, List

from .config import DEFAULT_CONFIG, RenderConfig
from .inline_parser import parse_inline
from .layout import MATRIX_KINDS, layout_matrix, layout_table
from .math_beautifier import beautify
from .model import (
    Blank,
    Block,
    Blockquote,
    CodeBlock,
    Document,
    Header,
    HorizontalRule,
    ListItem,
    MathBlock,
    Matrix,
    Paragraph,
    Table,
    TaskItem,
)

logger = logging.getLogger(__name__)

MATH_CLOSERS = {"\\[": "\\]", "$$": "$$"}

_KINDS = "|".join(MATRIX_KINDS)
_MATRIX_BEGIN_RE = re.compile(r"\\begin\{(%s)\}" % _KINDS)
_MATRIX_END_RE = re.compile(r"\\end\{(%s)\}" % _KINDS)
_SINGLE_LINE_MATH_RE = re.compile(r"^\s*(?:\$\$(?P<dollar>(?:(?!\$\$).)+?)\$\$|\\\[(?P<bracket>(?:(?!\\\]).)+?)\\\])\s*$")
_TABLE_SEPARATOR_RE = re.compile(r"^\s*\|?\s*:?-+:?\s*(?:\|\s*:?-+:?\s*)*\|?\s*$")
_CELL_SPLIT_RE = re.compile(r"(?<!\\)\|")
_HEADING_RE = re.compile(r"^ {0,3}(#{1,6}) (.*?)(?:\s+#+)?\s*$")
_HR_RE = re.compile(r"^\s*([-*_])(?:\s*\1){2,}\s*$")
_TASK_RE = re.compile(r"^(\s*)[-*+] \[([ xX])\](?:\s+(.*))?$")
_ORDERED_RE = re.compile(r"^(\s*)(\d+)\. (.*)$")
_UNORDERED_RE = re.compile(r"^(\s*)[-*+] (.*)$")
_QUOTE_RE = re.compile(r"^\s*((?:> ?)+)(.*)$")
_FOOTNOTE_DEF_RE = re.compile(r"^\[\^([^\]\s]+)\]:\s*(.*)$")


class ScanState(Enum):
    NORMAL = "normal"
    IN_CODE = "in_code"
    IN_MATH_BLOCK = "in_math_block"
    IN_MATRIX = "in_matrix"
    IN_TABLE = "in_table"


def parse_markdown(text: str, config: RenderConfig | None = None) -> Document:
    """Scan a complete (or partially streamed) text into a Document."""
    lines = text.splitlines()
    config = config or DEFAULT_CONFIG
    footnotes = collect_footnotes(lines, config)
    scanner = _BlockScanner(footnotes, config)
    for line in lines:
        scanner.feed(line)
    scanner.finish()
    logger.debug("Scanned %d lines into %d blocks", len(lines), len(scanner.blocks))
    return Document(blocks=scanner.blocks, footnotes=footnotes)


def collect_footnotes(lines: Iterable[str], config: RenderConfig | None = None) -> dict[str, str]:
    """First pass: run the block scanner without output to gather ``[^ref]: text`` definitions."""
    scanner = _BlockScanner({}, config or DEFAULT_CONFIG, collect_only=True)
    for line in lines:
        scanner.feed(line)
    scanner.finish()
    return scanner.definitions


def is_table_row(line: str) -> bool:
    stripped = line.strip()
    return len(stripped) >= 2 and stripped.startswith("|") and stripped.endswith("|")


def split_table_row(line: str) -> List[str]:
    body = line.strip()
    if body.startswith("|"):
        body = body[1:]
    if body.endswith("|") and not body.endswith("\\|"):
        body = body[:-1]
    return [cell.strip().replace("\\|", "|") for cell in _CELL_SPLIT_RE.split(body)]


def _alignment(cell: str) -> str:
    cell = cell.strip()
    if cell.startswith(":") and cell.endswith(":") and len(cell) > 1:
        return "center"
    if cell.endswith(":"):
        return "right"
    return "left"


def _matrix_rows(content: str) -> List[List[str]]:
    rows = []
    for raw_row in content.split("\\\\"):
        raw_row = raw_row.strip()
        if not raw_row:
            continue
        rows.append([beautify(cell.strip()) for cell in raw_row.split("&")])
    return rows


class _BlockScanner:
    """Line-oriented state machine; one instance per parse call."""

    def __init__(self, footnotes: dict[str, str], config: RenderConfig, collect_only: bool = False) -> None:
        self.footnotes = footnotes
        self.config = config
        self.collect_only = collect_only
        self.definitions: dict[str, str] = {}
        self.blocks: List[Block] = []
        self.state = ScanState.NORMAL

        self.code_language: str | None = None
        self.code_lines: List[str] = []

        self.math_closer = "$$"
        self.math_lines: List[str] = []
        self.math_had_matrix = False

        self.matrix_kind = "matrix"
        self.matrix_label = ""
        self.matrix_lines: List[str] = []
        self.matrix_return = ScanState.NORMAL

        self.table_headers: List[str] = []
        self.table_rows: List[List[str]] = []
        self.table_alignments: List[str] = []
        self.table_raw: List[str] = []

    def feed(self, line: str) -> None:
        if self.state is ScanState.IN_CODE:
            self._in_code(line)
        elif self.state is ScanState.IN_MATH_BLOCK:
            self._in_math(line)
        elif self.state is ScanState.IN_MATRIX:
            self._in_matrix(line)
        elif self.state is ScanState.IN_TABLE:
            self._in_table(line)
        else:
            self._normal(line)

    def finish(self) -> None:
        """Force-close whatever block is still open at end of input."""
        if self.state is ScanState.NORMAL:
            return
        logger.debug("Input ended inside %s; closing it", self.state.value)
        if self.state is ScanState.IN_CODE:
            self._emit_code()
        elif self.state is ScanState.IN_TABLE:
            self._emit_table()
        elif self.state is ScanState.IN_MATRIX:
            self._emit_matrix()
            if self.matrix_return is ScanState.IN_MATH_BLOCK:
                self._emit_math()
        elif self.state is ScanState.IN_MATH_BLOCK:
            self._emit_math()
        self.state = ScanState.NORMAL

    # -- NORMAL -------------------------------------------------------------

    def _normal(self, line: str) -> None:
        stripped = line.strip()

        if stripped.startswith("```"):
            self.code_language = stripped[3:].strip() or None
            self.code_lines = []
            self.state = ScanState.IN_CODE
            return

        begin = _MATRIX_BEGIN_RE.search(line)
        if begin:
            self._begin_matrix(line, begin)
            return

        single = _SINGLE_LINE_MATH_RE.match(line)
        if single:
            latex = (single.group("dollar") or single.group("bracket") or "").strip()
            self.blocks.append(MathBlock(raw_text=latex, text=beautify(latex)))
            return

        if stripped in MATH_CLOSERS:
            self._open_math(stripped)
            return

        if is_table_row(line):
            self.table_headers = split_table_row(line)
            self.table_rows = []
            self.table_alignments = []
            self.table_raw = [line]
            self.state = ScanState.IN_TABLE
            return

        footnote = _FOOTNOTE_DEF_RE.match(stripped)
        if footnote:
            self.definitions[footnote.group(1)] = footnote.group(2).strip()
            return

        heading = _HEADING_RE.match(line)
        if heading:
            level = len(heading.group(1))
            self.blocks.append(Header(level=level, runs=self._inline(heading.group(2).strip())))
            return

        if _HR_RE.match(line):
            self.blocks.append(HorizontalRule())
            return

        task = _TASK_RE.match(line)
        if task:
            self.blocks.append(
                TaskItem(
                    checked=task.group(2).lower() == "x",
                    runs=self._inline(task.group(3) or ""),
                    indent=len(task.group(1)),
                )
            )
            return

        ordered = _ORDERED_RE.match(line)
        if ordered:
            self.blocks.append(
                ListItem(
                    ordered=True,
                    runs=self._inline(ordered.group(3)),
                    index=int(ordered.group(2)),
                    indent=len(ordered.group(1)),
                )
            )
            return

        unordered = _UNORDERED_RE.match(line)
        if unordered:
            self.blocks.append(
                ListItem(ordered=False, runs=self._inline(unordered.group(2)), indent=len(unordered.group(1)))
            )
            return

        quote = _QUOTE_RE.match(line)
        if quote:
            depth = quote.group(1).count(">")
            self.blocks.append(Blockquote(depth=depth, runs=self._inline(quote.group(2).strip())))
            return

        if not stripped:
            self.blocks.append(Blank())
            return

        self.blocks.append(Paragraph(runs=self._inline(line.strip())))

    def _inline(self, text: str):
        if self.collect_only:
            return []
        return parse_inline(text, self.footnotes)

    # -- code ---------------------------------------------------------------

    def _in_code(self, line: str) -> None:
        if line.strip().startswith("```"):
            self._emit_code()
            self.state = ScanState.NORMAL
            return
        self.code_lines.append(line)

    def _emit_code(self) -> None:
        self.blocks.append(CodeBlock(language=self.code_language, raw_text="\n".join(self.code_lines)))
        self.code_lines = []
        self.code_language = None

    # -- math ---------------------------------------------------------------

    def _open_math(self, opener: str) -> None:
        self.math_closer = MATH_CLOSERS[opener]
        self.math_lines = []
        self.math_had_matrix = False
        self.state = ScanState.IN_MATH_BLOCK

    def _in_math(self, line: str) -> None:
        if line.strip() == self.math_closer:
            self._emit_math()
            self.state = ScanState.NORMAL
            return
        begin = _MATRIX_BEGIN_RE.search(line)
        if begin:
            self._flush_math()
            self._begin_matrix(line, begin, returning_to=ScanState.IN_MATH_BLOCK)
            return
        self.math_lines.append(line)

    def _flush_math(self) -> None:
        """Emit math collected so far, ahead of an embedded matrix."""
        latex = "\n".join(self.math_lines).strip()
        if latex:
            self.blocks.append(MathBlock(raw_text=latex, text=beautify(latex)))
            self.math_had_matrix = True
        self.math_lines = []

    def _emit_math(self) -> None:
        latex = "\n".join(self.math_lines).strip()
        if latex or not self.math_had_matrix:
            self.blocks.append(MathBlock(raw_text=latex, text=beautify(latex)))
        self.math_lines = []
        self.math_had_matrix = False

    # -- matrix -------------------------------------------------------------

    def _begin_matrix(self, line: str, begin: re.Match[str], returning_to: ScanState = ScanState.NORMAL) -> None:
        prefix = line[: begin.start()].strip()
        if returning_to is ScanState.NORMAL:
            for opener in MATH_CLOSERS:
                if prefix.startswith(opener):
                    self._open_math(opener)
                    returning_to = ScanState.IN_MATH_BLOCK
                    prefix = prefix[len(opener) :].strip()
                    break
        self.matrix_kind = begin.group(1)
        self.matrix_label = beautify(prefix.strip("$").strip())
        self.matrix_lines = []
        self.matrix_return = returning_to
        self.state = ScanState.IN_MATRIX
        if returning_to is ScanState.IN_MATH_BLOCK:
            self.math_had_matrix = True
        self._in_matrix(line[begin.end() :])

    def _in_matrix(self, line: str) -> None:
        end = _MATRIX_END_RE.search(line)
        if not end:
            self.matrix_lines.append(line)
            return
        self.matrix_lines.append(line[: end.start()])
        self._emit_matrix()
        self.state = self.matrix_return
        rest = line[end.end() :]
        if rest.strip():
            self.feed(rest)

    def _emit_matrix(self) -> None:
        rows = _matrix_rows(" ".join(self.matrix_lines))
        lines = layout_matrix(
            self.matrix_kind,
            rows,
            min_width=self.config.matrix_min_width,
            separator=self.config.cell_separator,
        )
        self.blocks.append(Matrix(kind=self.matrix_kind, rows=rows, label=self.matrix_label, lines=lines))
        self.matrix_lines = []
        self.matrix_label = ""

    # -- table --------------------------------------------------------------

    def _in_table(self, line: str) -> None:
        if not is_table_row(line):
            self._emit_table()
            self.state = ScanState.NORMAL
            self._normal(line)
            return
        self.table_raw.append(line)
        if len(self.table_raw) == 2 and _TABLE_SEPARATOR_RE.match(line):
            self.table_alignments = [_alignment(cell) for cell in split_table_row(line)]
            return
        self.table_rows.append(split_table_row(line))

    def _emit_table(self) -> None:
        if not self.collect_only:
            self._append_table()
        self.table_headers = []
        self.table_rows = []
        self.table_alignments = []
        self.table_raw = []

    def _append_table(self) -> None:
        try:
            layout = layout_table(
                self.table_headers,
                self.table_rows,
                self.table_alignments,
                min_width=self.config.table_min_width,
                separator=self.config.cell_separator,
            )
        except ValueError:
            raise
        except Exception:
            logger.warning("Table layout failed; keeping %d raw rows as text", len(self.table_raw), exc_info=True)
            for raw in self.table_raw:
                self.blocks.append(Paragraph(runs=self._inline(raw.strip())))
        else:
            self.blocks.append(
                Table(
                    headers=self.table_headers,
                    rows=self.table_rows,
                    alignments=self.table_alignments,
                    widths=layout.widths,
                )
            )

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

from rich.cells import cell_len

TABLE_MIN_WIDTH = 8
MATRIX_MIN_WIDTH = 1
CELL_SEPARATOR = "  "

MATRIX_BRACKETS = {
    "matrix": ("  ", "  "),
    "pmatrix": ("(", ")"),
    "bmatrix": ("[", "]"),
    "Bmatrix": ("{", "}"),
    "vmatrix": ("|", "|"),
    "Vmatrix": ("‖", "‖"),
}

MATRIX_KINDS = tuple(MATRIX_BRACKETS)


@dataclass
class TableLayout:
    widths: List[int]
    header: str
    rule: str
    rows: List[str] = field(default_factory=list)
    padded_rows: List[List[str]] = field(default_factory=list)

    @property
    def lines(self) -> List[str]:
        return [self.header, self.rule, *self.rows]


def _check_width(value: int, name: str) -> None:
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")


def pad_cell(text: str, width: int, align: str = "left") -> str:
    """Pad ``text`` to ``width`` terminal cells."""
    _check_width(width, "width")
    gap = max(0, width - cell_len(text))
    if align == "right":
        return " " * gap + text
    if align == "center":
        left = gap // 2
        return " " * left + text + " " * (gap - left)
    return text + " " * gap


def column_count(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> int:
    return max([len(headers), *(len(row) for row in rows)])


def normalize_row(row: Sequence[str], count: int) -> List[str]:
    """Missing cells of a ragged row become empty strings."""
    cells = [str(cell) for cell in row[:count]]
    return cells + [""] * (count - len(cells))


def column_widths(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    min_width: int = TABLE_MIN_WIDTH,
) -> List[int]:
    _check_width(min_width, "min_width")
    count = column_count(headers, rows)
    widths = [min_width] * count
    for row in [headers, *rows]:
        for idx, cell in enumerate(normalize_row(row, count)):
            widths[idx] = max(widths[idx], cell_len(cell))
    return widths


def join_cells(
    cells: Sequence[str],
    widths: Sequence[int],
    separator: str = CELL_SEPARATOR,
    alignments: Sequence[str] = (),
) -> tuple[List[str], str]:
    padded = []
    for idx, width in enumerate(widths):
        cell = cells[idx] if idx < len(cells) else ""
        align = alignments[idx] if idx < len(alignments) else "left"
        padded.append(pad_cell(cell, width, align))
    return padded, separator.join(padded)


def layout_table(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    alignments: Sequence[str] = (),
    min_width: int = TABLE_MIN_WIDTH,
    separator: str = CELL_SEPARATOR,
    rule_char: str = "─",
) -> TableLayout:
    widths = column_widths(headers, rows, min_width)
    _, header_line = join_cells(normalize_row(headers, len(widths)), widths, separator, alignments)
    rule = rule_char * (sum(widths) + cell_len(separator) * max(0, len(widths) - 1))
    layout = TableLayout(widths=widths, header=header_line, rule=rule)
    for row in rows:
        padded, line = join_cells(normalize_row(row, len(widths)), widths, separator, alignments)
        layout.padded_rows.append(padded)
        layout.rows.append(line)
    return layout


def layout_matrix(
    kind: str,
    rows: Sequence[Sequence[str]],
    min_width: int = MATRIX_MIN_WIDTH,
    separator: str = CELL_SEPARATOR,
) -> List[str]:
    """Render matrix rows aligned by column and wrapped in ``kind``'s brackets."""
    if kind not in MATRIX_BRACKETS:
        raise ValueError(f"Unknown matrix kind: {kind}")
    if not rows:
        return []
    left, right = MATRIX_BRACKETS[kind]
    widths = column_widths((), rows, min_width)
    lines = []
    for row in rows:
        _, line = join_cells(normalize_row(row, len(widths)), widths, separator)
        lines.append(f"{left}{line}{right}")
    return lines

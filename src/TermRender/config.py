from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path

import yaml

from .layout import CELL_SEPARATOR, MATRIX_MIN_WIDTH, TABLE_MIN_WIDTH


@dataclass(frozen=True)
class RenderConfig:
    """Layout and glyph settings shared by the parser and the output sinks."""

    table_min_width: int = TABLE_MIN_WIDTH
    matrix_min_width: int = MATRIX_MIN_WIDTH
    cell_separator: str = CELL_SEPARATOR
    title_rule_cap: int = 50
    rule_width: int = 60
    footnote_rule_width: int = 50
    bullet: str = "•"
    task_done: str = "✅"
    task_open: str = "⬜"
    cursor: str = "▋"


DEFAULT_CONFIG = RenderConfig()

_INT_FIELDS = {"table_min_width", "matrix_min_width", "title_rule_cap", "rule_width", "footnote_rule_width"}


def load_config(text: str) -> RenderConfig:
    """Parse a YAML mapping of ``RenderConfig`` fields; omitted fields keep defaults."""
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError("YAML root must be a mapping of render settings.")

    known = {f.name for f in fields(RenderConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown render settings: {', '.join(map(str, unknown))}")

    values = {}
    for key, value in data.items():
        if key in _INT_FIELDS:
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{key} must be an integer, got {value!r}")
            if value < 0:
                raise ValueError(f"{key} must be non-negative, got {value}")
        elif not isinstance(value, str):
            raise ValueError(f"{key} must be a string, got {value!r}")
        values[key] = value
    return replace(DEFAULT_CONFIG, **values)


def load_config_file(path: str | Path) -> RenderConfig:
    return load_config(Path(path).read_text(encoding="utf-8"))

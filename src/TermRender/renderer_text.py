from __future__ import annotations

import re
from typing import Iterable, List

from rich.cells import cell_len

from .config import DEFAULT_CONFIG, RenderConfig
from .layout import layout_table
from .model import (
    Blank,
    Block,
    Blockquote,
    Bold,
    Code,
    CodeBlock,
    Document,
    FootnoteRef,
    FootnoteSection,
    Header,
    Highlight,
    HorizontalRule,
    Image,
    InlineRun,
    Italic,
    Kbd,
    Link,
    ListItem,
    Math,
    MathBlock,
    Matrix,
    Paragraph,
    Strikethrough,
    Table,
    TaskItem,
    Text,
)

LANGUAGE_TITLES = {
    "js": "JAVASCRIPT",
    "javascript": "JAVASCRIPT",
    "jsx": "REACT JSX",
    "ts": "TYPESCRIPT",
    "typescript": "TYPESCRIPT",
    "tsx": "REACT TSX",
    "py": "PYTHON",
    "python": "PYTHON",
    "py3": "PYTHON 3",
    "java": "JAVA",
    "kotlin": "KOTLIN",
    "scala": "SCALA",
    "cpp": "C++",
    "c++": "C++",
    "c": "C",
    "rust": "RUST",
    "go": "GO",
    "php": "PHP",
    "ruby": "RUBY",
    "swift": "SWIFT",
    "dart": "DART",
    "html": "HTML",
    "css": "CSS",
    "scss": "SASS",
    "less": "LESS",
    "sql": "SQL",
    "mysql": "MySQL",
    "postgres": "PostgreSQL",
    "bash": "BASH",
    "sh": "SHELL",
    "zsh": "ZSH",
    "fish": "FISH",
    "json": "JSON",
    "xml": "XML",
    "yaml": "YAML",
    "yml": "YAML",
    "toml": "TOML",
    "ini": "INI",
    "conf": "CONFIG",
    "md": "MARKDOWN",
    "markdown": "MARKDOWN",
    "tex": "LaTeX",
    "r": "R",
    "matlab": "MATLAB",
    "octave": "OCTAVE",
    "docker": "DOCKERFILE",
    "dockerfile": "DOCKERFILE",
}

HEADING_MARKERS = {3: "▸", 4: "▪", 5: "▫", 6: "◦"}

_MARKDOWN_SPECIAL_RE = re.compile(r"([\\`*_~=$<|])")
_BRACKET_ENTITIES = {"[": "&#91;", "]": "&#93;"}


def language_title(language: str | None) -> str:
    if not language:
        return "CODE"
    return LANGUAGE_TITLES.get(language.lower(), language.upper())


# ---------------------------------------------------------------------------
# plain text
# ---------------------------------------------------------------------------


def runs_to_text(runs: Iterable[InlineRun]) -> str:
    parts: List[str] = []
    for run in runs:
        if isinstance(run, Link):
            label = runs_to_text(run.children) if run.children else run.content
            parts.append(label if label == run.url else f"{label} → {run.url}")
        elif isinstance(run, Image):
            parts.append(f"🖼️  {run.alt or 'Untitled'} ({run.url})")
        elif isinstance(run, Math):
            parts.append(f"⟨ {run.content} ⟩")
        elif isinstance(run, (Bold, Italic, Strikethrough, Highlight)):
            parts.append(runs_to_text(run.children) if run.children else run.content)
        else:
            parts.append(run.plain)
    return "".join(parts)


def _heading_lines(block: Header, config: RenderConfig) -> List[str]:
    title = runs_to_text(block.runs).strip()
    if block.level == 1:
        title = title.upper()
        return [title, "═" * min(cell_len(title), config.title_rule_cap)]
    if block.level == 2:
        return [title, "─" * min(cell_len(title), config.title_rule_cap)]
    indent = "  " * (block.level - 3)
    return [f"{indent}{HEADING_MARKERS[block.level]} {title}"]


def _matrix_lines(block: Matrix) -> List[str]:
    if not block.label:
        return list(block.lines)
    pad = " " * (cell_len(block.label) + 1)
    return [f"{block.label} {line}" if idx == 0 else pad + line for idx, line in enumerate(block.lines)]


def block_to_lines(block: Block, config: RenderConfig = DEFAULT_CONFIG) -> List[str]:
    if isinstance(block, Header):
        return _heading_lines(block, config)
    if isinstance(block, Paragraph):
        return [runs_to_text(block.runs)]
    if isinstance(block, CodeBlock):
        return [f"⚡ {language_title(block.language)}", *("  " + line for line in block.raw_text.split("\n"))]
    if isinstance(block, MathBlock):
        lines = block.text.split("\n")
        return [f"📐 {lines[0]}", *("   " + line for line in lines[1:])]
    if isinstance(block, Matrix):
        return _matrix_lines(block)
    if isinstance(block, Table):
        layout = layout_table(
            block.headers,
            block.rows,
            block.alignments,
            min_width=config.table_min_width,
            separator=config.cell_separator,
        )
        return layout.lines
    if isinstance(block, ListItem):
        marker = f"{block.index}." if block.ordered else config.bullet
        return [f"{' ' * block.indent}{marker} {runs_to_text(block.runs)}"]
    if isinstance(block, TaskItem):
        marker = config.task_done if block.checked else config.task_open
        return [f"{' ' * block.indent}{marker} {runs_to_text(block.runs)}"]
    if isinstance(block, Blockquote):
        return ["│ " * block.depth + runs_to_text(block.runs)]
    if isinstance(block, HorizontalRule):
        return ["─" * config.rule_width]
    if isinstance(block, FootnoteSection):
        lines = ["─" * config.footnote_rule_width, "📝 FOOTNOTES:", ""]
        lines.extend(f"[{entry.ref}] {entry.text}" for entry in block.entries)
        return lines
    if isinstance(block, Blank):
        return [""]
    return []


def format_plain_text(document: Document, config: RenderConfig | None = None) -> str:
    """Glyph-based rendering of ``document``; unfinished documents end with the cursor."""
    config = config or DEFAULT_CONFIG
    lines: List[str] = []
    for block in document.blocks:
        lines.extend(block_to_lines(block, config))
    if not document.finished:
        if lines and lines[-1]:
            lines[-1] += config.cursor
        else:
            lines.append(config.cursor)
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# canonical markdown
# ---------------------------------------------------------------------------


def _escape(text: str) -> str:
    # "\[" would read back as display math
    text = _MARKDOWN_SPECIAL_RE.sub(r"\\\1", text)
    return "".join(_BRACKET_ENTITIES.get(ch, ch) for ch in text)


def runs_to_markdown(runs: Iterable[InlineRun]) -> str:
    parts: List[str] = []
    for run in runs:
        if isinstance(run, Text):
            parts.append(_escape(run.content))
        elif isinstance(run, Bold):
            parts.append(f"**{runs_to_markdown(run.children) if run.children else _escape(run.content)}**")
        elif isinstance(run, Italic):
            parts.append(f"*{runs_to_markdown(run.children) if run.children else _escape(run.content)}*")
        elif isinstance(run, Strikethrough):
            parts.append(f"~~{runs_to_markdown(run.children) if run.children else _escape(run.content)}~~")
        elif isinstance(run, Highlight):
            parts.append(f"=={runs_to_markdown(run.children) if run.children else _escape(run.content)}==")
        elif isinstance(run, Code):
            fence = "``" if "`" in run.content else "`"
            parts.append(f"{fence}{run.content}{fence}")
        elif isinstance(run, Kbd):
            parts.append(f"<kbd>{run.content}</kbd>")
        elif isinstance(run, Math):
            parts.append(f"\\({run.latex or run.content}\\)")
        elif isinstance(run, Image):
            parts.append(f"![{_escape(run.alt)}]({run.url})")
        elif isinstance(run, Link):
            label = runs_to_markdown(run.children) if run.children else _escape(run.content)
            parts.append(f"[{label}]({run.url})")
        elif isinstance(run, FootnoteRef):
            parts.append(f"[^{run.ref}]")
    return "".join(parts)


def _table_row(cells: Iterable[str]) -> str:
    return "| " + " | ".join(cell.replace("|", "\\|") for cell in cells) + " |"


def _separator_cell(align: str) -> str:
    return {"center": ":---:", "right": "---:"}.get(align, "---")


def block_to_markdown(block: Block) -> List[str]:
    if isinstance(block, Header):
        return ["#" * block.level + " " + runs_to_markdown(block.runs)]
    if isinstance(block, Paragraph):
        return [runs_to_markdown(block.runs)]
    if isinstance(block, CodeBlock):
        return [f"```{block.language or ''}", *block.raw_text.split("\n"), "```"]
    if isinstance(block, MathBlock):
        return ["$$", *([block.raw_text] if block.raw_text else []), "$$"]
    if isinstance(block, Matrix):
        body = " \\\\ ".join(" & ".join(row) for row in block.rows)
        label = f"{block.label} " if block.label else ""
        return [f"{label}\\begin{{{block.kind}}}", body, f"\\end{{{block.kind}}}"]
    if isinstance(block, Table):
        count = max([len(block.headers), *(len(row) for row in block.rows)])
        alignments = list(block.alignments) + ["left"] * (count - len(block.alignments))
        lines = [_table_row(block.headers), _table_row(_separator_cell(a) for a in alignments[:count])]
        lines.extend(_table_row(row) for row in block.rows)
        return lines
    if isinstance(block, ListItem):
        marker = f"{block.index}." if block.ordered else "-"
        return [f"{' ' * block.indent}{marker} {runs_to_markdown(block.runs)}"]
    if isinstance(block, TaskItem):
        return [f"{' ' * block.indent}- [{'x' if block.checked else ' '}] {runs_to_markdown(block.runs)}"]
    if isinstance(block, Blockquote):
        return [">" * block.depth + " " + runs_to_markdown(block.runs)]
    if isinstance(block, HorizontalRule):
        return ["---"]
    if isinstance(block, Blank):
        return [""]
    return []


def to_markdown(document: Document) -> str:
    lines: List[str] = []
    for block in document.blocks:
        lines.extend(block_to_markdown(block))
    if document.footnotes:
        lines.extend(f"[^{ref}]: {text}" for ref, text in document.footnotes.items())
    return "\n".join(lines) + "\n"

from __future__ import annotations

from typing import AsyncIterable, Iterable, List

from rich import box
from rich.cells import cell_len
from rich.console import Console, Group, RenderableType
from rich.live import Live
from rich.panel import Panel
from rich.syntax import Syntax
from rich.text import Text as RichText

from .config import DEFAULT_CONFIG, RenderConfig
from .inline_parser import parse_inline
from .layout import column_widths
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
)
from .renderer_text import HEADING_MARKERS, language_title
from .streaming import StreamingRenderer, stream_documents

HEADING_STYLES = {
    1: "bold underline green",
    2: "bold cyan",
    3: "bold blue",
    4: "blue",
    5: "grey62",
    6: "dim grey62",
}

_RUN_STYLES = {
    Bold: "bold",
    Italic: "italic",
    Strikethrough: "strike",
    Highlight: "black on yellow",
}


def _combine(base: str, extra: str) -> str:
    return f"{base} {extra}".strip()


def append_runs(text: RichText, runs: Iterable[InlineRun], style: str = "") -> RichText:
    """Append inline runs to ``text`` with their terminal styles."""
    for run in runs:
        run_style = _RUN_STYLES.get(type(run))
        if run_style is not None:
            children = getattr(run, "children", None)
            if children:
                append_runs(text, children, _combine(style, run_style))
            else:
                text.append(run.plain, style=_combine(style, run_style))
        elif isinstance(run, Code):
            text.append(f" {run.content} ", style=_combine(style, "black on yellow"))
        elif isinstance(run, Kbd):
            text.append(f" {run.content} ", style=_combine(style, "black on white"))
        elif isinstance(run, Math):
            text.append(f"⟨ {run.content} ⟩", style=_combine(style, "italic magenta"))
        elif isinstance(run, Link):
            link_style = _combine(style, f"underline blue link {run.url}")
            if run.children:
                append_runs(text, run.children, link_style)
            else:
                text.append(run.content, style=link_style)
            if run.content != run.url:
                text.append(f" → {run.url}", style="dim")
        elif isinstance(run, Image):
            text.append(f"🖼️  {run.alt or 'Untitled'}", style=_combine(style, "cyan"))
            text.append(f" {run.url}", style="dim underline blue")
        elif isinstance(run, FootnoteRef):
            text.append(run.plain, style=_combine(style, "dim blue"))
        else:
            text.append(run.plain, style=style or None)
    return text


def _uppercase(text: RichText) -> RichText:
    """Uppercase ``text`` segment by segment so styles follow length changes."""
    offsets = sorted({span.start for span in text.spans} | {span.end for span in text.spans})
    upper = RichText()
    for part in text.divide(offsets):
        segment = RichText(part.plain.upper())
        for span in part.spans:
            segment.stylize(span.style)
        upper.append_text(segment)
    return upper


def _render_heading(block: Header) -> RichText:
    style = HEADING_STYLES[block.level]
    title = append_runs(RichText(), block.runs)
    if block.level == 1:
        title = _uppercase(title)
    if block.level >= 3:
        prefix = RichText("  " * (block.level - 3) + f"{HEADING_MARKERS[block.level]} ")
        title = prefix + title
    title.stylize(style)
    return title


def _render_code(block: CodeBlock) -> Panel:
    code = Syntax(block.raw_text, block.language or "text", theme="monokai", word_wrap=True)
    return Panel(
        code,
        title=f"⚡ {language_title(block.language)}",
        title_align="left",
        border_style="cyan",
        box=box.ROUNDED,
    )


def _render_math(block: MathBlock) -> Panel:
    return Panel(
        RichText(block.text, style="italic magenta", justify="center"),
        title="📐 MATHEMATICS",
        border_style="magenta",
        box=box.DOUBLE,
    )


def _render_matrix(block: Matrix) -> RichText:
    pad = " " * (cell_len(block.label) + 1) if block.label else ""
    lines = []
    for idx, line in enumerate(block.lines):
        lead = f"{block.label} " if idx == 0 and block.label else pad
        lines.append(lead + line)
    return RichText("\n".join(lines), style="magenta")


def _render_table(block: Table, config: RenderConfig) -> RichText:
    parsed_headers = [append_runs(RichText(), parse_inline(cell)) for cell in block.headers]
    parsed_rows = [[append_runs(RichText(), parse_inline(cell)) for cell in row] for row in block.rows]
    widths = list(block.widths) or column_widths(
        [h.plain for h in parsed_headers],
        [[c.plain for c in row] for row in parsed_rows],
        config.table_min_width,
    )

    def line(cells: List[RichText], style: str = "") -> RichText:
        out = RichText(style=style)
        for idx, width in enumerate(widths):
            cell = cells[idx].copy() if idx < len(cells) else RichText()
            align = block.alignments[idx] if idx < len(block.alignments) else "left"
            cell.align(align, width)
            if idx:
                out.append(config.cell_separator)
            out.append_text(cell)
        return out

    rule_width = sum(widths) + len(config.cell_separator) * max(0, len(widths) - 1)
    out = RichText("📊 TABLE\n", style="bold cyan")
    out.append_text(line(parsed_headers, "bold cyan"))
    out.append("\n" + "─" * rule_width, style="grey50")
    for row in parsed_rows:
        out.append("\n")
        out.append_text(line(row))
    return out


def _render_list_item(block: ListItem, config: RenderConfig) -> RichText:
    text = RichText(" " * block.indent)
    if block.ordered:
        text.append(f"{block.index}. ", style="bold cyan")
    else:
        text.append(f"{config.bullet} ", style="yellow")
    return append_runs(text, block.runs)


def _render_task(block: TaskItem, config: RenderConfig) -> RichText:
    text = RichText(" " * block.indent)
    if block.checked:
        text.append(f"{config.task_done} ", style="green")
        return append_runs(text, block.runs, "strike grey50")
    text.append(f"{config.task_open} ", style="grey50")
    return append_runs(text, block.runs)


def _render_footnotes(block: FootnoteSection, config: RenderConfig) -> RichText:
    text = RichText("─" * config.footnote_rule_width + "\n", style="grey50")
    text.append("📝 FOOTNOTES:\n", style="bold yellow")
    for entry in block.entries:
        text.append(f"\n[{entry.ref}] ", style="bold blue")
        text.append(entry.text, style="grey70")
    return text


def render_block(block: Block, config: RenderConfig = DEFAULT_CONFIG) -> RenderableType | None:
    if isinstance(block, Header):
        return _render_heading(block)
    if isinstance(block, Paragraph):
        return append_runs(RichText(), block.runs)
    if isinstance(block, CodeBlock):
        return _render_code(block)
    if isinstance(block, MathBlock):
        return _render_math(block)
    if isinstance(block, Matrix):
        return _render_matrix(block)
    if isinstance(block, Table):
        return _render_table(block, config)
    if isinstance(block, ListItem):
        return _render_list_item(block, config)
    if isinstance(block, TaskItem):
        return _render_task(block, config)
    if isinstance(block, Blockquote):
        text = RichText("│ " * block.depth, style="grey50")
        return append_runs(text, block.runs, "italic grey70")
    if isinstance(block, HorizontalRule):
        return RichText("─" * config.rule_width, style="grey50")
    if isinstance(block, FootnoteSection):
        return _render_footnotes(block, config)
    if isinstance(block, Blank):
        return RichText("")
    return None


def render_document(document: Document, config: RenderConfig | None = None) -> Group:
    config = config or DEFAULT_CONFIG
    renderables: List[RenderableType] = []
    for block in document.blocks:
        renderable = render_block(block, config)
        if renderable is not None:
            renderables.append(renderable)
    if not document.finished:
        renderables.append(RichText(config.cursor, style="dim cyan"))
    return Group(*renderables)


def print_document(document: Document, console: Console | None = None, config: RenderConfig | None = None) -> None:
    (console or Console()).print(render_document(document, config))


class LiveDocument:
    """Keeps a rich ``Live`` display in sync with a streaming response."""

    def __init__(
        self,
        console: Console | None = None,
        config: RenderConfig | None = None,
        refresh_per_second: int = 10,
    ) -> None:
        self._console = console or Console()
        self._config = config
        self._refresh_per_second = refresh_per_second
        self._renderer = StreamingRenderer(config)
        self._live: Live | None = None

    def start(self) -> None:
        self._renderer = StreamingRenderer(self._config)
        self._live = Live(
            render_document(self._renderer.document(), self._config),
            console=self._console,
            refresh_per_second=self._refresh_per_second,
        )
        self._live.start()

    def feed(self, chunk: str) -> Document:
        document = self._renderer.feed(chunk)
        if self._live is not None:
            self._live.update(render_document(document, self._config))
        return document

    def finish(self) -> Document:
        document = self._renderer.finish()
        if self._live is not None:
            self._live.update(render_document(document, self._config), refresh=True)
            self._live.stop()
            self._live = None
        return document

    @property
    def is_active(self) -> bool:
        return self._live is not None


async def print_stream(
    chunks: AsyncIterable[str],
    console: Console | None = None,
    config: RenderConfig | None = None,
) -> Document | None:
    """Render an async text stream live; returns the final Document."""
    console = console or Console()
    document = None
    with Live(console=console, refresh_per_second=10) as live:
        async for document in stream_documents(chunks, config):
            live.update(render_document(document, config))
    return document

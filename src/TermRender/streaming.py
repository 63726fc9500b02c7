from __future__ import annotations

import logging
from typing import AsyncIterable, AsyncIterator

from .config import RenderConfig
from .markdown_parser import parse_markdown
from .model import Document, FootnoteDef, FootnoteSection

logger = logging.getLogger(__name__)


def render(text: str, finished: bool = True, config: RenderConfig | None = None) -> Document:
    """Build the Document for ``text``; unfinished documents get no footnote section."""
    document = parse_markdown(text, config)
    document.finished = finished
    if finished and document.footnotes:
        entries = [FootnoteDef(ref=ref, text=body) for ref, body in document.footnotes.items()]
        document.blocks.append(FootnoteSection(entries=entries))
    return document


class StreamingRenderer:
    """Accumulates chunks and re-renders the full buffer on each one."""

    def __init__(self, config: RenderConfig | None = None) -> None:
        self._config = config
        self._buffer = ""
        self._finished = False

    @property
    def text(self) -> str:
        return self._buffer

    @property
    def finished(self) -> bool:
        return self._finished

    def feed(self, chunk: str) -> Document:
        if self._finished:
            raise ValueError("Cannot feed a stream that has already finished")
        self._buffer += chunk
        return self.document()

    def finish(self) -> Document:
        self._finished = True
        return self.document()

    def document(self) -> Document:
        return render(self._buffer, finished=self._finished, config=self._config)


async def stream_documents(
    chunks: AsyncIterable[str],
    config: RenderConfig | None = None,
) -> AsyncIterator[Document]:
    """Yield one Document per received chunk, then the finished Document."""
    renderer = StreamingRenderer(config)
    count = 0
    try:
        async for chunk in chunks:
            count += 1
            yield renderer.feed(chunk)
    except Exception:
        logger.error("Text stream failed after %d chunks (%d chars)", count, len(renderer.text))
        raise
    logger.debug("Stream complete: %d chunks, %d chars", count, len(renderer.text))
    yield renderer.finish()

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import AsyncIterator, TextIO


def configure_logging(verbose: bool = False) -> None:
    """Configure a simple console logger."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(message)s",
        stream=sys.stderr,
    )


def read_markdown(path: Path) -> str:
    return path.read_text(encoding="utf-8")


async def read_chunks(stream: TextIO) -> AsyncIterator[str]:
    """Yield lines from a blocking text stream without stalling the event loop."""
    while True:
        line = await asyncio.to_thread(stream.readline)
        if not line:
            break
        yield line

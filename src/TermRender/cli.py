from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rich.console import Console

from . import renderer_terminal, renderer_text, streaming
from .config import load_config_file
from .utils import configure_logging, read_chunks, read_markdown


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="termrender",
        description="Render LLM-style Markdown and LaTeX for the terminal.",
    )
    parser.add_argument("input", type=str, help="Path to Markdown file, or - for stdin")
    parser.add_argument("--plain", action="store_true", help="Print glyph-based plain text instead of styled output")
    parser.add_argument("--stream", action="store_true", help="Render stdin incrementally as it arrives")
    parser.add_argument("--config", type=str, help="YAML file with render settings")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


async def _last_document(chunks, config):
    document = None
    async for document in streaming.stream_documents(chunks, config):
        pass
    return document


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose)
    config = load_config_file(Path(args.config).expanduser()) if args.config else None
    console = Console()

    if args.stream:
        if args.input != "-":
            raise ValueError("--stream reads from stdin; pass - as the input")
        logging.info("Streaming from stdin...")
        if args.plain:
            document = asyncio.run(_last_document(read_chunks(sys.stdin), config))
            if document is not None:
                print(renderer_text.format_plain_text(document, config))
        else:
            asyncio.run(renderer_terminal.print_stream(read_chunks(sys.stdin), console, config))
        return

    if args.input == "-":
        markdown_text = sys.stdin.read()
    else:
        input_path = Path(args.input).expanduser()
        if not input_path.exists():
            raise FileNotFoundError(f"Input file not found: {input_path}")
        logging.info("Reading %s", input_path)
        markdown_text = read_markdown(input_path)
    logging.debug("Markdown length: %d chars", len(markdown_text))

    document = streaming.render(markdown_text, finished=True, config=config)
    logging.debug("Parsed %d blocks", len(document.blocks))

    if args.plain:
        print(renderer_text.format_plain_text(document, config))
    else:
        renderer_terminal.print_document(document, console, config)


if __name__ == "__main__":
    main()

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape

from ..config import AppConfig, dump_config, load_config
from ..core import ConversionService
from ..errors import ConversionError
from ..logging import configure_logging
from ..utils import atomic_write, atomic_write_bytes, default_output_path

# stdout is reserved for PDF bytes when writing with "-o -"
console = Console(stderr=True)

app = typer.Typer(help="Convert Markdown files to PDF")


def _load_config(path: Path | None) -> AppConfig:
    return load_config(path)


def _read_input(value: str) -> tuple[str, Path | None]:
    candidate = Path(value)
    try:
        is_file = candidate.is_file()
    except (OSError, ValueError):
        # literal markdown that is not a usable path (too long, NUL bytes)
        is_file = False
    if is_file:
        return candidate.read_text(encoding="utf-8"), candidate
    return value, None


def _split_pages(value: str) -> list[str]:
    return [token.strip() for token in value.split(",") if token.strip()]


async def _convert_once(service: ConversionService, markdown: str, options: dict[str, Any]) -> bytes:
    try:
        return await service.convert(markdown, options)
    finally:
        await service.close()


@app.command()
def convert(
    source: str = typer.Argument(..., metavar="INPUT", help="Markdown file path or markdown content"),
    output: str | None = typer.Option(None, "--output", "-o", help="Output PDF path ('-' for stdout)"),
    page_format: str = typer.Option(
        "A4", "--format", "-f", help="PDF format (A4, A3, A5, Legal, Letter, Tabloid)"
    ),
    landscape: bool = typer.Option(False, "--landscape", "-l", help="Use landscape orientation"),
    page_numbers: bool = typer.Option(True, "--page-numbers/--no-page-numbers", help="Print page numbers"),
    pages: str | None = typer.Option(None, "--pages", "-p", help='Page ranges, e.g. "1-5,7,10-"'),
    margin_top: str = typer.Option("1in", "--margin-top", help='Top margin, e.g. "1in" or "20mm"'),
    margin_right: str = typer.Option("1in", "--margin-right", help="Right margin"),
    margin_bottom: str = typer.Option("1in", "--margin-bottom", help="Bottom margin"),
    margin_left: str = typer.Option("1in", "--margin-left", help="Left margin"),
    header: str | None = typer.Option(None, "--header", help="Header HTML template"),
    footer: str | None = typer.Option(None, "--footer", help="Footer HTML template"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    configure_logging(verbose)
    cfg = _load_config(config)
    markdown, source_path = _read_input(source)

    options: dict[str, Any] = {
        "format": page_format,
        "landscape": landscape,
        "includePageNumbers": page_numbers,
        "margin": {
            "top": margin_top,
            "right": margin_right,
            "bottom": margin_bottom,
            "left": margin_left,
        },
    }
    if header is not None:
        options["headerTemplate"] = header
    if footer is not None:
        options["footerTemplate"] = footer
    if pages:
        options["pages"] = _split_pages(pages)

    service = ConversionService(cfg)
    try:
        pdf = asyncio.run(_convert_once(service, markdown, options))
    except ConversionError as exc:
        console.print(f"[red]Conversion failed[/red]: {exc.code} - {escape(str(exc))}")
        raise typer.Exit(1) from exc

    target = output or str(default_output_path(source_path))
    if target in {"-", "/dev/stdout"}:
        sys.stdout.buffer.write(pdf)
        sys.stdout.buffer.flush()
        return
    destination = Path(target)
    try:
        atomic_write_bytes(destination, pdf)
    except OSError as exc:
        console.print(f"[red]Could not write output[/red]: {escape(str(exc))}")
        raise typer.Exit(1) from exc
    console.print(f"[green]Success[/green]: PDF created at {destination.resolve()}")
    console.print(f"File size: {len(pdf) / 1024:.2f} KB")


@app.command()
def html(
    source: str = typer.Argument(..., metavar="INPUT", help="Markdown file path or markdown content"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write the HTML document here"),
    page_numbers: bool = typer.Option(True, "--page-numbers/--no-page-numbers"),
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    cfg = _load_config(config)
    markdown, _ = _read_input(source)
    service = ConversionService(cfg)
    try:
        document = service.render_html(markdown, {"includePageNumbers": page_numbers})
    except ConversionError as exc:
        console.print(f"[red]Rendering failed[/red]: {exc.code} - {escape(str(exc))}")
        raise typer.Exit(1) from exc
    if output is None:
        typer.echo(document)
        return
    atomic_write(output, document)
    console.print(f"[green]Success[/green]: HTML written to {output}")


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address"),
    port: int | None = typer.Option(None, "--port", min=1, help="Bind port"),
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    import uvicorn

    from api.app import create_app
    from core.settings import Settings

    cfg = _load_config(config)
    settings = Settings(config_path=config) if config else None
    uvicorn.run(create_app(settings), host=host or cfg.api.host, port=port or cfg.api.port)


@app.command("show-config")
def show_config(
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    typer.echo(dump_config(_load_config(config)))


if __name__ == "__main__":
    app()

# src/sricache/cli.py
"""sricache Command Line Interface.

Inspect and extract content from a cache by integrity descriptor.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from pydantic import ValidationError

from sricache import __version__
from sricache.contracts.errors import CacheError, IntegrityParseError, error_code
from sricache.core.config import ReaderSettings, ReadOptions, load_settings
from sricache.core.content_path import content_path
from sricache.core.logging import configure_logging, get_logger
from sricache.core.read import copy_sync, has_content_sync, read_stream, read_sync

__all__ = ["app"]

app = typer.Typer(
    name="sricache",
    help="sricache: integrity-verified access to content-addressable caches.",
    no_args_is_help=True,
)

logger = get_logger(__name__)

# Settings loaded by the callback, shared with commands
_settings: ReaderSettings = ReaderSettings()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"sricache version {__version__}")
        raise typer.Exit()


def _fail(error: Exception) -> typer.Exit:
    code = error_code(error)
    prefix = f"Error [{code}]" if code else "Error"
    typer.echo(f"{prefix}: {error}", err=True)
    return typer.Exit(1)


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to YAML settings file.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """sricache: integrity-verified access to content-addressable caches."""
    global _settings

    try:
        _settings = load_settings(config)
    except FileNotFoundError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None

    level = "DEBUG" if verbose else _settings.log_level
    configure_logging(json_output=json_logs or _settings.json_logs, level=level)


async def _drain_stream(cache: Path, integrity: str, size: int | None) -> bytes:
    stream = read_stream(cache, integrity, ReadOptions(size=size), settings=_settings)
    return await stream.read()


@app.command()
def read(
    cache: Path = typer.Argument(..., help="Cache root directory."),
    integrity: str = typer.Argument(..., help="Integrity descriptor of the content."),
    size: int | None = typer.Option(None, "--size", "-s", min=0, help="Expected content size in bytes."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write content here instead of stdout."),
    stream: bool = typer.Option(False, "--stream", help="Read through a verifying stream."),
) -> None:
    """Read verified content to stdout or a file."""
    try:
        if stream:
            data = asyncio.run(_drain_stream(cache, integrity, size))
        else:
            data = read_sync(cache, integrity, ReadOptions(size=size))
    except (CacheError, IntegrityParseError, OSError) as e:
        raise _fail(e) from None

    logger.debug("content_read", sri=integrity, size=len(data))
    if output is not None:
        output.write_bytes(data)
    else:
        out = typer.get_binary_stream("stdout")
        out.write(data)
        out.flush()


@app.command()
def copy(
    cache: Path = typer.Argument(..., help="Cache root directory."),
    integrity: str = typer.Argument(..., help="Integrity descriptor of the content."),
    dest: Path = typer.Argument(..., help="Destination file."),
) -> None:
    """Copy content out of the cache without re-verifying it."""
    try:
        copy_sync(cache, integrity, dest)
    except (CacheError, IntegrityParseError, OSError) as e:
        raise _fail(e) from None
    typer.echo(f"Copied {integrity} to {dest}")


@app.command()
def has(
    cache: Path = typer.Argument(..., help="Cache root directory."),
    integrity: str = typer.Argument(..., help="Integrity descriptor of the content."),
    platform: str | None = typer.Option(None, "--platform", help="Override platform for permission handling."),
) -> None:
    """Report whether content is present. Exits 1 if it is not."""
    try:
        info = has_content_sync(cache, integrity, platform=platform, settings=_settings)
    except (CacheError, IntegrityParseError, OSError) as e:
        raise _fail(e) from None

    if info is None:
        typer.echo(f"Not found: {integrity}", err=True)
        raise typer.Exit(1)
    typer.echo(f"{info.sri} {info.size}")


@app.command()
def path(
    cache: Path = typer.Argument(..., help="Cache root directory."),
    integrity: str = typer.Argument(..., help="Integrity descriptor of the content."),
) -> None:
    """Print where content for a descriptor is stored."""
    try:
        typer.echo(str(content_path(cache, integrity)))
    except IntegrityParseError as e:
        raise _fail(e) from None


if __name__ == "__main__":
    app()

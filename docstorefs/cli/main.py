"""docstorefs CLI - Main entrypoint."""

from __future__ import annotations

import asyncio
import sys
from dataclasses import asdict, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

import typer
from rich.table import Table

from docstorefs import __version__
from docstorefs.cli.utils import console, err_console, output_format, print_output
from docstorefs.drivers.document_store import InMemoryDocumentStore
from docstorefs.drivers.vfs.docstore_fs import DocumentStoreFileSystem
from docstorefs.kernel.config import load_config
from docstorefs.kernel.domain.entries import SIZE_NOT_MATERIALIZED, SIZE_UNAVAILABLE
from docstorefs.kernel.exceptions import DocStoreFSError
from docstorefs.kernel.logging import configure_logging

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from docstorefs.kernel.config.models import DocStoreFSConfig
    from docstorefs.kernel.domain.entries import Stats

T = TypeVar("T")

app = typer.Typer(
    name="docstorefs",
    help="Browse and edit a document store as a filesystem.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_enable=False,
)


def _print_version(value: bool) -> None:
    if value:
        console.print(f"[bold blue]docstorefs[/bold blue] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def callback(
    ctx: typer.Context,
    *,
    connection: str | None = typer.Option(
        None, "--connection", "-c", help="Connection string forwarded to the proxy"
    ),
    proxy_url: str | None = typer.Option(None, "--proxy-url", help="Document-store proxy URL"),
    config: Path | None = typer.Option(None, "--config", help="Path to a config file"),
    memory: bool = typer.Option(
        False, "--memory", help="Use a bundled in-memory sample store instead of the proxy"
    ),
    log_level: str | None = typer.Option(
        None, "--log-level", help="Log level: debug|info|warning|error"
    ),
    json_out: bool = typer.Option(False, "--json", help="Output machine-readable JSON"),
    yaml_out: bool = typer.Option(False, "--yaml", help="Output machine-readable YAML"),
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        callback=_print_version,
        is_eager=True,
    ),
) -> None:
    """docstorefs - a document store as a path-addressed filesystem.

    Global flags are parsed here and stored on `ctx.obj` for subcommands.
    """
    if ctx.obj is None:
        ctx.obj = {}

    fmt = "pretty"
    if json_out:
        fmt = "json"
    elif yaml_out:
        fmt = "yaml"

    try:
        settings = load_config(config)
    except (FileNotFoundError, DocStoreFSError) as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2) from e

    store = settings.store
    if connection is not None:
        store = replace(store, connection_string=connection)
    if proxy_url is not None:
        store = replace(store, proxy_url=proxy_url)
    settings = replace(settings, store=store)

    logging_config = settings.logging
    configure_logging(
        level=(log_level or logging_config.level).upper(),  # type: ignore[arg-type]
        format=logging_config.format,
        output_file=logging_config.output_file,
        use_color=logging_config.use_color,
        include_timestamp=logging_config.include_timestamp,
    )

    ctx.obj.update({
        "output_format": fmt,
        "memory": memory,
        "config": settings,
    })


def _filesystem(ctx: typer.Context) -> DocumentStoreFileSystem:
    settings: DocStoreFSConfig = ctx.obj["config"]
    if ctx.obj.get("memory"):
        return DocumentStoreFileSystem(
            settings.store.connection_string, store=InMemoryDocumentStore(sample=True)
        )
    return DocumentStoreFileSystem.from_config(settings)


def _run(ctx: typer.Context, operation: Callable[[DocumentStoreFileSystem], Awaitable[T]]) -> T:
    """Run one operation against a fresh adapter, exiting 1 on filesystem errors."""

    async def runner() -> T:
        async with _filesystem(ctx) as fs:
            return await operation(fs)

    try:
        return asyncio.run(runner())
    except DocStoreFSError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e


def _size_label(size: int) -> str:
    if size == SIZE_NOT_MATERIALIZED:
        return "?"
    if size == SIZE_UNAVAILABLE:
        return "n/a"
    return str(size)


def _stats_dict(path: str, stats: Stats) -> dict[str, Any]:
    return {
        "path": path,
        "type": "directory" if stats.is_directory else "file",
        "size": stats.size,
        "mode": oct(stats.mode),
        "mtime": stats.mtime.isoformat(),
    }


def _join(directory: str, name: str) -> str:
    return f"{directory.rstrip('/')}/{name}"


@app.command("ls")
def list_directory(
    ctx: typer.Context,
    path: str = typer.Argument("/", help="Directory to list"),
    long: bool = typer.Option(False, "--long", "-l", help="Show type and size of each entry"),
) -> None:
    """List databases, collections or documents."""

    async def operation(fs: DocumentStoreFileSystem) -> list[Any]:
        names = await fs.areaddir(path)
        if not long:
            return names
        stats = await asyncio.gather(*(fs.astat(_join(path, name)) for name in names))
        return [_stats_dict(_join(path, n), s) for n, s in zip(names, stats, strict=True)]

    result = _run(ctx, operation)
    if output_format(ctx) != "pretty":
        print_output(result, ctx)
        return

    if not long:
        for name in result:
            typer.echo(name)
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Size", justify="right")
    for row in result:
        table.add_row(row["path"].rsplit("/", 1)[-1], row["type"], _size_label(row["size"]))
    console.print(table)


@app.command("stat")
def stat_path(ctx: typer.Context, path: str = typer.Argument(..., help="Path to inspect")) -> None:
    """Show stats for a path."""
    stats = _run(ctx, lambda fs: fs.astat(path))
    info = _stats_dict(path, stats)
    if output_format(ctx) != "pretty":
        print_output(info, ctx)
        return
    info["size"] = _size_label(stats.size)
    for key, value in info.items():
        console.print(f"[bold]{key}[/bold]: {value}")


@app.command("cat")
def cat_document(
    ctx: typer.Context, path: str = typer.Argument(..., help="Document path (.json)")
) -> None:
    """Print a document as JSON."""
    content = _run(ctx, lambda fs: fs.aread_file(path, encoding="utf-8"))
    typer.echo(content)


@app.command("put")
def put_document(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Document path (.json)"),
    source: Path | None = typer.Argument(None, help="JSON file to upload; stdin when omitted"),
) -> None:
    """Create or replace a document from JSON."""
    if source is None or str(source) == "-":
        data = sys.stdin.read()
    else:
        try:
            data = source.read_text(encoding="utf-8")
        except OSError as e:
            err_console.print(f"[red]Error:[/red] cannot read {source}: {e}")
            raise typer.Exit(1) from e

    _run(ctx, lambda fs: fs.awrite_file(path, data))
    console.print(f"[green]✓[/green] Wrote {path}")


@app.command("rm")
def remove_document(
    ctx: typer.Context, path: str = typer.Argument(..., help="Document path (.json)")
) -> None:
    """Delete a document."""
    _run(ctx, lambda fs: fs.aunlink(path))
    console.print(f"[green]✓[/green] Removed {path}")


@app.command("mkdir")
def make_directory(
    ctx: typer.Context, path: str = typer.Argument(..., help="/<database>[/<collection>]")
) -> None:
    """Create a database or a collection."""
    _run(ctx, lambda fs: fs.amkdir(path))
    console.print(f"[green]✓[/green] Created {path}")


@app.command("rmdir")
def remove_directory(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="/<database>[/<collection>]"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Drop a collection or a whole database."""
    if not yes:
        typer.confirm(f"Drop {path} and everything in it?", abort=True)
    _run(ctx, lambda fs: fs.armdir(path))
    console.print(f"[green]✓[/green] Dropped {path}")


@app.command("images")
def list_images(
    ctx: typer.Context, path: str = typer.Argument(..., help="Document path (.json)")
) -> None:
    """List image URLs referenced by a document."""
    urls = _run(ctx, lambda fs: fs.aget_document_images(path))
    if output_format(ctx) != "pretty":
        print_output(urls, ctx)
        return
    for url in urls:
        typer.echo(url)


@app.command("ping")
def ping(ctx: typer.Context) -> None:
    """Check that the document store is reachable."""
    reachable = _run(ctx, lambda fs: fs.aping())
    if output_format(ctx) != "pretty":
        print_output({"reachable": reachable}, ctx)
    elif reachable:
        console.print("[green]✓[/green] Store reachable")
    else:
        console.print("[red]✗[/red] Store unreachable")
    if not reachable:
        raise typer.Exit(1)


@app.command("config")
def show_config(ctx: typer.Context) -> None:
    """Show the effective configuration."""
    settings: DocStoreFSConfig = ctx.obj["config"]
    print_output(asdict(settings), ctx)


def main() -> None:
    """Main CLI entrypoint."""
    app()


if __name__ == "__main__":
    main()

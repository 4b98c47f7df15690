"""CLI helper utilities for docstorefs commands."""

from __future__ import annotations

import json
from typing import Any, Protocol

import typer
import yaml
from rich.console import Console


class ContextProtocol(Protocol):
    """Protocol for common interface between Click and Typer contexts."""

    @property
    def obj(self) -> dict[str, Any] | None: ...


console = Console()
err_console = Console(stderr=True)


def output_format(ctx: ContextProtocol | None) -> str:
    """The ``output_format`` chosen on the command line, ``"pretty"`` by default."""
    settings = getattr(ctx, "obj", None)
    if isinstance(settings, dict):
        return str(settings.get("output_format", "pretty"))
    return "pretty"


def print_output(obj: Any, ctx: ContextProtocol | None = None) -> None:
    """Print `obj` according to `ctx.obj['output_format']`.

    If ctx is None or no format specified, pretty-print using rich.console.
    """
    fmt = output_format(ctx)
    if fmt == "json":
        typer.echo(json.dumps(obj, default=str, indent=2, ensure_ascii=False))
    elif fmt == "yaml":
        typer.echo(yaml.safe_dump(obj, sort_keys=False, allow_unicode=True))
    elif isinstance(obj, (str, int, float)):
        typer.echo(str(obj))
    else:
        console.print(obj)

from __future__ import annotations

"""Shared helpers for reading tree documents with CLI-friendly errors."""

from typing import Any, Callable, TypeVar

import typer
from rich.console import Console

from diagnosis.io.loaders import LoaderError

T = TypeVar("T")


def load_or_exit(
    loader_fn: Callable[..., T],
    *args: Any,
    console: Console,
    verbose_errors: bool = False,
    **kwargs: Any,
) -> T:
    try:
        return loader_fn(*args, **kwargs)
    except LoaderError as err:
        if verbose_errors and err.cause:
            console.print(f"[red]Failed to load data:[/red] {err.message}\n{err.cause}")
        else:
            console.print(f"[red]Failed to load data:[/red] {err}")
        raise typer.Exit(code=1)


__all__ = ["load_or_exit"]

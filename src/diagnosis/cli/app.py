"""
Diagnosis CLI: validate, publish and walk repair-diagnosis trees.

Administrators validate and upload tree documents and toggle activation;
technician walks can be replayed non-interactively with ``walk -i ...``.
"""

from __future__ import annotations

import typer
from rich.console import Console
from rich.markup import escape

from diagnosis.cli.formatters import (
    build_active_trees_table,
    build_tree_list_table,
    build_upload_table,
    format_node,
    format_progress,
)
from diagnosis.cli.load_helpers import load_or_exit
from diagnosis.cli.paths import trees_store_path
from diagnosis.config import DEFAULT_LOCALE, DEFAULT_UPDATED_BY
from diagnosis.core.tree.models import DiagnosisTree
from diagnosis.core.tree.traversal import TraversalResult, TraversalSession
from diagnosis.core.tree.validator import validate_tree
from diagnosis.io.loaders import load_tree, read_all
from diagnosis.repositories.tree_repository import JsonTreeRepository, RepositoryError
from diagnosis.services.tree_service import DiagnosisTreeService
from diagnosis.utils.logging import configure_logging

app = typer.Typer(help="Diagnosis CLI: validate, publish and walk repair-diagnosis trees.")
console = Console()

WALK_COMMANDS = ("yes", "no", "y", "n", "next", "back", "restart")


def _service(store: str | None, *, read_only: bool = False) -> DiagnosisTreeService:
    return DiagnosisTreeService(JsonTreeRepository(trees_store_path(store)), read_only=read_only)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")) -> None:
    configure_logging(verbose)


@app.command()
def validate(
    files: list[str] = typer.Argument(..., help="Tree documents (.json/.yaml) or folders"),
    verbose: bool = typer.Option(False, "--verbose-load", help="Display full trace on loader errors"),
) -> None:
    """Validate tree documents without storing them."""
    documents = load_or_exit(read_all, files, console=console, verbose_errors=verbose)
    if not documents:
        console.print("[red]No tree documents found[/red]")
        raise typer.Exit(code=1)

    failed = 0
    for document in documents:
        report = validate_tree(document)
        tree_id = document.get("treeId", "(unknown)") if isinstance(document, dict) else "(unknown)"
        if report.errors:
            failed += 1
            console.print(f"[red]FAIL[/red] {escape(str(tree_id))}")
        else:
            console.print(f"[green]OK[/green] {escape(str(tree_id))}")
        for error in report.errors:
            console.print(f"  [red]error[/red] {escape(error)}")
        for warning in report.warnings:
            console.print(f"  [yellow]warning[/yellow] {escape(warning)}")

    if failed:
        console.print(f"[red]{failed} of {len(documents)} tree(s) failed validation[/red]")
        raise typer.Exit(code=1)
    console.print("[green]All validations passed[/green]")


@app.command()
def upload(
    files: list[str] = typer.Argument(..., help="Tree documents (.json/.yaml) or folders"),
    store: str | None = typer.Option(None, "--store", help="Tree store directory"),
    by: str = typer.Option(DEFAULT_UPDATED_BY, "--by", help="Recorded as updatedBy"),
    read_only: bool = typer.Option(False, "--read-only", help="Reject all changes"),
    verbose: bool = typer.Option(False, "--verbose-load", help="Display full trace on loader errors"),
) -> None:
    """Validate and store trees; each valid tree becomes its next version."""
    documents = load_or_exit(read_all, files, console=console, verbose_errors=verbose)
    result = _service(store, read_only=read_only).upload(documents, updated_by=by)

    console.print(build_upload_table(result.results))
    console.print(f"Imported {result.imported} of {len(result.results)} tree(s)")
    if result.imported == 0:
        raise typer.Exit(code=1)


@app.command("list")
def list_trees(
    store: str | None = typer.Option(None, "--store", help="Tree store directory"),
) -> None:
    """List stored trees with version, activation and current findings."""
    try:
        summaries = _service(store).list_trees()
    except RepositoryError as err:
        console.print(f"[red]Cannot read tree store:[/red] {escape(str(err))}")
        raise typer.Exit(code=1)
    if not summaries:
        console.print("[dim]No diagnosis trees stored[/dim]")
        return
    console.print(build_tree_list_table(summaries))


def _toggle(tree_id: str, is_active: bool, store: str | None, read_only: bool) -> None:
    result = _service(store, read_only=read_only).set_active(tree_id, is_active)
    if result.error == "NOT_FOUND":
        console.print(f"[red]Tree not found[/red]: {escape(tree_id)}")
        raise typer.Exit(code=2)
    if not result.ok:
        console.print(f"[red]{result.error}[/red]: {escape(result.message or '')}")
        raise typer.Exit(code=1)
    state = "[green]active[/green]" if is_active else "[dim]inactive[/dim]"
    console.print(f"{escape(tree_id)} is now {state}")


@app.command()
def activate(
    tree_id: str = typer.Argument(..., help="Tree id"),
    store: str | None = typer.Option(None, "--store", help="Tree store directory"),
    read_only: bool = typer.Option(False, "--read-only", help="Reject all changes"),
) -> None:
    """Serve a tree to technicians."""
    _toggle(tree_id, True, store, read_only)


@app.command()
def deactivate(
    tree_id: str = typer.Argument(..., help="Tree id"),
    store: str | None = typer.Option(None, "--store", help="Tree store directory"),
    read_only: bool = typer.Option(False, "--read-only", help="Reject all changes"),
) -> None:
    """Stop serving a tree to technicians."""
    _toggle(tree_id, False, store, read_only)


@app.command()
def trees(
    model: str = typer.Option(..., "--model", help="Vehicle model"),
    category: str | None = typer.Option(None, "--category", help="Diagnosis category"),
    locale: str = typer.Option(DEFAULT_LOCALE, "--locale", help="Text locale"),
    store: str | None = typer.Option(None, "--store", help="Tree store directory"),
) -> None:
    """Show the active trees available for a vehicle model."""
    service = _service(store)
    try:
        available = service.load_active_trees(model, category=category, locale=locale)
        categories = service.list_categories(model)
    except RepositoryError as err:
        console.print(f"[red]Cannot read tree store:[/red] {escape(str(err))}")
        raise typer.Exit(code=1)
    if not available:
        console.print(f"[dim]No active diagnosis trees for model {escape(model)}[/dim]")
        return
    console.print(f"Categories: {escape(', '.join(categories))}")
    console.print(build_active_trees_table(available))


def _resolve_walk_tree(
    tree_id: str | None,
    file: str | None,
    model: str | None,
    store: str | None,
    locale: str,
) -> DiagnosisTree:
    if file:
        tree = load_or_exit(load_tree, file, locale=locale, console=console)
    elif tree_id:
        try:
            tree = _service(store).get_active_tree(tree_id, locale=locale)
        except RepositoryError as err:
            console.print(f"[red]Cannot read tree store:[/red] {escape(str(err))}")
            raise typer.Exit(code=1)
        if tree is None:
            console.print(f"[red]No active tree[/red]: {escape(tree_id)}")
            raise typer.Exit(code=2)
    else:
        console.print("[red]Give a tree id or --file[/red]")
        raise typer.Exit(code=2)

    if model and not tree.supports_model(model):
        console.print(f"[red]Tree {escape(tree.tree_id)} does not support model[/red] {escape(model)}")
        raise typer.Exit(code=2)
    return tree


def _apply_input(session: TraversalSession, command: str) -> TraversalResult:
    if command in ("yes", "no", "y", "n"):
        return session.answer(command)
    if command == "next":
        return session.advance()
    if command == "back":
        return session.back()
    return session.restart()


@app.command()
def walk(
    tree_id: str | None = typer.Argument(None, help="Active tree id from the store"),
    inputs: list[str] = typer.Option([], "--input", "-i", help="yes, no, next, back or restart (repeatable)"),
    model: str | None = typer.Option(None, "--model", help="Vehicle model the walk is for"),
    file: str | None = typer.Option(None, "--file", help="Walk a tree document instead of the store"),
    locale: str = typer.Option(DEFAULT_LOCALE, "--locale", help="Text locale"),
    store: str | None = typer.Option(None, "--store", help="Tree store directory"),
) -> None:
    """Replay a diagnosis walk and show where it ends."""
    tree = _resolve_walk_tree(tree_id, file, model, store, locale)

    session = TraversalSession()
    started = session.start(tree)
    if not started.ok:
        console.print(f"[red]{escape(started.message or 'Cannot start walk')}[/red]")
        for error in started.errors:
            console.print(f"  [red]error[/red] {escape(error)}")
        raise typer.Exit(code=1)

    for raw in inputs:
        command = raw.strip().lower()
        if command not in WALK_COMMANDS:
            console.print(f"[red]Unknown input[/red] '{escape(raw)}' (expected one of: {', '.join(WALK_COMMANDS)})")
            raise typer.Exit(code=2)
        result = _apply_input(session, command)
        if not result.ok:
            console.print(f"[red]{result.error.value}[/red]: {escape(result.message or '')}")
            raise typer.Exit(code=1)

    console.print(f"[bold]{escape(tree.title)}[/bold] ({escape(tree.category)})")
    console.print(f"Path: {escape(' > '.join(session.breadcrumb))}")
    console.print(format_progress(session))
    console.print(format_node(session.current_node()))


__all__ = ["app"]

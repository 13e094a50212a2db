"""Formatting helpers for CLI presentation."""

from __future__ import annotations

from typing import Iterable, List

from rich.markup import escape
from rich.table import Table

from diagnosis.core.tree.models import DiagnosisNode, DiagnosisTree, QuestionNode, ResultNode, StepNode
from diagnosis.core.tree.traversal import TraversalSession
from diagnosis.services.tree_service import TreeSummary, UploadResult


def _findings(errors: List[str], warnings: List[str]) -> str:
    lines = [f"[red]E[/red] {escape(error)}" for error in errors]
    lines.extend(f"[yellow]W[/yellow] {escape(warning)}" for warning in warnings)
    return "\n".join(lines) or "[green]ok[/green]"


def build_upload_table(results: Iterable[UploadResult]) -> Table:
    table = Table(title="Upload results")
    table.add_column("Tree", no_wrap=True)
    table.add_column("Status")
    table.add_column("Version")
    table.add_column("Findings")
    for result in results:
        status_color = "green" if result.status == "saved" else "red"
        table.add_row(
            escape(result.tree_id),
            f"[{status_color}]{result.status}[/{status_color}]",
            str(result.version) if result.version is not None else "-",
            _findings(result.errors, result.warnings),
        )
    return table


def build_tree_list_table(summaries: Iterable[TreeSummary]) -> Table:
    table = Table(title="Diagnosis trees")
    table.add_column("Tree", no_wrap=True)
    table.add_column("Title")
    table.add_column("Category")
    table.add_column("Models")
    table.add_column("Nodes", justify="right")
    table.add_column("Version", justify="right")
    table.add_column("Active")
    table.add_column("Findings")
    for summary in summaries:
        table.add_row(
            escape(summary.tree_id),
            escape(summary.title),
            escape(summary.category),
            escape(", ".join(summary.supported_models)) or "-",
            str(summary.node_count),
            str(summary.version),
            "[green]yes[/green]" if summary.is_active else "[dim]no[/dim]",
            _findings(summary.errors, summary.warnings),
        )
    return table


def build_active_trees_table(trees: Iterable[DiagnosisTree]) -> Table:
    table = Table(title="Available diagnoses")
    table.add_column("Tree", no_wrap=True)
    table.add_column("Category")
    table.add_column("Title")
    table.add_column("Symptom")
    for tree in trees:
        table.add_row(
            escape(tree.tree_id), escape(tree.category), escape(tree.title), escape(tree.symptom_title or "")
        )
    return table


def format_node(node: DiagnosisNode) -> str:
    """Multi-line rich markup for the node the walk stopped at."""
    if isinstance(node, QuestionNode):
        return f"[bold]Question[/bold] ({escape(node.id)}) {escape(node.text)}\n  yes / no"
    if isinstance(node, StepNode):
        return f"[bold]Step[/bold] ({escape(node.id)}) {escape(node.text)}\n  next"
    if isinstance(node, ResultNode):
        lines = [f"[bold green]Result[/bold green] ({escape(node.id)}) {escape(node.text)}", "  Actions:"]
        lines.extend(f"    {idx}. {escape(action)}" for idx, action in enumerate(node.actions, start=1))
        if node.links:
            lines.append("  Related:")
            for link in node.links:
                marker = " (external)" if link.is_external else ""
                lines.append(f"    - {link.type}: {escape(link.label)} -> {escape(link.url_or_route)}{marker}")
        return "\n".join(lines)
    raise TypeError(f"Unsupported diagnosis node: {type(node).__name__}")


def format_progress(session: TraversalSession) -> str:
    current, total = session.progress
    return f"Step {current} of {total}"


__all__ = [
    "build_active_trees_table",
    "build_tree_list_table",
    "build_upload_table",
    "format_node",
    "format_progress",
]

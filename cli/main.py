"""
dagview CLI

Command-line interface for browsing a versioned DAG. Reads an initial graph
and a mutation log (JSON), navigates to a version and prints a bounded view
together with the step diff.

Commands:
    dagview show <graph> <log>          Show the view at a version
    dagview diff <log> <from> <to>      Show the batch between adjacent positions
    dagview log <log>                   List the mutation log
    dagview roots <graph> <log>         Show the root nodes at a version
    dagview check <graph> <log>         Replay the log verifying every step

Usage:
    $ dagview show graph.json mutations.json --version 3 --depth 2
    $ dagview show graph.json mutations.json --node parser --json
    $ dagview log mutations.json --token parser.py
"""

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from dagview import __version__
from dagview.config import DEFAULT_CONFIG
from dagview.diff import (
    diff_between,
    find_relevant_mutations,
    mutation_indices_of_token,
)
from dagview.errors import DagViewError
from dagview.graph import build_graph_from_records
from dagview.graph.builder import NODE_ATTR
from dagview.loader import load_mutation_log, load_records
from dagview.models import MultiMutation, MutationType
from dagview.navigation import go_to, replay
from dagview.session import GraphSession, ViewPayload

# Initialize Typer app and Rich console
app = typer.Typer(
    name="dagview",
    help="dagview: browse the versions of a mutating DAG",
    add_completion=False,
)
console = Console()

_MUTATION_COLORS = {
    MutationType.ADD_NODE: "green",
    MutationType.ADD_EDGE: "green",
    MutationType.DELETE_NODE: "red",
    MutationType.DELETE_EDGE: "red",
    MutationType.CHANGE_TOKEN: "yellow",
}


def _fail(error: Exception) -> None:
    console.print(f"[bold red]Error:[/bold red] {escape(str(error))}")
    raise typer.Exit(1)


def _load(graph_path: Path, log_path: Path):
    """Read both inputs and build the original graph."""
    records = load_records(graph_path)
    log = load_mutation_log(log_path)
    return build_graph_from_records(records, DEFAULT_CONFIG), log


@app.command()
def show(
    graph_path: Path = typer.Argument(..., help="Initial graph (JSON)"),
    log_path: Path = typer.Argument(..., help="Mutation log (JSON)"),
    version: int = typer.Option(
        -1,
        "--version",
        "-V",
        help="Version to show (-1 for the original graph)",
    ),
    depth: Optional[int] = typer.Option(
        None,
        "--depth",
        "-d",
        help=f"View radius (default: {DEFAULT_CONFIG.default_depth})",
    ),
    nodes: Optional[list[str]] = typer.Option(
        None,
        "--node",
        "-n",
        help="Center the view on this node (repeatable)",
    ),
    token: str = typer.Option(
        "",
        "--token",
        "-t",
        help="Center the view on the nodes holding this token",
    ),
    shortest: bool = typer.Option(
        False,
        "--shortest",
        help="Use minimum root distances for the depth view",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the payload as JSON"),
) -> None:
    """
    Show the graph view at a version.

    Without --node or --token the view holds every node within --depth steps
    of a root. With them, it holds the nodes within --depth hops of the
    queried nodes, and the diff and relevant versions are narrowed to them.
    """
    config = DEFAULT_CONFIG.with_overrides(shortest_path_depth=shortest)
    try:
        original, log = _load(graph_path, log_path)
        session = GraphSession(original, log, config)
        payload = session.query(
            depth if depth is not None else config.default_depth,
            version,
            nodes or (),
            token,
        )
    except (DagViewError, FileNotFoundError) as e:
        _fail(e)

    if as_json:
        typer.echo(json.dumps(payload.to_dict(), indent=2))
        return

    _print_payload(payload)


@app.command()
def diff(
    log_path: Path = typer.Argument(..., help="Mutation log (JSON)"),
    from_position: int = typer.Argument(..., help="Position being left (entries applied)"),
    to_position: int = typer.Argument(..., help="Position being entered"),
) -> None:
    """
    Show the batch separating two adjacent positions of the log.

    Moving forward shows the log entry, moving back shows its inverse.
    """
    try:
        log = load_mutation_log(log_path)
    except (DagViewError, FileNotFoundError) as e:
        _fail(e)

    batch = diff_between(log, from_position, to_position)
    if batch is None:
        console.print(
            f"[yellow]No diff between positions {from_position} and {to_position}.[/yellow] "
            "Positions must be adjacent and within the log."
        )
        return

    _print_batch(batch, title=f"Diff {from_position} → {to_position}")


@app.command(name="log")
def log_command(
    log_path: Path = typer.Argument(..., help="Mutation log (JSON)"),
    node: Optional[str] = typer.Option(
        None,
        "--node",
        "-n",
        help="Only list versions mutating this node",
    ),
    token: Optional[str] = typer.Option(
        None,
        "--token",
        "-t",
        help="Only list versions changing this token",
    ),
) -> None:
    """
    List the mutation log with reasons.
    """
    try:
        log = load_mutation_log(log_path)
    except (DagViewError, FileNotFoundError) as e:
        _fail(e)

    if node or token:
        indices = find_relevant_mutations([node] if node else [], log)
        indices |= mutation_indices_of_token(token, log)
    else:
        indices = set(range(len(log)))

    if not indices:
        console.print("[yellow]No matching versions.[/yellow]")
        return

    table = Table(title=f"Mutation Log ({len(log)} versions)", box=box.ROUNDED)
    table.add_column("Version", justify="right", style="cyan")
    table.add_column("Mutations", justify="right")
    table.add_column("Reason")

    for index in sorted(indices):
        batch = log[index]
        reason = escape(batch.reason) if batch.reason else "[dim]-[/dim]"
        table.add_row(str(index), str(len(batch)), reason)

    console.print(table)


@app.command()
def roots(
    graph_path: Path = typer.Argument(..., help="Initial graph (JSON)"),
    log_path: Path = typer.Argument(..., help="Mutation log (JSON)"),
    version: int = typer.Option(
        -1,
        "--version",
        "-V",
        help="Version to inspect (-1 for the original graph)",
    ),
) -> None:
    """
    Show the root nodes at a version.
    """
    try:
        original, log = _load(graph_path, log_path)
        data_graph = go_to(original, original.copy(), version, log, DEFAULT_CONFIG)
    except (DagViewError, FileNotFoundError) as e:
        _fail(e)

    console.print(f"\n[bold blue]Roots at version {data_graph.version_number}:[/bold blue]")
    names = [name for name in data_graph.graph.nodes if name in data_graph.roots]
    if not names:
        console.print("   [dim](graph is empty)[/dim]")
    for name in names:
        console.print(f"   • [cyan]{name}[/cyan]")


@app.command()
def check(
    graph_path: Path = typer.Argument(..., help="Initial graph (JSON)"),
    log_path: Path = typer.Argument(..., help="Mutation log (JSON)"),
) -> None:
    """
    Replay the whole log, verifying the graph invariants after every step.
    """
    try:
        original, log = _load(graph_path, log_path)
        original.check_invariants()
        working = original.copy()
        for index in range(len(log)):
            replay(working, log, index, index, DEFAULT_CONFIG)
            working.check_invariants()
    except (DagViewError, FileNotFoundError) as e:
        _fail(e)

    table = Table(box=box.SIMPLE, show_header=False)
    table.add_column("Label", style="dim")
    table.add_column("Value", style="bold")

    table.add_row("Versions replayed", str(len(log)))
    table.add_row("Initial nodes", str(original.node_count))
    table.add_row("Final nodes", str(working.node_count))
    table.add_row("Final edges", str(working.edge_count))
    table.add_row("Final roots", str(len(working.roots)))

    panel = Panel(table, title="[bold green]✓ Log is consistent[/bold green]", border_style="green")
    console.print(panel)


# Helper functions for output formatting

def _print_payload(payload: ViewPayload) -> None:
    """Print the node and edge tables, the diff and the relevant versions."""
    console.print(
        f"\n[bold blue]Version {payload.version}[/bold blue] "
        f"[dim](log holds {payload.total_versions} versions)[/dim]\n"
    )

    if payload.message:
        console.print(f"[yellow]{payload.message}[/yellow]\n")

    table = Table(title="Nodes", box=box.ROUNDED)
    table.add_column("Name", style="cyan")
    table.add_column("Tokens")
    for name in payload.nodes:
        node = payload.view.nodes[name].get(NODE_ATTR)
        tokens = ", ".join(node.tokens) if node else ""
        table.add_row(escape(name), escape(tokens) if tokens else "[dim]-[/dim]")
    console.print(table)

    if payload.edges:
        edges = Table(title="Edges", box=box.ROUNDED)
        edges.add_column("From", style="cyan")
        edges.add_column("To", style="cyan")
        for start, end in payload.edges:
            edges.add_row(start, end)
        console.print(edges)

    if payload.diff is not None:
        _print_batch(payload.diff, title="Step diff")

    indices = ", ".join(str(i) for i in payload.relevant_indices) or "none"
    console.print(f"\n[dim]Relevant versions: {indices}[/dim]")


def _print_batch(batch: MultiMutation, title: str) -> None:
    """Print one mutation batch in a panel."""
    lines = []
    for mutation in batch.mutations:
        color = _MUTATION_COLORS.get(mutation.type, "white")
        lines.append(f"[{color}]{escape(mutation.describe())}[/{color}]")
    if not lines:
        lines.append("[dim](no visible mutations)[/dim]")

    subtitle = escape(batch.reason) if batch.reason else None
    console.print(Panel("\n".join(lines), title=f"[bold]{title}[/bold]", subtitle=subtitle))


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"[bold]dagview[/bold] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Log navigation and replay details",
    ),
) -> None:
    """
    dagview: browse the versions of a mutating DAG.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


if __name__ == "__main__":
    app()

import logging
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel

from dagcompute._errors import GraphError
from dagcompute._graph import ComputationGraph

from .config import ConfigError, get_config, parse_graph_source
from .discover import load_graph_from_source
from .graph_query import get_dependency_tree, list_nodes
from .graph_render import render_node_table, render_tree

app = typer.Typer()

logger = logging.getLogger(__name__)
# Console for stderr (info/errors)
err_console = Console(stderr=True)
# Console for stdout (results)
out_console = Console()

SourceArgument = Annotated[
    str | None,
    typer.Argument(
        help="Path to Python script or module path (e.g., examples.i32_math:build_graph). "
        "Defaults to the graph configured in pyproject.toml",
    ),
]
GraphNameOption = Annotated[
    str | None,
    typer.Option("--graph", help="Name of the graph variable or factory (for script paths only)"),
]


@app.callback()
def callback(
    *,
    verbose: bool = typer.Option(default=False, help="Enable verbose output"),
) -> None:
    """Dagcompute CLI."""
    log_level = logging.DEBUG if verbose else logging.INFO

    # Configure rich logging handler to output to stderr
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=err_console,
                show_time=False,
                show_path=verbose,
                rich_tracebacks=True,
            ),
        ],
        force=True,
    )


def _load_graph(source: str | None, graph_name: str | None) -> ComputationGraph[Any]:
    """Load the graph named on the command line or in pyproject.toml."""
    try:
        if source is None:
            config = get_config()
            if config.graph is None:
                err_console.print("[red]Error: No graph given and no graph configured in pyproject.toml[/red]")
                raise typer.Exit(code=2)
            graph_source = config.graph
            err_console.print("[cyan]Using graph from pyproject.toml[/cyan]")
        elif graph_name is not None:
            graph_source = parse_graph_source({"script": source, "name": graph_name})
        else:
            graph_source = parse_graph_source(source)
    except ConfigError as e:
        err_console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        raise typer.Exit(code=2) from e

    err_console.print(f"[cyan]Loading graph from:[/cyan] {escape(str(source or graph_source))}")
    graph = load_graph_from_source(graph_source)
    err_console.print(f"[cyan]Graph:[/cyan] [bold]{len(graph)} nodes[/bold]")
    return graph


@app.command()
def compute(
    source: SourceArgument = None,
    *,
    graph_name: GraphNameOption = None,
) -> None:
    """Evaluate a graph and print its output value."""
    err_console.print()
    graph = _load_graph(source, graph_name)

    err_console.print("[cyan]Evaluating graph...[/cyan]")
    try:
        value = graph.compute()
    except GraphError as e:
        err_console.print()
        err_console.print(f"[red]✗ Evaluation failed:[/red] {escape(str(e))}")
        raise typer.Exit(code=1) from e

    err_console.print()
    out_console.print(Panel(escape(repr(value)), title="[bold]Output[/bold]", border_style="cyan"))
    err_console.print("[green]✓ Evaluation complete[/green]")
    err_console.print()


@app.command()
def dot(
    source: SourceArgument = None,
    *,
    graph_name: GraphNameOption = None,
    output: Annotated[
        Path | None,
        typer.Option("-o", "--output", help="Path to output DOT file (defaults to dot_output in pyproject.toml)"),
    ] = None,
) -> None:
    """Export a graph in Graphviz DOT format."""
    err_console.print()
    graph = _load_graph(source, graph_name)
    text = graph.to_dot()

    if output is None:
        try:
            output = get_config().dot_output
        except ConfigError as e:
            err_console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
            raise typer.Exit(code=2) from e
    if output is None:
        # Plain write keeps the DOT text free of Rich markup handling
        out_console.file.write(text)
        return

    err_console.print(f"[cyan]Writing DOT to:[/cyan] {output}")
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text)
    err_console.print("[green]✓ DOT export complete[/green]")
    err_console.print()


@app.command()
def nodes(
    source: SourceArgument = None,
    *,
    graph_name: GraphNameOption = None,
    reachable_only: Annotated[
        bool,
        typer.Option("--reachable-only", help="Only list nodes the output depends on"),
    ] = False,
) -> None:
    """List the nodes of a graph."""
    err_console.print()
    graph = _load_graph(source, graph_name)
    err_console.print()
    render_node_table(list_nodes(graph, reachable_only=reachable_only), out_console)


@app.command()
def tree(
    source: SourceArgument = None,
    *,
    graph_name: GraphNameOption = None,
) -> None:
    """Show the inputs below the output node as a tree."""
    err_console.print()
    graph = _load_graph(source, graph_name)
    err_console.print()
    try:
        tree_node = get_dependency_tree(graph)
    except GraphError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1) from e
    render_tree(tree_node, out_console)


def main() -> None:
    app()

"""Rich rendering utilities for graph query commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

if TYPE_CHECKING:
    from rich.console import Console

    from .graph_query import NodeInfo, TreeNode


def render_node_table(nodes: list[NodeInfo], console: Console) -> None:
    """Render node list as a Rich table.

    Args:
        nodes: List of NodeInfo to render.
        console: Rich Console to output to.

    """
    if not nodes:
        console.print("[dim]Graph has no nodes[/dim]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Id", justify="right", style="dim")
    table.add_column("Name")
    table.add_column("Inputs", justify="right")
    table.add_column("Consumers", justify="right")
    table.add_column("Role")

    for node in nodes:
        name = escape(node.name)
        # Truncate long names
        if len(name) > 60:
            name = name[:57] + "..."
        table.add_row(
            str(node.node_id),
            name,
            str(node.input_count),
            str(node.live_refs),
            _role_label(node),
        )

    console.print(table)
    console.print(f"\n[dim]Total: {len(nodes)} nodes[/dim]")


def render_tree(tree_node: TreeNode, console: Console) -> None:
    """Render a dependency tree using Rich Tree.

    Args:
        tree_node: TreeNode root to render.
        console: Rich Console to output to.

    """
    rich_tree = Tree(f"[bold]{_tree_label(tree_node)}[/bold]")
    _add_tree_children(rich_tree, tree_node)
    console.print(rich_tree)


def _add_tree_children(root: Tree, tree_node: TreeNode) -> None:
    """Mirror the descendants of a TreeNode below a Rich Tree.

    Args:
        root: Rich Tree standing for `tree_node`.
        tree_node: TreeNode whose descendants are added.

    """
    stack: list[tuple[Tree, TreeNode]] = [(root, tree_node)]
    while stack:
        parent, node = stack.pop()
        for child in node.children:
            stack.append((parent.add(_tree_label(child)), child))


def _tree_label(node: TreeNode) -> str:
    label = f"{escape(node.name)} [dim]#{node.node_id}[/dim]"
    if node.cyclic:
        return f"{label} [red](cycle)[/red]"
    if node.repeated:
        return f"{label} [dim](see above)[/dim]"
    return label


def _role_label(node: NodeInfo) -> str:
    if node.is_output:
        return "[green]OUTPUT[/green]"
    if not node.reachable:
        return "[yellow]UNUSED[/yellow]"
    return ""

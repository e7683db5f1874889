"""Graph query functions for CLI commands.

This module provides pure functions for inspecting a computation graph.
These are the functional core - no I/O, no Rich rendering. None of them
evaluates or modifies the graph.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from dagcompute._errors import OutputNotDesignatedError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from dagcompute._graph import ComputationGraph, NodeView
    from dagcompute._node import NodeHandle


@dataclass(frozen=True, slots=True)
class NodeInfo:
    """Basic information about a node for listing."""

    node_id: int
    name: str
    input_count: int
    live_refs: int
    is_output: bool
    reachable: bool


@dataclass(slots=True)
class TreeNode:
    """A node in a dependency tree for rendering.

    Attributes:
        node_id: Arena slot of the node.
        name: Diagnostic name of the node.
        children: Inputs of the node, in declared order.
        repeated: The node was already expanded elsewhere in the tree.
        cyclic: The node is its own (indirect) input at this position.

    """

    node_id: int
    name: str
    children: list[TreeNode]
    repeated: bool = False
    cyclic: bool = False


def reachable_from_output(graph: ComputationGraph[Any]) -> set[NodeHandle]:
    """Return the handles of every node the output depends on, output included."""
    output = graph.output
    if output is None:
        return set()
    seen = {output}
    stack = [output]
    while stack:
        current = stack.pop()
        for input_handle in graph.inputs_of(current):
            if input_handle not in seen:
                seen.add(input_handle)
                stack.append(input_handle)
    return seen


def list_nodes(graph: ComputationGraph[Any], *, reachable_only: bool = False) -> list[NodeInfo]:
    """List the nodes of a graph in storage order.

    Args:
        graph: The graph to inspect.
        reachable_only: If True, skip nodes the output does not depend on.

    Returns:
        List of NodeInfo.

    """
    reachable = reachable_from_output(graph)
    infos: list[NodeInfo] = []
    for view in graph.nodes():
        is_reachable = view.handle in reachable
        if reachable_only and not is_reachable:
            continue
        infos.append(_node_info(view, reachable=is_reachable))
    return infos


def _node_info(view: NodeView, *, reachable: bool) -> NodeInfo:
    return NodeInfo(
        node_id=view.handle.key.index,
        name=view.name,
        input_count=len(view.inputs),
        live_refs=view.live_refs,
        is_output=view.is_output,
        reachable=reachable,
    )


def get_dependency_tree(graph: ComputationGraph[Any]) -> TreeNode:
    """Build the tree of inputs below the output node.

    Each node is expanded only at its first occurrence. Later occurrences are
    marked as repeated, and a node found on its own path is marked as cyclic,
    so the tree is finite for any graph.

    Raises:
        OutputNotDesignatedError: If the graph has no output.

    """
    output = graph.output
    if output is None:
        msg = "Output not yet designated"
        raise OutputNotDesignatedError(msg)

    root = TreeNode(node_id=output.key.index, name=graph.node_name(output), children=[])
    expanded: set[NodeHandle] = {output}
    on_path: set[NodeHandle] = {output}
    # (tree node, its handle, inputs not yet added below it)
    stack: list[tuple[TreeNode, NodeHandle, Iterator[NodeHandle]]] = [(root, output, iter(graph.inputs_of(output)))]

    while stack:
        parent, handle, pending = stack[-1]
        child = next(pending, None)
        if child is None:
            stack.pop()
            on_path.remove(handle)
            continue
        node = TreeNode(node_id=child.key.index, name=graph.node_name(child), children=[])
        parent.children.append(node)
        if child in on_path:
            node.cyclic = True
        elif child in expanded:
            node.repeated = True
        else:
            expanded.add(child)
            on_path.add(child)
            stack.append((node, child, iter(graph.inputs_of(child))))

    return root

"""Graphviz DOT rendering of computation graphs."""

from __future__ import annotations

from collections import defaultdict, deque
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ._arena import Arena, NodeKey
    from ._node import Node


def escape_label(name: str) -> str:
    """Escape a node name for use inside a quoted DOT label."""
    return name.replace('"', '\\"')


def _components(arena: Arena[Node]) -> list[list[NodeKey]]:
    """Group the stored nodes into weakly connected components.

    Each component lists its nodes in breadth-first order, starting from the
    first node of the component in storage order.
    """
    neighbours: defaultdict[NodeKey, list[NodeKey]] = defaultdict(list)
    for key, node in arena.items():
        for input_key in node.inputs:
            neighbours[key].append(input_key)
            neighbours[input_key].append(key)

    seen: set[NodeKey] = set()
    components: list[list[NodeKey]] = []
    for start in arena.keys():
        if start in seen:
            continue
        seen.add(start)
        component: list[NodeKey] = []
        queue = deque([start])
        while queue:
            key = queue.popleft()
            component.append(key)
            for neighbour in neighbours[key]:
                if neighbour not in seen:
                    seen.add(neighbour)
                    queue.append(neighbour)
        components.append(component)
    return components


def render_dot(arena: Arena[Node], output: NodeKey | None) -> str:
    """Describe every stored node and edge as a strict DOT digraph.

    Nodes are identified by their arena slot, since names may collide.
    Edges follow the data flow, from an input to its consumer. The output
    node is drawn as a box. Nodes the output does not depend on are rendered
    as well.
    """
    node_lines: list[str] = []
    edge_lines: list[str] = []
    for component in _components(arena):
        for key in component:
            node = arena.get(key)
            shape = ", shape=box" if key == output else ""
            node_lines.append(f'{key.index} [label="{escape_label(node.name)}"{shape}];')
            for input_key in dict.fromkeys(node.inputs):
                edge_lines.append(f"{input_key.index}->{key.index};")

    return "\n".join(["strict digraph {", *node_lines, *edge_lines, "}"]) + "\n"

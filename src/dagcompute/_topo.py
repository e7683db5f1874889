"""Evaluation ordering and dead-node elimination."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ._errors import CycleError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ._arena import Arena, NodeKey
    from ._node import Node

logger = logging.getLogger(__name__)


def topological_order(arena: Arena[Node], output: NodeKey) -> list[NodeKey]:
    """Order the nodes the output depends on so that inputs come first.

    Depth-first search from the output along input edges, i.e. against the
    data flow. A node is appended once all of its inputs are finished, so the
    finish order is a valid evaluation order. Nodes the output does not
    depend on are not part of the result.

    Args:
        arena: Node storage.
        output: Key of the output node.

    Returns:
        Keys of every node reachable from the output, inputs before consumers.

    Raises:
        CycleError: If a node is reached again while it is still being visited.

    """
    finished: dict[NodeKey, None] = {}
    path: list[NodeKey] = [output]
    on_path: set[NodeKey] = {output}
    pending: list[Iterator[NodeKey]] = [iter(arena.get(output).inputs)]

    while pending:
        child = next(pending[-1], None)
        if child is None:
            pending.pop()
            done = path.pop()
            on_path.remove(done)
            finished[done] = None
            continue
        if child in finished:
            continue
        if child in on_path:
            cycle = [*path[path.index(child) :], child]
            raise CycleError([arena.get(key).name for key in cycle])
        path.append(child)
        on_path.add(child)
        pending.append(iter(arena.get(child).inputs))

    return list(finished)


def sweep_unreachable(arena: Arena[Node], reachable: set[NodeKey], live_refs: dict[NodeKey, int]) -> int:
    """Remove every node outside `reachable` and correct the reference counts.

    A removed node no longer consumes its inputs, so each surviving input
    loses one live reference per occurrence in the removed node's input list.

    Returns:
        Number of removed nodes.

    """
    removed = arena.retain(lambda key, _: key in reachable)
    for key, _ in removed:
        del live_refs[key]
    for _, node in removed:
        for input_key in node.inputs:
            if input_key in live_refs:
                live_refs[input_key] -= 1

    if removed:
        logger.debug("Removed %d unreachable nodes: %s", len(removed), ", ".join(node.name for _, node in removed))
    return len(removed)


def computation_order(arena: Arena[Node], output: NodeKey, live_refs: dict[NodeKey, int]) -> list[NodeKey]:
    """Sort the graph and drop the nodes the output does not depend on.

    Mutates `arena` and `live_refs`, so it must run once per graph and before
    any node is evaluated.
    """
    order = topological_order(arena, output)
    sweep_unreachable(arena, set(order), live_refs)
    return order

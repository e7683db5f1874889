"""Reference-counted evaluation of a sorted computation graph."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ._errors import ReferenceAccountingError

if TYPE_CHECKING:
    from ._arena import Arena, NodeKey
    from ._node import Node
    from ._shared import Shared

logger = logging.getLogger(__name__)


def _discard(arena: Arena[Node], key: NodeKey, live_refs: dict[NodeKey, int]) -> None:
    """Remove a node whose value has no consumers left."""
    node = arena.remove(key)
    del live_refs[key]
    node.shared().release()
    logger.debug("Released %s", node.name)


def evaluate[T](arena: Arena[Node[T]], order: list[NodeKey], output: NodeKey, live_refs: dict[NodeKey, int]) -> T:
    """Run every node in `order` and return the output node's value.

    Each input value is handed to its consumer as a shared reference. When
    the last consumer of a node has run, the node is removed from `arena`
    immediately instead of at the end of the run, so large intermediate
    values do not outlive their use. The designation of the output counts as
    a consumer, which keeps the output node alive until its value is taken.

    Args:
        arena: Node storage. Emptied by the evaluation.
        order: Evaluation order, inputs before consumers.
        output: Key of the output node.
        live_refs: Number of pending consumers per node. Emptied by the
            evaluation.

    Returns:
        The output node's value.

    Raises:
        ReferenceAccountingError: If the reference counts do not add up.

    """
    logger.debug("Starting evaluation with %d nodes in order", len(order))

    for key in order:
        node = arena.get(key)
        logger.debug("Evaluating %s", node.name)

        cells: list[Shared[T]] = []
        exhausted: list[NodeKey] = []
        for input_key in node.inputs:
            cells.append(arena.get(input_key).shared())
            live_refs[input_key] -= 1
            if live_refs[input_key] == 0:
                exhausted.append(input_key)
            elif live_refs[input_key] < 0:
                msg = f"Node '{arena.get(input_key).name}' has more consumers than references"
                raise ReferenceAccountingError(msg)

        args = tuple(cell.share() for cell in cells)
        node.evaluate(args)
        for cell in cells:
            cell.release()

        for input_key in exhausted:
            _discard(arena, input_key, live_refs)

    remaining = list(arena.keys())
    if remaining != [output]:
        msg = f"Expected only the output node to remain after evaluation, found {len(remaining)} nodes"
        raise ReferenceAccountingError(msg)

    node = arena.remove(output)
    del live_refs[output]
    logger.debug("Extracting output of %s", node.name)
    return node.shared().try_unwrap()

"""Public construction and evaluation API of the computation graph."""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from ._arena import Arena, NodeKey
from ._errors import (
    ForeignHandleError,
    GraphConsumedError,
    OutputAlreadyDesignatedError,
    OutputNotDesignatedError,
    SelfLoopError,
)
from ._eval import evaluate
from ._node import Node, NodeHandle
from ._topo import computation_order
from ._visualize import render_dot

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from ._node import NodeFunction

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NodeView:
    """Read-only snapshot of a node for inspection and rendering."""

    handle: NodeHandle
    name: str
    inputs: tuple[NodeHandle, ...]
    live_refs: int
    is_output: bool


class ComputationGraph[T]:
    """A one-shot DAG of named computation nodes with a single output.

    Nodes are inserted with `insert_node`, wired with `set_inputs` and one of
    them is marked with `designate_output`. `compute` then runs every node the
    output depends on exactly once, drops intermediate results as soon as
    their last consumer has run, and returns the output value. The graph is
    consumed by `compute` and rejects any further use.

    Example:
        >>> graph = ComputationGraph[int]()
        >>> a = graph.insert_node("a", lambda _: 2)
        >>> b = graph.insert_node("b", lambda _: 4)
        >>> add = graph.insert_node("add", sum)
        >>> graph.set_inputs(add, [a, b])
        >>> graph.designate_output(add)
        >>> graph.compute()
        6

    """

    _ids: ClassVar[Iterator[int]] = itertools.count(1)

    def __init__(self) -> None:
        self._arena: Arena[Node[T]] = Arena()
        self._live_refs: dict[NodeKey, int] = {}
        self._output: NodeKey | None = None
        self._consumed = False
        self.graph_id: int = next(self._ids)

    @property
    def consumed(self) -> bool:
        """Whether `compute` has been called on this graph."""
        return self._consumed

    @property
    def output(self) -> NodeHandle | None:
        """Handle of the designated output node, if any."""
        if self._output is None:
            return None
        return NodeHandle(key=self._output, graph_id=self.graph_id)

    def insert_node(self, name: str, func: NodeFunction[T]) -> NodeHandle:
        """Add a node without inputs and return its handle.

        Args:
            name: Diagnostic name of the node. Uniqueness is not enforced.
            func: Callable receiving the tuple of input values in declared
                order and returning the node's value.

        """
        self._check_usable()
        key = self._arena.insert(Node(name=name, func=func))
        self._live_refs[key] = 0
        logger.debug("Inserted node '%s' as %s", name, key)
        return NodeHandle(key=key, graph_id=self.graph_id)

    def node_name(self, handle: NodeHandle) -> str:
        """Return the diagnostic name of a node."""
        return self._node(handle).name

    def designate_output(self, handle: NodeHandle) -> None:
        """Mark a node as the graph's output.

        Raises:
            OutputAlreadyDesignatedError: If an output was designated before.
            ForeignHandleError: If the handle belongs to another graph.

        """
        self._check_usable()
        if self._output is not None:
            msg = f"Output was already designated as '{self._arena.get(self._output).name}'"
            raise OutputAlreadyDesignatedError(msg)
        key = self._key(handle)
        self._output = key
        # The output designation counts as a consumer of the node's value.
        self._live_refs[key] += 1

    def set_inputs(self, handle: NodeHandle, inputs: Sequence[NodeHandle]) -> None:
        """Declare the ordered inputs of a node, replacing previous ones.

        Only direct self-loops are rejected here. Longer cycles are detected
        when the graph is computed.

        Raises:
            SelfLoopError: If `inputs` contains `handle` itself.
            ForeignHandleError: If any handle belongs to another graph.

        """
        self._check_usable()
        node = self._node(handle)
        input_keys = [self._key(input_handle) for input_handle in inputs]
        if handle.key in input_keys:
            raise SelfLoopError(node.name)

        for key in node.inputs:
            self._live_refs[key] -= 1
        for key in input_keys:
            self._live_refs[key] += 1
        node.inputs = input_keys

    def nodes(self) -> Iterable[NodeView]:
        """Iterate over snapshots of all stored nodes in storage order."""
        for key, node in self._arena.items():
            yield NodeView(
                handle=NodeHandle(key=key, graph_id=self.graph_id),
                name=node.name,
                inputs=tuple(NodeHandle(key=k, graph_id=self.graph_id) for k in node.inputs),
                live_refs=self._live_refs[key],
                is_output=key == self._output,
            )

    def inputs_of(self, handle: NodeHandle) -> tuple[NodeHandle, ...]:
        """Return the declared inputs of a node."""
        return tuple(NodeHandle(key=key, graph_id=self.graph_id) for key in self._node(handle).inputs)

    def to_dot(self) -> str:
        """Render the graph in Graphviz DOT format without modifying it."""
        self._check_usable()
        return render_dot(self._arena, self._output)

    def compute(self) -> T:
        """Evaluate the graph and return the output node's value.

        The graph is consumed by this call, whether it succeeds or not.

        Raises:
            OutputNotDesignatedError: If no output has been designated.
            CycleError: If the nodes the output depends on form a cycle.

        """
        self._check_usable()
        if self._output is None:
            msg = "Output not yet designated"
            raise OutputNotDesignatedError(msg)
        self._consumed = True

        order = computation_order(self._arena, self._output, self._live_refs)
        return evaluate(self._arena, order, self._output, self._live_refs)

    def _check_usable(self) -> None:
        if self._consumed:
            msg = f"Graph {self.graph_id} was consumed by compute()"
            raise GraphConsumedError(msg)

    def _key(self, handle: NodeHandle) -> NodeKey:
        self._check_usable()
        if handle.graph_id != self.graph_id:
            raise ForeignHandleError(handle.graph_id, self.graph_id)
        # Resolve to fail early on handles of removed nodes.
        self._arena.get(handle.key)
        return handle.key

    def _node(self, handle: NodeHandle) -> Node[T]:
        return self._arena.get(self._key(handle))

    def __contains__(self, handle: object) -> bool:
        return isinstance(handle, NodeHandle) and handle.graph_id == self.graph_id and handle.key in self._arena

    def __len__(self) -> int:
        return len(self._arena)

    def __repr__(self) -> str:
        state = "consumed" if self._consumed else f"{len(self._arena)} nodes"
        return f"ComputationGraph(id={self.graph_id}, {state})"

"""Node records and the handles that refer to them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, NoReturn

from ._errors import NodeNotEvaluatedError, NodeReevaluatedError
from ._shared import Shared

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from ._arena import NodeKey


type NodeFunction[T] = Callable[[Sequence[T]], T]


@dataclass(slots=True)
class Node[T]:
    """A named unit of computation stored in the graph's arena.

    Attributes:
        name: Diagnostic name. Several nodes may share a name.
        func: Callable receiving the input values in declared order.
        inputs: Keys of the input nodes, in the order their values are passed.
        cache: The node's result once it has been evaluated.

    """

    name: str
    func: NodeFunction[T]
    inputs: list[NodeKey] = field(default_factory=list)
    cache: Shared[T] | None = None

    @property
    def evaluated(self) -> bool:
        """Whether the node holds a result."""
        return self.cache is not None

    def evaluate(self, args: Sequence[T]) -> None:
        """Run the node's function once and cache the result.

        Raises:
            NodeReevaluatedError: If the node already holds a result.

        """
        if self.cache is not None:
            msg = f"Node '{self.name}' was already evaluated"
            raise NodeReevaluatedError(msg)
        self.cache = Shared(self.func(args))

    def shared(self) -> Shared[T]:
        """Return the cached result.

        Raises:
            NodeNotEvaluatedError: If the node has not been evaluated yet.

        """
        if self.cache is None:
            msg = f"Value of node '{self.name}' requested before evaluation"
            raise NodeNotEvaluatedError(msg)
        return self.cache


@dataclass(frozen=True, slots=True)
class NodeHandle:
    """Opaque reference to a node of one particular graph.

    Handles are only meaningful to the graph that issued them. Two handles
    compare equal only if they name the same node of the same graph.
    """

    key: NodeKey
    graph_id: int

    def __copy__(self) -> NoReturn:
        msg = "NodeHandle cannot be copied"
        raise TypeError(msg)

    def __deepcopy__(self, memo: dict) -> NoReturn:
        msg = "NodeHandle cannot be copied"
        raise TypeError(msg)

    def __repr__(self) -> str:
        return f"NodeHandle({self.key}, graph={self.graph_id})"

"""Exceptions raised by the computation graph engine.

Misuse of the construction/evaluation API and structural problems in the
graph are reported as `GraphError` subclasses and can be caught at the call
site. A broken reference accounting is an engine bug and is reported as
`ReferenceAccountingError`, which is not part of that hierarchy.
"""


class GraphError(Exception):
    """Base class for recoverable computation graph errors."""


class ProtocolError(GraphError):
    """The graph API was used in a way its protocol forbids."""


class ForeignHandleError(ProtocolError):
    """A node handle was used with a graph other than the one that issued it."""

    def __init__(self, handle_graph_id: int, graph_id: int) -> None:
        self.handle_graph_id = handle_graph_id
        self.graph_id = graph_id
        super().__init__(f"Received node handle of graph {handle_graph_id} on graph {graph_id}")


class StaleHandleError(ProtocolError):
    """A node key refers to a node that has been removed."""


class OutputAlreadyDesignatedError(ProtocolError):
    """The output node was designated more than once."""


class OutputNotDesignatedError(ProtocolError):
    """Evaluation was requested before an output node was designated."""


class SelfLoopError(ProtocolError):
    """A node was declared as one of its own inputs."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Inputs of node '{name}' would create a self-loop")


class NodeNotEvaluatedError(ProtocolError):
    """A node's value was read before the node was evaluated."""


class NodeReevaluatedError(ProtocolError):
    """A node's function was about to run a second time."""


class GraphConsumedError(ProtocolError):
    """The graph has already produced its output and cannot be used again."""


class CycleError(GraphError):
    """The nodes reachable from the output contain a cycle."""

    def __init__(self, cycle: list[str]) -> None:
        self.cycle = cycle
        super().__init__("Computation graph contains cycle: " + " -> ".join(cycle))


class ReferenceAccountingError(RuntimeError):
    """The live-reference bookkeeping of the engine is inconsistent."""

"""One-shot computation graphs with eager release of intermediate results."""

__all__ = [
    "Arena",
    "ComputationGraph",
    "CycleError",
    "ForeignHandleError",
    "GraphConsumedError",
    "GraphError",
    "NodeHandle",
    "NodeKey",
    "NodeNotEvaluatedError",
    "NodeReevaluatedError",
    "NodeView",
    "OutputAlreadyDesignatedError",
    "OutputNotDesignatedError",
    "ProtocolError",
    "ReferenceAccountingError",
    "SelfLoopError",
    "Shared",
    "StaleHandleError",
    "render_dot",
]

from ._arena import Arena, NodeKey
from ._errors import (
    CycleError,
    ForeignHandleError,
    GraphConsumedError,
    GraphError,
    NodeNotEvaluatedError,
    NodeReevaluatedError,
    OutputAlreadyDesignatedError,
    OutputNotDesignatedError,
    ProtocolError,
    ReferenceAccountingError,
    SelfLoopError,
    StaleHandleError,
)
from ._graph import ComputationGraph, NodeView
from ._node import NodeHandle
from ._shared import Shared
from ._visualize import render_dot

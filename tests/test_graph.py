"""Tests for building and computing graphs."""

import copy
import math
from collections.abc import Callable, Sequence

import pytest

from dagcompute import (
    ComputationGraph,
    CycleError,
    ForeignHandleError,
    GraphConsumedError,
    NodeHandle,
    NodeKey,
    OutputAlreadyDesignatedError,
    OutputNotDesignatedError,
    SelfLoopError,
    StaleHandleError,
)


def const[T](value: T) -> Callable[[Sequence[T]], T]:
    return lambda _: value


class CallLog:
    """Records the names of node functions in the order they run."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    def wrap[T](self, name: str, func: Callable[[Sequence[T]], T]) -> Callable[[Sequence[T]], T]:
        def logged(values: Sequence[T]) -> T:
            self.calls.append(name)
            return func(values)

        return logged


class TestExamples:
    """The reference scenarios of the engine."""

    def test_multiply_add(self) -> None:
        graph = ComputationGraph[int]()
        a = graph.insert_node("a", const(5))
        b = graph.insert_node("b", const(4))
        mult = graph.insert_node("mult", math.prod)
        c = graph.insert_node("c", const(3))
        add = graph.insert_node("add", sum)
        graph.set_inputs(mult, [a, b])
        graph.set_inputs(add, [mult, c])
        graph.designate_output(add)

        assert graph.compute() == 23

    def test_string_append(self) -> None:
        graph = ComputationGraph[str]()
        r = graph.insert_node("R", const("a"))
        s = graph.insert_node("S", lambda values: values[0] + "b")
        graph.set_inputs(s, [r])
        graph.designate_output(s)

        assert graph.compute() == "ab"

    def test_unreachable_node_is_never_invoked(self) -> None:
        side_effects: list[str] = []

        def toss(values: Sequence[str]) -> str:
            side_effects.append("T ran")
            return values[0] + "c"

        graph = ComputationGraph[str]()
        r = graph.insert_node("R", const("a"))
        s = graph.insert_node("S", lambda values: values[0] + "b")
        t = graph.insert_node("T", toss)
        graph.set_inputs(s, [r])
        graph.set_inputs(t, [r])
        graph.designate_output(s)

        assert graph.compute() == "ab"
        assert side_effects == []

    def test_two_node_cycle(self) -> None:
        graph = ComputationGraph[int]()
        first = graph.insert_node("loopy_1", const(5))
        second = graph.insert_node("loopy_2", const(5))
        graph.set_inputs(first, [second])
        graph.set_inputs(second, [first])
        graph.designate_output(first)

        with pytest.raises(CycleError) as exc_info:
            graph.compute()
        assert exc_info.value.cycle == ["loopy_1", "loopy_2", "loopy_1"]


class TestCompute:
    """Properties of evaluation."""

    def test_each_reachable_node_runs_once_after_its_inputs(self) -> None:
        log = CallLog()
        graph = ComputationGraph[int]()
        top = graph.insert_node("top", log.wrap("top", const(1)))
        left = graph.insert_node("left", log.wrap("left", sum))
        right = graph.insert_node("right", log.wrap("right", sum))
        bottom = graph.insert_node("bottom", log.wrap("bottom", sum))
        graph.set_inputs(left, [top])
        graph.set_inputs(right, [top])
        graph.set_inputs(bottom, [left, right, top])
        graph.designate_output(bottom)

        assert graph.compute() == 3
        assert sorted(log.calls) == ["bottom", "left", "right", "top"]
        position = {name: index for index, name in enumerate(log.calls)}
        assert position["top"] < position["left"] < position["bottom"]
        assert position["top"] < position["right"] < position["bottom"]

    def test_inputs_are_passed_in_declared_order(self) -> None:
        received: list[tuple[str, ...]] = []

        def record(values: Sequence[str]) -> str:
            received.append(tuple(values))
            return "".join(values)

        graph = ComputationGraph[str]()
        x = graph.insert_node("x", const("x"))
        y = graph.insert_node("y", const("y"))
        z = graph.insert_node("z", const("z"))
        joined = graph.insert_node("joined", record)
        graph.set_inputs(joined, [z, x, y])
        graph.designate_output(joined)

        assert graph.compute() == "zxy"
        assert received == [("z", "x", "y")]

    def test_same_input_twice(self) -> None:
        graph = ComputationGraph[int]()
        a = graph.insert_node("a", const(7))
        double = graph.insert_node("double", sum)
        graph.set_inputs(double, [a, a])
        graph.designate_output(double)

        assert graph.compute() == 14

    def test_output_without_inputs(self) -> None:
        graph = ComputationGraph[int]()
        only = graph.insert_node("only", const(1))
        graph.designate_output(only)

        assert graph.compute() == 1

    def test_function_receives_empty_sequence_without_inputs(self) -> None:
        received: list[int] = []

        def count(values: Sequence[int]) -> int:
            received.append(len(values))
            return 0

        graph = ComputationGraph[int]()
        graph.designate_output(graph.insert_node("source", count))
        graph.compute()
        assert received == [0]

    def test_cycle_prevents_every_evaluation(self) -> None:
        log = CallLog()
        graph = ComputationGraph[int]()
        source = graph.insert_node("source", log.wrap("source", const(1)))
        a = graph.insert_node("a", log.wrap("a", sum))
        b = graph.insert_node("b", log.wrap("b", sum))
        c = graph.insert_node("c", log.wrap("c", sum))
        out = graph.insert_node("out", log.wrap("out", sum))
        graph.set_inputs(a, [source, c])
        graph.set_inputs(b, [a])
        graph.set_inputs(c, [b])
        graph.set_inputs(out, [c])
        graph.designate_output(out)

        with pytest.raises(CycleError):
            graph.compute()
        assert log.calls == []

    def test_unreachable_cycle_is_ignored(self) -> None:
        graph = ComputationGraph[int]()
        a = graph.insert_node("a", const(1))
        b = graph.insert_node("b", const(2))
        graph.set_inputs(a, [b])
        graph.set_inputs(b, [a])
        out = graph.insert_node("out", const(3))
        graph.designate_output(out)

        assert graph.compute() == 3

    def test_long_chain(self) -> None:
        graph = ComputationGraph[int]()
        prev = graph.insert_node("n0", const(0))
        for index in range(1, 5000):
            node = graph.insert_node(f"n{index}", lambda values: values[0] + 1)
            graph.set_inputs(node, [prev])
            prev = node
        graph.designate_output(prev)

        assert graph.compute() == 4999

    def test_node_function_errors_propagate(self) -> None:
        def fail(_: Sequence[int]) -> int:
            msg = "boom"
            raise ValueError(msg)

        graph = ComputationGraph[int]()
        graph.designate_output(graph.insert_node("fail", fail))
        with pytest.raises(ValueError, match="boom"):
            graph.compute()
        assert graph.consumed


class TestProtocol:
    """Misuse of the construction and evaluation API."""

    def test_designate_output_twice_keeps_first(self) -> None:
        graph = ComputationGraph[int]()
        first = graph.insert_node("first", const(1))
        second = graph.insert_node("second", const(2))
        graph.designate_output(first)

        with pytest.raises(OutputAlreadyDesignatedError):
            graph.designate_output(second)
        assert graph.output == first
        assert graph.compute() == 1

    def test_self_loop_rejected_immediately(self) -> None:
        graph = ComputationGraph[int]()
        a = graph.insert_node("a", const(1))
        b = graph.insert_node("b", const(2))

        with pytest.raises(SelfLoopError, match="'b'"):
            graph.set_inputs(b, [a, b])
        assert graph.inputs_of(b) == ()

    def test_compute_without_output(self) -> None:
        graph = ComputationGraph[int]()
        graph.insert_node("a", const(1))
        with pytest.raises(OutputNotDesignatedError):
            graph.compute()

    def test_foreign_handle_rejected(self) -> None:
        graph = ComputationGraph[int]()
        other = ComputationGraph[int]()
        own = graph.insert_node("own", const(1))
        foreign = other.insert_node("foreign", const(2))

        with pytest.raises(ForeignHandleError):
            graph.designate_output(foreign)
        with pytest.raises(ForeignHandleError):
            graph.set_inputs(own, [foreign])
        with pytest.raises(ForeignHandleError):
            graph.node_name(foreign)

    def test_handles_of_different_graphs_differ(self) -> None:
        graph = ComputationGraph[int]()
        other = ComputationGraph[int]()
        handle = graph.insert_node("a", const(1))
        other_handle = other.insert_node("a", const(1))

        assert handle.key == other_handle.key
        assert handle != other_handle
        assert handle in graph
        assert handle not in other

    def test_handles_cannot_be_copied(self) -> None:
        graph = ComputationGraph[int]()
        handle = graph.insert_node("a", const(1))
        with pytest.raises(TypeError):
            copy.copy(handle)
        with pytest.raises(TypeError):
            copy.deepcopy(handle)

    def test_graph_is_consumed_by_compute(self) -> None:
        graph = ComputationGraph[int]()
        a = graph.insert_node("a", const(1))
        graph.designate_output(a)
        graph.compute()

        assert graph.consumed
        assert len(graph) == 0
        with pytest.raises(GraphConsumedError):
            graph.compute()
        with pytest.raises(GraphConsumedError):
            graph.insert_node("b", const(2))
        with pytest.raises(GraphConsumedError):
            graph.node_name(a)

    def test_graph_is_consumed_by_failed_compute(self) -> None:
        graph = ComputationGraph[int]()
        a = graph.insert_node("a", const(1))
        b = graph.insert_node("b", const(2))
        graph.set_inputs(a, [b])
        graph.set_inputs(b, [a])
        graph.designate_output(a)

        with pytest.raises(CycleError):
            graph.compute()
        with pytest.raises(GraphConsumedError):
            graph.to_dot()

    def test_handle_repr_and_name(self) -> None:
        graph = ComputationGraph[int]()
        handle = graph.insert_node("answer", const(42))
        assert graph.node_name(handle) == "answer"
        assert isinstance(handle, NodeHandle)
        assert f"graph={graph.graph_id}" in repr(handle)


class TestLiveReferences:
    """Bookkeeping of pending consumers before evaluation."""

    @staticmethod
    def _live_refs(graph: ComputationGraph[int]) -> dict[str, int]:
        return {view.name: view.live_refs for view in graph.nodes()}

    def test_counts_consumers_and_output(self) -> None:
        graph = ComputationGraph[int]()
        a = graph.insert_node("a", const(1))
        b = graph.insert_node("b", sum)
        c = graph.insert_node("c", sum)
        graph.set_inputs(b, [a])
        graph.set_inputs(c, [a, b, a])
        graph.designate_output(c)

        assert self._live_refs(graph) == {"a": 3, "b": 1, "c": 1}

    def test_replacing_inputs_moves_counts(self) -> None:
        graph = ComputationGraph[int]()
        a = graph.insert_node("a", const(1))
        b = graph.insert_node("b", const(2))
        c = graph.insert_node("c", sum)
        graph.set_inputs(c, [a, a])
        graph.set_inputs(c, [b])

        assert self._live_refs(graph) == {"a": 0, "b": 1, "c": 0}

    def test_failed_set_inputs_leaves_counts(self) -> None:
        graph = ComputationGraph[int]()
        a = graph.insert_node("a", const(1))
        c = graph.insert_node("c", sum)
        graph.set_inputs(c, [a])
        with pytest.raises(SelfLoopError):
            graph.set_inputs(c, [a, c])

        assert self._live_refs(graph) == {"a": 1, "c": 0}
        assert graph.inputs_of(c) == (a,)

    def test_stale_handle_rejected(self) -> None:
        graph = ComputationGraph[int]()
        a = graph.insert_node("a", const(1))
        stale = NodeHandle(key=NodeKey(index=a.key.index, generation=a.key.generation + 1), graph_id=graph.graph_id)
        with pytest.raises(StaleHandleError):
            graph.node_name(stale)

"""Character histogram of a string.

Run with:
    dagcompute compute examples.string_histogram:build_graph
"""

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass

from dagcompute import ComputationGraph


@dataclass(frozen=True, slots=True)
class RawString:
    text: str


@dataclass(frozen=True, slots=True)
class Histogram:
    counts: dict[str, int]


type HistogramFlow = RawString | Histogram


def histogram(values: Sequence[HistogramFlow]) -> HistogramFlow:
    match values[0]:
        case RawString(text=text):
            return Histogram(counts=dict(sorted(Counter(text).items())))
        case other:
            msg = f"Expected RawString, got {other!r}"
            raise TypeError(msg)


def build_graph(text: str = "hello, world") -> ComputationGraph[HistogramFlow]:
    graph = ComputationGraph[HistogramFlow]()
    handle_in = graph.insert_node("input", lambda _: RawString(text))
    compute_histogram = graph.insert_node("histogram", histogram)
    graph.set_inputs(compute_histogram, [handle_in])
    graph.designate_output(compute_histogram)
    return graph


if __name__ == "__main__":
    result = build_graph(input("Enter string: ")).compute()
    if isinstance(result, Histogram):
        for char, count in result.counts.items():
            print(f"{char}: {count}")  # noqa: T201

"""Integer arithmetic: computes a*b+c.

Run with:
    dagcompute compute examples.i32_math:build_graph
"""

import logging
import math
from collections.abc import Sequence

from dagcompute import ComputationGraph

logger = logging.getLogger(__name__)


def product(values: Sequence[int]) -> int:
    prod = math.prod(values)
    logger.info("prod = %d", prod)
    return prod


def total(values: Sequence[int]) -> int:
    result = sum(values)
    logger.info("sum = %d", result)
    return result


def build_graph(a: int = 5, b: int = 4, c: int = 3) -> ComputationGraph[int]:
    graph = ComputationGraph[int]()
    mult = graph.insert_node("mult", product)
    add = graph.insert_node("add", total)
    handle_a = graph.insert_node("a", lambda _: a)
    handle_b = graph.insert_node("b", lambda _: b)
    handle_c = graph.insert_node("c", lambda _: c)

    graph.set_inputs(mult, [handle_a, handle_b])
    graph.set_inputs(add, [mult, handle_c])
    graph.designate_output(add)
    return graph


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    print(build_graph().compute())  # noqa: T201

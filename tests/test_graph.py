from __future__ import annotations

import math

import pytest

from pybustrack.graph import Edge, RouteGraph
from pybustrack.models.results import PathResult
from pybustrack.models.stop import Stop


def _chain() -> RouteGraph:
    graph = RouteGraph()
    graph.add_connection("A", "B", 100)
    graph.add_connection("B", "C", 150)
    return graph


def test_chain_distances() -> None:
    graph = _chain()

    result = graph.shortest_path("A", "C")
    assert result.distance == 250
    assert result.path == ["A", "B", "C"]
    assert result.reachable


def test_path_to_self_is_zero() -> None:
    result = _chain().shortest_path("A", "A")
    assert result.distance == 0
    assert result.path == ["A"]


def test_no_implicit_reverse_edges() -> None:
    result = _chain().shortest_path("C", "A")
    assert math.isinf(result.distance)
    assert not result.reachable
    assert result.path == []


def test_unknown_nodes_are_unreachable() -> None:
    graph = _chain()
    assert math.isinf(graph.shortest_path("A", "Z").distance)
    assert math.isinf(graph.shortest_path("Z", "A").distance)
    assert math.isinf(graph.shortest_path("Z", "Z").distance)
    assert "Z" not in graph


def test_add_connection_creates_missing_nodes() -> None:
    graph = RouteGraph()
    graph.add_connection("X", "Y", 1.5)
    assert set(graph.nodes) == {"X", "Y"}
    assert graph.neighbors("X") == [Edge("Y", 1.5)]
    assert graph.neighbors("Y") == []


def test_add_node_is_idempotent() -> None:
    graph = _chain()
    graph.add_node("A")
    assert len(graph) == 3
    assert graph.neighbors("A") == [Edge("B", 100.0)]


def test_parallel_edges_are_kept_and_cheapest_wins() -> None:
    graph = RouteGraph()
    graph.extend([("A", "B", 10), ("A", "B", 4), ("B", "C", 1)])
    assert graph.edge_count == 3
    assert graph.shortest_path("A", "C").distance == 5


def test_branch_prefers_cheaper_route() -> None:
    graph = RouteGraph()
    graph.extend([("A", "B", 5), ("B", "D", 5), ("A", "C", 2), ("C", "D", 3), ("D", "E", 1)])
    result = graph.shortest_path("A", "E")
    assert result.distance == 6
    assert result.path == ["A", "C", "D", "E"]


@pytest.mark.parametrize("weight", [-1.0, float("nan"), float("inf")])
def test_invalid_weights_rejected(weight: float) -> None:
    with pytest.raises(ValueError):
        RouteGraph().add_connection("A", "B", weight)


def test_from_stops_chains_in_order() -> None:
    stops = [
        Stop(id="s1", name="One", lat=-15.840, lon=-70.02, seq=1),
        Stop(id="s2", name="Two", lat=-15.841, lon=-70.02, seq=2),
        Stop(id="s3", name="Three", lat=-15.843, lon=-70.02, seq=3),
    ]
    graph = RouteGraph.from_stops(stops)

    assert graph.edge_count == 2
    # 0.001 degrees of latitude along a meridian
    assert graph.neighbors("s1")[0].weight == pytest.approx(111.195, abs=0.01)
    assert graph.shortest_path("s1", "s3").distance == pytest.approx(3 * 111.195, abs=0.05)
    assert not graph.shortest_path("s3", "s1").reachable


def test_unreachable_factory() -> None:
    result = PathResult.unreachable()
    assert math.isinf(result.distance)
    assert result.path == []

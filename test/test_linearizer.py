import logging

import pytest

from flowscript.compiler.linearizer import linearize
from flowscript.core.types import NodeKind
from flowscript.errors import MissingStartNode

from helpers import make_graph, make_node


def _ids(nodes):
    return [n.id for n in nodes]


class TestLinearize:

    def test_simple_chain(self):
        graph = make_graph(
            [
                make_node("start", NodeKind.START),
                make_node("nav", NodeKind.NAVIGATE, {"url": "https://x.test"}),
                make_node("go", NodeKind.CLICK, {"selector": "#go"}),
                make_node("end", NodeKind.END),
            ],
            [("start", "nav"), ("nav", "go"), ("go", "end")],
        )
        assert _ids(linearize(graph)) == ["start", "nav", "go", "end"]

    def test_node_list_order_is_not_execution_order(self):
        graph = make_graph(
            [
                make_node("end", NodeKind.END),
                make_node("go", NodeKind.CLICK),
                make_node("start", NodeKind.START),
            ],
            [("start", "go"), ("go", "end")],
        )
        assert _ids(linearize(graph)) == ["start", "go", "end"]

    def test_fan_out_follows_edge_order_not_position(self):
        # B sits left of / above A on the canvas, but A was connected first.
        graph = make_graph(
            [
                make_node("start", NodeKind.START),
                make_node("B", NodeKind.CLICK, x=0, y=0),
                make_node("A", NodeKind.CLICK, x=500, y=500),
            ],
            [("start", "A"), ("start", "B")],
        )
        assert _ids(linearize(graph)) == ["start", "A", "B"]

    def test_fan_out_reversed_edge_order(self):
        graph = make_graph(
            [
                make_node("start", NodeKind.START),
                make_node("A", NodeKind.CLICK),
                make_node("B", NodeKind.CLICK),
            ],
            [("start", "B"), ("start", "A")],
        )
        assert _ids(linearize(graph)) == ["start", "B", "A"]

    def test_depth_first_before_siblings(self):
        graph = make_graph(
            [
                make_node("start", NodeKind.START),
                make_node("A", NodeKind.CLICK),
                make_node("A1", NodeKind.CLICK),
                make_node("B", NodeKind.CLICK),
            ],
            [("start", "A"), ("start", "B"), ("A", "A1")],
        )
        assert _ids(linearize(graph)) == ["start", "A", "A1", "B"]

    def test_merge_node_emitted_once_on_first_path(self):
        graph = make_graph(
            [
                make_node("start", NodeKind.START),
                make_node("A", NodeKind.CLICK),
                make_node("B", NodeKind.CLICK),
                make_node("C", NodeKind.CLICK),
            ],
            [("start", "A"), ("start", "B"), ("A", "C"), ("B", "C")],
        )
        assert _ids(linearize(graph)) == ["start", "A", "C", "B"]

    def test_merge_node_reached_first_through_second_branch(self):
        graph = make_graph(
            [
                make_node("start", NodeKind.START),
                make_node("A", NodeKind.CLICK),
                make_node("B", NodeKind.CLICK),
                make_node("C", NodeKind.CLICK),
            ],
            # edges to C are created before the fan-out from start
            [("B", "C"), ("A", "C"), ("start", "B"), ("start", "A")],
        )
        assert _ids(linearize(graph)) == ["start", "B", "C", "A"]

    def test_cycle_terminates_and_visits_each_node_once(self):
        graph = make_graph(
            [
                make_node("start", NodeKind.START),
                make_node("A", NodeKind.CLICK),
                make_node("B", NodeKind.CLICK),
            ],
            [("start", "A"), ("A", "B"), ("B", "A"), ("B", "start")],
        )
        assert _ids(linearize(graph)) == ["start", "A", "B"]

    def test_self_loop(self):
        graph = make_graph(
            [make_node("start", NodeKind.START), make_node("A", NodeKind.CLICK)],
            [("start", "A"), ("A", "A")],
        )
        assert _ids(linearize(graph)) == ["start", "A"]

    def test_unreachable_nodes_are_skipped(self):
        graph = make_graph(
            [
                make_node("start", NodeKind.START),
                make_node("A", NodeKind.CLICK),
                make_node("island", NodeKind.CLICK),
                make_node("island2", NodeKind.END),
            ],
            [("start", "A"), ("island", "island2")],
        )
        assert _ids(linearize(graph)) == ["start", "A"]

    def test_lone_start_node(self):
        graph = make_graph([make_node("start", NodeKind.START)])
        assert _ids(linearize(graph)) == ["start"]

    def test_missing_start_node(self):
        graph = make_graph(
            [make_node("A", NodeKind.CLICK), make_node("B", NodeKind.END)],
            [("A", "B")],
        )
        with pytest.raises(MissingStartNode):
            linearize(graph)

    def test_empty_graph_has_no_start(self):
        with pytest.raises(MissingStartNode):
            linearize(make_graph([]))

    def test_multiple_starts_uses_first_and_warns(self, caplog):
        caplog.set_level(logging.WARNING)
        graph = make_graph(
            [
                make_node("s1", NodeKind.START),
                make_node("s2", NodeKind.START),
                make_node("A", NodeKind.CLICK),
            ],
            [("s2", "A")],
        )
        assert _ids(linearize(graph)) == ["s1"]
        assert "2 start nodes" in caplog.text

    def test_long_chain_does_not_recurse(self):
        count = 5000
        nodes = [make_node("start", NodeKind.START)]
        nodes += [make_node(f"n{i}", NodeKind.CLICK) for i in range(count)]
        links = [("start", "n0")] + [(f"n{i}", f"n{i + 1}") for i in range(count - 1)]
        ordered = linearize(make_graph(nodes, links))
        assert len(ordered) == count + 1
        assert ordered[-1].id == f"n{count - 1}"

    def test_linearize_does_not_mutate_graph(self):
        graph = make_graph(
            [make_node("start", NodeKind.START), make_node("A", NodeKind.CLICK)],
            [("start", "A")],
        )
        before = graph.copy()
        linearize(graph)
        assert graph == before

"""
Tests for plan_builder: dual-tree construction and slice splitting at motions.
"""

import pytest

from plan_builder import PlanBuilder, parse_plan
from plan_nodes import walk_nodes, walk_slices
from plan_records import PlanFormatError

from conftest import motion, seq_scan


def check_tree_shape(builder):
    """Every node and slice except the roots has one parent, and links agree both ways."""
    nodes = list(walk_nodes(builder.root))
    assert builder.root.parent is None
    for node in nodes:
        for child in node.children:
            assert child.parent is node
    assert sum(1 for node in nodes if node.parent is None) == 1

    slices = list(walk_slices(builder.root_slice))
    assert builder.root_slice.parent is None
    for plan_slice in slices:
        for child in plan_slice.children:
            assert child.parent is plan_slice
        assert plan_slice.root in nodes

    for node in nodes:
        if node.is_motion():
            assert node.slice is None
        else:
            assert node.slice in slices

    ids = [n.id for n in nodes] + [s.id for s in slices]
    assert len(ids) == len(set(ids))


class TestRegularPlans:
    def test_single_scan(self, seq_scan_document) -> None:
        builder = PlanBuilder()
        root = builder.build(seq_scan_document)

        assert root.node_type == "SeqScan"
        assert root.children == []
        assert root.slice is builder.root_slice
        assert builder.root_slice.root is root
        assert builder.root_slice.gang_type == "Unallocated"
        assert builder.root_slice.gang_size == 1
        assert (builder.root_slice.id, root.id) == (0, 1)

    def test_children_inherit_slice_in_order(self) -> None:
        document = [{"Plan": {
            "Node Type": "Append", "Plan Rows": 2, "Plan Width": 4,
            "Plans": [seq_scan("a"), seq_scan("b"), seq_scan("c")],
        }}]
        builder = PlanBuilder()
        root = builder.build(document)

        assert [c.properties["Relation Name"] for c in root.children] == ["a", "b", "c"]
        assert all(c.slice is builder.root_slice for c in root.children)
        assert [c.id for c in root.children] == [2, 3, 4]
        check_tree_shape(builder)


class TestMotionSplitting:
    def test_gather_motion(self, gather_document) -> None:
        builder = PlanBuilder()
        root = builder.build(gather_document)

        assert root.is_motion()
        assert root.slice is None
        assert len(root.children) == 1

        scan = root.children[0]
        assert scan.node_type == "SeqScan"
        assert scan.id == 2

        send_slice = scan.slice
        assert send_slice.id == 3
        assert send_slice.root is scan
        assert send_slice.parent is builder.root_slice
        assert builder.root_slice.children == [send_slice]
        assert (send_slice.gang_size, send_slice.gang_type, send_slice.slice_id) == (3, "PrimaryReader", 1)
        check_tree_shape(builder)

    def test_each_motion_opens_one_slice(self, join_document) -> None:
        builder = PlanBuilder()
        root = builder.build(join_document)
        check_tree_shape(builder)

        motions = [n for n in walk_nodes(root) if n.is_motion()]
        slices = list(walk_slices(builder.root_slice))
        assert len(motions) == 3
        assert len(slices) == 4
        for node in motions:
            assert len(node.children) == 1
            assert node.sending_slice.root is node.children[0]

    def test_slice_fields_come_from_the_motion_record(self, join_document) -> None:
        root = parse_plan(join_document)
        hash_join = root.children[0]
        redistribute = hash_join.children[0]
        broadcast = hash_join.children[1].children[0]

        assert hash_join.slice.slice_id == 3
        assert redistribute.children[0].slice.slice_id == 1
        assert broadcast.children[0].slice.slice_id == 2
        # Both lower slices are children of the slice that receives them
        assert redistribute.children[0].slice.parent is hash_join.slice
        assert broadcast.children[0].slice.parent is hash_join.slice
        assert hash_join.slice.children == [redistribute.sending_slice, broadcast.sending_slice]

    def test_nested_nodes_stay_in_sending_slice(self, join_document) -> None:
        root = parse_plan(join_document)
        hash_join = root.children[0]
        hash_node = hash_join.children[1]
        assert hash_node.node_type == "Hash"
        assert hash_node.slice is hash_join.slice


class TestMalformedPlans:
    def test_missing_plan(self) -> None:
        with pytest.raises(PlanFormatError, match="Plan"):
            parse_plan([{}])

    def test_motion_without_child(self) -> None:
        bad = motion("Gather Motion", 3, seq_scan("t1"))
        del bad["Plans"]
        with pytest.raises(PlanFormatError, match="exactly one child plan"):
            parse_plan([{"Plan": bad}])

    def test_motion_with_two_children(self) -> None:
        bad = motion("Gather Motion", 3, seq_scan("t1"))
        bad["Plans"].append(seq_scan("t2"))
        with pytest.raises(PlanFormatError, match="exactly one child plan, got 2"):
            parse_plan([{"Plan": bad}])

    def test_deep_error_reports_location(self, join_document) -> None:
        hash_join = join_document[0]["Plan"]["Plans"][0]
        del hash_join["Plans"][1]["Plans"][0]["Plans"][0]["Plan Width"]
        with pytest.raises(PlanFormatError) as excinfo:
            parse_plan(join_document)
        assert excinfo.value.path == "Plan.Plans[0].Plans[1].Plans[0].Plans[0]"

    def test_builders_are_independent(self, gather_document) -> None:
        first = parse_plan(gather_document)
        second = parse_plan(gather_document)
        assert [n.id for n in walk_nodes(first)] == [n.id for n in walk_nodes(second)]

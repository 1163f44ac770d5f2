"""
Pytest configuration and shared fixtures for the plan visualizer tests.
"""

import pytest

from plan_nodes import PlanNode
from plan_records import PlanRecord


def seq_scan(relation, rows=100, width=8, **extra):
    node = {
        "Node Type": "Seq Scan",
        "Relation Name": relation,
        "Plan Rows": rows,
        "Plan Width": width,
    }
    node.update(extra)
    return node


def motion(kind, senders, child, slice_id=1, gang_type="primary reader", rows=100, width=8):
    return {
        "Node Type": kind,
        "Senders": senders,
        "Receivers": 1,
        "Slice": slice_id,
        "Gang Type": gang_type,
        "Plan Rows": rows,
        "Plan Width": width,
        "Plans": [child],
    }


@pytest.fixture
def seq_scan_document():
    """Single Seq Scan, wrapped the way EXPLAIN (FORMAT JSON) returns it."""
    return [{"Plan": seq_scan("t1")}]


@pytest.fixture
def gather_document():
    """Gather Motion from a 3-segment gang over a Seq Scan."""
    return [{"Plan": motion("Gather Motion", 3, seq_scan("t1"))}]


@pytest.fixture
def join_document():
    """
    Gather Motion 3:1 (slice 3)
      -> Hash Join
           -> Redistribute Motion 3:3 (slice 1) -> Seq Scan t1
           -> Hash
                -> Broadcast Motion 3:3 (slice 2) -> Seq Scan t2
    """
    hash_join = {
        "Node Type": "Hash Join",
        "Join Type": "Inner",
        "Hash Cond": "(t1.a = t2.a)",
        "Plan Rows": 1000.4,
        "Plan Width": 16,
        "Plans": [
            motion("Redistribute Motion", 3, seq_scan("t1"), slice_id=1, gang_type="primary reader"),
            {
                "Node Type": "Hash",
                "Plan Rows": 50,
                "Plan Width": 8,
                "Plans": [
                    motion("Broadcast Motion", 3, seq_scan("t2", rows=50), slice_id=2,
                           gang_type="primary reader"),
                ],
            },
        ],
    }
    return [{"Plan": motion("Gather Motion", 3, hash_join, slice_id=3, gang_type="primary reader")}]


@pytest.fixture
def make_node():
    """Build a detached PlanNode from a raw plan mapping, for label tests."""
    def _make(raw):
        node = PlanNode(1)
        node.init_from_record(PlanRecord.from_dict(raw))
        return node
    return _make

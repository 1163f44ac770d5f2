"""
Plan Builder

Walks a validated plan record tree and builds the PlanNode tree together with
the Slice tree. Every motion node closes a slice: the motion itself is left
outside any slice, and its single input becomes the root of a new slice
described by the motion's Senders / Gang Type / Slice fields.
"""

from plan_nodes import PlanNode, Slice
from plan_records import PlanFormatError, parse_explain_document


class PlanBuilder:
    """Builds one plan. Use a fresh builder for each document."""

    def __init__(self):
        # Nodes and slices share this counter so their dot names never collide
        self.next_id = 0
        self.root_slice = None
        self.root = None

    def _new_id(self):
        node_id = self.next_id
        self.next_id += 1
        return node_id

    def build(self, document):
        """
        Build the dual tree from a decoded EXPLAIN document.

        Args:
            document: The decoded EXPLAIN (FORMAT JSON) output

        Returns:
            PlanNode: The root of the plan tree
        """
        record = parse_explain_document(document)
        return self.build_from_record(record)

    def build_from_record(self, record):
        self.root_slice = Slice(self._new_id())
        self.root = PlanNode(self._new_id(), plan_slice=self.root_slice)
        self.root_slice.root = self.root

        self._visit(self.root_slice, self.root, record)
        return self.root

    def _visit(self, cur_slice, cur_node, record):
        cur_node.init_from_record(record)

        if cur_node.is_motion():
            self._visit_motion(cur_slice, cur_node, record)
            return

        for child_record in record.plans:
            child = PlanNode(self._new_id(), parent=cur_node, plan_slice=cur_slice)
            cur_node.children.append(child)
            self._visit(cur_slice, child, child_record)

    def _visit_motion(self, recv_slice, motion, record):
        if len(record.plans) != 1:
            raise PlanFormatError(
                f"motion must have exactly one child plan, got {len(record.plans)}", record.path)

        # The motion is drawn between slices, not inside one
        motion.slice = None
        motion.receiving_slice = recv_slice

        send_root = PlanNode(self._new_id(), parent=motion)
        send_slice = Slice(self._new_id(), parent=recv_slice, root=send_root)
        send_slice.init_from_record(record)
        send_root.slice = send_slice
        motion.sending_slice = send_slice

        recv_slice.children.append(send_slice)
        motion.children.append(send_root)

        self._visit(send_slice, send_root, record.plans[0])


def parse_plan(document):
    """Build the plan tree for one EXPLAIN document and return its root PlanNode."""
    return PlanBuilder().build(document)

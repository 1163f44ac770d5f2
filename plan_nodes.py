"""
Plan and slice model.

A query plan is held as two linked trees: PlanNode objects (one per plan
operator) and Slice objects (one per gang of parallel workers). Each PlanNode
points at the slice it runs in, and each Slice points at the PlanNode that is
the entry point of its part of the plan.
"""

from plan_labels import get_label_formatter, make_caption
from plan_records import PlanFormatError, format_name, is_motion_type


class PlanNode:
    def __init__(self, node_id, parent=None, plan_slice=None):
        self.id = node_id
        self.parent = parent
        self.slice = plan_slice
        self.children = []
        self.node_type = ""
        self.properties = {}
        self.rows = 0.0
        self.width = 0
        # Set on motion nodes only: the gang on each side of the motion
        self.sending_slice = None
        self.receiving_slice = None

    def init_from_record(self, record):
        """Copy the type tag, estimates and raw properties from a PlanRecord."""
        self.node_type = format_name(record.node_type)
        self.rows = record.rows
        self.width = record.width
        self.properties = record.properties

    def is_motion(self):
        return is_motion_type(self.node_type)

    def dot_name(self):
        return f"Plan{self.id}"

    def dot_label(self):
        formatter = get_label_formatter(self.node_type)
        if formatter is not None:
            return make_caption(formatter(self), self.rows, self.width)

        name = self.node_type
        if self.is_motion():
            name = f"{name} {self.sender_count()}→{self.receiver_count()}"
        return make_caption([name], self.rows, self.width)

    def sender_count(self):
        if len(self.children) != 1 or self.sending_slice is None:
            raise PlanFormatError(f"motion must have exactly one child plan ({self.dot_name()})")
        # The sending slice is rooted at the motion's only child
        return self.sending_slice.gang_size

    def receiver_count(self):
        if self.parent is None:
            return 1
        if self.parent.slice is not None:
            return self.parent.slice.gang_size
        # Parent is itself a detached motion; the receiver is the slice this motion feeds
        return self.receiving_slice.gang_size

    def __repr__(self):
        return f"PlanNode(id={self.id}, type={self.node_type!r})"


class Slice:
    def __init__(self, slice_obj_id, parent=None, root=None):
        self.id = slice_obj_id
        self.parent = parent
        self.root = root
        self.children = []
        self.slice_id = 0
        self.gang_type = "Unallocated"
        self.gang_size = 1

    def init_from_record(self, record):
        """Take the sending gang description from a motion record."""
        self.gang_size = record.senders
        self.gang_type = format_name(record.gang_type)
        self.slice_id = record.slice_id

    def is_top(self):
        """The synthetic coordinator slice that receives the final result."""
        return self.parent is None

    def dot_name(self):
        return f"cluster_{self.id}"

    def dot_label(self):
        return f"slice{self.slice_id}\\n(size={self.gang_size} type={self.gang_type})"

    def __repr__(self):
        return f"Slice(id={self.id}, slice_id={self.slice_id}, gang_size={self.gang_size})"


def walk_nodes(root):
    """Yield every PlanNode under root, parents before children."""
    yield root
    for child in root.children:
        yield from walk_nodes(child)


def walk_slices(root_slice):
    """Yield every Slice under root_slice, parents before children."""
    yield root_slice
    for child in root_slice.children:
        yield from walk_slices(child)

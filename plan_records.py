"""
Plan Records

Validates the decoded EXPLAIN (FORMAT JSON) document and turns it into a tree of
PlanRecord objects, so the rest of the code can read typed fields instead of
poking at nested dicts and lists.
"""

import math

MOTION_MARKER = "Motion"

# Optional integer counters some scans carry (OSS foreign data wrapper)
COUNTER_KEYS = ("OssFdwCsvMaxParallel", "OssFdwTotalFiles", "OssFdwTotalBytes")


def format_name(name):
    """Normalize a node or gang type: "gather motion" -> "GatherMotion"."""
    return "".join(word[:1].upper() + word[1:] for word in name.split())


def is_motion_type(node_type):
    # Gather, broadcast, redistribute and explicit motions all cross a slice boundary
    return MOTION_MARKER in node_type


class PlanFormatError(ValueError):
    """Raised when the EXPLAIN document does not have the expected plan shape."""

    def __init__(self, message, path=None):
        self.path = path
        if path:
            message = f"{path}: {message}"
        super().__init__(message)


def _is_number(value):
    # bool is an int subclass, but "Plan Rows": true is not a row estimate;
    # json also decodes NaN and Infinity, which no estimate can hold
    return (isinstance(value, (int, float)) and not isinstance(value, bool)
            and math.isfinite(value))


def _require(raw, key, kind, path):
    if key not in raw:
        raise PlanFormatError(f'missing required key "{key}"', path)
    value = raw[key]
    if kind == "number" and not _is_number(value):
        raise PlanFormatError(f'"{key}" must be a number, got {type(value).__name__}', path)
    if kind == "string" and not isinstance(value, str):
        raise PlanFormatError(f'"{key}" must be a string, got {type(value).__name__}', path)
    return value


class PlanRecord:
    """One validated plan-node record from the EXPLAIN output."""

    def __init__(self, node_type, rows, width, properties, plans=None,
                 senders=None, gang_type=None, slice_id=None, path=None):
        self.node_type = node_type
        self.rows = rows
        self.width = width
        self.properties = properties
        self.plans = plans or []
        # Motion-only fields, describing the sending slice
        self.senders = senders
        self.gang_type = gang_type
        self.slice_id = slice_id
        self.path = path

    @property
    def is_motion(self):
        return is_motion_type(format_name(self.node_type))

    @classmethod
    def from_dict(cls, raw, path="Plan"):
        """
        Build a record (and its sub-plans, recursively) from one plan mapping.

        Args:
            raw (dict): The plan-node mapping as decoded from JSON
            path (str): Location of this mapping in the document, used in errors

        Returns:
            PlanRecord: The validated record
        """
        if not isinstance(raw, dict):
            raise PlanFormatError(f"plan node must be an object, got {type(raw).__name__}", path)

        node_type = _require(raw, "Node Type", "string", path)
        rows = _require(raw, "Plan Rows", "number", path)
        width = _require(raw, "Plan Width", "number", path)

        for key in COUNTER_KEYS:
            if raw.get(key) is not None and not _is_number(raw[key]):
                raise PlanFormatError(f'"{key}" must be a number, got {type(raw[key]).__name__}', path)

        plans = []
        if "Plans" in raw:
            raw_plans = raw["Plans"]
            if not isinstance(raw_plans, list):
                raise PlanFormatError(f'"Plans" must be a list, got {type(raw_plans).__name__}', path)
            for i, child in enumerate(raw_plans):
                plans.append(cls.from_dict(child, f"{path}.Plans[{i}]"))

        record = cls(node_type, float(rows), int(width), raw, plans, path=path)

        if record.is_motion:
            record.senders = int(_require(raw, "Senders", "number", path))
            record.gang_type = _require(raw, "Gang Type", "string", path)
            record.slice_id = int(_require(raw, "Slice", "number", path))

        return record


def parse_explain_document(document):
    """
    Extract the root plan record from a decoded EXPLAIN document.

    The usual shape is a one-element list holding {"Plan": {...}}; a bare
    {"Plan": {...}} mapping is accepted too.
    """
    if isinstance(document, list):
        if not document:
            raise PlanFormatError("EXPLAIN document is an empty list")
        document = document[0]

    if not isinstance(document, dict):
        raise PlanFormatError(f"EXPLAIN document must be an object, got {type(document).__name__}")

    if "Plan" not in document:
        raise PlanFormatError('Fail to get plan of query: missing "Plan" key')

    return PlanRecord.from_dict(document["Plan"], "Plan")

"""
Label formatters for plan nodes.

Each formatter receives a PlanNode and returns the header lines of its caption,
read from the node's raw EXPLAIN properties. Missing properties are left out.
make_caption() joins the lines and appends the "Rows=... Width=..." line.
"""

from plan_records import COUNTER_KEYS

LINE_BREAK = "\\n"

# Maps a normalized node type ("SeqScan", "HashJoin", ...) to its formatter
LABEL_FORMATTERS = {}


def register_label(*node_types):
    """Register the decorated function as the label formatter for node_types."""
    def decorator(func):
        for node_type in node_types:
            LABEL_FORMATTERS[node_type] = func
        return func
    return decorator


def get_label_formatter(node_type):
    return LABEL_FORMATTERS.get(node_type)


def escape_quotes(value):
    return str(value).replace('"', '\\"')


def prop_text(props, key):
    """Return a property as escaped caption text, or "" when it is absent."""
    value = props.get(key)
    if value is None:
        return ""
    if isinstance(value, list):
        value = ", ".join(str(v) for v in value)
    return escape_quotes(value)


def join_words(*words):
    return " ".join(w for w in words if w)


def int_prop_line(props, key):
    """"key=<int>" for numeric extension counters, "" when absent."""
    value = props.get(key)
    if value is None:
        return ""
    return f"{key}={int(value)}"


def row_count(rows):
    # Estimates are floats; never show a negative row count
    return max(0, int(round(rows)))


def make_caption(lines, rows, width):
    """Join the non-empty caption lines and append the Rows/Width line."""
    parts = [line for line in lines if line]
    parts.append(f"Rows={row_count(rows)} Width={int(width)}")
    return LINE_BREAK.join(parts)


@register_label("SeqScan")
def seq_scan_label(node):
    return [join_words("SeqScan", prop_text(node.properties, "Relation Name"))]


@register_label("HashJoin")
def hash_join_label(node):
    props = node.properties
    return [
        join_words("HashJoin", prop_text(props, "Join Type")),
        prop_text(props, "Hash Cond"),
    ]


@register_label("IndexScan", "IndexOnlyScan")
def index_scan_label(node):
    props = node.properties
    relation = prop_text(props, "Relation Name")
    return [
        join_words(node.node_type, prop_text(props, "Index Name"), "on" if relation else "", relation),
        prop_text(props, "Index Cond"),
        prop_text(props, "Scan Direction"),
    ]


@register_label("BitmapHeapScan")
def bitmap_heap_scan_label(node):
    props = node.properties
    return [
        join_words("BitmapHeapScan", prop_text(props, "Relation Name")),
        prop_text(props, "Recheck Cond"),
    ]


@register_label("Aggregate")
def aggregate_label(node):
    props = node.properties
    return [
        prop_text(props, "Strategy") + "Aggregate",
        prop_text(props, "Group Key"),
    ]


@register_label("Sort")
def sort_label(node):
    props = node.properties
    # Greenplum emits "Sort Key (Distinct)" for sorts that also remove duplicates
    if props.get("Sort Key (Distinct)") is not None:
        return ["Sort (Distinct)", prop_text(props, "Sort Key (Distinct)")]
    return ["Sort", prop_text(props, "Sort Key")]


@register_label("Unique")
def unique_label(node):
    return ["Unique", prop_text(node.properties, "Group Key")]


@register_label("ForeignScan")
def foreign_scan_label(node):
    props = node.properties
    return [
        join_words("ForeignScan", prop_text(props, "Relation Name")),
    ] + [int_prop_line(props, key) for key in COUNTER_KEYS]

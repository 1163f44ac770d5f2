import graphviz

from plan_builder import parse_plan
from plan_graph import build_graph


def visualize_query_plan(document):
    """
    Build the slice graph for an EXPLAIN document.

    Returns:
        tuple: (dot_source, svg_content); svg_content is None when the Graphviz
        binary is not installed.
    """
    graph = build_graph(parse_plan(document))
    return graph.source, render_svg(graph)


def render_svg(graph):
    try:
        return graph.pipe(format='svg', encoding='utf-8')
    except graphviz.ExecutableNotFound as e:
        print(f"SVG rendering skipped: {e}")
        return None

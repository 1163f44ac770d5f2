"""
Graph Assembler

Turns a built plan tree into a Graphviz digraph: one filled cluster per slice,
one black box per plan node, and an edge from every child to its parent so the
arrows follow the data from the scans up to the root.
"""

import graphviz

DEFAULT_TITLE = "Query Plan - Generated By gpplan2dot"


class PlanGraphAssembler:
    def __init__(self, title=DEFAULT_TITLE):
        self.graph = graphviz.Digraph("G", strict=True)
        self.graph.attr(rankdir="BT", label=title)
        # Slice id -> cluster subgraph, in first-encounter order
        self.clusters = {}
        self.edges = []

    def _cluster_for(self, plan_slice):
        cluster = self.clusters.get(plan_slice.id)
        if cluster is None:
            cluster = graphviz.Digraph(name=plan_slice.dot_name())
            cluster.attr(label=plan_slice.dot_label(), style="filled", color="pink")
            self.clusters[plan_slice.id] = cluster
        return cluster

    def add_plan(self, node):
        """Add node and its subtree; edges are collected child -> parent."""
        target = self.graph
        # Motions and the top coordinator slice are drawn outside any cluster
        if node.slice is not None and not node.slice.is_top():
            target = self._cluster_for(node.slice)

        target.node(node.dot_name(), label=node.dot_label(), shape="box",
                    style="filled", fillcolor="black", fontcolor="white")

        for child in node.children:
            self.add_plan(child)
            self.edges.append((child.dot_name(), node.dot_name()))

    def assemble(self, root):
        self.add_plan(root)

        # Clusters are only complete once the walk is done, so attach them last
        for cluster in self.clusters.values():
            self.graph.subgraph(cluster)
        for tail, head in self.edges:
            self.graph.edge(tail, head)

        return self.graph


def build_graph(root, title=DEFAULT_TITLE):
    """Return the graphviz.Digraph for the plan rooted at root."""
    return PlanGraphAssembler(title).assemble(root)


def to_dot(root, title=DEFAULT_TITLE):
    """Return the DOT source for the plan rooted at root."""
    return build_graph(root, title).source


def render_plan(root, output_file="query_plan", fmt="pdf", title=DEFAULT_TITLE):
    """
    Render the plan to an image file with the Graphviz binary.

    Returns:
        Path to the generated file
    """
    graph = build_graph(root, title)
    return graph.render(filename=output_file, format=fmt, cleanup=True)

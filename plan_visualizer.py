#!/usr/bin/env python3
"""
Greenplum Plan Visualizer

Converts a Greenplum EXPLAIN (FORMAT JSON) plan into a Graphviz DOT graph with
one cluster per slice, making it easy to see how the planner spread the work
across gangs and where the motions move data between them.
"""

import json
import argparse
import os
import sys

import graphviz
import psycopg2

from explain_fetcher import DEFAULT_DB_PARAMS, ExplainFetcher
from plan_builder import parse_plan
from plan_graph import DEFAULT_TITLE, build_graph
from plan_records import PlanFormatError


def read_document(path):
    """Load the EXPLAIN JSON from a file, or from stdin when path is "-"."""
    if path == "-":
        return json.load(sys.stdin)
    with open(path, 'r') as f:
        return json.load(f)


def db_params_from_args(args):
    params = dict(DEFAULT_DB_PARAMS)
    for key in ("host", "port", "dbname", "user", "password"):
        value = getattr(args, key)
        if value is not None:
            params[key] = value
    return params


def fetch_document(args):
    """Run EXPLAIN against the database for --sql / --sql-file."""
    sql = args.sql
    if args.sql_file:
        with open(args.sql_file, 'r') as f:
            sql = f.read()

    with ExplainFetcher(db_params_from_args(args)) as fetcher:
        return fetcher.fetch_plan(sql, analyze=args.analyze)


def convert(document, title=DEFAULT_TITLE):
    """EXPLAIN document in, graphviz.Digraph out."""
    return build_graph(parse_plan(document), title)


def build_parser():
    parser = argparse.ArgumentParser(description="Draw a Greenplum query plan as a Graphviz graph.")
    parser.add_argument("input", nargs="?", default="-",
                        help="Path to the EXPLAIN (FORMAT JSON) file, '-' for stdin (default)")
    parser.add_argument("-o", "--output", help="Write the DOT source to this file instead of stdout")
    parser.add_argument("-r", "--render", metavar="FORMAT",
                        help="Also render the graph with Graphviz (pdf, svg, png, ...)")
    parser.add_argument("-t", "--title", default=DEFAULT_TITLE, help="Graph title")

    db = parser.add_argument_group("database", "Fetch the plan from a live database instead")
    source = db.add_mutually_exclusive_group()
    source.add_argument("--sql", help="Query to EXPLAIN")
    source.add_argument("--sql-file", help="File containing the query to EXPLAIN")
    db.add_argument("--analyze", action="store_true", help="Use EXPLAIN ANALYZE (runs the query)")
    db.add_argument("--host")
    db.add_argument("--port")
    db.add_argument("--dbname")
    db.add_argument("--user")
    db.add_argument("--password")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        if args.sql or args.sql_file:
            document = fetch_document(args)
        else:
            if args.input != "-" and not os.path.exists(args.input):
                print(f"Error: Input file '{args.input}' not found", file=sys.stderr)
                return 1
            document = read_document(args.input)

        graph = convert(document, args.title)
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON input: {e}", file=sys.stderr)
        return 1
    except PlanFormatError as e:
        print(f"Error: Malformed query plan: {e}", file=sys.stderr)
        return 1
    except (psycopg2.Error, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.output:
        with open(args.output, 'w') as f:
            f.write(graph.source)
        print(f"DOT graph written: {args.output}", file=sys.stderr)
    else:
        print(graph.source)

    if args.render:
        base = os.path.splitext(args.output)[0] if args.output else "query_plan"
        path = f"{base}.{args.render}"
        try:
            image = graph.pipe(format=args.render)
            with open(path, "wb") as f:
                f.write(image)
        except (graphviz.ExecutableNotFound, graphviz.CalledProcessError, OSError) as e:
            print(f"Error: Rendering failed: {e}", file=sys.stderr)
            return 1
        print(f"Visualization created: {path}", file=sys.stderr)

    return 0


if __name__ == "__main__":
    sys.exit(main())

import json
import sys

import psycopg2

from plan_records import PlanFormatError

# Connection parameters passed straight to psycopg2.connect()
DEFAULT_DB_PARAMS = {
    'dbname': 'postgres',
    'user': 'gpadmin',
    'password': '',
    'host': 'localhost',
    'port': '5432'
}


class ExplainFetcher:
    def __init__(self, db_params=None):
        """
        Fetch EXPLAIN (FORMAT JSON) plans from a Greenplum / PostgreSQL database.

        Args:
            db_params (dict): Database connection parameters for psycopg2
        """
        self.db_params = dict(DEFAULT_DB_PARAMS if db_params is None else db_params)
        self.conn = None

    def connect(self):
        """Establish a connection to the database."""
        try:
            self.conn = psycopg2.connect(**self.db_params)
            # EXPLAIN ANALYZE runs the query; never leave a transaction open behind it
            self.conn.autocommit = True
            print("Connected to database successfully.", file=sys.stderr)
        except psycopg2.Error as e:
            print(f"Error connecting to database: {e}", file=sys.stderr)
            raise

    def disconnect(self):
        """Close the database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None
            print("Disconnected from database.", file=sys.stderr)

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.disconnect()

    def fetch_plan(self, sql, analyze=False):
        """
        Run EXPLAIN on a query and return the decoded JSON plan document.

        Args:
            sql (str): The query to explain
            analyze (bool): Use EXPLAIN ANALYZE (executes the query)

        Returns:
            list: The EXPLAIN document, [{"Plan": {...}, ...}]
        """
        if not self.conn:
            self.connect()

        options = "ANALYZE, FORMAT JSON" if analyze else "FORMAT JSON"
        sql = sql.strip().rstrip(';')

        with self.conn.cursor() as cursor:
            cursor.execute(f"EXPLAIN ({options}) {sql}")
            row = cursor.fetchone()

        if row is None:
            raise PlanFormatError("EXPLAIN returned no rows")

        document = row[0]
        # json columns come back decoded, text columns do not
        if isinstance(document, str):
            document = json.loads(document)
        return document

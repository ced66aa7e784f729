#!/usr/bin/env python3
"""
Load a JSON query catalog into the SQLite store, or export the store to JSON.

Catalog file format:
    {"version": "1.0", "lastUpdated": "...", "queryCount": N,
     "queries": [{"id", "description", "sqlScript", "metadata", "createdAt", "updatedAt"}, ...]}
"""

import argparse
import json
import sqlite3
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from query_rag.core.config import DB_PATH, get_query_store


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Import or export the SQL query catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s import data/queries.json          # Add/overwrite queries from a catalog file
  %(prog)s export backup/queries.json        # Write every stored query to a catalog file
  %(prog)s import queries.json --db other.db # Use a different database file

Environment variables:
- DB_PATH=./data/queries.db (default database file)
        """
    )
    parser.add_argument("action", choices=["import", "export"], help="Direction of the transfer")
    parser.add_argument("path", help="Catalog JSON file")
    parser.add_argument("--db", default=DB_PATH, help=f"SQLite database file (default: {DB_PATH})")

    args = parser.parse_args(argv)
    store = get_query_store(args.db)

    try:
        if args.action == "import":
            count = store.import_json(args.path)
            print(f"Imported {count} queries from {args.path} into {args.db}")
        else:
            store.load()
            count = store.export_json(args.path)
            print(f"Exported {count} queries from {args.db} to {args.path}")
        return 0

    except FileNotFoundError as e:
        print(f"ERROR: File not found: {e.filename}")
        return 1
    except (ValueError, json.JSONDecodeError) as e:
        print(f"ERROR: Invalid catalog file: {e}")
        return 1
    except sqlite3.Error as e:
        print(f"ERROR: Database error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())

"""
query-rag: natural-language search over a catalog of stored SQL queries.
"""

__version__ = "1.0.0"

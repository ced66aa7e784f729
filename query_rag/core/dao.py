"""
SQLite-backed query catalog: the records the vector index points at.

The catalog owns ids (uuid4) and all record fields; the vector index only
ever sees ids and description embeddings.
"""

import json
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .db import get_db, init_db, health_check
from .errors import NotFoundError
from .schema import QueryRecord
from ..util.logging import logger

CATALOG_VERSION = "1.0"
UPDATABLE_FIELDS = ("description", "sql_script", "metadata")

_COLUMNS = "id, description, sql_script, metadata, created_at, updated_at"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_record(row) -> QueryRecord:
    query_id, description, sql_script, metadata, created_at, updated_at = row
    return QueryRecord(
        id=query_id,
        description=description,
        sql_script=sql_script,
        metadata=json.loads(metadata) if metadata else {},
        created_at=created_at,
        updated_at=updated_at
    )


def _catalog_record(position: int, entry: Any) -> QueryRecord:
    """Build a record from one catalog entry, applying the same rules as add_query."""
    if not isinstance(entry, dict):
        raise ValueError(f"Catalog entry {position} is not an object")

    label = f"Catalog entry {position} (id {entry['id']!r})" if entry.get("id") else f"Catalog entry {position}"
    record = QueryRecord.from_catalog_dict(entry)
    for field_name in ("description", "sql_script"):
        value = getattr(record, field_name)
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"{label} has an empty or missing {field_name}")
        setattr(record, field_name, value.strip())
    if not isinstance(record.metadata, dict):
        raise ValueError(f"{label} has metadata that is not an object")
    return record


class QueryStore:
    """Persistent catalog of SQL query templates."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self.is_loaded = False

    def load(self) -> List[QueryRecord]:
        """Create tables if needed and return every stored query."""
        init_db(self.db_path)
        queries = self.load_all()
        self.is_loaded = True
        logger.log_operation("catalog.load", "success", {
            "db_path": self.db_path,
            "query_count": len(queries)
        })
        return queries

    def load_all(self) -> List[QueryRecord]:
        """All queries in insertion order."""
        with get_db(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(f"SELECT {_COLUMNS} FROM queries ORDER BY seq")
            return [_row_to_record(row) for row in cursor.fetchall()]

    def add_query(self, description: str, sql_script: str, metadata: Dict[str, Any] = None) -> str:
        """Store a new query and return its generated id."""
        if not description or not description.strip() or not sql_script or not sql_script.strip():
            raise ValueError("Description and SQL script are required")

        query_id = str(uuid.uuid4())
        now = _now()
        stored_metadata = dict(metadata or {})
        stored_metadata["added_at"] = now

        with get_db(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"INSERT INTO queries ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
                (query_id, description.strip(), sql_script.strip(), json.dumps(stored_metadata), now, now)
            )
            conn.commit()

        logger.log_query_operation("added", query_id, description)
        return query_id

    def get_query_by_id(self, query_id: str) -> Optional[QueryRecord]:
        """Get a query by id, or None when it does not exist."""
        try:
            with get_db(self.db_path) as conn:
                cursor = conn.cursor()
                cursor.execute(f"SELECT {_COLUMNS} FROM queries WHERE id = ?", (query_id,))
                row = cursor.fetchone()
                return _row_to_record(row) if row else None
        except sqlite3.Error as e:
            logger.error(f"Failed to get query '{query_id}': {e}")
            return None

    def update_query(self, query_id: str, updates: Dict[str, Any]) -> QueryRecord:
        """
        Update description, sql_script and/or metadata of a stored query.

        Fields absent from updates (or None) keep their stored value.

        Raises:
            NotFoundError: no query with that id
            ValueError: unknown field, or an empty description/sql_script
        """
        unknown = set(updates) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")

        existing = self.get_query_by_id(query_id)
        if existing is None:
            raise NotFoundError(query_id)

        for text_field in ("description", "sql_script"):
            value = updates.get(text_field)
            if value is not None and not value.strip():
                raise ValueError(f"{text_field} cannot be empty")

        description = updates.get("description")
        sql_script = updates.get("sql_script")
        metadata = updates.get("metadata")

        updated = QueryRecord(
            id=query_id,
            description=description.strip() if description is not None else existing.description,
            sql_script=sql_script.strip() if sql_script is not None else existing.sql_script,
            metadata=metadata if metadata is not None else existing.metadata,
            created_at=existing.created_at,
            updated_at=_now()
        )

        with get_db(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE queries SET description = ?, sql_script = ?, metadata = ?, updated_at = ? WHERE id = ?",
                (updated.description, updated.sql_script, json.dumps(updated.metadata), updated.updated_at, query_id)
            )
            conn.commit()

        logger.log_query_operation("updated", query_id, updated.description)
        return updated

    def remove_query(self, query_id: str) -> None:
        """Delete a stored query. Raises NotFoundError if it does not exist."""
        with get_db(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM queries WHERE id = ?", (query_id,))
            deleted = cursor.rowcount
            conn.commit()

        if not deleted:
            raise NotFoundError(query_id)
        logger.log_query_operation("removed", query_id)

    def get_queries_by_category(self, category: str) -> List[QueryRecord]:
        return [q for q in self.load_all() if q.metadata.get("category") == category]

    def get_queries_by_tag(self, tag: str) -> List[QueryRecord]:
        return [q for q in self.load_all() if tag in (q.metadata.get("tags") or [])]

    def search_queries(self, search_text: str) -> List[QueryRecord]:
        """Case-insensitive substring match on description, SQL and tags."""
        needle = search_text.lower()
        matches = []
        for query in self.load_all():
            tags = query.metadata.get("tags") or []
            if (needle in query.description.lower()
                    or needle in query.sql_script.lower()
                    or any(needle in str(tag).lower() for tag in tags)):
                matches.append(query)
        return matches

    def get_query_count(self) -> int:
        with get_db(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) FROM queries")
            return cursor.fetchone()[0]

    def get_stats(self) -> Dict[str, Any]:
        categories: Dict[str, int] = {}
        complexities: Dict[str, int] = {}

        queries = self.load_all()
        for query in queries:
            category = query.metadata.get("category") or "uncategorized"
            complexity = query.metadata.get("complexity") or "unknown"
            categories[category] = categories.get(category, 0) + 1
            complexities[complexity] = complexities.get(complexity, 0) + 1

        return {
            "total_queries": len(queries),
            "categories": categories,
            "complexities": complexities,
            "is_loaded": self.is_loaded,
            "db_path": self.db_path
        }

    def import_json(self, path: str) -> int:
        """
        Import a JSON catalog file, keeping its ids.

        Records whose id already exists are overwritten. Returns the number of
        records imported. Every entry is validated before any row is written.

        Raises:
            ValueError: no 'queries' list, or an entry with an empty
                description/sql_script or non-object metadata
        """
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        entries = data.get("queries") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            raise ValueError(f"Catalog file {path} has no 'queries' list")

        records = [_catalog_record(position, entry) for position, entry in enumerate(entries)]
        init_db(self.db_path)
        now = _now()

        with get_db(self.db_path) as conn:
            cursor = conn.cursor()
            for record in records:
                cursor.execute(
                    f"""
                    INSERT INTO queries ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        description = excluded.description,
                        sql_script = excluded.sql_script,
                        metadata = excluded.metadata,
                        updated_at = excluded.updated_at
                    """,
                    (record.id, record.description, record.sql_script, json.dumps(record.metadata),
                     record.created_at or now, record.updated_at or now)
                )
            conn.commit()

        logger.log_operation("catalog.import", "success", {"path": str(path), "count": len(records)})
        return len(records)

    def export_json(self, path: str) -> int:
        """Write every stored query to a JSON catalog file. Returns the count."""
        queries = self.load_all()
        data = {
            "version": CATALOG_VERSION,
            "lastUpdated": _now(),
            "queryCount": len(queries),
            "queries": [q.to_catalog_dict() for q in queries]
        }

        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")

        logger.log_operation("catalog.export", "success", {"path": str(path), "count": len(queries)})
        return len(queries)

    def health_check(self) -> bool:
        return health_check(self.db_path)

    def close(self) -> None:
        self.is_loaded = False
        logger.log_operation("catalog.close", "success", {"db_path": self.db_path})

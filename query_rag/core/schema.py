"""
Typed records for the query catalog.
"""

import uuid
from dataclasses import dataclass, field, asdict
from typing import Any, Dict


@dataclass
class QueryRecord:
    id: str
    description: str
    sql_script: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_catalog_dict(self) -> Dict[str, Any]:
        """Shape used by the JSON catalog file."""
        return {
            "id": self.id,
            "description": self.description,
            "sqlScript": self.sql_script,
            "metadata": self.metadata,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at
        }

    @classmethod
    def from_catalog_dict(cls, data: Dict[str, Any]) -> 'QueryRecord':
        return cls(
            id=data.get("id") or str(uuid.uuid4()),
            description=data.get("description", ""),
            sql_script=data.get("sqlScript", data.get("sql_script", "")),
            metadata=data.get("metadata") or {},
            created_at=data.get("createdAt", data.get("created_at", "")),
            updated_at=data.get("updatedAt", data.get("updated_at", ""))
        )

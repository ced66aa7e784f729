"""
Structured logging for index, embedding, catalog and search operations.
"""

import logging
from typing import Any, Dict

from ..core.config import LOG_LEVEL


class StructuredLogger:
    """Structured logger for query-rag operations."""

    def __init__(self, name: str = "query_rag", level: str = None):
        self.logger = logging.getLogger(name)
        level_name = (level or LOG_LEVEL).upper()
        self.logger.setLevel(getattr(logging, level_name, logging.INFO))

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None, level: int = logging.INFO):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        self.logger.log(level, message)

    def log_vector_operation(self, operation: str, record_id: str = None, details: Dict[str, Any] = None, status: str = "success"):
        """Log a vector index operation."""
        log_details = {}
        if record_id is not None:
            log_details["record_id"] = record_id
        if details:
            log_details.update(details)

        # One line per added vector at DEBUG; batches are logged at INFO
        level = logging.DEBUG if operation == "added" else logging.INFO
        self.log_operation(f"vector.{operation}", status, log_details, level)

    def log_embedding_operation(self, operation: str, details: Dict[str, Any] = None, status: str = "success"):
        """Log an embedding model operation."""
        level = logging.ERROR if status == "failed" else logging.INFO
        self.log_operation(f"embedding.{operation}", status, details, level)

    def log_query_operation(self, operation: str, query_id: str = None, description: str = None, status: str = "success"):
        """Log a query catalog operation."""
        details = {}
        if query_id is not None:
            details["query_id"] = query_id
        if description is not None:
            details["description"] = description[:50] + "..." if len(description) > 50 else description

        level = logging.ERROR if status == "failed" else logging.INFO
        self.log_operation(f"query.{operation}", status, details, level)

    def log_search(self, text: str, top_k: int, result_count: int, duration_ms: float = None):
        """Log a natural-language search."""
        details = {
            "text": text[:50] + "..." if len(text) > 50 else text,
            "top_k": top_k,
            "result_count": result_count
        }
        if duration_ms is not None:
            details["duration_ms"] = round(duration_ms, 2)

        self.log_operation("search", "success", details)

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)


# Global logger instance
logger = StructuredLogger()

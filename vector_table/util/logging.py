"""Structured logging utility for the vector table."""

import logging
from typing import Any, Dict

from ..core.config import LOG_LEVEL


class StructuredLogger:
    """Structured logger for store writes and search requests."""

    def __init__(self, name: str = "vector_table", level: str = "INFO"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level, logging.INFO))

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        if status == "failed":
            self.logger.error(message)
        else:
            self.logger.info(message)

    def log_store_operation(self, operation: str, record_id: Any, details: Dict[str, Any] = None, status: str = "success"):
        """Log a record store write."""
        log_details = {"record_id": record_id}
        if details:
            log_details.update(details)

        self.log_operation(f"store.{operation}", status, log_details)

    def log_search(self, strategy: str, start_time: float, end_time: float, details: Dict[str, Any] = None, status: str = "success"):
        """Log a completed search request."""
        duration_ms = round((end_time - start_time) * 1000, 2)
        log_details = {"duration_ms": duration_ms}
        if details:
            log_details.update(details)

        self.log_operation(f"search.{strategy}", status, log_details)

    def log_stage(self, stage: int, dimension: int, candidates: int, retained: int):
        """Log one refinement round of a staged search."""
        details = {
            "stage": stage,
            "dimension": dimension,
            "candidates": candidates,
            "retained": retained,
            "eliminated": candidates - retained,
        }
        # Per-round detail is noisy; keep it at debug level
        self.logger.debug(f"Operation: search.staged.stage, Status: complete, Details: {details}")

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
logger = StructuredLogger(level=LOG_LEVEL)

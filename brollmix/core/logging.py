"""
Logging Configuration - Structured logging with job context
"""
import logging
import json
import sys
from datetime import datetime, timezone
from typing import Optional
from contextvars import ContextVar

# Context variables for job tracking
current_job_id: ContextVar[Optional[str]] = ContextVar('current_job_id', default=None)
current_stage: ContextVar[Optional[str]] = ContextVar('current_stage', default=None)


class StructuredFormatter(logging.Formatter):
    """
    JSON-structured log formatter with job context.
    """
    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add job context if available
        job_id = current_job_id.get()
        stage = current_stage.get()

        if job_id:
            log_data["job_id"] = job_id
        if stage:
            log_data["stage"] = stage

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Add extra fields
        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)

        return json.dumps(log_data)


class JobContextFilter(logging.Filter):
    """Copies the current job id onto every record for the plain formatter."""
    def filter(self, record: logging.LogRecord) -> bool:
        record.job_id = current_job_id.get() or "-"
        return True


def setup_logging(level: str = "INFO", structured: bool = True):
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        structured: Use JSON format (True) or human-readable (False)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # Create console handler
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level.upper()))
    handler.addFilter(JobContextFilter())

    if structured:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            '%(asctime)s | %(levelname)-8s | %(job_id)s | %(name)s | %(message)s'
        ))

    root_logger.addHandler(handler)


class JobContext:
    """
    Context manager for setting job context in logs.

    Usage:
        with JobContext(job_id="abc123", stage="cutting"):
            logger.info("Processing...")  # Will include job_id and stage
    """
    def __init__(self, job_id: Optional[str] = None, stage: Optional[str] = None):
        self.job_id = job_id
        self.stage = stage
        self._tokens = []

    def __enter__(self):
        if self.job_id:
            self._tokens.append((current_job_id, current_job_id.set(self.job_id)))
        if self.stage:
            self._tokens.append((current_stage, current_stage.set(self.stage)))
        return self

    def __exit__(self, *args):
        # Reset to previous values, innermost first
        while self._tokens:
            var, token = self._tokens.pop()
            var.reset(token)

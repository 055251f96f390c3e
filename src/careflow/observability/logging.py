"""Structured JSON logging with workflow context."""
import logging
import sys
from typing import Any, Optional

from pythonjsonlogger.json import JsonFormatter

from ..config import get_settings


class WorkflowContextFilter(logging.Filter):
    """Add workflow context to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "workflow"):
            record.workflow = None
        if not hasattr(record, "node_id"):
            record.node_id = None
        return True


class CustomJsonFormatter(JsonFormatter):
    """JSON formatter with standardized field names."""

    def add_fields(
        self,
        log_record: dict,
        record: logging.LogRecord,
        message_dict: dict,
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name

        if getattr(record, "workflow", None):
            log_record["workflow"] = record.workflow
        if getattr(record, "node_id", None):
            log_record["node_id"] = record.node_id


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging from settings. Call once from an application."""
    settings = get_settings()

    handler = logging.StreamHandler(sys.stdout)
    if settings.log_json:
        formatter: logging.Formatter = CustomJsonFormatter(
            "%(timestamp)s %(level)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    else:
        formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    handler.setFormatter(formatter)
    handler.addFilter(WorkflowContextFilter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level or settings.log_level)


def workflow_context(workflow: Optional[str] = None, node_id: Optional[str] = None, **kwargs: Any) -> dict:
    """
    Build an `extra` dict carrying workflow context for a log call.
    """
    extra = kwargs.copy()
    if workflow:
        extra["workflow"] = workflow
    if node_id:
        extra["node_id"] = node_id
    return extra

"""Shared enums for the URL shortener application.

This module defines all status and state enums used across the codebase.
Using enums instead of string literals provides type safety and prevents typos.
"""

from enum import StrEnum

__all__ = ["HealthStatus", "LinkOperation", "OperationStatus"]


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class LinkOperation(StrEnum):
    """Link store operations, used as metric and log labels."""

    CREATE = "create"
    READ = "read"
    LIST = "list"
    UPDATE = "update"
    DELETE = "delete"


class OperationStatus(StrEnum):
    """Outcome of a link store operation for metrics and logging."""

    SUCCESS = "success"
    NOT_FOUND = "not_found"
    EXHAUSTED = "exhausted"
    ERROR = "error"

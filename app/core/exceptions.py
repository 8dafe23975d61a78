"""
Error taxonomy for the query layer.

Every error carries the HTTP status it maps to and an optional payload that is
merged into the JSON body by the handler registered in app.main.
"""

from typing import Any, Dict, Optional

from fastapi import status


class QueryServiceError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, extra: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.extra = extra or {}

    def to_payload(self) -> Dict[str, Any]:
        return {"message": self.message, **self.extra}


class InputValidationError(QueryServiceError):
    """Malformed or oversized request."""

    status_code = status.HTTP_400_BAD_REQUEST


class ConfigurationMissingError(QueryServiceError):
    """No active database configuration."""

    status_code = status.HTTP_400_BAD_REQUEST


class GenerationError(QueryServiceError):
    """The SQL generator was unreachable or returned something unusable."""

    status_code = status.HTTP_502_BAD_GATEWAY


class SafetyRejectionError(QueryServiceError):
    """Generated SQL did not pass the read-only gate."""

    status_code = status.HTTP_400_BAD_REQUEST


class UnsupportedBackendError(QueryServiceError):
    status_code = status.HTTP_400_BAD_REQUEST


class ExecutionError(QueryServiceError):
    """
    A backend failed to run a statement.

    `elapsed_ms` is the wall-clock time spent before the failure,
    `reason` the underlying driver message.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, reason: str, elapsed_ms: int):
        super().__init__(f"Query execution failed ({elapsed_ms}ms): {reason}")
        self.reason = reason
        self.elapsed_ms = elapsed_ms
        self.generated_sql: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        payload = {"message": f"Database query failed: {self.message}"}
        if self.generated_sql is not None:
            payload["generatedSql"] = self.generated_sql
        return payload

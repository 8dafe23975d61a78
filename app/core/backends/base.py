"""
BACKEND CONNECTIONS - uniform contract over heterogeneous target databases

Every variant exposes the same three operations:
    execute_query(sql)  -> QueryOutcome   (timed, failures become ExecutionError)
    test_connection()   -> bool           (SELECT 1, never raises)
    close()                               (idempotent)

A connection owns at most one SQLAlchemy AsyncEngine (its pool). The engine is
created on first use and released only by close(); nothing is shared between
instances.
"""

import asyncio
import logging
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime, time as clock_time, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from app.core.config import settings
from app.core.exceptions import ExecutionError

logger = logging.getLogger(__name__)


@dataclass
class QueryOutcome:
    rows: List[Dict[str, Any]] = field(default_factory=list)
    rows_affected: int = 0
    execution_time_ms: int = 0


def normalize_value(value: Any) -> Any:
    """
    Map a driver value onto the JSON-friendly set the API returns:
    None, bool, number, str, ISO date/time text or binary as 0x-hex text.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value

    if isinstance(value, Decimal):
        if not value.is_finite():
            return str(value)
        if value == value.to_integral_value():
            return int(value)
        return float(value)

    if isinstance(value, (datetime, date, clock_time)):
        return value.isoformat()

    if isinstance(value, timedelta):
        return str(value)

    if isinstance(value, (bytes, bytearray, memoryview)):
        return "0x" + bytes(value).hex()

    if isinstance(value, uuid.UUID):
        return str(value)

    return str(value)


def normalize_row(row) -> Dict[str, Any]:
    # Keep the column order the cursor reported
    return {str(column): normalize_value(value) for column, value in row.items()}


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


class DatabaseConnection(ABC):
    """Base class for one target database handle."""

    backend_type: str = ""

    # information_schema query listing table, column, type, nullable
    schema_query: str = ""

    def __init__(
        self,
        connection_string: str,
        connect_timeout: Optional[float] = None,
        query_timeout: Optional[float] = None,
    ):
        self.connection_string = connection_string
        self.connect_timeout = (
            connect_timeout
            if connect_timeout is not None
            else settings.BACKEND_CONNECT_TIMEOUT_SECONDS
        )
        self.query_timeout = (
            query_timeout
            if query_timeout is not None
            else settings.BACKEND_QUERY_TIMEOUT_SECONDS
        )
        self._engine: Optional[AsyncEngine] = None

    @abstractmethod
    def _build_engine(self) -> AsyncEngine:
        """Create the pooled engine for this backend. Must not connect."""

    def _get_engine(self) -> AsyncEngine:
        if self._engine is None:
            self._engine = self._build_engine()
        return self._engine

    async def _run(self, query: str):
        engine = self._get_engine()
        async with engine.connect() as conn:
            # Sent verbatim, no bind-parameter parsing of the generated text
            result = await conn.exec_driver_sql(query)
            rows = []
            if result.returns_rows:
                rows = [normalize_row(row) for row in result.mappings()]
            rows_affected = result.rowcount if result.rowcount >= 0 else len(rows)
            return rows, rows_affected

    async def execute_query(self, query: str) -> QueryOutcome:
        started = time.perf_counter()
        try:
            rows, rows_affected = await asyncio.wait_for(
                self._run(query), timeout=self.query_timeout
            )
        except asyncio.TimeoutError as error:
            raise ExecutionError(
                f"Query timed out after {self.query_timeout:g}s", _elapsed_ms(started)
            ) from error
        except Exception as error:
            reason = str(error) or error.__class__.__name__
            raise ExecutionError(reason, _elapsed_ms(started)) from error

        return QueryOutcome(
            rows=rows,
            rows_affected=rows_affected,
            execution_time_ms=_elapsed_ms(started),
        )

    async def test_connection(self) -> bool:
        try:
            await self.execute_query("SELECT 1")
            return True
        except Exception as error:
            logger.warning(f"{self.backend_type} connection test failed: {error}")
            return False

    async def close(self) -> None:
        engine, self._engine = self._engine, None
        if engine is None:
            return
        try:
            await engine.dispose()
        except Exception as error:
            logger.warning(f"Failed to dispose {self.backend_type} pool: {error}")

"""Orchestration layer for one natural-language query.

Flow:
1. Check the request text
2. Load the active database config
3. Fetch schema context (best effort)
4. Generate SQL
5. Validate SQL safety
6. Execute the read-only query
7. Record the attempt in history

Every attempt that reaches generation is written to history exactly once.
Handles opened here are closed before returning, whatever the outcome.
"""

import logging
import time

from sqlalchemy.ext.asyncio import AsyncSession

from app.ai_feature.generator import SQLGenerator
from app.ai_feature.schema_context import fetch_schema_context
from app.core import schemas, storage
from app.core.backends.factory import ConnectionFactory
from app.core.config import settings
from app.core.exceptions import (
    ConfigurationMissingError,
    ExecutionError,
    GenerationError,
    InputValidationError,
    SafetyRejectionError,
)
from app.core.safety import is_safe_sql

logger = logging.getLogger(__name__)

SECURITY_VALIDATION_FAILED = "Generated query failed security validation"


def validate_query_text(natural_query) -> str:
    if not isinstance(natural_query, str) or len(natural_query) == 0:
        raise InputValidationError("Query must be a non-empty string")

    if len(natural_query) > settings.MAX_QUERY_LENGTH:
        raise InputValidationError(
            f"Query must be at most {settings.MAX_QUERY_LENGTH} characters"
        )
    return natural_query


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


async def execute_natural_language_query(
    natural_query: str,
    db: AsyncSession,
    generator: SQLGenerator,
    create_connection: ConnectionFactory,
) -> schemas.QueryExecutionResponse:
    natural_query = validate_query_text(natural_query)

    db_config = await storage.get_active_config(db)
    if db_config is None:
        raise ConfigurationMissingError(
            "No active database configuration found. "
            "Please configure a database connection first."
        )

    started = time.perf_counter()

    schema_text = ""
    if settings.INCLUDE_SCHEMA_CONTEXT:
        schema_text = await fetch_schema_context(
            db_config.backend_type, db_config.connection_string, create_connection
        )

    try:
        generated = await generator.generate(
            natural_query, db_config.backend_type, schema_text
        )
    except GenerationError as error:
        await storage.create_history_entry(
            db,
            natural_query=natural_query,
            generated_sql="",
            status=schemas.QueryStatus.ERROR,
            error_message=error.message,
            execution_time=_elapsed_ms(started),
        )
        raise

    if not is_safe_sql(generated.sql):
        logger.warning(f"Rejected generated SQL: {generated.sql!r}")
        await storage.create_history_entry(
            db,
            natural_query=natural_query,
            generated_sql=generated.sql,
            status=schemas.QueryStatus.ERROR,
            error_message=SECURITY_VALIDATION_FAILED,
            execution_time=_elapsed_ms(started),
        )
        raise SafetyRejectionError(
            f"{SECURITY_VALIDATION_FAILED}. Only SELECT statements are allowed."
        )

    connection = create_connection(db_config.backend_type, db_config.connection_string)
    try:
        outcome = await connection.execute_query(generated.sql)
    except ExecutionError as error:
        logger.error(f"Query execution failed: {error.reason}")
        await storage.create_history_entry(
            db,
            natural_query=natural_query,
            generated_sql=generated.sql,
            status=schemas.QueryStatus.ERROR,
            error_message=error.message,
            execution_time=error.elapsed_ms,
        )
        error.generated_sql = generated.sql
        raise
    finally:
        await connection.close()

    row_count = len(outcome.rows)
    await storage.create_history_entry(
        db,
        natural_query=natural_query,
        generated_sql=generated.sql,
        status=schemas.QueryStatus.SUCCESS,
        execution_time=outcome.execution_time_ms,
        row_count=row_count,
        results=outcome.rows,
    )

    return schemas.QueryExecutionResponse(
        natural_query=natural_query,
        generated_sql=generated.sql,
        results=outcome.rows,
        execution_time=outcome.execution_time_ms,
        row_count=row_count,
        status=schemas.QueryStatus.SUCCESS,
        explanation=generated.explanation,
        confidence=generated.confidence,
        warnings=generated.warnings,
    )

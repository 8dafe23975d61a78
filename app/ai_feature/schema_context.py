"""
Best-effort schema description handed to the SQL generator.

Output looks like:
    customers: id (integer), email (text, nullable)
    orders: id (integer), total (numeric)
"""

import logging
from typing import Any, Dict, List

from app.core.backends.factory import ConnectionFactory

logger = logging.getLogger(__name__)


def _column(row: Dict[str, Any], name: str) -> Any:
    # Postgres reports lower case keys, SQL Server upper case
    if name in row:
        return row[name]
    return row.get(name.upper())


def fold_schema_rows(rows: List[Dict[str, Any]]) -> str:
    tables: Dict[str, List[str]] = {}
    for row in rows:
        table_name = _column(row, "table_name")
        column_name = _column(row, "column_name")
        data_type = _column(row, "data_type")
        nullable = _column(row, "is_nullable") == "YES"

        description = f"{column_name} ({data_type}{', nullable' if nullable else ''})"
        tables.setdefault(table_name, []).append(description)

    return "\n".join(
        f"{table}: {', '.join(columns)}" for table, columns in tables.items()
    )


async def fetch_schema_context(
    backend_type: str, connection_string: str, create_connection: ConnectionFactory
) -> str:
    """Never raises; any failure gives an empty context."""
    connection = None
    try:
        connection = create_connection(backend_type, connection_string)
        outcome = await connection.execute_query(connection.schema_query)
        return fold_schema_rows(outcome.rows)
    except Exception as error:
        logger.warning(f"Could not fetch schema, continuing without it: {error}")
        return ""
    finally:
        if connection is not None:
            await connection.close()

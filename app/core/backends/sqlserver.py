"""
SQL Server backend over aioodbc.

Accepts ADO-style connection strings:
    Server=host,1433;Database=sales;User Id=reader;Password=secret
    Server=host;Database=sales;Integrated Security=true
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from app.core.backends.base import DatabaseConnection
from app.core.config import settings
from app.core.schemas import BackendType

logger = logging.getLogger(__name__)

TRUE_VALUES = {"true", "yes", "sspi", "1"}


@dataclass
class SQLServerTarget:
    server: str = "localhost"
    database: str = ""
    user: Optional[str] = None
    password: Optional[str] = None
    integrated_security: bool = False
    trust_server_certificate: Optional[bool] = None


def parse_connection_string(connection_string: str) -> SQLServerTarget:
    """Split `key=value;...` pairs; keys are matched case-insensitively."""
    values: Dict[str, str] = {}
    for part in connection_string.split(";"):
        key, sep, value = part.partition("=")
        if not sep:
            continue
        values[key.strip().lower()] = value.strip()

    target = SQLServerTarget(
        server=values.get("server") or "localhost",
        database=values.get("database", ""),
        user=values.get("user id") or None,
        password=values.get("password") or None,
        integrated_security=values.get("integrated security", "").lower()
        in TRUE_VALUES,
    )

    if "trustservercertificate" in values:
        target.trust_server_certificate = (
            values["trustservercertificate"].lower() in TRUE_VALUES
        )

    # Integrated auth wins over explicit credentials
    if target.integrated_security:
        target.user = None
        target.password = None

    return target


def _odbc_value(value: str) -> str:
    if any(char in value for char in ";{}") or value != value.strip():
        return "{" + value.replace("}", "}}") + "}"
    return value


def build_odbc_connect_string(
    target: SQLServerTarget, driver: str, trust_server_certificate: bool
) -> str:
    parts = [
        f"DRIVER={{{driver}}}",
        f"SERVER={_odbc_value(target.server)}",
    ]
    if target.database:
        parts.append(f"DATABASE={_odbc_value(target.database)}")

    if target.integrated_security:
        parts.append("Trusted_Connection=yes")
    else:
        if target.user:
            parts.append(f"UID={_odbc_value(target.user)}")
        if target.password:
            parts.append(f"PWD={_odbc_value(target.password)}")

    parts.append("Encrypt=yes")
    parts.append(f"TrustServerCertificate={'yes' if trust_server_certificate else 'no'}")
    return ";".join(parts)


class SQLServerConnection(DatabaseConnection):
    backend_type = BackendType.SQLSERVER.value

    schema_query = (
        "SELECT TABLE_NAME, COLUMN_NAME, DATA_TYPE, IS_NULLABLE "
        "FROM INFORMATION_SCHEMA.COLUMNS "
        "WHERE TABLE_SCHEMA = 'dbo' "
        "ORDER BY TABLE_NAME, ORDINAL_POSITION"
    )

    def __init__(self, connection_string: str, **kwargs):
        super().__init__(connection_string, **kwargs)
        self.target = parse_connection_string(connection_string)

    @property
    def trust_server_certificate(self) -> bool:
        if self.target.trust_server_certificate is not None:
            return self.target.trust_server_certificate
        return settings.MSSQL_TRUST_SERVER_CERTIFICATE

    def odbc_connect_string(self) -> str:
        return build_odbc_connect_string(
            self.target, settings.MSSQL_ODBC_DRIVER, self.trust_server_certificate
        )

    def _build_engine(self) -> AsyncEngine:
        if self.trust_server_certificate:
            logger.warning(
                f"TrustServerCertificate is enabled for {self.target.server}: "
                "the server certificate will not be validated"
            )

        url = URL.create("mssql+aioodbc", query={"odbc_connect": self.odbc_connect_string()})
        return create_async_engine(
            url,
            pool_timeout=self.connect_timeout,
            # pyodbc login timeout, whole seconds
            connect_args={"timeout": int(self.connect_timeout)},
        )

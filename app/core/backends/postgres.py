import logging
from typing import Any, Dict, Tuple

from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from app.core.backends.base import DatabaseConnection
from app.core.config import settings
from app.core.schemas import BackendType

logger = logging.getLogger(__name__)


def asyncpg_url(connection_string: str) -> Tuple[URL, Dict[str, Any]]:
    """
    Point a libpq-style URI at the asyncpg driver.
    `sslmode` is not an asyncpg keyword, it travels as the `ssl` connect argument.
    """
    url = make_url(connection_string)
    if url.drivername in ("postgres", "postgresql"):
        url = url.set(drivername="postgresql+asyncpg")

    connect_args: Dict[str, Any] = {}
    sslmode = url.query.get("sslmode")
    if sslmode:
        url = url.difference_update_query(["sslmode"])
        connect_args["ssl"] = sslmode
    return url, connect_args


class PostgresConnection(DatabaseConnection):
    backend_type = BackendType.POSTGRESQL.value

    schema_query = (
        "SELECT table_name, column_name, data_type, is_nullable "
        "FROM information_schema.columns "
        "WHERE table_schema = 'public' "
        "ORDER BY table_name, ordinal_position"
    )

    def __init__(self, connection_string: str, **kwargs):
        super().__init__(connection_string, **kwargs)
        self.pool_max = settings.POSTGRES_POOL_MAX
        self.pool_idle_seconds = settings.POSTGRES_POOL_IDLE_SECONDS

    def _build_engine(self) -> AsyncEngine:
        url, ssl_args = asyncpg_url(self.connection_string)
        return create_async_engine(
            url,
            pool_size=self.pool_max,
            max_overflow=0,
            # Age-based recycling, the closest QueuePool offers to an idle timeout
            pool_recycle=self.pool_idle_seconds,
            pool_timeout=self.connect_timeout,
            connect_args={
                "timeout": self.connect_timeout,
                "command_timeout": self.query_timeout,
                **ssl_args,
            },
        )

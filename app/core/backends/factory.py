from typing import Callable, Dict, Type, Union

from app.core.backends.base import DatabaseConnection
from app.core.backends.postgres import PostgresConnection
from app.core.backends.sqlserver import SQLServerConnection
from app.core.exceptions import UnsupportedBackendError
from app.core.schemas import BackendType

BACKENDS: Dict[str, Type[DatabaseConnection]] = {
    BackendType.SQLSERVER.value: SQLServerConnection,
    BackendType.POSTGRESQL.value: PostgresConnection,
}

ConnectionFactory = Callable[[Union[str, BackendType], str], DatabaseConnection]


def create_connection(
    backend_type: Union[str, BackendType], connection_string: str
) -> DatabaseConnection:
    """Build a fresh, unconnected handle for the given backend tag."""
    tag = backend_type.value if isinstance(backend_type, BackendType) else str(backend_type)
    connection_class = BACKENDS.get(tag.strip().lower())

    if connection_class is None:
        raise UnsupportedBackendError(f"Unsupported database type: {tag}")

    return connection_class(connection_string)


# Dependency, overridden in tests
def get_connection_factory() -> ConnectionFactory:
    return create_connection

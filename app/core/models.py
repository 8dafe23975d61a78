from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    TIMESTAMP,
    Text,
    JSON,
)

from app.core.database import Base


def utc_now():
    return datetime.now(timezone.utc)


# =========================
# Database configuration (query target)
# =========================
class DatabaseConfig(Base):
    """
    A target database the natural-language queries run against.
    At most one row is active at a time.
    """

    __tablename__ = "database_configs"

    id = Column(Integer, primary_key=True, autoincrement=True)

    name = Column(String, nullable=False)
    backend_type = Column(String(32), nullable=False)  # sqlserver/postgresql
    connection_string = Column(Text, nullable=False)
    is_active = Column(Boolean, nullable=False, default=False, index=True)

    created_at = Column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utc_now,
    )


# =========================
# Query history (one row per attempt)
# =========================
class QueryHistory(Base):
    """
    Insert-only log of every execution attempt, failed ones included.
    """

    __tablename__ = "query_history"

    id = Column(Integer, primary_key=True, autoincrement=True)

    natural_query = Column(Text, nullable=False)
    generated_sql = Column(Text, nullable=False)

    status = Column(String(16), nullable=False)  # success/error
    error_message = Column(Text, nullable=True)

    execution_time = Column(Integer, nullable=True)  # milliseconds
    row_count = Column(Integer, nullable=True)

    # full normalized result set for successful attempts
    results = Column(JSON, nullable=True)

    # set in python so ordering keeps sub-second resolution
    created_at = Column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utc_now,
        index=True,
    )

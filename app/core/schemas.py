from datetime import datetime
from typing import Optional, List, Dict, Any
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# =========================
# Enums
# =========================
class BackendType(str, Enum):
    SQLSERVER = "sqlserver"
    POSTGRESQL = "postgresql"


class QueryStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


# The API speaks camelCase, python code uses snake_case
class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


# =========================
# DATABASE CONFIG
# =========================
class DatabaseConfigBase(CamelModel):
    name: str = Field(min_length=1, max_length=120)
    backend_type: BackendType
    connection_string: str = Field(min_length=1)
    is_active: bool = False

    @field_validator("backend_type", mode="before")
    @classmethod
    def lower_backend_type(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class DatabaseConfigCreate(DatabaseConfigBase):
    pass


# backend_type is fixed once a config exists
class DatabaseConfigUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    connection_string: Optional[str] = Field(default=None, min_length=1)
    is_active: Optional[bool] = None

    @field_validator("name", "connection_string", "is_active")
    @classmethod
    def reject_null(cls, value, info):
        # Omitted fields are left alone, an explicit null is an error
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value


class DatabaseConfigResponse(DatabaseConfigBase):
    id: int
    created_at: datetime


class ActiveConfigResponse(CamelModel):
    active_config: Optional[DatabaseConfigResponse] = None


class ConnectionTestRequest(CamelModel):
    # Plain string on purpose: unknown tags are reported by the connection factory
    backend_type: str = Field(min_length=1)
    connection_string: str = Field(min_length=1)


class ConnectionTestResponse(BaseModel):
    success: bool
    message: str


# =========================
# QUERIES
# =========================
class NaturalLanguageQuery(CamelModel):
    query: str


class SQLGenerationResult(CamelModel):
    sql: str = ""
    explanation: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    warnings: List[str] = []


class QueryExecutionResponse(CamelModel):
    natural_query: str
    generated_sql: str
    results: List[Dict[str, Any]]
    execution_time: int
    row_count: int
    status: QueryStatus
    error_message: Optional[str] = None
    explanation: Optional[str] = None
    confidence: Optional[float] = None
    warnings: List[str] = []


class QueryHistoryResponse(CamelModel):
    id: int
    natural_query: str
    generated_sql: str
    status: QueryStatus
    error_message: Optional[str] = None
    execution_time: Optional[int] = None
    row_count: Optional[int] = None
    results: Optional[List[Dict[str, Any]]] = None
    created_at: datetime


class MessageResponse(BaseModel):
    message: str

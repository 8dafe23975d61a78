import logging
from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.ai_feature import service
from app.ai_feature.generator import SQLGenerator, get_sql_generator
from app.core import schemas, storage
from app.core.backends.factory import ConnectionFactory, get_connection_factory
from app.core.config import settings
from app.core.database import get_db

router = APIRouter(prefix="/api/queries", tags=["Queries"])

db_dep = Annotated[AsyncSession, Depends(get_db)]
generator_dep = Annotated[SQLGenerator, Depends(get_sql_generator)]
factory_dep = Annotated[ConnectionFactory, Depends(get_connection_factory)]


@router.post(
    "/execute",
    response_model=schemas.QueryExecutionResponse,
    status_code=status.HTTP_200_OK,
)
async def execute_query(
    payload: schemas.NaturalLanguageQuery,
    db: db_dep,
    generator: generator_dep,
    create_connection: factory_dep,
):
    """
    Turn a plain-language question into SQL, check it and run it against the
    active database. Errors are rendered by the QueryServiceError handler.
    """
    return await service.execute_natural_language_query(
        payload.query, db, generator, create_connection
    )


@router.get("/history", response_model=List[schemas.QueryHistoryResponse])
async def get_history(
    db: db_dep,
    limit: Annotated[int, Query(ge=1, le=1000)] = settings.HISTORY_DEFAULT_LIMIT,
):
    return await storage.list_history(db, limit)


@router.delete("/history", response_model=schemas.MessageResponse)
async def clear_history(db: db_dep):
    try:
        await storage.clear_history(db)
    except Exception as error:
        await db.rollback()
        logging.error(f"Failed to clear query history: {error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to clear query history",
        )
    return {"message": "Query history cleared successfully"}

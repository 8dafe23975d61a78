import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import schemas, storage
from app.core.backends.factory import ConnectionFactory, get_connection_factory
from app.core.database import get_db
from app.core.exceptions import UnsupportedBackendError

router = APIRouter(prefix="/api/database", tags=["Database"])

db_dep = Annotated[AsyncSession, Depends(get_db)]
factory_dep = Annotated[ConnectionFactory, Depends(get_connection_factory)]


@router.get("/configs", response_model=schemas.ActiveConfigResponse)
async def get_active_config(db: db_dep):
    active_config = await storage.get_active_config(db)
    return {"active_config": active_config}


@router.post(
    "/configs",
    response_model=schemas.DatabaseConfigResponse,
    status_code=status.HTTP_200_OK,
)
async def create_config(config: schemas.DatabaseConfigCreate, db: db_dep):
    try:
        return await storage.create_config(db, config)
    except Exception as error:
        await db.rollback()
        logging.error(f"Failed to save database configuration: {error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save database configuration",
        )


@router.get("/configs/{config_id}", response_model=schemas.DatabaseConfigResponse)
async def get_config(config_id: int, db: db_dep):
    db_config = await storage.get_config(db, config_id)
    if not db_config:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Database configuration not found")
    return db_config


@router.patch("/configs/{config_id}", response_model=schemas.DatabaseConfigResponse)
async def update_config(
    config_id: int, changes: schemas.DatabaseConfigUpdate, db: db_dep
):
    try:
        db_config = await storage.update_config(db, config_id, changes)
    except Exception as error:
        await db.rollback()
        logging.error(f"Failed to update database configuration {config_id}: {error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update database configuration",
        )

    if not db_config:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Database configuration not found")
    return db_config


@router.post("/test", response_model=schemas.ConnectionTestResponse)
async def test_connection(
    payload: schemas.ConnectionTestRequest, create_connection: factory_dep
):
    """Try a connection without touching the stored configs."""
    try:
        connection = create_connection(payload.backend_type, payload.connection_string)
    except UnsupportedBackendError as error:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": error.message},
        )

    try:
        is_connected = await connection.test_connection()
    finally:
        await connection.close()

    if not is_connected:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": "Database connection failed"},
        )
    return {"success": True, "message": "Database connection successful"}

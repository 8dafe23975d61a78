"""
Config and history store on top of the service's own database.

Writes commit immediately; callers roll back on failure.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import delete, desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import models, schemas


# =========================
# Database configs
# =========================
async def get_active_config(db: AsyncSession) -> Optional[models.DatabaseConfig]:
    query = (
        select(models.DatabaseConfig)
        .where(models.DatabaseConfig.is_active.is_(True))
        .order_by(desc(models.DatabaseConfig.id))
    )
    result = await db.execute(query)
    return result.scalars().first()


async def get_config(db: AsyncSession, config_id: int) -> Optional[models.DatabaseConfig]:
    query = select(models.DatabaseConfig).where(models.DatabaseConfig.id == config_id)
    result = await db.execute(query)
    return result.scalars().first()


async def count_configs(db: AsyncSession) -> int:
    result = await db.execute(select(func.count(models.DatabaseConfig.id)))
    return result.scalar_one()


async def _deactivate_others(db: AsyncSession, keep_id: Optional[int] = None):
    query = update(models.DatabaseConfig).values(is_active=False)
    if keep_id is not None:
        query = query.where(models.DatabaseConfig.id != keep_id)
    await db.execute(query)


async def create_config(
    db: AsyncSession, config: schemas.DatabaseConfigCreate
) -> models.DatabaseConfig:
    # Activating one config switches every other one off in the same transaction
    if config.is_active:
        await _deactivate_others(db)

    new_config = models.DatabaseConfig(
        name=config.name,
        backend_type=config.backend_type.value,
        connection_string=config.connection_string,
        is_active=config.is_active,
    )
    db.add(new_config)
    await db.commit()
    await db.refresh(new_config)
    return new_config


async def update_config(
    db: AsyncSession, config_id: int, changes: schemas.DatabaseConfigUpdate
) -> Optional[models.DatabaseConfig]:
    config = await get_config(db, config_id)
    if config is None:
        return None

    changes_dict = changes.model_dump(exclude_unset=True)

    if changes_dict.get("is_active"):
        await _deactivate_others(db, keep_id=config_id)

    for key, value in changes_dict.items():
        setattr(config, key, value)

    db.add(config)
    await db.commit()
    await db.refresh(config)
    return config


# =========================
# Query history
# =========================
async def list_history(db: AsyncSession, limit: int = 50) -> List[models.QueryHistory]:
    query = (
        select(models.QueryHistory)
        .order_by(desc(models.QueryHistory.created_at), desc(models.QueryHistory.id))
        .limit(limit)
    )
    result = await db.execute(query)
    return list(result.scalars().all())


async def create_history_entry(
    db: AsyncSession,
    *,
    natural_query: str,
    generated_sql: str,
    status: schemas.QueryStatus,
    execution_time: int,
    row_count: int = 0,
    error_message: Optional[str] = None,
    results: Optional[List[Dict[str, Any]]] = None,
) -> models.QueryHistory:
    entry = models.QueryHistory(
        natural_query=natural_query,
        generated_sql=generated_sql,
        status=status.value,
        error_message=error_message,
        execution_time=execution_time,
        row_count=row_count,
        results=results,
    )
    db.add(entry)
    await db.commit()
    await db.refresh(entry)
    return entry


async def clear_history(db: AsyncSession) -> None:
    await db.execute(delete(models.QueryHistory))
    await db.commit()


async def seed_default_config(db: AsyncSession, connection_string: str):
    """Create an active Postgres target on an empty store."""
    if await count_configs(db) > 0:
        return None

    return await create_config(
        db,
        schemas.DatabaseConfigCreate(
            name="Default PostgreSQL",
            backend_type=schemas.BackendType.POSTGRESQL,
            connection_string=connection_string,
            is_active=True,
        ),
    )

import asyncio
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import alembic.config
import alembic.command
from app.core import storage
from app.core.config import settings
from app.core.database import engine, AsyncSessionLocal
from app.core.exceptions import QueryServiceError
from app.api.router import api_router

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


def run_migrations():
    """Sync function to run migrations"""
    alembic_cfg = alembic.config.Config("alembic.ini")
    alembic.command.upgrade(alembic_cfg, "head")


async def seed_default_target():
    if not settings.DEFAULT_TARGET_DATABASE_URL:
        return
    async with AsyncSessionLocal() as session:
        created = await storage.seed_default_config(
            session, settings.DEFAULT_TARGET_DATABASE_URL
        )
        if created:
            logger.info(f"Seeded default database configuration {created.id}")


# Close the engine once everything is done and close all the sessions
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Apply any pending migrations automatically when the app starts
    try:
        await asyncio.to_thread(run_migrations)
        logger.info("Migrations applied successfully (or already up-to-date)")
        await seed_default_target()
    except Exception as e:
        logger.error(f"Startup error: {e}")

    yield
    await engine.dispose()


app = FastAPI(title="Natural Language SQL Explorer API", lifespan=lifespan)

# Include the master router containing all our endpoints
app.include_router(api_router)


@app.exception_handler(QueryServiceError)
async def query_service_error_handler(request: Request, exc: QueryServiceError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "message": "Invalid request data",
            "errors": jsonable_encoder(exc.errors()),
        },
    )


@app.get("/")
async def root():
    return {"message": "Welcome to the Natural Language SQL Explorer API"}

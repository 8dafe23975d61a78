from fastapi import APIRouter
from app.api.endpoints import database, queries

api_router = APIRouter()

# Combine all sub-routers into one
api_router.include_router(queries.router)
api_router.include_router(database.router)

"""API router aggregator."""
from fastapi import APIRouter
from noter.api.routers import health, note, user

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(user.router)
api_router.include_router(note.router)

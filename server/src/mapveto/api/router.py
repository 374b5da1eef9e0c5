"""Main API router."""

from fastapi import APIRouter

from mapveto.api.lobbies import map_pool_router
from mapveto.api.lobbies import router as lobbies_router

api_router = APIRouter()
api_router.include_router(lobbies_router)
api_router.include_router(map_pool_router)

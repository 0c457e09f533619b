from fastapi import APIRouter

from src.hierarchies.router import router as hierarchies_router
from src.search.router import router as search_router
from src.ma_updates.router import router as ma_updates_router

api_router = APIRouter()

# Fixed paths (/fuzzy-entity-search, /ma-trackable) must register before /hierarchies/{hierarchy_id}
api_router.include_router(search_router)
api_router.include_router(ma_updates_router)
api_router.include_router(hierarchies_router)

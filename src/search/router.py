from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.database import get_db
from src.search.schemas import HierarchyMatchResponse
from src.search.service import EntitySearchService

router = APIRouter(prefix="/hierarchies", tags=["search"])


@router.get("/fuzzy-entity-search", response_model=List[HierarchyMatchResponse])
async def fuzzy_entity_search(
    entity: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    if not entity:
        raise HTTPException(status_code=400, detail="Entity query parameter is required")
    service = EntitySearchService(db)
    results = await service.search_entity(entity)
    if not results:
        raise HTTPException(status_code=404, detail="No hierarchies found containing that entity.")
    return results

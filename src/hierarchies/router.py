from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.database import get_db
from src.hierarchies.schemas import (
    HierarchyCreate,
    HierarchyDetailResponse,
    HierarchyGroupResponse,
    HierarchyMetadataResponse,
    HierarchyVersionCreate,
    HierarchyVersionResponse,
)
from src.hierarchies.service import HierarchyService

router = APIRouter(prefix="/hierarchies", tags=["hierarchies"])


@router.get("/check-project", response_model=HierarchyMetadataResponse)
async def check_project(
    company: Optional[str] = Query(None),
    project: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    if not company or not project:
        raise HTTPException(status_code=400, detail="Company and project query parameters are required")
    service = HierarchyService(db)
    result = await service.find_latest_by_name(company, project, location)
    if not result:
        raise HTTPException(status_code=404, detail="No project found with that name.")
    return result


@router.get("/check-company", response_model=List[HierarchyMetadataResponse])
async def check_company(
    company: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    if not company:
        raise HTTPException(status_code=400, detail="Company query parameter is required")
    service = HierarchyService(db)
    results = await service.find_active_by_company(company)
    if not results:
        raise HTTPException(status_code=404, detail="No hierarchies found for that company.")
    return results


@router.get("/grouped", response_model=List[HierarchyGroupResponse])
async def list_grouped(db: AsyncSession = Depends(get_db)):
    service = HierarchyService(db)
    return await service.group_all()


@router.post("", response_model=HierarchyVersionResponse, status_code=201)
async def create_hierarchy(
    payload: HierarchyCreate,
    db: AsyncSession = Depends(get_db),
):
    service = HierarchyService(db)
    user_input = payload.user_input.model_dump() if payload.user_input else None
    return await service.create_initial(
        user_input, payload.project_name, payload.data, force_new=payload.create_new
    )


@router.post("/{hierarchy_id}/versions", response_model=HierarchyVersionResponse, status_code=201)
async def create_version(
    hierarchy_id: UUID,
    payload: HierarchyVersionCreate,
    db: AsyncSession = Depends(get_db),
):
    service = HierarchyService(db)
    return await service.create_version(hierarchy_id, payload.data, payload.user_feedback)


@router.patch("/{hierarchy_id}/approve", response_model=HierarchyMetadataResponse)
async def approve_hierarchy(
    hierarchy_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    service = HierarchyService(db)
    return await service.approve(hierarchy_id)


@router.get("/{hierarchy_id}", response_model=HierarchyDetailResponse)
async def get_hierarchy(
    hierarchy_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    service = HierarchyService(db)
    return await service.get_hierarchy(hierarchy_id)

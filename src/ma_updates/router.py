from typing import List
from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.database import get_db
from src.ma_updates.schemas import (
    MAStatusResponse,
    MATrackableResponse,
    MAUpdateRequest,
    MAUpdateResponse,
)
from src.ma_updates.service import MAUpdateService

router = APIRouter(prefix="/hierarchies", tags=["ma-updates"])


@router.get("/ma-trackable", response_model=List[MATrackableResponse])
async def list_trackable(db: AsyncSession = Depends(get_db)):
    service = MAUpdateService(db)
    return await service.list_trackable()


@router.patch("/{hierarchy_id}/ma-update", response_model=MAUpdateResponse)
async def apply_ma_update(
    hierarchy_id: UUID,
    payload: MAUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    service = MAUpdateService(db)
    return await service.apply_update(hierarchy_id, payload.new_ma_data)


@router.patch("/{hierarchy_id}/ma-flag", response_model=MAStatusResponse)
async def flag_ma_update(
    hierarchy_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    service = MAUpdateService(db)
    return await service.flag_update(hierarchy_id)


@router.get("/{hierarchy_id}/ma-status", response_model=MAStatusResponse)
async def get_ma_status(
    hierarchy_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    service = MAUpdateService(db)
    return await service.get_status(hierarchy_id)

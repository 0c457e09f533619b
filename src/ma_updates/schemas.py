from datetime import datetime
from uuid import UUID
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field

from src.hierarchies.schemas import HierarchyDataResponse


class MAUpdateRequest(BaseModel):
    new_ma_data: Any = Field(None, alias="newMAData")

    model_config = ConfigDict(populate_by_name=True)


class MATrackableResponse(BaseModel):
    id: UUID
    company: Optional[str] = None
    has_ma_update: bool
    last_ma_checked: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class MAStatusResponse(BaseModel):
    has_ma_update: bool
    last_ma_checked: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class MAUpdateResponse(BaseModel):
    success: bool = True
    status: MAStatusResponse
    updated: HierarchyDataResponse

    model_config = ConfigDict(from_attributes=True)

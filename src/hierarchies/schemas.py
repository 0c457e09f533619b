from datetime import datetime
from uuid import UUID
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from src.hierarchies.models import HierarchyStatus


class UserInput(BaseModel):
    company: Optional[str] = None
    location: Optional[str] = None

    # Everything else in the identity payload is carried through untouched
    model_config = ConfigDict(extra="allow")


class HierarchyCreate(BaseModel):
    user_input: Optional[UserInput] = Field(None, alias="userInput")
    project_name: Optional[str] = Field(None, alias="projectName")
    data: Any = None
    create_new: bool = Field(False, alias="createNew")

    model_config = ConfigDict(populate_by_name=True)


class HierarchyVersionCreate(BaseModel):
    data: Any = None
    user_feedback: Optional[str] = Field(None, alias="userFeedback")

    model_config = ConfigDict(populate_by_name=True)


class HierarchyMetadataResponse(BaseModel):
    id: UUID
    user_input: Dict[str, Any]
    project_name: str
    version: str
    version_number: int
    status: HierarchyStatus
    is_active_draft: bool
    root_hierarchy_id: Optional[UUID] = None
    user_feedback: Optional[Dict[str, Any]] = None
    has_ma_update: bool
    last_ma_checked: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class HierarchyDataResponse(BaseModel):
    id: UUID
    metadata_id: UUID
    data: Any
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class HierarchyVersionResponse(BaseModel):
    """A freshly created version: its metadata and first data snapshot."""
    metadata: HierarchyMetadataResponse
    data: HierarchyDataResponse

    model_config = ConfigDict(from_attributes=True)


class HierarchyDetailResponse(BaseModel):
    metadata: HierarchyMetadataResponse
    data: List[HierarchyDataResponse]

    model_config = ConfigDict(from_attributes=True)


class HierarchyGroupResponse(BaseModel):
    company: Optional[str]
    location: str
    project_name: str
    versions: List[HierarchyMetadataResponse]

    model_config = ConfigDict(from_attributes=True)

from typing import Any, Dict, List
from pydantic import BaseModel, ConfigDict, Field

from src.hierarchies.schemas import HierarchyMetadataResponse


class EntityMatchResponse(BaseModel):
    entity: Dict[str, Any]
    score: float = Field(..., ge=0, le=1, description="Normalized distance, 0 = exact match")

    model_config = ConfigDict(from_attributes=True)


class HierarchyMatchResponse(BaseModel):
    metadata: HierarchyMetadataResponse
    matches: List[EntityMatchResponse]

    model_config = ConfigDict(from_attributes=True)

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.hierarchies.models import HierarchyMetadata
from src.hierarchies.repository import HierarchyRepository
from src.search.similarity import Similarity, default_similarity

logger = logging.getLogger(__name__)


@dataclass
class EntityMatch:
    entity: Dict[str, Any]
    score: float


@dataclass
class HierarchyMatch:
    metadata: HierarchyMetadata
    matches: List[EntityMatch]


class EntitySearchService:
    def __init__(
        self,
        db: Optional[AsyncSession],
        similarity: Similarity = default_similarity,
        threshold: Optional[float] = None,
    ):
        self.repo = HierarchyRepository(db)
        self.similarity = similarity
        self.threshold = settings.FUZZY_MATCH_THRESHOLD if threshold is None else threshold

    def match_entities(self, name: str, entities: List[Any]) -> List[EntityMatch]:
        """Score every entity carrying a string entityName; keep those within the threshold."""
        matches = []
        for entity in entities:
            if not isinstance(entity, dict):
                continue
            candidate = entity.get("entityName")
            if not isinstance(candidate, str) or not candidate:
                continue
            score = self.similarity(name, candidate)
            if score <= self.threshold:
                matches.append(EntityMatch(entity=entity, score=score))
        matches.sort(key=lambda m: m.score)
        return matches

    async def search_entity(self, name: str) -> List[HierarchyMatch]:
        """
        Scan the latest data snapshot of every hierarchy for entities named like `name`.

        Hierarchies without a snapshot, or whose payload is not a list of
        entity records, are skipped.
        """
        results = []
        for metadata in await self.repo.list_all():
            snapshot = await self.repo.get_latest_data(metadata.id)
            if snapshot is None or not isinstance(snapshot.data, list):
                continue
            matches = self.match_entities(name, snapshot.data)
            if matches:
                results.append(HierarchyMatch(metadata=metadata, matches=matches))

        logger.info("Entity search for %r matched %d hierarchies", name, len(results))
        return results

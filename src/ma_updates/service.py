import logging
from dataclasses import dataclass
from typing import Any, List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.database import transaction
from src.hierarchies.exceptions import NotFoundError, ValidationError
from src.hierarchies.models import HierarchyData, HierarchyMetadata
from src.hierarchies.repository import HierarchyRepository
from src.shared.models import utcnow

logger = logging.getLogger(__name__)


@dataclass
class MAUpdateResult:
    status: HierarchyMetadata
    updated: HierarchyData
    success: bool = True


class MAUpdateService:
    """
    Merger/acquisition review flag kept beside the draft/approval lifecycle.

    The flag lives on the metadata record and never changes its status.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = HierarchyRepository(db)

    async def _get_or_404(self, metadata_id: UUID) -> HierarchyMetadata:
        metadata = await self.repo.get_metadata(metadata_id)
        if not metadata:
            raise NotFoundError(f"Hierarchy {metadata_id} not found")
        return metadata

    async def list_trackable(self) -> List[HierarchyMetadata]:
        return await self.repo.list_live()

    async def get_status(self, metadata_id: UUID) -> HierarchyMetadata:
        return await self._get_or_404(metadata_id)

    async def flag_update(self, metadata_id: UUID) -> HierarchyMetadata:
        async with transaction(self.db, "flag_ma_update"):
            metadata = await self._get_or_404(metadata_id)
            metadata = await self.repo.update_metadata(metadata, has_ma_update=True)
        logger.info("Flagged hierarchy %s for M&A review", metadata_id)
        return metadata

    async def apply_update(self, metadata_id: UUID, new_data: Any) -> MAUpdateResult:
        """
        Replace the latest snapshot's payload and clear the review flag.

        Both writes share one transaction; if either record is missing or a
        write fails, nothing is applied.
        """
        if new_data is None:
            raise ValidationError("newMAData is required")

        now = utcnow()
        async with transaction(self.db, "apply_ma_update"):
            metadata = await self._get_or_404(metadata_id)
            snapshot = await self.repo.get_latest_data(metadata_id)
            if snapshot is None:
                raise NotFoundError(f"Hierarchy {metadata_id} has no data snapshot")

            metadata = await self.repo.update_metadata(
                metadata, has_ma_update=False, last_ma_checked=now
            )
            snapshot = await self.repo.update_data(snapshot, new_data, updated_at=now)

        logger.info("Applied M&A update to hierarchy %s (snapshot %s)", metadata_id, snapshot.id)
        return MAUpdateResult(status=metadata, updated=snapshot)

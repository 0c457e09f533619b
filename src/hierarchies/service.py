import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.database import transaction
from src.hierarchies.exceptions import NotFoundError, ValidationError
from src.hierarchies.models import HierarchyData, HierarchyMetadata, HierarchyStatus
from src.hierarchies.repository import HierarchyRepository

logger = logging.getLogger(__name__)

GLOBAL_LOCATION = "Global"


@dataclass
class HierarchyVersion:
    metadata: HierarchyMetadata
    data: HierarchyData


@dataclass
class HierarchyDetail:
    metadata: HierarchyMetadata
    data: List[HierarchyData]


@dataclass
class HierarchyGroup:
    company: Optional[str]
    location: str
    project_name: str
    versions: List[HierarchyMetadata] = field(default_factory=list)


def group_key(metadata: HierarchyMetadata) -> Tuple[Optional[str], str, str]:
    """Join key for grouping: null and empty locations both fold to "global"."""
    return (metadata.company, metadata.location or GLOBAL_LOCATION.lower(), metadata.project_name)


class HierarchyService:
    """Version chains: creation, supersession and the approval cascade."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = HierarchyRepository(db)

    async def _get_or_404(self, metadata_id: UUID, for_update: bool = False) -> HierarchyMetadata:
        metadata = await self.repo.get_metadata(metadata_id, for_update=for_update)
        if not metadata:
            raise NotFoundError(f"Hierarchy {metadata_id} not found")
        return metadata

    # -- lookups ----------------------------------------------------------

    async def find_latest_by_name(
        self, company: str, project_name: str, location: Optional[str] = None
    ) -> Optional[HierarchyMetadata]:
        return await self.repo.find_latest_by_name(company, project_name, location)

    async def find_active_by_company(self, company: str) -> List[HierarchyMetadata]:
        return await self.repo.find_live_by_company(company)

    async def get_hierarchy(self, metadata_id: UUID) -> HierarchyDetail:
        metadata = await self._get_or_404(metadata_id)
        snapshots = await self.repo.list_data(metadata_id)
        return HierarchyDetail(metadata=metadata, data=snapshots)

    async def group_all(self) -> List[HierarchyGroup]:
        """
        Every record grouped by (company, location, project), newest version first.

        Rows arrive sorted by the grouping fields, so one pass fills the groups.
        Absent and empty locations share a group displayed as "Global".
        """
        groups: Dict[Tuple[Optional[str], str, str], HierarchyGroup] = {}
        for row in await self.repo.list_sorted_for_grouping():
            key = group_key(row)
            if key not in groups:
                groups[key] = HierarchyGroup(
                    company=row.company,
                    location=row.location or GLOBAL_LOCATION,
                    project_name=row.project_name,
                )
            groups[key].versions.append(row)

        for group in groups.values():
            # null and "" sort apart in SQL, so merged groups need re-ordering
            group.versions.sort(key=lambda m: m.version_number, reverse=True)
        return list(groups.values())

    # -- lifecycle --------------------------------------------------------

    async def create_initial(
        self,
        user_input: Optional[Dict[str, Any]],
        project_name: Optional[str],
        data: Any,
        force_new: bool = False,
    ) -> HierarchyVersion:
        """
        Start a new chain with a v0 root record.

        With force_new the tuple's in-draft records are archived first;
        otherwise they only lose the active-draft flag.
        """
        if not user_input or not user_input.get("company"):
            raise ValidationError("Company is required in userInput")
        if data is None:
            raise ValidationError("Data is required")
        if not project_name:
            raise ValidationError("Project name is required")

        company = user_input["company"]
        location = user_input.get("location")

        async with transaction(self.db, "create_initial"):
            await self.repo.lock_tuple(company, project_name, location)
            if force_new:
                archived = await self.repo.archive_drafts(company, project_name, location)
                if archived:
                    logger.info(
                        "Archived %d draft(s) for %s/%s/%s before starting over",
                        archived, company, project_name, location or GLOBAL_LOCATION,
                    )
            else:
                await self.repo.deactivate_drafts(company, project_name, location)

            metadata = await self.repo.create_metadata(user_input, project_name)
            snapshot = await self.repo.create_data(metadata.id, data)

        logger.info("Created hierarchy %s (%s/%s v0)", metadata.id, company, project_name)
        return HierarchyVersion(metadata=metadata, data=snapshot)

    async def create_version(
        self, parent_id: UUID, data: Any, user_feedback: Optional[str] = None
    ) -> HierarchyVersion:
        async with transaction(self.db, "create_version"):
            parent = await self._get_or_404(parent_id, for_update=True)
            if data is None:
                raise ValidationError("New hierarchy data is required")

            root_id = parent.root_hierarchy_id or parent.id
            version_number = parent.version_number + 1

            # The parent, and any other editable tip of the tuple, stops being active
            await self.repo.lock_tuple(parent.company, parent.project_name, parent.location)
            await self.repo.deactivate_drafts(parent.company, parent.project_name, parent.location)

            metadata = await self.repo.create_metadata(
                parent.user_input,
                parent.project_name,
                version_number=version_number,
                root_hierarchy_id=root_id,
                user_feedback={"text": user_feedback} if user_feedback else None,
            )
            snapshot = await self.repo.create_data(metadata.id, data)

        logger.info(
            "Created %s of chain %s from parent %s", metadata.version, root_id, parent_id
        )
        return HierarchyVersion(metadata=metadata, data=snapshot)

    async def approve(self, metadata_id: UUID) -> HierarchyMetadata:
        """Approve one record and archive every other member of its chain."""
        async with transaction(self.db, "approve"):
            target = await self._get_or_404(metadata_id)
            root_id = target.root_hierarchy_id or target.id

            # Status is only trusted once re-read under the chain lock
            await self.repo.lock_chain(root_id)
            target = await self._get_or_404(metadata_id, for_update=True)
            if target.status == HierarchyStatus.ARCHIVED:
                raise ValidationError(f"Hierarchy {metadata_id} is archived and cannot be approved")

            archived = await self.repo.archive_chain(root_id, target.id)
            approved = await self.repo.update_metadata(
                target, status=HierarchyStatus.APPROVED, is_active_draft=False
            )

        logger.info(
            "Approved hierarchy %s, archived %d other member(s) of chain %s",
            metadata_id, archived, root_id,
        )
        return approved

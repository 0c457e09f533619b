"""
Hierarchy repository - store reads and writes for metadata and data snapshots.

Every method issues statements on the caller's session without committing;
services decide transaction boundaries.
"""

from typing import Any, List, Optional
from uuid import UUID

from sqlalchemy import and_, desc, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.hierarchies.models import HierarchyData, HierarchyMetadata, HierarchyStatus, LIVE_STATUSES

# Structured identity fields extracted from the user_input document
COMPANY = HierarchyMetadata.user_input["company"].as_string()
LOCATION = HierarchyMetadata.user_input["location"].as_string()


def tuple_filter(company: str, project_name: str, location: Optional[str]):
    """(company, project, location) match; an absent location matches null or empty."""
    clauses = [COMPANY == company, HierarchyMetadata.project_name == project_name]
    if location:
        clauses.append(LOCATION == location)
    else:
        clauses.append(or_(LOCATION.is_(None), LOCATION == ""))
    return and_(*clauses)


def chain_filter(root_id: UUID):
    return or_(HierarchyMetadata.root_hierarchy_id == root_id, HierarchyMetadata.id == root_id)


def tuple_lock_statement(company: str, project_name: str, location: Optional[str]):
    """Transaction-scoped Postgres advisory lock on one (company, project, location)."""
    key = f"{company}|{project_name}|{location or ''}"
    return select(func.pg_advisory_xact_lock(func.hashtext(key)))


class HierarchyRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    # -- metadata ---------------------------------------------------------

    async def create_metadata(
        self,
        user_input: dict,
        project_name: str,
        version_number: int = 0,
        root_hierarchy_id: Optional[UUID] = None,
        user_feedback: Optional[dict] = None,
    ) -> HierarchyMetadata:
        metadata = HierarchyMetadata(
            user_input=user_input,
            project_name=project_name,
            version=f"v{version_number}",
            version_number=version_number,
            status=HierarchyStatus.IN_DRAFT,
            is_active_draft=True,
            root_hierarchy_id=root_hierarchy_id,
            user_feedback=user_feedback,
        )
        self.db.add(metadata)
        await self.db.flush()
        await self.db.refresh(metadata)
        return metadata

    async def get_metadata(
        self, metadata_id: UUID, for_update: bool = False
    ) -> Optional[HierarchyMetadata]:
        """
        Load one metadata record.

        With for_update the row is locked until the transaction ends and the
        session copy is overwritten with the committed row.
        """
        stmt = select(HierarchyMetadata).where(HierarchyMetadata.id == metadata_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def lock_chain(self, root_id: UUID) -> None:
        """Row-lock the chain root until the transaction ends (no-op on SQLite)."""
        await self.db.execute(
            select(HierarchyMetadata.id).where(HierarchyMetadata.id == root_id).with_for_update()
        )

    async def lock_tuple(self, company: str, project_name: str, location: Optional[str]) -> None:
        """Serialize draft writers of one tuple until the transaction ends (Postgres only)."""
        if self.db.get_bind().dialect.name != "postgresql":
            return
        await self.db.execute(tuple_lock_statement(company, project_name, location))

    async def update_metadata(self, metadata: HierarchyMetadata, **values: Any) -> HierarchyMetadata:
        for field, value in values.items():
            setattr(metadata, field, value)
        await self.db.flush()
        await self.db.refresh(metadata)
        return metadata

    async def archive_drafts(self, company: str, project_name: str, location: Optional[str]) -> int:
        """Archive every in-draft record of the tuple."""
        result = await self.db.execute(
            update(HierarchyMetadata)
            .where(
                tuple_filter(company, project_name, location),
                HierarchyMetadata.status == HierarchyStatus.IN_DRAFT,
            )
            .values(status=HierarchyStatus.ARCHIVED, is_active_draft=False)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount

    async def deactivate_drafts(self, company: str, project_name: str, location: Optional[str]) -> int:
        """Clear is_active_draft on the tuple's active drafts, leaving their status alone."""
        result = await self.db.execute(
            update(HierarchyMetadata)
            .where(
                tuple_filter(company, project_name, location),
                HierarchyMetadata.is_active_draft.is_(True),
            )
            .values(is_active_draft=False)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount

    async def archive_chain(self, root_id: UUID, keep_id: UUID) -> int:
        """Archive every chain member except keep_id."""
        result = await self.db.execute(
            update(HierarchyMetadata)
            .where(chain_filter(root_id), HierarchyMetadata.id != keep_id)
            .values(status=HierarchyStatus.ARCHIVED, is_active_draft=False)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount

    async def find_latest_by_name(
        self, company: str, project_name: str, location: Optional[str]
    ) -> Optional[HierarchyMetadata]:
        result = await self.db.execute(
            select(HierarchyMetadata)
            .where(tuple_filter(company, project_name, location))
            .order_by(desc(HierarchyMetadata.version_number))
            .limit(1)
        )
        return result.scalars().first()

    async def find_live_by_company(self, company: str) -> List[HierarchyMetadata]:
        result = await self.db.execute(
            select(HierarchyMetadata)
            .where(COMPANY == company, HierarchyMetadata.status.in_(LIVE_STATUSES))
            .order_by(desc(HierarchyMetadata.version_number))
        )
        return list(result.scalars().all())

    async def list_live(self) -> List[HierarchyMetadata]:
        result = await self.db.execute(
            select(HierarchyMetadata).where(HierarchyMetadata.status.in_(LIVE_STATUSES))
        )
        return list(result.scalars().all())

    async def list_sorted_for_grouping(self) -> List[HierarchyMetadata]:
        result = await self.db.execute(
            select(HierarchyMetadata).order_by(
                COMPANY,
                LOCATION,
                HierarchyMetadata.project_name,
                desc(HierarchyMetadata.version_number),
            )
        )
        return list(result.scalars().all())

    async def list_all(self) -> List[HierarchyMetadata]:
        result = await self.db.execute(
            select(HierarchyMetadata).order_by(HierarchyMetadata.created_at)
        )
        return list(result.scalars().all())

    # -- data snapshots ---------------------------------------------------

    async def create_data(self, metadata_id: UUID, data: Any) -> HierarchyData:
        snapshot = HierarchyData(metadata_id=metadata_id, data=data)
        self.db.add(snapshot)
        await self.db.flush()
        await self.db.refresh(snapshot)
        return snapshot

    async def list_data(self, metadata_id: UUID) -> List[HierarchyData]:
        result = await self.db.execute(
            select(HierarchyData)
            .where(HierarchyData.metadata_id == metadata_id)
            .order_by(desc(HierarchyData.created_at))
        )
        return list(result.scalars().all())

    async def get_latest_data(self, metadata_id: UUID) -> Optional[HierarchyData]:
        result = await self.db.execute(
            select(HierarchyData)
            .where(HierarchyData.metadata_id == metadata_id)
            .order_by(desc(HierarchyData.created_at))
            .limit(1)
        )
        return result.scalars().first()

    async def update_data(self, snapshot: HierarchyData, data: Any, updated_at) -> HierarchyData:
        snapshot.data = data
        snapshot.updated_at = updated_at
        await self.db.flush()
        await self.db.refresh(snapshot)
        return snapshot

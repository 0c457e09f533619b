import uuid
from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from src.hierarchies.exceptions import NotFoundError, StoreError, ValidationError
from src.hierarchies.models import HierarchyData, HierarchyStatus
from src.hierarchies.repository import HierarchyRepository
from src.hierarchies.service import HierarchyService
from src.ma_updates.service import MAUpdateService
from src.shared.models import utcnow


@pytest.mark.asyncio
async def test_list_trackable_covers_live_records(db_session: AsyncSession, entities):
    hierarchies = HierarchyService(db_session)
    a = (await hierarchies.create_initial({"company": "Acme"}, "ProjectX", entities)).metadata
    b = (await hierarchies.create_version(a.id, entities)).metadata
    await hierarchies.approve(b.id)
    draft = (await hierarchies.create_initial({"company": "Globex"}, "ProjectX", entities)).metadata

    trackable = await MAUpdateService(db_session).list_trackable()

    assert {m.id for m in trackable} == {b.id, draft.id}
    assert all(m.status != HierarchyStatus.ARCHIVED for m in trackable)
    assert {m.company for m in trackable} == {"Acme", "Globex"}


@pytest.mark.asyncio
async def test_apply_update_clears_flag_and_rewrites_payload(db_session: AsyncSession, entities):
    created = await HierarchyService(db_session).create_initial({"company": "Acme"}, "ProjectX", entities)
    service = MAUpdateService(db_session)
    await service.flag_update(created.metadata.id)

    before = utcnow()
    new_data = [{"entityName": "Acme Corp", "acquired": ["Initech Holdings"]}]
    result = await service.apply_update(created.metadata.id, new_data)

    assert result.success is True
    assert result.updated.id == created.data.id
    assert result.updated.data == new_data
    assert result.updated.updated_at >= before

    status = await service.get_status(created.metadata.id)
    assert status.has_ma_update is False
    assert status.last_ma_checked >= before
    # The review flag never moves the lifecycle
    assert status.status == HierarchyStatus.IN_DRAFT


@pytest.mark.asyncio
async def test_apply_update_overwrites_only_latest_snapshot(db_session: AsyncSession, entities):
    created = await HierarchyService(db_session).create_initial({"company": "Acme"}, "ProjectX", entities)
    newer = HierarchyData(
        metadata_id=created.metadata.id,
        data=[{"entityName": "Acme Corp"}],
        created_at=utcnow() + timedelta(seconds=5),
    )
    db_session.add(newer)
    await db_session.commit()

    result = await MAUpdateService(db_session).apply_update(created.metadata.id, [{"entityName": "Initech"}])

    assert result.updated.id == newer.id
    snapshots = await HierarchyRepository(db_session).list_data(created.metadata.id)
    assert [s.id for s in snapshots] == [newer.id, created.data.id]
    assert snapshots[1].data == entities


@pytest.mark.asyncio
async def test_get_status_is_stable_without_updates(db_session: AsyncSession, entities):
    created = await HierarchyService(db_session).create_initial({"company": "Acme"}, "ProjectX", entities)
    service = MAUpdateService(db_session)

    first = await service.get_status(created.metadata.id)
    first_pair = (first.has_ma_update, first.last_ma_checked)
    second = await service.get_status(created.metadata.id)

    assert (second.has_ma_update, second.last_ma_checked) == first_pair == (False, None)


@pytest.mark.asyncio
async def test_unknown_ids_raise_not_found(db_session: AsyncSession):
    service = MAUpdateService(db_session)
    with pytest.raises(NotFoundError):
        await service.get_status(uuid.uuid4())
    with pytest.raises(NotFoundError):
        await service.flag_update(uuid.uuid4())
    with pytest.raises(NotFoundError):
        await service.apply_update(uuid.uuid4(), [])


@pytest.mark.asyncio
async def test_apply_update_requires_data(db_session: AsyncSession, entities):
    created = await HierarchyService(db_session).create_initial({"company": "Acme"}, "ProjectX", entities)
    with pytest.raises(ValidationError):
        await MAUpdateService(db_session).apply_update(created.metadata.id, None)


@pytest.mark.asyncio
async def test_apply_update_without_snapshot_changes_nothing(db_session: AsyncSession):
    metadata = await HierarchyRepository(db_session).create_metadata({"company": "Acme"}, "ProjectX")
    await db_session.commit()
    metadata_id = metadata.id
    service = MAUpdateService(db_session)
    await service.flag_update(metadata_id)

    with pytest.raises(NotFoundError):
        await service.apply_update(metadata_id, [])

    status = await service.get_status(metadata_id)
    assert status.has_ma_update is True
    assert status.last_ma_checked is None


@pytest.mark.asyncio
async def test_failed_payload_write_rolls_back_flag(db_session: AsyncSession, entities, monkeypatch):
    created = await HierarchyService(db_session).create_initial({"company": "Acme"}, "ProjectX", entities)
    metadata_id = created.metadata.id
    service = MAUpdateService(db_session)
    await service.flag_update(metadata_id)

    async def broken_update_data(self, snapshot, data, updated_at):
        raise OperationalError("UPDATE hierarchy_data", {}, Exception("disk I/O error"))

    monkeypatch.setattr(HierarchyRepository, "update_data", broken_update_data)

    with pytest.raises(StoreError) as exc_info:
        await service.apply_update(metadata_id, [{"entityName": "Initech"}])
    assert isinstance(exc_info.value.__cause__, OperationalError)

    status = await service.get_status(metadata_id)
    assert status.has_ma_update is True
    assert status.last_ma_checked is None
    snapshots = await HierarchyRepository(db_session).list_data(metadata_id)
    assert snapshots[0].data == entities

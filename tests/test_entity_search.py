import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from src.hierarchies.models import HierarchyData
from src.hierarchies.service import HierarchyService
from src.search.service import EntitySearchService
from src.search.similarity import RapidFuzzSimilarity
from src.shared.models import utcnow


class TestRapidFuzzSimilarity:
    def test_exact_match_scores_zero(self):
        assert RapidFuzzSimilarity()("Acme Corp", "Acme Corp") == 0.0

    def test_case_and_punctuation_are_ignored(self):
        assert RapidFuzzSimilarity()("acme corp.", "ACME Corp") == 0.0

    def test_transposed_letters_stay_close(self):
        assert RapidFuzzSimilarity()("Acem Corp", "Acme Corp") < 0.3

    def test_unrelated_names_are_far(self):
        assert RapidFuzzSimilarity()("Globex Industries", "Acme Corp") > 0.3


class TestMatchEntities:
    def test_skips_records_without_a_string_entity_name(self):
        service = EntitySearchService(db=None, threshold=0.3)
        entities = [
            {"entityName": "Acme Corp"},
            {"name": "Acme Corp"},
            {"entityName": None},
            {"entityName": 42},
            "Acme Corp",
        ]
        matches = service.match_entities("Acme Corp", entities)
        assert [m.entity for m in matches] == [{"entityName": "Acme Corp"}]

    def test_orders_matches_by_score(self):
        service = EntitySearchService(db=None, threshold=0.3)
        entities = [{"entityName": "Acme Corporation"}, {"entityName": "Acme Corp"}]
        matches = service.match_entities("Acme Corp", entities)
        assert matches[0].entity["entityName"] == "Acme Corp"
        assert matches[0].score <= matches[-1].score

    def test_custom_scorer_and_threshold(self):
        exact_only = lambda query, candidate: 0.0 if query == candidate else 1.0
        service = EntitySearchService(db=None, similarity=exact_only, threshold=0.0)
        entities = [{"entityName": "Acme Corp"}, {"entityName": "Acme Corp."}]
        assert len(service.match_entities("Acme Corp", entities)) == 1


@pytest.mark.asyncio
async def test_search_finds_misspelled_entity(db_session: AsyncSession, entities):
    created = await HierarchyService(db_session).create_initial({"company": "Acme"}, "ProjectX", entities)

    results = await EntitySearchService(db_session).search_entity("Acem Corp")

    assert len(results) == 1
    assert results[0].metadata.id == created.metadata.id
    best = results[0].matches[0]
    assert best.entity["entityName"] == "Acme Corp"
    assert 0 <= best.score < 0.3


@pytest.mark.asyncio
async def test_search_unrelated_name_matches_nothing(db_session: AsyncSession, entities):
    await HierarchyService(db_session).create_initial({"company": "Acme"}, "ProjectX", entities)

    assert await EntitySearchService(db_session).search_entity("Globex Industries") == []


@pytest.mark.asyncio
async def test_search_uses_only_latest_snapshot(db_session: AsyncSession, entities):
    created = await HierarchyService(db_session).create_initial({"company": "Acme"}, "ProjectX", entities)
    db_session.add(HierarchyData(
        metadata_id=created.metadata.id,
        data=[{"entityName": "Initrode"}],
        created_at=utcnow(),
    ))
    await db_session.commit()

    service = EntitySearchService(db_session)
    assert await service.search_entity("Acme Corp") == []
    assert len(await service.search_entity("Initrode")) == 1


@pytest.mark.asyncio
async def test_search_skips_non_list_payloads(db_session: AsyncSession, entities):
    hierarchies = HierarchyService(db_session)
    await hierarchies.create_initial({"company": "Acme"}, "ProjectX", {"entityName": "Acme Corp"})
    listed = await hierarchies.create_initial({"company": "Acme"}, "ProjectY", entities)

    results = await EntitySearchService(db_session).search_entity("Acme Corp")

    assert [r.metadata.id for r in results] == [listed.metadata.id]


@pytest.mark.asyncio
async def test_search_with_no_hierarchies(db_session: AsyncSession):
    assert await EntitySearchService(db_session).search_entity("Acme Corp") == []

import pytest

from fakes import make_chunks
from services.query.QueryService import QueryService
from shared.models.search import SearchQuery, SearchResultItem


@pytest.fixture()
def service(helper_config) -> QueryService:
    return QueryService(helper_config=helper_config)


async def test_query_returns_ranked_response(service: QueryService, manager):
    await manager.do_upload(make_chunks("ds-1", ["python asyncio tutorial", "gardening tips for spring"]))

    response = await service.do_query(SearchQuery(text="python asyncio tutorial", top_k=2), manager)

    assert response.query == "python asyncio tutorial"
    assert response.total == len(response.results) == 2
    assert response.results[0].text == "python asyncio tutorial"


async def test_query_keeps_duplicate_sources_by_default(service: QueryService, manager):
    await manager.do_upload(make_chunks("ds-1", ["billing faq part one", "billing faq part two"]))

    response = await service.do_query(SearchQuery(text="billing faq", top_k=5), manager)

    assert [item.source for item in response.results] == ["https://example.com/ds-1"] * 2


async def test_query_unique_sources_keeps_best_hit(service: QueryService, manager):
    await manager.do_upload(make_chunks("ds-1", ["billing faq part one", "billing faq part two"]))
    await manager.do_upload(make_chunks("ds-2", ["billing changes blog"]))

    response = await service.do_query(SearchQuery(text="billing faq part one", top_k=5, unique_sources=True), manager)

    assert [item.source for item in response.results] == ["https://example.com/ds-1", "https://example.com/ds-2"]
    assert response.results[0].text == "billing faq part one"
    assert response.total == 2


async def test_query_on_missing_collection_is_empty(service: QueryService, manager):
    response = await service.do_query(SearchQuery(text="anything", top_k=3), manager)

    assert response.results == []
    assert response.total == 0


async def test_query_rejects_non_positive_top_k(service: QueryService, manager):
    query = SearchQuery.model_construct(text="anything", top_k=0, tags=None, datasource_ids=None, unique_sources=False)

    with pytest.raises(ValueError):
        await service.do_query(query, manager)


def test_sourceless_results_are_never_merged(service: QueryService):
    results = [
        SearchResultItem(score=0.9, source=None, text="a"),
        SearchResultItem(score=0.8, source=None, text="b"),
        SearchResultItem(score=0.7, source="s", text="c"),
        SearchResultItem(score=0.6, source="s", text="d"),
    ]

    assert [item.text for item in service._keep_best_per_source(results)] == ["a", "b", "c"]


def test_search_query_validation():
    with pytest.raises(ValueError):
        SearchQuery(text="anything", top_k=0)
    with pytest.raises(ValueError):
        SearchQuery(text="", top_k=3)

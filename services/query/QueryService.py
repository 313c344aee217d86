"""Query service: resolves a free-text query against one datastore.

Embedding and the nearest-neighbour lookup are delegated to the datastore
manager; results come back best match first.
"""

from shared.clients.datastore.DatastoreManagerInterface import DatastoreManagerInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.search import SearchQuery, SearchResponse, SearchResultItem


class QueryService:
    """Orchestrates retrieval and result assembly for datastore search."""

    def __init__(self, helper_config: HelperConfig) -> None:
        self.logging = helper_config.get_logger()

    ##########################################
    ################ CORE ####################
    ##########################################

    async def do_query(self, query: SearchQuery, manager: DatastoreManagerInterface) -> SearchResponse:
        """Execute a free-text query against a datastore.

        Args:
            query (SearchQuery): The query text, top_k and optional filters.
            manager (DatastoreManagerInterface): Booted manager of the target datastore.

        Returns:
            SearchResponse: Ranked matching chunks, in the manager's order.

        Raises:
            ValueError: If top_k is not a positive integer.
        """
        if not isinstance(query.top_k, int) or query.top_k <= 0:
            raise ValueError("top_k must be a positive integer.")

        self.logging.info(
            "Executing query: datastore=%s query=%r top_k=%d",
            manager.datastore.id,
            query.text[:80],
            query.top_k,
        )
        results = await manager.do_search(query)
        if query.unique_sources:
            results = self._keep_best_per_source(results)

        self.logging.info("Query complete: datastore=%s results=%d", manager.datastore.id, len(results))
        return SearchResponse(query=query.text, results=results, total=len(results))

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _keep_best_per_source(self, results: list[SearchResultItem]) -> list[SearchResultItem]:
        """Keep the first (best-ranked) hit of every source, preserving order.

        Args:
            results (list[SearchResultItem]): Ranked results, best first.

        Returns:
            list[SearchResultItem]: At most one result per source.
        """
        seen: set[str] = set()
        unique: list[SearchResultItem] = []
        for item in results:
            # chunks without a source are never merged
            if item.source is not None:
                if item.source in seen:
                    continue
                seen.add(item.source)
            unique.append(item)
        return unique

from pydantic import BaseModel

from shared.clients.datastore.DatastoreManagerInterface import DatastoreManagerInterface
from shared.clients.datastore.models.QdrantConfig import QdrantConfig
from shared.clients.datastore.models.VectorPoint import VectorPoint
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.datastore import Datastore
from shared.models.document import Chunk
from shared.models.search import SearchQuery, SearchResultItem

# distances where a larger score means a closer match
_SIMILARITY_DISTANCES = ("Cosine", "Dot")


class DatastoreManagerQdrant(DatastoreManagerInterface):
    """Qdrant implementation of the datastore contract, talking to the Qdrant REST API."""

    def __init__(self, helper_config: HelperConfig, datastore: Datastore, embed_client: EmbedClientInterface):
        super().__init__(helper_config=helper_config, datastore=datastore, embed_client=embed_client)
        self._base_url = self.config.base_url
        self._api_key = self.config.api_key or ""

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Qdrant"

    ################ CONFIG ##################
    def _get_config_model(self) -> type[BaseModel]:
        return QdrantConfig

    def get_batch_size(self) -> int:
        return self.config.batch_size

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"api-key": f"{self._api_key}"}
        else:
            return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/healthz"

    def _get_endpoint_collection(self) -> str:
        return f"/collections/{self.get_collection_name()}"

    def _get_endpoint_check_collection_existence(self) -> str:
        return f"/collections/{self.get_collection_name()}/exists"

    def _get_endpoint_index(self) -> str:
        return f"/collections/{self.get_collection_name()}/index"

    def _get_endpoint_points(self) -> str:
        return f"/collections/{self.get_collection_name()}/points"

    def _get_endpoint_delete_points(self) -> str:
        return f"/collections/{self.get_collection_name()}/points/delete"

    def _get_endpoint_search(self) -> str:
        return f"/collections/{self.get_collection_name()}/points/search"

    def _get_endpoint_count(self) -> str:
        return f"/collections/{self.get_collection_name()}/points/count"

    def _get_endpoint_scroll(self) -> str:
        return f"/collections/{self.get_collection_name()}/points/scroll"

    def _get_write_params(self) -> dict:
        # block until the operation is applied, so remove always precedes the next upsert
        return {"wait": "true"}

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_create_collection_payload(self, vector_size: int) -> dict:
        return {
            "hnsw_config": {"m": self.config.hnsw_m},
            "optimizers_config": {"memmap_threshold": self.config.memmap_threshold},
            "vectors": {
                "size": vector_size,
                "distance": self.config.distance,
            },
            "on_disk_payload": self.config.on_disk_payload,
        }

    def get_index_payloads(self) -> list[dict]:
        return [
            {"field_name": "datasource_id", "field_schema": "keyword"},
            {"field_name": "tags", "field_schema": "keyword"},
            {"field_name": "text", "field_schema": {"type": "text", "tokenizer": "word"}},
        ]

    def build_point(self, chunk: Chunk, vector: list[float]) -> dict:
        return {
            "id": chunk.metadata.chunk_id,
            "vector": vector,
            "payload": VectorPoint.from_chunk(chunk).model_dump(),
        }

    def get_upsert_payload(self, points: list[dict]) -> dict:
        return {"points": points}

    def _get_datasource_condition(self, datasource_id: str) -> dict:
        return {"key": "datasource_id", "match": {"value": datasource_id}}

    def get_delete_payload(self, datasource_id: str) -> dict:
        return {"filter": {"must": [self._get_datasource_condition(datasource_id)]}}

    def get_search_payload(self, vector: list[float], query: SearchQuery) -> dict:
        payload = {
            "vector": vector,
            "limit": query.top_k,
            "with_payload": True,
            "with_vector": False,
        }
        conditions: list[dict] = []
        if query.tags:
            conditions.append({"key": "tags", "match": {"any": query.tags}})
        if query.datasource_ids:
            conditions.append({"key": "datasource_id", "match": {"any": query.datasource_ids}})
        if conditions:
            payload["filter"] = {"must": conditions}
        return payload

    def get_count_payload(self, datasource_id: str | None) -> dict:
        payload: dict = {"exact": True}
        if datasource_id is not None:
            payload["filter"] = {"must": [self._get_datasource_condition(datasource_id)]}
        return payload

    def get_scroll_payload(self, datasource_id: str, with_payload: list[str], limit: int) -> dict:
        return {
            "filter": {"must": [self._get_datasource_condition(datasource_id)]},
            "limit": limit,
            "with_payload": with_payload,
            "with_vector": False,
        }

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_search_results(self, raw_response: dict) -> list[SearchResultItem]:
        items: list[SearchResultItem] = []
        for hit in raw_response.get("result") or []:
            payload = hit.get("payload") or {}
            items.append(
                SearchResultItem(
                    score=hit.get("score", 0.0),
                    source=payload.get("source"),
                    text=payload.get("text"),
                )
            )
        # Euclid/Manhattan scores are distances, smaller is closer
        return sorted(items, key=lambda item: item.score, reverse=self.config.distance in _SIMILARITY_DISTANCES)

    def extract_existence(self, raw_response: dict) -> bool:
        return bool(raw_response.get("result", {}).get("exists"))

    def extract_count(self, raw_response: dict) -> int:
        return raw_response.get("result", {}).get("count", 0)

    def extract_scroll_payloads(self, raw_response: dict) -> list[dict]:
        points = raw_response.get("result", {}).get("points", [])
        return [point.get("payload") or {} for point in points]

from abc import abstractmethod
from typing import Sequence
import json

import httpx
from pydantic import BaseModel, ValidationError

from shared.clients.ClientErrors import CollectionNotFoundError, ConfigurationError, EmbeddingFailureError
from shared.clients.ClientInterface import ClientInterface
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.datastore import Datastore
from shared.models.document import Chunk
from shared.models.search import SearchQuery, SearchResultItem


class DatastoreManagerInterface(ClientInterface):
    """Backend contract for one datastore.

    The request methods (upload, remove, delete, search) live here; concrete
    backends only describe their endpoints, payloads and responses. Each
    instance is bound to exactly one Datastore record and validates its
    backend configuration at construction time.

    Replacing a datasource is remove-then-add and not atomic: a failure after
    the remove step leaves the datasource partially written until the same
    upload is retried. Concurrent uploads of the same datasource are not
    serialized; the backend's last write wins.
    """

    def __init__(self, helper_config: HelperConfig, datastore: Datastore, embed_client: EmbedClientInterface):
        self.datastore = datastore
        self.config: BaseModel | None = None
        self._embed_client = embed_client
        super().__init__(helper_config=helper_config)

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def validate_full_configuration(self) -> None:
        """
        Validates the datastore's backend configuration and stores the parsed model in self.config.

        Raises:
            ConfigurationError: If the configuration is missing values or contains invalid ones.
        """
        super().validate_full_configuration()
        try:
            self.config = self._get_config_model().model_validate(self.datastore.config)
        except ValidationError as exc:
            raise ConfigurationError(
                f"Invalid configuration for {self.get_engine_name()} datastore '{self.datastore.id}': {exc}"
            ) from exc

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "datastore"
        """
        return "datastore"

    def get_collection_name(self) -> str:
        """
        Returns the name of the backing collection. One collection per datastore id.
        """
        return self.datastore.id

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        # backend settings come from the datastore record, not from the environment
        return []

    @abstractmethod
    def _get_config_model(self) -> type[BaseModel]:
        """
        Returns the pydantic model used to validate Datastore.config.

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    @abstractmethod
    def get_batch_size(self) -> int:
        """
        Returns the maximum number of points per write request.

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_collection(self) -> str:
        """
        Returns the endpoint path for creating and deleting the collection.

        Returns:
            str: The endpoint path (e.g. "/collections/my_col")

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    @abstractmethod
    def _get_endpoint_check_collection_existence(self) -> str:
        """
        Returns the endpoint path for collection existence check requests.

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    @abstractmethod
    def _get_endpoint_index(self) -> str:
        """
        Returns the endpoint path for registering a payload field index.

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    @abstractmethod
    def _get_endpoint_points(self) -> str:
        """
        Returns the endpoint path for points upsert requests.

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    @abstractmethod
    def _get_endpoint_delete_points(self) -> str:
        """
        Returns the endpoint path for deleting points by filter.

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    @abstractmethod
    def _get_endpoint_search(self) -> str:
        """
        Returns the endpoint path for nearest-neighbour search requests.

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    @abstractmethod
    def _get_endpoint_count(self) -> str:
        """
        Returns the endpoint path for counting points matching a filter.

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    @abstractmethod
    def _get_endpoint_scroll(self) -> str:
        """
        Returns the endpoint path for scroll requests.

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    @abstractmethod
    def _get_write_params(self) -> dict:
        """
        Returns query parameters for write and delete requests, e.g. to wait until they are applied.

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    @abstractmethod
    def get_create_collection_payload(self, vector_size: int) -> dict:
        """
        Builds the request payload for creating the collection.

        Args:
            vector_size (int): Output dimension of the embedding model.

        Returns:
            dict: The payload for the create collection request.

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    @abstractmethod
    def get_index_payloads(self) -> list[dict]:
        """
        Builds one request payload per filterable payload field
        (at least datasource_id, tags and the full text).

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    @abstractmethod
    def build_point(self, chunk: Chunk, vector: list[float]) -> dict:
        """
        Builds the backend representation of one point. The chunk id is the point id.

        Args:
            chunk (Chunk): The chunk to store.
            vector (list[float]): The chunk's embedding.

        Returns:
            dict: The point as expected by the upsert endpoint.

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    @abstractmethod
    def get_upsert_payload(self, points: list[dict]) -> dict:
        """
        Builds the request payload for upserting one batch of points.

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    @abstractmethod
    def get_delete_payload(self, datasource_id: str) -> dict:
        """
        Builds the request payload deleting every point of a datasource.

        Args:
            datasource_id (str): The datasource whose points are deleted.

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    @abstractmethod
    def get_search_payload(self, vector: list[float], query: SearchQuery) -> dict:
        """
        Builds the request payload for a nearest-neighbour search. Must request
        the payload and exclude the vectors.

        Args:
            vector (list[float]): The embedded query text.
            query (SearchQuery): The query, providing top_k and optional filters.

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    @abstractmethod
    def get_count_payload(self, datasource_id: str | None) -> dict:
        """
        Builds the request payload for an exact point count, optionally restricted to one datasource.

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    @abstractmethod
    def get_scroll_payload(self, datasource_id: str, with_payload: list[str], limit: int) -> dict:
        """
        Builds the request payload for scrolling points of one datasource without vectors.

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    @abstractmethod
    def extract_search_results(self, raw_response: dict) -> list[SearchResultItem]:
        """
        Extracts search results from a raw search response, best match first.

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    @abstractmethod
    def extract_existence(self, raw_response: dict) -> bool:
        pass

    @abstractmethod
    def extract_count(self, raw_response: dict) -> int:
        pass

    @abstractmethod
    def extract_scroll_payloads(self, raw_response: dict) -> list[dict]:
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_existence_check(self) -> bool:
        """Check if the collection exists in the backend.

        Returns:
            bool: True if the collection exists, False otherwise.
        """
        resp = await self.do_request(
            method="GET",
            endpoint=self._get_endpoint_check_collection_existence(),
            raise_on_error=True,
        )
        return self.extract_existence(resp.json())

    async def do_create_collection(self, vector_size: int | None = None) -> None:
        """Create the collection and register its filterable payload indexes.

        The distance metric comes from the datastore configuration. Any failure propagates.

        Args:
            vector_size (int | None): Dimension of the vectors about to be written.
                If omitted, it is taken from the embedding model.

        Raises:
            EmbeddingFailureError: If the vector size of the model cannot be determined.
            ClientError: If the backend rejects the collection or an index.
        """
        if vector_size is None:
            vector_size = await self._embed_client.do_fetch_embedding_vector_size()
        self.logging.info(
            "Creating %s collection '%s' (vector size %d).",
            self.get_engine_name(), self.get_collection_name(), vector_size,
        )
        await self.do_request(
            method="PUT",
            content=json.dumps(self.get_create_collection_payload(vector_size)),
            endpoint=self._get_endpoint_collection(),
            additional_headers={"Content-Type": "application/json"},
            raise_on_error=True,
        )
        for index_payload in self.get_index_payloads():
            await self.do_request(
                method="PUT",
                content=json.dumps(index_payload),
                endpoint=self._get_endpoint_index(),
                params=self._get_write_params(),
                additional_headers={"Content-Type": "application/json"},
                raise_on_error=True,
            )

    async def do_upsert_points(self, points: list[dict]) -> httpx.Response:
        """Upsert one batch of points into the collection.
        Inserts new points or replaces existing ones if a point with the same ID already exists.

        Args:
            points (list[dict]): The points to upsert, as built by build_point().

        Returns:
            httpx.Response: The response from the upsert request.
        """
        return await self.do_request(
            method="PUT",
            content=json.dumps(self.get_upsert_payload(points)),
            endpoint=self._get_endpoint_points(),
            params=self._get_write_params(),
            additional_headers={"Content-Type": "application/json"},
            raise_on_error=True,
        )

    async def _do_write_points(self, points: list[dict]) -> int:
        """Write points in sequential batches of get_batch_size().

        A failing batch leaves earlier batches written; retrying the whole
        upload is the recovery path.

        Returns:
            int: The number of batches written.
        """
        batch_size = self.get_batch_size()
        batches = 0
        for batch_start in range(0, len(points), batch_size):
            await self.do_upsert_points(points[batch_start: batch_start + batch_size])
            batches += 1
        return batches

    async def do_upload(self, chunks: Sequence[Chunk]) -> list[Chunk]:
        """Replace all vectors of the chunks' datasource with the given chunks.

        Embeds the chunk texts, removes every existing point of the datasource,
        then writes the new points in batches. Point ids are the chunk ids, so
        retrying the same upload converges to the same state.

        If the collection does not exist yet, it is created and the write is
        retried exactly once. Every other error propagates unmodified.

        Args:
            chunks (Sequence[Chunk]): Non-empty chunks, all of the same datasource.

        Returns:
            list[Chunk]: The uploaded chunks.

        Raises:
            ValueError: If chunks is empty or spans several datasources.
            EmbeddingFailureError: If embedding fails. Nothing has been removed at that point.
            ClientError: If the backend is unreachable or rejects a request.
        """
        chunks = list(chunks)
        if not chunks:
            raise ValueError("Upload requires at least one chunk.")
        datasource_id = chunks[0].metadata.datasource_id
        if any(chunk.metadata.datasource_id != datasource_id for chunk in chunks):
            raise ValueError("All chunks of one upload must belong to the same datasource.")

        vectors = await self._embed_client.do_embed([chunk.text for chunk in chunks])
        if len(vectors) != len(chunks):
            raise EmbeddingFailureError(
                f"Embedding returned {len(vectors)} vectors for {len(chunks)} chunks."
            )
        points = [self.build_point(chunk, vector) for chunk, vector in zip(chunks, vectors)]

        try:
            await self.do_remove(datasource_id)
            batches = await self._do_write_points(points)
        except CollectionNotFoundError:
            self.logging.info(
                "Collection '%s' not found on %s, creating it before retrying the upload.",
                self.get_collection_name(), self.get_engine_name(),
            )
            await self.do_create_collection(vector_size=len(vectors[0]))
            batches = await self._do_write_points(points)

        self.logging.info(
            "Uploaded %d chunks of datasource '%s' to datastore '%s' in %d batch(es).",
            len(points), datasource_id, self.datastore.id, batches,
        )
        return chunks

    async def do_remove(self, datasource_id: str) -> None:
        """Delete every point whose datasource_id equals the argument.

        Removing a datasource without points, or from a collection that does
        not exist yet, is a no-op.

        Args:
            datasource_id (str): The datasource whose points are deleted.

        Raises:
            ClientError: If the backend is unreachable or rejects the request (other than 404).
        """
        try:
            await self.do_request(
                method="POST",
                content=json.dumps(self.get_delete_payload(datasource_id)),
                endpoint=self._get_endpoint_delete_points(),
                params=self._get_write_params(),
                additional_headers={"Content-Type": "application/json"},
                raise_on_error=True,
            )
        except CollectionNotFoundError:
            self.logging.debug(
                "Collection '%s' does not exist; nothing to remove for datasource '%s'.",
                self.get_collection_name(), datasource_id,
            )
            return
        self.logging.debug("Removed points of datasource '%s' from '%s'.", datasource_id, self.get_collection_name())

    async def do_delete(self) -> None:
        """Delete the whole collection. Deleting a missing collection is a no-op.

        Raises:
            ClientError: If the backend is unreachable or rejects the request (other than 404).
        """
        try:
            await self.do_request(
                method="DELETE",
                endpoint=self._get_endpoint_collection(),
                raise_on_error=True,
            )
        except CollectionNotFoundError:
            self.logging.debug("Collection '%s' already deleted.", self.get_collection_name())
            return
        self.logging.info("Deleted collection '%s' of datastore '%s'.", self.get_collection_name(), self.datastore.id)

    async def do_search(self, query: SearchQuery) -> list[SearchResultItem]:
        """Embed the query text and return the top_k nearest chunks, best match first.

        A missing collection yields an empty result.

        Args:
            query (SearchQuery): Query text, top_k and optional filters.

        Returns:
            list[SearchResultItem]: At most top_k results with score, source and text.

        Raises:
            ValueError: If top_k is not a positive integer.
            EmbeddingFailureError: If embedding the query fails.
            ClientError: If the backend is unreachable or rejects the request (other than 404).
        """
        if query.top_k <= 0:
            raise ValueError("top_k must be a positive integer.")
        vectors = await self._embed_client.do_embed([query.text])
        try:
            resp = await self.do_request(
                method="POST",
                content=json.dumps(self.get_search_payload(vectors[0], query)),
                endpoint=self._get_endpoint_search(),
                additional_headers={"Content-Type": "application/json"},
                raise_on_error=True,
            )
        except CollectionNotFoundError:
            self.logging.debug("Collection '%s' does not exist; search returns no results.", self.get_collection_name())
            return []
        return self.extract_search_results(resp.json())[: query.top_k]

    async def do_count(self, datasource_id: str | None = None) -> int:
        """Count points in the collection, optionally only those of one datasource.

        Returns:
            int: Exact number of matching points; 0 if the collection does not exist.
        """
        try:
            resp = await self.do_request(
                method="POST",
                content=json.dumps(self.get_count_payload(datasource_id)),
                endpoint=self._get_endpoint_count(),
                additional_headers={"Content-Type": "application/json"},
                raise_on_error=True,
            )
        except CollectionNotFoundError:
            return 0
        return self.extract_count(resp.json())

    async def do_fetch_datasource_hash(self, datasource_id: str) -> str | None:
        """Return the datasource_hash stored with the datasource's points.

        Returns:
            str | None: The stored hash, or None if the datasource has no points.
        """
        try:
            resp = await self.do_request(
                method="POST",
                content=json.dumps(self.get_scroll_payload(datasource_id, with_payload=["datasource_hash"], limit=1)),
                endpoint=self._get_endpoint_scroll(),
                additional_headers={"Content-Type": "application/json"},
                raise_on_error=True,
            )
        except CollectionNotFoundError:
            return None
        payloads = self.extract_scroll_payloads(resp.json())
        if not payloads:
            return None
        return payloads[0].get("datasource_hash")

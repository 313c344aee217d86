from abc import abstractmethod

from shared.clients.ClientErrors import ClientError, ConfigurationError, EmbeddingFailureError
from shared.clients.ClientInterface import ClientInterface

from shared.helper.HelperConfig import HelperConfig

class EmbedClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # model and embedding config
        self.embed_model = helper_config.get_string_val(f"{self.get_client_type().upper()}_MODEL", default=None)
        self.embed_batch_size = int(helper_config.get_number_val(f"{self.get_client_type().upper()}_BATCH_SIZE", default=64))
        # 0 → detect from the backend on first use
        self._vector_size = int(helper_config.get_number_val(f"{self.get_client_type().upper()}_VECTOR_SIZE", default=0))
        if self.embed_batch_size <= 0:
            raise ConfigurationError(f"{self.get_client_type().upper()}_BATCH_SIZE must be positive.")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "embed"
        """
        return "embed"

    ################ ENDPOINTS ##################
    @abstractmethod
    def get_endpoint_embedding(self) -> str:
        """
        Returns the endpoint path for embedding requests.

        Returns:
            str: The endpoint path for embedding requests (e.g. "/api/embed")

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_embed_payload(self, texts: list[str]) -> dict:
        """Build the backend-specific request body for an embedding request.

        Args:
            texts (list[str]): The texts to embed.

        Returns:
            dict: JSON-serialisable request body (e.g. {"model": "...", "input": [...]}).

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    ##########################################
    ################# OTHER ##################
    ##########################################

    @abstractmethod
    def extract_embeddings_from_response(self, response_data: dict) -> list[list[float]]:
        """Extract embedding vectors from a raw embedding API response.

        Response format differs by backend:
        - Ollama /api/embed: {"embeddings": [[...], [...]]}, already ordered
        - OpenAI-compatible: {"data": [{"embedding": [...], "index": 0}]}, needs sorting

        Args:
            response_data (dict): The parsed JSON response body.

        Returns:
            list[list[float]]: Embedding vectors in the same order as the input texts.

        Raises:
            ValueError: If the response format is invalid or embeddings are empty.
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    @abstractmethod
    async def _do_detect_vector_size(self) -> int:
        """
        Asks the backend for the output dimension of the configured model.

        Returns:
            int: The dimension of the embedding vectors produced by the model.

        Raises:
            ClientError: If the backend cannot be reached or the size cannot be determined.
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_fetch_embedding_vector_size(self) -> int:
        """
        Return the output vector dimension of the configured embedding model.

        Uses EMBED_VECTOR_SIZE when configured, otherwise detects it once from the
        backend and caches the result.

        Returns:
            int: The number of dimensions produced by the embedding model.

        Raises:
            EmbeddingFailureError: If the dimension cannot be determined.
        """
        if self._vector_size > 0:
            return self._vector_size
        try:
            self._vector_size = await self._do_detect_vector_size()
        except EmbeddingFailureError:
            raise
        except (ClientError, ValueError) as exc:
            raise EmbeddingFailureError(f"Could not determine vector size of model '{self.embed_model}': {exc}") from exc
        self.logging.debug("Embedding model '%s' produces %d-dimensional vectors.", self.embed_model, self._vector_size)
        return self._vector_size

    async def do_embed(self, texts: list[str] | str) -> list[list[float]]:
        """Send embedding requests and return the extracted vectors.

        Normalises the input to a list, splits it into batches of EMBED_BATCH_SIZE,
        builds the backend-specific payload via get_embed_payload(), sends the
        requests sequentially, and extracts the vectors via extract_embeddings_from_response().

        Args:
            texts (list[str] | str): One or more texts to embed.

        Returns:
            list[list[float]]: One embedding vector per input text, in input order.

        Raises:
            EmbeddingFailureError: If any request fails or a response does not contain one valid vector per text.
        """
        texts = [texts] if isinstance(texts, str) else list(texts)
        vectors: list[list[float]] = []
        for batch_start in range(0, len(texts), self.embed_batch_size):
            batch = texts[batch_start: batch_start + self.embed_batch_size]
            try:
                response = await self.do_request(
                    method="POST",
                    endpoint=self.get_endpoint_embedding(),
                    json=self.get_embed_payload(batch),
                    raise_on_error=True,
                )
                batch_vectors = self.extract_embeddings_from_response(response.json())
            except (ClientError, ValueError) as exc:
                self.logging.error("Embedding request to '%s' failed: %s", self.get_engine_name(), exc)
                raise EmbeddingFailureError(f"Embedding request failed: {exc}") from exc
            if len(batch_vectors) != len(batch):
                raise EmbeddingFailureError(
                    f"Embedding backend returned {len(batch_vectors)} vectors for {len(batch)} texts."
                )
            vectors.extend(batch_vectors)
        return vectors

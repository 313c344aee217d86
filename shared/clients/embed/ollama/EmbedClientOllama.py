from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class EmbedClientOllama(EmbedClientInterface):
    """Embedding client for an Ollama server (/api/embed).

    Environment:
        EMBED_OLLAMA_BASE_URL:   Server URL, required.
        EMBED_OLLAMA_API_KEY:    Bearer token for proxied deployments.
        EMBED_OLLAMA_TRUNCATE:   Let the server cut inputs to the model's context length (default true).
        EMBED_OLLAMA_KEEP_ALIVE: How long the model stays loaded after a request (default "5m").
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None)
        self._api_key = self.get_config_val("API_KEY", default="")
        self._truncate = self.get_config_val("TRUNCATE", default=True, val_type="bool")
        self._keep_alive = self.get_config_val("KEEP_ALIVE", default="5m")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Ollama"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [EnvConfig(env_key="BASE_URL", val_type="string", default=None)]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        # answers "Ollama is running"
        return "/"

    def get_endpoint_embedding(self) -> str:
        return "/api/embed"

    def get_endpoint_model_details(self) -> str:
        return "/api/show"

    ################ PAYLOAD BUILDER ##################
    def get_embed_payload(self, texts: list[str]) -> dict:
        return {
            "model": self.embed_model,
            "input": texts,
            "truncate": self._truncate,
            "keep_alive": self._keep_alive,
        }

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_vector_size_from_model_info(self, model_info: dict) -> int:
        """Read "<architecture>.embedding_length" from an /api/show response.

        Raises:
            ValueError: If the response carries no embedding length.
        """
        for key, value in (model_info.get("model_info") or {}).items():
            if key.endswith(".embedding_length"):
                return int(value)
        raise ValueError(f"Model '{self.embed_model}' reports no embedding length.")

    def extract_embeddings_from_response(self, response_data: dict) -> list[list[float]]:
        """Return the "embeddings" list of an /api/embed response, already in input order.

        Raises:
            ValueError: If the list is missing, contains an empty vector, or the vectors differ in length.
        """
        embeddings = response_data.get("embeddings")
        if not embeddings or not all(embeddings):
            raise ValueError(
                f"Ollama response does not contain valid embeddings. Response keys: {list(response_data.keys())}"
            )
        if len({len(vector) for vector in embeddings}) != 1:
            raise ValueError("Ollama returned embeddings of different lengths.")
        return embeddings

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def _do_detect_vector_size(self) -> int:
        response = await self.do_request(
            method="POST",
            endpoint=self.get_endpoint_model_details(),
            json={"model": self.embed_model},
            raise_on_error=True,
        )
        return self.extract_vector_size_from_model_info(response.json())

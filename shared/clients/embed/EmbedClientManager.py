from shared.clients.ClientErrors import ConfigurationError
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.helper.HelperConfig import HelperConfig


class EmbedClientManager:
    """
    Resolves the embedding client named by EMBED_ENGINE.

    The engine name selects the module shared.clients.embed.<engine>.EmbedClient<Engine>,
    e.g. "ollama" → EmbedClientOllama, "openai" → EmbedClientOpenai.
    One client is shared by every datastore manager of the process.
    """

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        """
        Returns:
            str: The lowercased engine name from EMBED_ENGINE.

        Raises:
            ConfigurationError: If EMBED_ENGINE is not set.
        """
        return self.helper_config.get_string_val("EMBED_ENGINE").strip().lower()

    def _initialize_client(self) -> EmbedClientInterface:
        """
        Imports and instantiates the client of the configured engine.

        Raises:
            ConfigurationError: If the engine is unknown or its settings are incomplete.
        """
        engine = self._get_engine_from_env()
        className = f"EmbedClient{engine.capitalize()}"
        try:
            module = __import__(f"shared.clients.embed.{engine}.{className}", fromlist=[className])
            client_class = getattr(module, className)
        except (ImportError, AttributeError) as e:
            raise ConfigurationError(f"Unsupported embedding engine '{engine}'. Error: {e}")

        client = client_class(helper_config=self.helper_config)
        self.logging.info(f"Using embedding engine '{engine}' with model '{client.embed_model}'.")
        return client

    def get_client(self) -> EmbedClientInterface:
        return self.client

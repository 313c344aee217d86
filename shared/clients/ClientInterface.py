from abc import ABC, abstractmethod
from typing import Any

import httpx

from shared.clients.ClientErrors import BackendUnreachableError, ConfigurationError, error_from_response
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class ClientInterface(ABC):
    """Base of every HTTP backend client (embedding providers, datastore managers).

    Subclasses describe their backend through the getters below; this class
    owns the httpx client, the timeout and the mapping of failures onto
    ClientError subclasses.
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        # e.g. EMBED_TIMEOUT, DATASTORE_TIMEOUT
        self.timeout = helper_config.get_number_val(f"{self.get_client_type().upper()}_TIMEOUT", default=30.0)
        self._client: httpx.AsyncClient | None = None
        self.validate_full_configuration()

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def validate_full_configuration(self) -> None:
        """
        Reads every required configuration value once so that missing settings fail at construction.

        Raises:
            ConfigurationError: If any required configuration value is missing or invalid.
        """
        for config in self._get_required_config():
            self.get_config_val(raw_key=config.env_key, default=config.default, val_type=config.val_type)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def get_client_type(self) -> str:
        return self._get_client_type().lower()

    @abstractmethod
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "embed" or "datastore"
        """
        pass

    def get_engine_name(self) -> str:
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        """
        Returns the name of the backend engine. E.g. "Qdrant" or "Ollama"
        """
        pass

    ################ CONFIG ##################
    @abstractmethod
    def _get_required_config(self) -> list[EnvConfig]:
        """
        Returns the environment settings the client needs, without the client prefix.

        Returns:
            list[EnvConfig]: One entry per setting; a None default marks the setting as required.
        """
        pass

    def _get_config_key_name(self, raw_key: str) -> str:
        """
        Returns:
            str: The prefixed environment key. E.g. "EMBED_OLLAMA_BASE_URL" for raw_key "base_url"
        """
        return f"{self.get_client_type().upper()}_{self.get_engine_name().upper()}_{raw_key.upper()}"

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """
        Reads a client-specific environment setting.

        Args:
            raw_key (str): Setting name without the client prefix, e.g. "BASE_URL".
            default (Any): Value used if the setting is not set. None makes the setting required.
            val_type (str): One of "string", "number", "bool", "list".

        Raises:
            ConfigurationError: If the setting is required but unset, malformed, or val_type is unknown.
        """
        readers = {
            "string": self._helper_config.get_string_val,
            "number": self._helper_config.get_number_val,
            "bool": self._helper_config.get_bool_val,
            "list": self._helper_config.get_list_val,
        }
        if val_type not in readers:
            raise ConfigurationError(
                f"Unsupported config value type '{val_type}' for '{raw_key}' of {self.get_client_type()} client '{self.get_engine_name()}'."
            )
        return readers[val_type](self._get_config_key_name(raw_key), default=default)

    ################ AUTH ##################
    @abstractmethod
    def _get_auth_header(self) -> dict:
        """
        Returns the authentication headers for the backend; empty if no credentials are configured.
        """
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_base_url(self) -> str:
        """
        Returns the base URL of the backend server (e.g. "http://localhost:6333").

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    @abstractmethod
    def _get_endpoint_healthcheck(self) -> str:
        """
        Returns the endpoint path for healthcheck requests (e.g. "/healthz").

        Raises:
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_healthcheck(self) -> httpx.Response:
        """Send a request to the backend's healthcheck endpoint.

        Raises:
            ClientError: If the backend is unreachable or answers with a non-2xx status.
        """
        return await self.do_request(method="GET", endpoint=self._get_endpoint_healthcheck(), raise_on_error=True)

    ##########################################
    ############ CORE REQUESTS ###############
    ##########################################

    async def boot(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Create the HTTP client. Must be called before any request.

        Args:
            transport (httpx.AsyncBaseTransport | None): Optional custom transport, e.g. httpx.MockTransport in tests.
        """
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=transport)

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def do_request(
        self,
        method: str = "GET",
        endpoint: str = "",
        content: str | bytes | None = None,
        json: dict | None = None,
        params: dict | None = None,
        additional_headers: dict | None = None,
        raise_on_error: bool = False,
    ) -> httpx.Response:
        """Send an HTTP request to the backend.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE).
            endpoint: Path appended to the base URL (leading slash optional).
            content: Pre-serialized body; pass its Content-Type in additional_headers.
            json: JSON-serialisable body, used if content is None.
            params: URL query parameters.
            additional_headers: Extra headers, overriding the auth header.
            raise_on_error: Raise a ClientError on any non-2xx status.

        Returns:
            The raw httpx.Response.

        Raises:
            RuntimeError: If boot() has not been called.
            BackendUnreachableError: On connection errors and timeouts.
            CollectionNotFoundError: On 404 (when raise_on_error is True).
            BackendRejectedError: On any other non-2xx status (when raise_on_error is True).
        """
        if self._client is None:
            raise RuntimeError("HTTP client not initialised. Call boot() before making requests.")

        endpoint = endpoint.strip()
        url = self._get_base_url().rstrip("/") + ("/" + endpoint.lstrip("/") if endpoint else "")
        headers = {**self._get_auth_header(), **(additional_headers or {})}
        body: dict = {"content": content} if content is not None else {"json": json} if json is not None else {}

        try:
            response = await self._client.request(method, url, headers=headers, params=params, **body)
        except httpx.TransportError as exc:
            self.logging.error("Request to %s could not be completed: %s", url, exc)
            raise BackendUnreachableError(f"Request to {url} could not be completed: {exc}") from exc

        if raise_on_error and not response.is_success:
            # 404 is an expected signal for lazily created collections
            log = self.logging.info if response.status_code == 404 else self.logging.error
            log("Request to %s failed with status %d: %s", url, response.status_code, response.text)
            raise error_from_response(url, response)

        return response

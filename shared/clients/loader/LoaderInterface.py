from abc import ABC, abstractmethod
import re
import unicodedata

import httpx

from shared.clients.ClientErrors import ConfigurationError
from shared.helper.HelperConfig import HelperConfig
from shared.models.datastore import Datasource
from shared.models.document import Document, DocumentMetadata


def normalise_text(text: str) -> str:
    """Unicode NFC, collapse whitespace, strip control chars."""
    text = unicodedata.normalize("NFC", text)
    text = re.sub(r"[^\S\n]+", " ", text)  # collapse spaces (keep \n)
    text = re.sub(r"\n{3,}", "\n\n", text)  # max two consecutive newlines
    text = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f]", "", text)
    return text.strip()


class LoaderInterface(ABC):
    """Turns one datasource into one normalized Document."""

    def __init__(self, helper_config: HelperConfig, datasource: Datasource, transport: httpx.AsyncBaseTransport | None = None):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self.datasource = datasource
        self.timeout = helper_config.get_number_val("LOADER_TIMEOUT", default=30.0)
        self._transport = transport

    ##########################################
    ################ GETTER ##################
    ##########################################

    def get_config_val(self, key: str) -> str:
        """
        Reads a required value from the datasource config.

        Raises:
            ConfigurationError: If the value is missing or empty.
        """
        value = self.datasource.config.get(key)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ConfigurationError(
                f"Datasource '{self.datasource.id}' of type '{self.datasource.type.value}' has no '{key}' configured."
            )
        return value

    def get_source(self) -> str | None:
        """
        Returns the origin of the content (URL, path, ...) stored with every chunk.
        """
        return self.datasource.config.get("source")

    ##########################################
    ################ LOADING #################
    ##########################################

    @abstractmethod
    async def _do_load_text(self) -> tuple[str, dict]:
        """
        Reads the raw text of the datasource.

        Returns:
            tuple[str, dict]: The text and extra metadata (e.g. {"title": "..."}).

        Raises:
            SourceLoadError: If the source cannot be read.
            NotImplementedError: If the method is not implemented in a subclass.
        """
        pass

    async def load(self) -> Document:
        """Load the datasource and attach the metadata required by the ingestion pipeline.

        Returns:
            Document: The normalized text with datasource_id, source_type, source and tags.
        """
        text, extra_metadata = await self._do_load_text()
        metadata = DocumentMetadata(
            datasource_id=self.datasource.id,
            source_type=self.datasource.type,
            source=self.get_source(),
            tags=list(self.datasource.tags),
            **extra_metadata,
        )
        self.logging.debug(
            "Loaded %d characters from datasource '%s' (%s).",
            len(text), self.datasource.id, self.datasource.type.value,
        )
        return Document(text=normalise_text(text), metadata=metadata)

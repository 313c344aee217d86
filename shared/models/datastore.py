"""Pydantic models for the records handed over by the relational layer.

  Datastore   — one logical vector collection plus its backend configuration.
  Datasource  — one ingested content source contributing chunks to a Datastore.

Both records are owned by the relational layer; this package only reads them.
Ownership checks happen before any of these records reach the pipelines.
"""

from enum import Enum

from pydantic import BaseModel


class DatastoreType(str, Enum):
    """Supported vector-store backends. The value names the backend package."""

    QDRANT = "qdrant"


class DatasourceType(str, Enum):
    """Supported content sources. The value names the loader package."""

    WEB_PAGE = "web_page"
    TEXT = "text"
    FILE = "file"


class Datastore(BaseModel):
    """A logical collection of vectors belonging to one owner.

    The type stays a plain string so that an unknown backend tag is reported
    by the manager factory as a configuration error, not as a validation error
    while reading the record.

    Attributes:
        id:       Datastore identifier. Also the name of the backing collection.
        type:     Backend-type tag, e.g. "qdrant".
        config:   Backend-specific configuration (endpoint, api key, distance, ...).
        owner_id: Reference to the owning user.
    """

    id: str
    type: str
    config: dict = {}
    owner_id: str | None = None


class Datasource(BaseModel):
    """One ingested content source.

    Attributes:
        id:           Datasource identifier, stored on every vector as datasource_id.
        datastore_id: The datastore receiving this source's chunks.
        owner_id:     The owning user.
        type:         Source type, used to resolve the loader.
        name:         Display name.
        config:       Loader-specific settings, e.g. {"source": "https://..."} or {"text": "..."}.
        tags:         Free-form tags copied onto every chunk.
    """

    id: str
    datastore_id: str
    owner_id: str
    type: DatasourceType
    name: str = ""
    config: dict = {}
    tags: list[str] = []

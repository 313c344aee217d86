"""Pydantic models for data flowing through the ingestion pipeline.

Hierarchy:
  Document  — normalized loader output: the full text of one datasource.
  Chunk     — atomic unit stored in the vector index, mapped 1:1 to a point.
"""

from pydantic import BaseModel, ConfigDict

from shared.models.datastore import DatasourceType


class DocumentMetadata(BaseModel):
    """Metadata every loader must attach to its document.

    Extra keys produced by a loader (title, content type, ...) are kept.
    """

    model_config = ConfigDict(extra="allow")

    datasource_id: str
    source_type: DatasourceType
    source: str | None = None
    tags: list[str] = []


class Document(BaseModel):
    text: str
    metadata: DocumentMetadata


class ChunkMetadata(BaseModel):
    """Metadata stored with each chunk.

    Attributes:
        chunk_id:        Deterministic identifier; re-ingesting the same datasource
                         yields the same ids, so a re-upload replaces instead of duplicating.
        datasource_id:   Owning datasource.
        source:          Where the text came from (URL, path, ...).
        tags:            Tags copied from the datasource.
        chunk_hash:      SHA-256 hex digest of the chunk text.
        datasource_hash: SHA-256 hex digest of the whole document text.
                         Identical across all chunks of the same datasource.
        chunk_offset:    Zero-based position of the chunk within the document.
    """

    chunk_id: str
    datasource_id: str
    source: str | None = None
    tags: list[str] = []
    chunk_hash: str
    datasource_hash: str
    chunk_offset: int


class Chunk(BaseModel):
    text: str
    metadata: ChunkMetadata

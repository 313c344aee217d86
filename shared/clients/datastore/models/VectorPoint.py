"""Metadata payload stored alongside each vector in a datastore backend."""

from pydantic import BaseModel

from shared.models.document import Chunk


class VectorPoint(BaseModel):
    """Payload stored alongside each vector.

    The chunk id is the point id and the vector is stored separately, so
    neither appears here. Backends register datasource_id, tags and text as
    filterable indexes.

    Attributes:
        datasource_id:   Owning datasource; used by remove() to drop all its points.
        text:            Raw text content of this chunk.
        source:          Origin of the text (URL, file path, ...).
        tags:            Free-form tags used for hard metadata filtering.
        chunk_hash:      SHA-256 hex digest of the chunk text.
        chunk_offset:    Zero-based position of this chunk within the document.
        datasource_hash: SHA-256 hex digest of the whole document.
                         Identical across all chunks of the same datasource.
                         Used to skip re-embedding unchanged datasources.
    """

    datasource_id: str
    text: str
    source: str | None = None
    tags: list[str] = []
    chunk_hash: str
    chunk_offset: int
    datasource_hash: str

    @classmethod
    def from_chunk(cls, chunk: Chunk) -> "VectorPoint":
        metadata = chunk.metadata
        return cls(
            datasource_id=metadata.datasource_id,
            text=chunk.text,
            source=metadata.source,
            tags=metadata.tags,
            chunk_hash=metadata.chunk_hash,
            chunk_offset=metadata.chunk_offset,
            datasource_hash=metadata.datasource_hash,
        )

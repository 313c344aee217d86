from typing import Literal

from pydantic import BaseModel, Field


class QdrantConfig(BaseModel):
    """Backend configuration of a Qdrant datastore, read from Datastore.config.

    Attributes:
        base_url:         Qdrant REST endpoint, e.g. "http://localhost:6333".
        api_key:          Optional API key, sent as the "api-key" header.
        distance:         Distance metric of the collection.
        batch_size:       Maximum number of points per upsert request.
        hnsw_m:           HNSW graph degree used when creating the collection.
        memmap_threshold: Segment size (kB) above which vectors are memory-mapped.
        on_disk_payload:  Keep payloads on disk instead of in RAM.
    """

    base_url: str = Field(min_length=1)
    api_key: str | None = None
    distance: Literal["Cosine", "Euclid", "Dot", "Manhattan"] = "Cosine"
    batch_size: int = Field(default=50, gt=0)
    hnsw_m: int = Field(default=16, gt=0)
    memmap_threshold: int = Field(default=1024, ge=0)
    on_disk_payload: bool = True

"""Character-window text splitting and chunk identity helpers."""

import hashlib
import uuid

# Fixed namespace for deterministic UUIDv5 chunk ids.
# Changing this value would invalidate all existing point IDs in every datastore.
_CHUNK_ID_NAMESPACE = uuid.UUID("6f4d3c2b-1a09-4e5f-8b7c-6d5e4f3a2b1c")


def split_text(text: str, chunk_size: int = 1000, chunk_overlap: int = 100) -> list[str]:
    """Split a document's text into overlapping chunks.

    Args:
        text (str): The full document text.
        chunk_size (int): Characters per chunk.
        chunk_overlap (int): Characters shared by consecutive chunks.

    Returns:
        list[str]: Ordered list of text chunks. Empty for empty or whitespace-only text.

    Raises:
        ValueError: If chunk_size is not positive or the overlap is not smaller than chunk_size.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive.")
    if chunk_overlap < 0 or chunk_overlap >= chunk_size:
        raise ValueError("chunk_overlap must be between 0 and chunk_size - 1.")
    if not text or not text.strip():
        return []
    chunks: list[str] = []
    start = 0
    while start < len(text):
        end = min(start + chunk_size, len(text))
        chunks.append(text[start:end])
        if end >= len(text):
            break
        start = end - chunk_overlap
    return chunks


def make_chunk_id(datasource_id: str, chunk_offset: int) -> str:
    """Build a deterministic UUID5 chunk id.

    The same datasource position always maps to the same id, so re-ingesting
    a datasource overwrites rather than duplicates.

    Args:
        datasource_id (str): The owning datasource.
        chunk_offset (int): Zero-based chunk position within the document.

    Returns:
        str: UUID string usable as a point ID.
    """
    return str(uuid.uuid5(_CHUNK_ID_NAMESPACE, f"{datasource_id}:{chunk_offset}"))


def content_hash(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()

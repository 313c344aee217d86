"""Shared pytest configuration and fixtures."""

import logging

import httpx
import pytest

from fakes import OLLAMA_URL, FakeOllama, FakeQdrant, make_datastore
from shared.clients.datastore.qdrant.DatastoreManagerQdrant import DatastoreManagerQdrant
from shared.clients.embed.ollama.EmbedClientOllama import EmbedClientOllama
from shared.helper.HelperConfig import HelperConfig


@pytest.fixture()
def helper_config(monkeypatch: pytest.MonkeyPatch) -> HelperConfig:
    monkeypatch.setenv("EMBED_MODEL", "nomic-embed-text")
    monkeypatch.setenv("EMBED_OLLAMA_BASE_URL", OLLAMA_URL)
    for key in (
        "EMBED_ENGINE",
        "EMBED_VECTOR_SIZE",
        "EMBED_BATCH_SIZE",
        "EMBED_OLLAMA_API_KEY",
        "EMBED_OLLAMA_TRUNCATE",
        "EMBED_OLLAMA_KEEP_ALIVE",
        "EMBED_OPENAI_API_KEY",
        "EMBED_OPENAI_BASE_URL",
        "EMBED_TIMEOUT",
        "DATASTORE_TIMEOUT",
        "LOADER_TIMEOUT",
        "INGEST_CHUNK_SIZE",
        "INGEST_CHUNK_OVERLAP",
    ):
        monkeypatch.delenv(key, raising=False)
    return HelperConfig(logger=logging.getLogger("tests"))


@pytest.fixture()
def fake_qdrant() -> FakeQdrant:
    return FakeQdrant()


@pytest.fixture()
def fake_ollama() -> FakeOllama:
    return FakeOllama()


@pytest.fixture()
async def embed_client(helper_config: HelperConfig, fake_ollama: FakeOllama):
    client = EmbedClientOllama(helper_config=helper_config)
    await client.boot(transport=httpx.MockTransport(fake_ollama.handler))
    yield client
    await client.close()


@pytest.fixture()
async def manager(helper_config: HelperConfig, embed_client: EmbedClientOllama, fake_qdrant: FakeQdrant):
    manager = DatastoreManagerQdrant(helper_config=helper_config, datastore=make_datastore(), embed_client=embed_client)
    await manager.boot(transport=httpx.MockTransport(fake_qdrant.handler))
    yield manager
    await manager.close()


@pytest.fixture()
def restore_root_logging():
    """Undo the root handlers installed by setup_logging()."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)

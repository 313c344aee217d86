import pytest

from fakes import QDRANT_URL, make_datastore
from shared.clients.ClientErrors import ConfigurationError
from shared.clients.datastore.DatastoreManagerFactory import DatastoreManagerFactory
from shared.clients.datastore.qdrant.DatastoreManagerQdrant import DatastoreManagerQdrant
from shared.models.datastore import Datastore


@pytest.fixture()
def factory(helper_config, embed_client) -> DatastoreManagerFactory:
    return DatastoreManagerFactory(helper_config=helper_config, embed_client=embed_client)


async def test_creates_qdrant_manager_bound_to_datastore(factory: DatastoreManagerFactory):
    datastore = make_datastore("tenant-a", distance="Dot", batch_size=10)

    manager = factory.create_manager(datastore)

    assert isinstance(manager, DatastoreManagerQdrant)
    assert manager.datastore is datastore
    assert manager.get_collection_name() == "tenant-a"
    assert manager.config.distance == "Dot"
    assert manager.get_batch_size() == 10


async def test_type_tag_is_case_insensitive(factory: DatastoreManagerFactory):
    datastore = Datastore(id="tenant-a", type=" Qdrant ", config={"base_url": QDRANT_URL})

    assert isinstance(factory.create_manager(datastore), DatastoreManagerQdrant)


async def test_managers_keep_their_own_configuration(factory: DatastoreManagerFactory):
    first = factory.create_manager(make_datastore("tenant-a"))
    second = factory.create_manager(
        Datastore(id="tenant-b", type="qdrant", config={"base_url": "http://other.test:6333", "api_key": "k"})
    )

    assert first._get_base_url() == QDRANT_URL
    assert second._get_base_url() == "http://other.test:6333"
    assert first._get_auth_header() == {}
    assert second._get_auth_header() == {"api-key": "k"}


async def test_unknown_type_raises_configuration_error(factory: DatastoreManagerFactory):
    datastore = Datastore(id="tenant-a", type="pinecone", config={"base_url": QDRANT_URL})

    with pytest.raises(ConfigurationError, match="pinecone"):
        factory.create_manager(datastore)


async def test_missing_base_url_raises_configuration_error(factory: DatastoreManagerFactory):
    datastore = Datastore(id="tenant-a", type="qdrant", config={})

    with pytest.raises(ConfigurationError):
        factory.create_manager(datastore)

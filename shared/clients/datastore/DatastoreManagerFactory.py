from shared.clients.ClientErrors import ConfigurationError
from shared.clients.datastore.DatastoreManagerInterface import DatastoreManagerInterface
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.datastore import Datastore, DatastoreType


class DatastoreManagerFactory:
    """
    Factory creating the datastore manager that matches a datastore's backend type.

    Each manager is bound to one datastore and its configuration, so managers
    for different tenants and backends can coexist in one process.
    """

    def __init__(self, helper_config: HelperConfig, embed_client: EmbedClientInterface):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self._embed_client = embed_client

    def _get_datastore_type(self, datastore: Datastore) -> DatastoreType:
        """
        Resolves the backend-type tag of a datastore.

        Returns:
            DatastoreType: The matching backend type.

        Raises:
            ConfigurationError: If the tag names no supported backend.
        """
        tag = (datastore.type or "").strip().lower()
        try:
            return DatastoreType(tag)
        except ValueError:
            supported = ", ".join(t.value for t in DatastoreType)
            raise ConfigurationError(
                f"Unsupported datastore type '{datastore.type}' for datastore '{datastore.id}'. Supported: {supported}."
            )

    def create_manager(self, datastore: Datastore) -> DatastoreManagerInterface:
        """
        Instantiates the manager for the given datastore. The manager still needs boot() before use.

        Args:
            datastore (Datastore): The datastore record, including its backend configuration.

        Returns:
            DatastoreManagerInterface: A manager bound to the datastore.

        Raises:
            ConfigurationError: If the backend type is unknown or the configuration is invalid.
        """
        datastore_type = self._get_datastore_type(datastore)
        engine = datastore_type.value.capitalize()
        className = f"DatastoreManager{engine}"
        # import the class from shared.clients.datastore.{engine}
        try:
            module = __import__(
                f"shared.clients.datastore.{datastore_type.value}.{className}",
                fromlist=[className],
            )
            manager_class = getattr(module, className)
        except (ImportError, AttributeError) as e:
            raise ConfigurationError(f"Datastore backend '{datastore_type.value}' could not be loaded. Error: {e}")

        manager = manager_class(
            helper_config=self.helper_config,
            datastore=datastore,
            embed_client=self._embed_client,
        )
        self.logging.debug(f"Instantiated datastore manager {className} for datastore: {datastore.id}")
        return manager

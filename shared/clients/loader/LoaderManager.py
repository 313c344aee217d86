import httpx

from shared.clients.ClientErrors import ConfigurationError
from shared.clients.loader.LoaderInterface import LoaderInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.datastore import Datasource, DatasourceType


class LoaderManager:
    """
    Manager class resolving the loader for a datasource's source type.
    """

    def __init__(self, helper_config: HelperConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self._transport = transport

    def _get_class_name(self, source_type: DatasourceType) -> str:
        # "web_page" → "LoaderWebPage"
        return "Loader" + "".join(part.capitalize() for part in source_type.value.split("_"))

    def get_loader(self, datasource: Datasource) -> LoaderInterface:
        """
        Instantiates the loader for the given datasource.

        Args:
            datasource (Datasource): The datasource to load.

        Returns:
            LoaderInterface: A loader bound to the datasource.

        Raises:
            ConfigurationError: If no loader exists for the datasource type.
        """
        className = self._get_class_name(datasource.type)
        try:
            module = __import__(
                f"shared.clients.loader.{datasource.type.value}.{className}",
                fromlist=[className],
            )
            loader_class = getattr(module, className)
        except (ImportError, AttributeError) as e:
            raise ConfigurationError(f"Unsupported datasource type '{datasource.type.value}'. Error: {e}")

        self.logging.debug(f"Instantiated loader {className} for datasource: {datasource.id}")
        return loader_class(helper_config=self.helper_config, datasource=datasource, transport=self._transport)

import httpx
import pytest

from shared.clients.ClientErrors import ConfigurationError, SourceLoadError
from shared.clients.loader.LoaderInterface import normalise_text
from shared.clients.loader.LoaderManager import LoaderManager
from shared.clients.loader.file.LoaderFile import LoaderFile
from shared.clients.loader.text.LoaderText import LoaderText
from shared.clients.loader.web_page.LoaderWebPage import LoaderWebPage
from shared.models.datastore import Datasource, DatasourceType

PAGE = """
<html>
  <head><title> Password help </title><style>body { color: red; }</style></head>
  <body>
    <script>var tracking = true;</script>
    <h1>Reset your password</h1>
    <p>Open   the account settings.</p>
    <noscript>Enable JavaScript</noscript>
  </body>
</html>
"""


def make_datasource(source_type: DatasourceType, **config) -> Datasource:
    return Datasource(
        id="ds-1",
        datastore_id="datastore-1",
        owner_id="user-1",
        type=source_type,
        config=config,
        tags=["help"],
    )


def test_manager_resolves_loader_per_type(helper_config):
    loader_manager = LoaderManager(helper_config=helper_config)

    assert isinstance(loader_manager.get_loader(make_datasource(DatasourceType.WEB_PAGE, source="https://x")), LoaderWebPage)
    assert isinstance(loader_manager.get_loader(make_datasource(DatasourceType.TEXT, text="t")), LoaderText)
    assert isinstance(loader_manager.get_loader(make_datasource(DatasourceType.FILE, source="/tmp/x")), LoaderFile)


async def test_web_page_extracts_visible_text(helper_config):
    requested: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        return httpx.Response(200, text=PAGE, headers={"Content-Type": "text/html"})

    datasource = make_datasource(DatasourceType.WEB_PAGE, source="https://docs.example.com/help")
    loader = LoaderManager(helper_config=helper_config, transport=httpx.MockTransport(handler)).get_loader(datasource)

    document = await loader.load()

    assert requested == ["https://docs.example.com/help"]
    assert document.text == "Password help\nReset your password\nOpen the account settings."
    assert "tracking" not in document.text
    assert "JavaScript" not in document.text
    assert document.metadata.datasource_id == "ds-1"
    assert document.metadata.source_type == DatasourceType.WEB_PAGE
    assert document.metadata.source == "https://docs.example.com/help"
    assert document.metadata.tags == ["help"]
    assert document.metadata.title == "Password help"


@pytest.mark.parametrize("status_code", [404, 500])
async def test_web_page_http_error_raises_source_load_error(helper_config, status_code):
    datasource = make_datasource(DatasourceType.WEB_PAGE, source="https://docs.example.com/missing")
    loader = LoaderWebPage(
        helper_config=helper_config,
        datasource=datasource,
        transport=httpx.MockTransport(lambda request: httpx.Response(status_code)),
    )

    with pytest.raises(SourceLoadError):
        await loader.load()


async def test_web_page_unreachable_raises_source_load_error(helper_config):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Name or service not known", request=request)

    datasource = make_datasource(DatasourceType.WEB_PAGE, source="https://nowhere.invalid")
    loader = LoaderWebPage(helper_config=helper_config, datasource=datasource, transport=httpx.MockTransport(handler))

    with pytest.raises(SourceLoadError):
        await loader.load()


async def test_web_page_without_source_is_a_configuration_error(helper_config):
    loader = LoaderWebPage(helper_config=helper_config, datasource=make_datasource(DatasourceType.WEB_PAGE))

    with pytest.raises(ConfigurationError):
        await loader.load()


async def test_text_loader_normalises_inline_text(helper_config):
    loader = LoaderText(helper_config=helper_config, datasource=make_datasource(DatasourceType.TEXT, text="  a\t\tb\n\n\n\nc  "))

    document = await loader.load()

    assert document.text == "a b\n\nc"
    assert document.metadata.source is None


async def test_file_loader_reads_utf8_file(helper_config, tmp_path):
    path = tmp_path / "notes.md"
    path.write_text("# Notes\n\nÜmlauts are fine.", encoding="utf-8")
    loader = LoaderFile(helper_config=helper_config, datasource=make_datasource(DatasourceType.FILE, source=str(path)))

    document = await loader.load()

    assert document.text == "# Notes\n\nÜmlauts are fine."
    assert document.metadata.source == str(path)
    assert document.metadata.title == "notes.md"


async def test_file_loader_missing_file_raises_source_load_error(helper_config, tmp_path):
    datasource = make_datasource(DatasourceType.FILE, source=str(tmp_path / "absent.txt"))
    loader = LoaderFile(helper_config=helper_config, datasource=datasource)

    with pytest.raises(SourceLoadError):
        await loader.load()


def test_normalise_text_strips_control_characters():
    assert normalise_text("été\x00\x07 ok") == "été ok"

from shared.clients.loader.LoaderInterface import LoaderInterface


class LoaderText(LoaderInterface):
    """Raw text passed inline in the datasource config."""

    async def _do_load_text(self) -> tuple[str, dict]:
        return self.get_config_val("text"), {}

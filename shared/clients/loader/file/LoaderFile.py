import asyncio
from pathlib import Path

from shared.clients.ClientErrors import SourceLoadError
from shared.clients.loader.LoaderInterface import LoaderInterface


class LoaderFile(LoaderInterface):
    """Reads a UTF-8 text file (plain text, markdown, ...) from the local filesystem."""

    async def _do_load_text(self) -> tuple[str, dict]:
        path = Path(self.get_config_val("source"))
        try:
            text = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            self.logging.error("Reading %s failed: %s", path, exc)
            raise SourceLoadError(f"Reading {path} failed: {exc}") from exc
        return text, {"title": path.name}

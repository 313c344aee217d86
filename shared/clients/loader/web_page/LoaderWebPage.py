import httpx
from bs4 import BeautifulSoup

from shared.clients.ClientErrors import SourceLoadError
from shared.clients.loader.LoaderInterface import LoaderInterface

# boiler-plate tags without readable content
_STRIP_TAGS = ["script", "style", "noscript", "iframe", "template"]


class LoaderWebPage(LoaderInterface):
    """Fetches a single web page and extracts its visible text."""

    def _extract_title(self, soup: BeautifulSoup) -> str:
        """Best-effort title from HTML."""
        if soup.title and soup.title.string:
            return soup.title.string.strip()
        h1 = soup.find("h1")
        if h1:
            return h1.get_text(strip=True)
        return ""

    async def _do_load_text(self) -> tuple[str, dict]:
        url = self.get_config_val("source")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport, follow_redirects=True) as client:
                response = await client.get(url)
        except httpx.TransportError as exc:
            self.logging.error("Fetching %s failed: %s", url, exc)
            raise SourceLoadError(f"Fetching {url} failed: {exc}") from exc

        if response.status_code >= 300:
            self.logging.error("Fetching %s failed with status %d.", url, response.status_code)
            raise SourceLoadError(f"Fetching {url} failed with status {response.status_code}")

        soup = BeautifulSoup(response.text, "html.parser")
        for tag in soup(_STRIP_TAGS):
            tag.decompose()

        return soup.get_text(separator="\n", strip=True), {"title": self._extract_title(soup)}

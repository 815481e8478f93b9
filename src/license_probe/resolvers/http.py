"""Download of license texts referenced by license manifests."""

import logging
from typing import Optional

import aiohttp

from license_probe.cache import ProbeCache

logger = logging.getLogger(__name__)


class LicenseTextFetcher:
    """Fetches license texts over HTTP, at most once per URL.

    Manages a shared aiohttp.ClientSession for connection pooling and reuse.
    Results, including failures, are stored in the ProbeCache so a URL is
    never requested twice while the cache lives.

    Attributes:
        cache: Cache holding downloaded texts.
        timeout: Total seconds allowed for a single download.
    """

    DEFAULT_TIMEOUT = 30.0

    def __init__(self, cache: ProbeCache, timeout: float = DEFAULT_TIMEOUT) -> None:
        """Initialize the fetcher.

        Args:
            cache: Cache holding downloaded texts.
            timeout: Total seconds allowed for a single download.
        """
        self.cache = cache
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Return the open session, creating one after close() or on first use."""
        if self._session is None or self._session.closed:
            self._session = self._create_session()
        return self._session

    def _create_session(self) -> aiohttp.ClientSession:
        """Create a session whose requests are bounded by the fetcher timeout.

        Subclasses can override this to add proxies or custom headers.
        """
        return aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))

    async def fetch(self, url: str) -> Optional[str]:
        """Return the text behind a URL, downloading it on first use.

        Args:
            url: http(s) URL of a license text.

        Returns:
            The response body, or None if the download failed.
        """
        if self.cache.has_text(url):
            logger.debug("Using cached license text for %s", url)
            return self.cache.get_text(url)

        text = await self._download(url)
        self.cache.set_text(url, text)
        return text

    async def _download(self, url: str) -> Optional[str]:
        logger.debug("Fetching license text from %s", url)
        try:
            session = await self._get_session()
            async with session.get(url) as response:
                if response.status != 200:
                    logger.warning(
                        "License URL %s returned status %d", url, response.status
                    )
                    return None
                return await response.text()
        except (aiohttp.ClientError, TimeoutError) as e:
            logger.warning("Network error fetching license text from %s: %s", url, e)
            return None
        except UnicodeDecodeError as e:
            logger.warning("License text at %s is not text: %s", url, e)
            return None

    async def close(self) -> None:
        """Close the HTTP session if one was opened.

        Cached texts stay available; a later fetch opens a new session.
        """
        if self._session is not None and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "LicenseTextFetcher":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

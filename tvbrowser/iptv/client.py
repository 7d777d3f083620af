"""iptv-org API client for channel, stream, logo and blocklist data."""
import logging
import os
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Any, Callable

import requests

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://iptv-org.github.io/api"
COLLECTIONS = ("channels", "streams", "logos", "blocklist")


class IptvClient:
    """Client for the iptv-org JSON API."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 30,
        endpoints: dict[str, str] | None = None,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ):
        self.base_url = (base_url or os.getenv("IPTV_API_URL", DEFAULT_API_URL)).rstrip("/")
        self.timeout = timeout
        self.endpoints = {name: f"{self.base_url}/{name}.json" for name in COLLECTIONS}
        self.endpoints.update(endpoints or {})
        self.session_factory = session_factory

    def _get(self, name: str) -> list[Any]:
        """GET one collection; the payload must be a JSON array."""
        url = self.endpoints[name]
        # requests.Session is not thread-safe; each fetch gets its own
        with self.session_factory() as session:
            session.headers.update({"Accept": "application/json"})
            r = session.get(url, timeout=self.timeout)
            r.raise_for_status()
            data = r.json()
        if not isinstance(data, list):
            raise ValueError(f"Expected a JSON array from {url}, got {type(data).__name__}")
        logger.debug("Fetched %d %s from %s", len(data), name, url)
        return data

    def fetch_channels(self) -> list[dict]:
        return self._get("channels")

    def fetch_streams(self) -> list[dict]:
        return self._get("streams")

    def fetch_logos(self) -> list[dict]:
        return self._get("logos")

    def fetch_blocklist(self) -> list[dict]:
        return self._get("blocklist")

    def fetch_all(self) -> tuple[list[dict], list[dict], list[dict], list[dict]]:
        """
        Fetch all four collections concurrently.
        Returns (channels, streams, logos, blocklist). The first failure is raised
        as soon as it happens, without waiting for the other fetches.
        """
        executor = ThreadPoolExecutor(max_workers=len(COLLECTIONS))
        try:
            futures = [
                executor.submit(self.fetch_channels),
                executor.submit(self.fetch_streams),
                executor.submit(self.fetch_logos),
                executor.submit(self.fetch_blocklist),
            ]
            done, _ = wait(futures, return_when=FIRST_EXCEPTION)
            for future in futures:
                if future in done and future.exception() is not None:
                    raise future.exception()
            channels, streams, logos, blocklist = (f.result() for f in futures)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        logger.info(
            "Fetched %d channels, %d streams, %d logos, %d blocked",
            len(channels),
            len(streams),
            len(logos),
            len(blocklist),
        )
        return channels, streams, logos, blocklist

"""Channel feed: fetch, aggregate and hold the latest channel list."""
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

from tvbrowser.channels.aggregator import DEFAULT_LIMIT, aggregate
from tvbrowser.channels.models import ChannelView
from tvbrowser.iptv.client import IptvClient

logger = logging.getLogger(__name__)


def load_channels(client: IptvClient, limit: int = DEFAULT_LIMIT) -> list[ChannelView]:
    """Fetch the four collections and reduce them. Retrieval errors propagate."""
    channels, streams, logos, blocklist = client.fetch_all()
    return aggregate(channels, streams, logos, blocklist, limit)


class ChannelFeed:
    """
    Loads channel lists in the background for a UI.

    Each request supersedes the previous one: when an older load finishes after
    a newer request was made, its result is dropped. The last successful list is
    kept across failed loads so the caller can keep showing it.
    """

    def __init__(self, client: IptvClient, default_limit: int = DEFAULT_LIMIT):
        self.client = client
        self.default_limit = default_limit
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="channel-feed")
        self._generation = 0
        self._limit = default_limit
        self._data: list[ChannelView] | None = None
        self._error: Exception | None = None
        self._loading = False

    def request(self, limit: int | None = None) -> Future:
        """Start a load for `limit`. The future resolves to None if superseded."""
        limit = self.default_limit if limit is None else limit
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._limit = limit
            self._loading = True
        return self._executor.submit(self._load, limit, generation)

    def load(self, limit: int | None = None) -> list[ChannelView] | None:
        """Blocking request; raises the retrieval error if this load is still current."""
        return self.request(limit).result()

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _load(self, limit: int, generation: int) -> list[ChannelView] | None:
        with self._lock:
            if not self._is_current(generation):
                logger.debug("Skipping superseded load (limit %d)", limit)
                return None
        try:
            result = load_channels(self.client, limit)
        except Exception as e:
            with self._lock:
                if not self._is_current(generation):
                    logger.debug("Discarding failed stale load (limit %d)", limit)
                    return None
                self._error = e
                self._loading = False
            logger.exception("Channel load failed (limit %d): %s", limit, e)
            raise

        with self._lock:
            if not self._is_current(generation):
                logger.debug("Discarding stale load (limit %d)", limit)
                return None
            self._data = result
            self._error = None
            self._loading = False
        logger.info("Loaded %d channel(s) (limit %d)", len(result), limit)
        return result

    def snapshot(self) -> dict[str, Any]:
        """Current state: last good data, loading flag, last error, requested limit."""
        with self._lock:
            return {
                "data": list(self._data) if self._data is not None else None,
                "loading": self._loading,
                "error": self._error,
                "limit": self._limit,
            }

    def is_healthy(self) -> bool:
        """True once a load succeeded and the latest one did not fail."""
        with self._lock:
            return self._data is not None and self._error is None

    def close(self) -> None:
        self._executor.shutdown(wait=False)

"""HTTP server exposing the aggregated channel list as JSON and M3U."""
import json
import logging
from http.server import BaseHTTPRequestHandler, HTTPServer
from urllib.parse import parse_qs, unquote, urlparse

from tvbrowser.channels.models import ChannelView
from tvbrowser.channels.service import ChannelFeed
from tvbrowser.http.m3u import generate_m3u

logger = logging.getLogger(__name__)


class ChannelRequestHandler(BaseHTTPRequestHandler):
    """Serves channels.json, channels.m3u, health and an index page."""

    feed: ChannelFeed | None = None

    def _norm_path(self) -> str:
        """Normalize request path for matching."""
        return unquote(urlparse(self.path).path).strip("/").lower() or ""

    def _query_limit(self) -> int | None:
        """Parse ?limit=N. Raises ValueError for non-integer or negative values."""
        values = parse_qs(urlparse(self.path).query).get("limit")
        if not values:
            return None
        limit = int(values[0])
        if limit < 0:
            raise ValueError(f"limit must be >= 0, got {limit}")
        return limit

    def _send_content(
        self,
        content: str | bytes,
        content_type: str,
        status: int = 200,
        headers: dict[str, str] | None = None,
    ):
        data = content.encode("utf-8") if isinstance(content, str) else content
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(data)))
        for key, value in (headers or {}).items():
            self.send_header(key, value)
        self.end_headers()
        self.wfile.write(data)

    def _send_json(self, payload, status: int = 200, headers: dict[str, str] | None = None):
        self._send_content(json.dumps(payload), "application/json", status, headers)

    def _send_index(self):
        html = """<!DOCTYPE html>
<html><head><title>tvbrowser</title></head><body>
<h1>tvbrowser</h1>
<ul>
<li><a href="/channels.json">channels.json</a> - Channel list for the TV UI</li>
<li><a href="/channels.m3u">channels.m3u</a> - M3U playlist</li>
<li><a href="/health">health</a> - Health check</li>
</ul>
</body></html>"""
        self._send_content(html, "text/html")

    def _channels(self) -> tuple[list[ChannelView], dict[str, str]] | None:
        """
        Load channels for the requested limit. On retrieval failure fall back to
        the last good list cut to the limit (marked stale); with none, reply with an error and
        return None.
        """
        try:
            limit = self._query_limit()
        except ValueError as e:
            self._send_json({"error": f"Invalid limit: {e}"}, status=400)
            return None
        cap = self.feed.default_limit if limit is None else limit

        try:
            channels = self.feed.load(limit)
        except Exception as e:
            logger.warning("Channel load failed: %s", e)
            last = self.feed.snapshot()["data"]
            if last is None:
                self._send_json({"error": str(e)}, status=502)
                return None
            return last[:cap], {"X-Stale": "1"}

        if channels is None:
            last = self.feed.snapshot()["data"]
            if last is None:
                self._send_json({"error": "Request superseded"}, status=503)
                return None
            return last[:cap], {"X-Stale": "1"}
        return channels, {}

    def do_GET(self):
        path = self._norm_path()

        if path == "":
            self._send_index()
            return
        if path == "health":
            ok = self.feed is not None and self.feed.is_healthy()
            self._send_content(b"OK" if ok else b"Unhealthy", "text/plain", 200 if ok else 503)
            return
        if self.feed is None or path not in ("channels.json", "channels.m3u"):
            self.send_error(404)
            return

        loaded = self._channels()
        if loaded is None:
            return
        channels, headers = loaded
        if path == "channels.json":
            self._send_json([ch.to_dict() for ch in channels], headers=headers)
        else:
            self._send_content(generate_m3u(channels), "audio/x-mpegurl", headers=headers)

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)


def run_http_server(
    feed: ChannelFeed,
    port: int = 8001,
    host: str = "0.0.0.0",
) -> HTTPServer:
    """Create the HTTP server; the caller runs serve_forever()."""
    ChannelRequestHandler.feed = feed
    server = HTTPServer((host, port), ChannelRequestHandler)
    logger.info("HTTP server listening on port %d", server.server_address[1])
    return server

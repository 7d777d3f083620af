"""tvbrowser - IPTV channel browser backend entry point."""
import logging
import signal
import sys

from tvbrowser.channels.service import ChannelFeed
from tvbrowser.config.loader import load_config
from tvbrowser.http.server import run_http_server
from tvbrowser.iptv.client import IptvClient

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

_feed: ChannelFeed | None = None
_http_server = None


def build_feed(config: dict) -> ChannelFeed:
    """Create the channel feed from config."""
    api = config["api"]
    client = IptvClient(
        base_url=api["base_url"],
        timeout=api["timeout"],
        endpoints=api["endpoints"],
    )
    return ChannelFeed(client, default_limit=config["channels"]["limit"])


def _shutdown(signum=None, frame=None):
    """Graceful shutdown."""
    logger.info("Shutting down...")
    if _feed:
        _feed.close()
    if _http_server:
        _http_server.server_close()
    sys.exit(0)


def main():
    """Main entry point."""
    global _feed, _http_server

    config = load_config()
    _feed = build_feed(config)

    # Warm up so the first UI request has data; failure is not fatal
    _feed.request()

    _http_server = run_http_server(_feed, port=config["server"]["port"])

    signal.signal(signal.SIGTERM, _shutdown)

    try:
        _http_server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        _shutdown()


if __name__ == "__main__":
    main()

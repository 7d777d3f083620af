"""Shared fixtures: canned iptv-org payloads and a fake HTTP session."""
from unittest import mock

import pytest
import requests

from tvbrowser.iptv.client import IptvClient

BASE = "https://api.test"

PAYLOADS = {
    f"{BASE}/channels.json": [
        {"id": "bbc1", "name": "BBC One"},
        {"id": "cnn", "name": "CNN"},
    ],
    f"{BASE}/streams.json": [
        {"channel": "bbc1", "url": "https://x/live.m3u8", "feed": "hd", "title": "BBC One HD"},
        {"channel": "cnn", "url": "https://cnn/live.m3u8", "referrer": "https://cnn.com/"},
        {"channel": "adult", "url": "https://adult/live.m3u8"},
    ],
    f"{BASE}/logos.json": [
        {"channel": "bbc1", "feed": None, "format": "SVG", "url": "https://logo/bbc1.svg"},
        {"channel": "bbc1", "feed": "hd", "format": "PNG", "url": "https://logo/bbc1-hd.png"},
    ],
    f"{BASE}/blocklist.json": [
        {"channel": "adult", "reason": "nsfw"},
    ],
}


def make_response(payload, status: int = 200) -> mock.Mock:
    response = mock.Mock(spec=requests.Response)
    response.status_code = status
    response.json.return_value = payload
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status} Error")
    else:
        response.raise_for_status.return_value = None
    return response


class FakeSession:
    """Stands in for requests.Session; answers from a url -> payload table."""

    def __init__(self, payloads=None, failures=None, gates=None):
        self.payloads = dict(PAYLOADS if payloads is None else payloads)
        self.failures = dict(failures or {})
        # url -> threading.Event the response waits for
        self.gates = dict(gates or {})
        self.headers = {}
        self.calls: list[str] = []
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def get(self, url, timeout=None, **kwargs):
        self.calls.append(url)
        if url in self.gates:
            self.gates[url].wait(timeout=10)
        if url in self.failures:
            failure = self.failures[url]
            if isinstance(failure, Exception):
                raise failure
            return make_response(None, status=failure)
        return make_response(self.payloads[url])

    def close(self):
        self.closed = True


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def client(session):
    return IptvClient(base_url=BASE, timeout=5, session_factory=lambda: session)

"""Tests for the HTTP surface, served on an ephemeral port."""
import threading

import pytest
import requests

from tvbrowser.channels.service import ChannelFeed
from tvbrowser.http.server import run_http_server
from tvbrowser.iptv.client import IptvClient

from conftest import BASE, FakeSession


@pytest.fixture
def api_session():
    return FakeSession()


@pytest.fixture
def base_url(api_session):
    feed = ChannelFeed(IptvClient(base_url=BASE, session_factory=lambda: api_session), default_limit=30)
    server = run_http_server(feed, port=0, host="127.0.0.1")
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}"
    server.shutdown()
    server.server_close()
    feed.close()


def test_index(base_url):
    r = requests.get(f"{base_url}/", timeout=5)
    assert r.status_code == 200
    assert "channels.json" in r.text


def test_channels_json(base_url):
    r = requests.get(f"{base_url}/channels.json", timeout=5)
    assert r.status_code == 200
    assert "X-Stale" not in r.headers
    body = r.json()
    assert [ch["id"] for ch in body] == ["bbc1", "cnn"]
    assert body[0] == {
        "id": "bbc1",
        "name": "BBC One",
        "url": "https://x/live.m3u8",
        "logo": "https://logo/bbc1-hd.png",
        "referrer": None,
        "userAgent": None,
        "streamTitle": "BBC One HD",
    }


def test_channels_json_limit(base_url):
    r = requests.get(f"{base_url}/channels.json?limit=1", timeout=5)
    assert [ch["id"] for ch in r.json()] == ["bbc1"]
    r = requests.get(f"{base_url}/channels.json?limit=0", timeout=5)
    assert r.json() == []


@pytest.mark.parametrize("limit", ["abc", "-1", "1.5"])
def test_invalid_limit(base_url, limit):
    r = requests.get(f"{base_url}/channels.json?limit={limit}", timeout=5)
    assert r.status_code == 400
    assert "Invalid limit" in r.json()["error"]


def test_channels_m3u(base_url):
    r = requests.get(f"{base_url}/channels.m3u", timeout=5)
    assert r.status_code == 200
    assert r.headers["Content-Type"] == "audio/x-mpegurl"
    lines = r.text.splitlines()
    assert lines[0] == "#EXTM3U"
    assert "https://cnn/live.m3u8" in lines
    assert "#EXTVLCOPT:http-referrer=https://cnn.com/" in lines


def test_retrieval_failure_without_prior_data(base_url, api_session):
    api_session.failures[f"{BASE}/streams.json"] = 503
    r = requests.get(f"{base_url}/channels.json", timeout=5)
    assert r.status_code == 502
    assert "error" in r.json()
    assert requests.get(f"{base_url}/health", timeout=5).status_code == 503


def test_retrieval_failure_serves_last_good(base_url, api_session):
    assert requests.get(f"{base_url}/health", timeout=5).status_code == 503
    fresh = requests.get(f"{base_url}/channels.json", timeout=5).json()
    assert requests.get(f"{base_url}/health", timeout=5).text == "OK"

    api_session.failures[f"{BASE}/logos.json"] = requests.ConnectionError("offline")
    r = requests.get(f"{base_url}/channels.json?limit=1", timeout=5)
    assert r.status_code == 200
    assert r.headers["X-Stale"] == "1"
    assert r.json() == fresh[:1]
    assert len(requests.get(f"{base_url}/channels.json", timeout=5).json()) == 2
    assert requests.get(f"{base_url}/channels.json?limit=0", timeout=5).json() == []
    assert requests.get(f"{base_url}/health", timeout=5).status_code == 503


def test_unknown_path(base_url):
    assert requests.get(f"{base_url}/nope", timeout=5).status_code == 404

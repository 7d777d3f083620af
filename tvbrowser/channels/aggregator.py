"""Merge iptv-org channels, streams, logos and blocklist into channel views."""
import logging
import re
from typing import Any, Callable, Iterable

from tvbrowser.channels.models import ChannelView

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 30

# Formats the TV renderer can draw without SVG/AVIF support
RASTER_FORMATS = frozenset({"PNG", "JPEG", "WebP", "GIF", "APNG"})
PREFERRED_LOGO_TAGS = ("horizontal", "white")

_URL_RE = re.compile(r"^https?://", re.IGNORECASE)

LogoPredicate = Callable[[dict, str | None], bool]


def _text(row: Any, key: str) -> str | None:
    """Return row[key] if row is a mapping and the value is a non-empty string."""
    if not isinstance(row, dict):
        return None
    value = row.get(key)
    if isinstance(value, str) and value:
        return value
    return None


def _optional(row: dict, key: str) -> str | None:
    """Return row[key] if it is a string, empty included; otherwise None."""
    value = row.get(key)
    return value if isinstance(value, str) else None


def is_valid_url(value: Any) -> bool:
    """True for a non-blank string starting with http:// or https://."""
    if not isinstance(value, str):
        return False
    stripped = value.strip()
    return bool(stripped) and _URL_RE.match(stripped) is not None


def _is_raster(logo: dict) -> bool:
    """Unknown format counts as renderable."""
    fmt = logo.get("format")
    if not fmt:
        return True
    return isinstance(fmt, str) and fmt in RASTER_FORMATS


def _tags(logo: dict) -> list:
    tags = logo.get("tags")
    return tags if isinstance(tags, (list, tuple, set, frozenset)) else []


def _matches_feed(logo: dict, feed: str | None) -> bool:
    logo_feed = logo.get("feed")
    return bool(logo_feed) and bool(feed) and logo_feed == feed and _is_raster(logo)


def _has_preferred_tag(logo: dict, feed: str | None) -> bool:
    tags = _tags(logo)
    return any(tag in tags for tag in PREFERRED_LOGO_TAGS) and _is_raster(logo)


def _any_raster(logo: dict, feed: str | None) -> bool:
    return _is_raster(logo)


# Checked in order; the first tier with a matching logo wins.
LOGO_TIERS: list[tuple[str, LogoPredicate]] = [
    ("feed", _matches_feed),
    ("tagged", _has_preferred_tag),
    ("raster", _any_raster),
]


def pick_best_stream(rows: list[dict]) -> dict | None:
    """Return the first stream with a usable URL."""
    for row in rows:
        if is_valid_url(row.get("url")):
            return row
    return None


def pick_best_logo(rows: list[dict], feed: str | None = None) -> str | None:
    """Pick a logo URL for a stream feed: feed match, then tagged, then any raster."""
    for _name, predicate in LOGO_TIERS:
        for logo in rows:
            if predicate(logo, feed):
                return logo.get("url")
    return None


def _group_by_channel(rows: Iterable[Any], key: str) -> dict[str, list[dict]]:
    grouped: dict[str, list[dict]] = {}
    for row in rows:
        channel_id = _text(row, key)
        if channel_id is None:
            continue
        grouped.setdefault(channel_id, []).append(row)
    return grouped


def aggregate(
    channels: Iterable[Any],
    streams: Iterable[Any],
    logos: Iterable[Any],
    blocklist: Iterable[Any],
    limit: int = DEFAULT_LIMIT,
) -> list[ChannelView]:
    """
    Reduce the raw API collections to at most `limit` channel views.
    Order follows the first eligible stream seen for each channel.
    Malformed, blocked or unmatched rows are dropped silently.
    """
    blocked = {entry["channel"] for entry in blocklist if _text(entry, "channel")}

    names: dict[str, str] = {}
    for ch in channels:
        channel_id = _text(ch, "id")
        if channel_id is None:
            continue
        name = ch.get("name")
        # Duplicate ids: last one wins
        names[channel_id] = name if isinstance(name, str) else channel_id

    logos_by_channel = _group_by_channel(logos, "channel")

    streams_by_channel: dict[str, list[dict]] = {}
    for stream in streams:
        channel_id = _text(stream, "channel")
        url = _text(stream, "url")
        if channel_id is None or url is None:
            continue
        if channel_id in blocked:
            continue
        if not is_valid_url(url):
            continue
        streams_by_channel.setdefault(channel_id, []).append(stream)

    result: list[ChannelView] = []
    if limit > 0:
        for channel_id, rows in streams_by_channel.items():
            best = pick_best_stream(rows)
            if best is None:
                continue
            result.append(ChannelView(
                id=channel_id,
                name=names.get(channel_id, channel_id),
                url=best["url"],
                logo=pick_best_logo(logos_by_channel.get(channel_id, []), best.get("feed")),
                referrer=_optional(best, "referrer"),
                user_agent=_optional(best, "user_agent"),
                stream_title=_optional(best, "title"),
            ))
            if len(result) >= limit:
                break

    logger.debug(
        "Aggregated %d channel(s) from %d streamable, %d blocked, limit %d",
        len(result),
        len(streams_by_channel),
        len(blocked),
        limit,
    )
    return result

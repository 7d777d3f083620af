"""M3U playlist generation for external players."""
import re
from typing import Iterable

from tvbrowser.channels.models import ChannelView

EXTVLCOPT_PREFIX = "#EXTVLCOPT:"

_LINE_BREAK_RE = re.compile(r"[\r\n\v\f\x1c-\x1e\x85\u2028\u2029]+")


def _line(value: str) -> str:
    """Values must stay on their own playlist line."""
    return _LINE_BREAK_RE.sub(" ", value).strip()


def _attr(value: str) -> str:
    """Attribute values are double-quoted; drop quotes inside them."""
    return _line(value).replace('"', "'")


def generate_m3u(channels: Iterable[ChannelView]) -> str:
    """
    Generate an M3U playlist from channel views.
    Referrer and user agent are carried as VLC options so players send them.
    """
    lines = ["#EXTM3U"]
    for ch in channels:
        attrs = f'tvg-id="{_attr(ch.id)}" tvg-name="{_attr(ch.name)}"'
        if ch.logo:
            attrs += f' tvg-logo="{_attr(ch.logo)}"'
        lines.append(f"#EXTINF:-1 {attrs},{_line(ch.name)}")
        if ch.referrer:
            lines.append(f"{EXTVLCOPT_PREFIX}http-referrer={_line(ch.referrer)}")
        if ch.user_agent:
            lines.append(f"{EXTVLCOPT_PREFIX}http-user-agent={_line(ch.user_agent)}")
        lines.append(_line(ch.url))
    return "\n".join(lines) + "\n"

"""Channel view model handed to the presentation layer."""
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ChannelView:
    """One playable channel: identity, chosen stream and chosen logo."""

    id: str
    name: str
    url: str
    logo: str | None = None
    referrer: str | None = None
    user_agent: str | None = None
    stream_title: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """JSON shape consumed by the UI (camelCase keys)."""
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "logo": self.logo,
            "referrer": self.referrer,
            "userAgent": self.user_agent,
            "streamTitle": self.stream_title,
        }

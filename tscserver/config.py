"""Server settings and service configuration records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

DEFAULT_IP = "0.0.0.0"
DEFAULT_PORT = "8080"
DEFAULT_SEC_KEY = "secret"

_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


def _format_time(value: datetime) -> str:
    text = value.isoformat()
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


@dataclass
class ServerConfig:
    """Listening address, security key and debug switch of the HTTP server."""

    ip: str = DEFAULT_IP
    port: str = DEFAULT_PORT
    sec_key: str = DEFAULT_SEC_KEY
    debug: bool = False


@dataclass
class BaseConfig:
    """Fields shared by every service configuration."""

    id: str = ""
    name: str = ""
    type: str = ""
    description: str = ""
    enabled: bool = False
    created_at: datetime = _ZERO_TIME
    updated_at: datetime = _ZERO_TIME
    tags: list[str] = field(default_factory=list)
    extensions: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form, leaving out empty optional fields."""
        data: dict[str, Any] = {"id": self.id, "name": self.name, "type": self.type}
        if self.description:
            data["description"] = self.description
        data["enabled"] = self.enabled
        data["created_at"] = _format_time(self.created_at)
        data["updated_at"] = _format_time(self.updated_at)
        if self.tags:
            data["tags"] = list(self.tags)
        if self.extensions:
            data["extensions"] = dict(self.extensions)
        return data


@dataclass
class CustomConfig(BaseConfig):
    """A service configuration carrying free-form configuration data."""

    config_data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form including the configuration data."""
        data = super().to_dict()
        data["config_data"] = dict(self.config_data)
        return data
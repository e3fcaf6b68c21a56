"""
Configuration for geo-search.
"""

import os
import secrets
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

PRODUCTION_BASE_URL = "https://api.cannycarrot.com/api/v1"
DEVELOPMENT_BASE_URL = "http://localhost:3001/api/v1"


@dataclass
class GatewayConfig:
    """Search API connection configuration."""

    base_url: str | None = None
    environment: str = "development"  # development, production
    base_url_env: str | None = None
    timeout_seconds: float | None = None  # None disables the client timeout

    def resolve_base_url(self) -> str:
        """Get the base URL from config, environment variable, or environment default."""
        if self.base_url:
            return self.base_url.rstrip("/")
        if self.base_url_env:
            from_env = os.environ.get(self.base_url_env)
            if from_env:
                return from_env.rstrip("/")
        if self.environment == "production":
            return PRODUCTION_BASE_URL
        return DEVELOPMENT_BASE_URL


@dataclass
class AutocompleteConfig:
    """Debounce and reconciliation timings."""

    debounce_ms: int = 300
    min_query_length: int = 2
    blur_grace_ms: int = 200

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000

    @property
    def blur_grace_seconds(self) -> float:
        return self.blur_grace_ms / 1000


@dataclass
class MapSearchConfig:
    """Map search configuration."""

    # ~5km at the equator
    half_width_degrees: float = 0.045


@dataclass
class TextSearchConfig:
    """Text search configuration."""

    page_size: int = 20


@dataclass
class SubmissionConfig:
    """Identity attached to user-submitted entries."""

    user_id: str = "anonymous"
    session_id: str = field(default_factory=lambda: secrets.token_hex(8))


@dataclass
class GeoSearchConfig:
    """Complete geo-search configuration."""

    gateway: GatewayConfig = field(default_factory=GatewayConfig)
    autocomplete: AutocompleteConfig = field(default_factory=AutocompleteConfig)
    map: MapSearchConfig = field(default_factory=MapSearchConfig)
    text: TextSearchConfig = field(default_factory=TextSearchConfig)
    submissions: SubmissionConfig = field(default_factory=SubmissionConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GeoSearchConfig":
        """Create config from a dictionary (e.g., from YAML)."""
        config = cls()

        if "gateway" in data:
            gw = data["gateway"] or {}
            config.gateway = GatewayConfig(
                base_url=gw.get("base_url"),
                environment=gw.get("environment", "development"),
                base_url_env=gw.get("base_url_env"),
                timeout_seconds=gw.get("timeout_seconds"),
            )

        if "autocomplete" in data:
            ac = data["autocomplete"] or {}
            config.autocomplete = AutocompleteConfig(
                debounce_ms=ac.get("debounce_ms", 300),
                min_query_length=ac.get("min_query_length", 2),
                blur_grace_ms=ac.get("blur_grace_ms", 200),
            )

        if "map" in data:
            m = data["map"] or {}
            config.map = MapSearchConfig(
                half_width_degrees=m.get("half_width_degrees", 0.045),
            )

        if "text" in data:
            t = data["text"] or {}
            config.text = TextSearchConfig(page_size=t.get("page_size", 20))

        if "submissions" in data:
            sub = data["submissions"] or {}
            config.submissions = SubmissionConfig(
                user_id=sub.get("user_id", "anonymous"),
                session_id=sub.get("session_id") or secrets.token_hex(8),
            )

        return config

    @classmethod
    def from_yaml(cls, path: Path) -> "GeoSearchConfig":
        """Load config from the geosearch section of a YAML file."""
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data.get("geosearch", {}) or {})

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for JSON serialization."""
        return {
            "gateway": {
                "base_url": self.gateway.base_url,
                "environment": self.gateway.environment,
                "base_url_env": self.gateway.base_url_env,
                "timeout_seconds": self.gateway.timeout_seconds,
            },
            "autocomplete": {
                "debounce_ms": self.autocomplete.debounce_ms,
                "min_query_length": self.autocomplete.min_query_length,
                "blur_grace_ms": self.autocomplete.blur_grace_ms,
            },
            "map": {
                "half_width_degrees": self.map.half_width_degrees,
            },
            "text": {
                "page_size": self.text.page_size,
            },
            "submissions": {
                "user_id": self.submissions.user_id,
                "session_id": self.submissions.session_id,
            },
        }

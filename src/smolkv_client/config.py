"""Endpoint configuration for the SmolKV CLI."""

import json
import logging
import os
from pathlib import Path
from typing import Dict, Optional, Tuple

import click
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SMOLKV_CONFIG"


class EndpointConfig(BaseModel):
    """A named SmolKV server."""

    url: str = Field(..., description="Base URL of the SmolKV server")
    secret: Optional[str] = Field(
        default=None, description="Secret sent as X-SECRET-KEY (optional)"
    )

    @field_validator("url")
    @classmethod
    def url_must_be_http(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("Endpoint URL must start with http:// or https://")
        return v.rstrip("/")


class Settings(BaseModel):
    """Persisted CLI settings."""

    default_endpoint: Optional[str] = Field(
        default=None, description="Name of the endpoint used by default"
    )
    endpoints: Dict[str, EndpointConfig] = Field(
        default_factory=dict, description="Configured endpoints by name"
    )


def default_config_path() -> Path:
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override)
    return Path(click.get_app_dir("smolkv")) / "config.json"


class ConfigManager:
    """Manages loading, saving and editing of endpoint settings."""

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = Path(config_path) if config_path else default_config_path()
        self._settings: Optional[Settings] = None

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            return self.load()
        return self._settings

    def load(self) -> Settings:
        """Load settings from file, or defaults when no file exists yet."""
        if self.config_path.exists():
            try:
                with open(self.config_path, "r") as f:
                    data = json.load(f)
                self._settings = Settings(**data)
            except Exception as e:
                raise ValueError(f"Failed to load config from {self.config_path}: {e}")
        else:
            logger.debug(f"No config at {self.config_path}, using defaults")
            self._settings = Settings()

        return self._settings

    def save(self, settings: Optional[Settings] = None) -> None:
        if settings is None:
            settings = self._settings

        if settings is None:
            raise ValueError("No configuration to save")

        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w") as f:
            json.dump(settings.model_dump(), f, indent=2)
        self._settings = settings

    def set_endpoint(self, name: str, url: str, secret: Optional[str] = None) -> None:
        settings = self.settings
        settings.endpoints[name] = EndpointConfig(url=url, secret=secret)
        self.save(settings)

    def remove_endpoint(self, name: str) -> bool:
        """Remove an endpoint; clears the default if it pointed at it."""
        settings = self.settings
        if settings.endpoints.pop(name, None) is None:
            return False
        if settings.default_endpoint == name:
            settings.default_endpoint = None
        self.save(settings)
        return True

    def use_endpoint(self, name: str) -> None:
        settings = self.settings
        if name not in settings.endpoints:
            raise ValueError(f"Endpoint '{name}' not found in config")
        settings.default_endpoint = name
        self.save(settings)

    def get_default_endpoint(self) -> Tuple[str, EndpointConfig]:
        settings = self.settings
        name = settings.default_endpoint
        if name is None:
            raise ValueError(
                "No default endpoint set. Use 'endpoint use <name>' to set a default endpoint."
            )
        endpoint = settings.endpoints.get(name)
        if endpoint is None:
            raise ValueError(f"Default endpoint '{name}' not found in config")
        return name, endpoint

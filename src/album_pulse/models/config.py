"""Configuration model for album pulse."""

import json
import os
from dataclasses import asdict, dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Mapping, Optional

from ..exceptions import ConfigurationError

ENV_PREFIX = "ALBUM_PULSE_"


@dataclass
class StoreConfig:
    """Configuration for the remote data store."""
    url: str = ""
    api_key: str = ""
    schema: str = "public"
    timeout_seconds: float = 10.0


@dataclass
class CacheConfig:
    """Configuration for the query cache."""
    enabled: bool = True
    ttl_seconds: int = 300


@dataclass
class IdentityConfig:
    """The signed-in user, as handed over by the identity provider."""
    user_id: Optional[str] = None
    access_token: Optional[str] = None


@dataclass
class Config:
    """Main configuration model."""
    store: StoreConfig = field(default_factory=StoreConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    identity: IdentityConfig = field(default_factory=IdentityConfig)
    log_level: str = "WARNING"

    @classmethod
    def default(cls) -> "Config":
        """Create a default configuration with placeholder store settings."""
        return cls(store=StoreConfig(url="https://your-project.supabase.co", api_key="public-anon-key"))

    def validate(self) -> "Config":
        if not self.store.url:
            raise ConfigurationError(f"Store URL is not configured (set {ENV_PREFIX}STORE_URL)")
        if not self.store.api_key:
            raise ConfigurationError(f"Store API key is not configured (set {ENV_PREFIX}STORE_API_KEY)")
        if self.store.timeout_seconds <= 0:
            raise ConfigurationError("Store timeout must be positive")
        if self.cache.ttl_seconds < 0:
            raise ConfigurationError("Cache TTL cannot be negative")
        return self


def _dataclass_to_dict(obj):
    """Convert dataclass to dict recursively."""
    if is_dataclass(obj):
        return {key: _dataclass_to_dict(value) for key, value in asdict(obj).items()}
    elif isinstance(obj, dict):
        return {key: _dataclass_to_dict(value) for key, value in obj.items()}
    else:
        return obj


def _dict_to_dataclass(data, dataclass_type):
    """Convert dict to dataclass recursively, ignoring unknown keys."""
    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected an object for {dataclass_type.__name__}, got {data!r}")

    kwargs = {}
    for f in fields(dataclass_type):
        if f.name not in data:
            continue
        default = f.default_factory() if callable(f.default_factory) else f.default
        if is_dataclass(default):
            # It's a nested dataclass
            kwargs[f.name] = _dict_to_dataclass(data[f.name], type(default))
        else:
            kwargs[f.name] = data[f.name]

    return dataclass_type(**kwargs)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def apply_env_overrides(config: Config, environ: Optional[Mapping[str, str]] = None) -> Config:
    """Override config values from ``ALBUM_PULSE_*`` environment variables."""
    env = os.environ if environ is None else environ
    overrides = {
        "STORE_URL": (config.store, "url", str),
        "STORE_API_KEY": (config.store, "api_key", str),
        "STORE_SCHEMA": (config.store, "schema", str),
        "STORE_TIMEOUT": (config.store, "timeout_seconds", float),
        "CACHE_ENABLED": (config.cache, "enabled", _parse_bool),
        "CACHE_TTL": (config.cache, "ttl_seconds", int),
        "USER_ID": (config.identity, "user_id", str),
        "ACCESS_TOKEN": (config.identity, "access_token", str),
        "LOG_LEVEL": (config, "log_level", str),
    }
    for name, (target, attribute, convert) in overrides.items():
        raw = env.get(ENV_PREFIX + name)
        if raw is None or raw == "":
            continue
        try:
            setattr(target, attribute, convert(raw))
        except ValueError as e:
            raise ConfigurationError(f"Invalid value for {ENV_PREFIX}{name}: {raw!r} ({e})")
    return config


def load_config(config_path: Path) -> Config:
    """Load configuration from JSON file."""
    try:
        with open(config_path, 'r') as f:
            config_data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read configuration {config_path}: {e}")

    return _dict_to_dataclass(config_data, Config)


def save_config(config: Config, config_path: Path) -> None:
    """Save configuration to JSON file."""
    config_dict = _dataclass_to_dict(config)

    with open(config_path, 'w') as f:
        json.dump(config_dict, f, indent=2)


def create_default_config(config_path: Path) -> None:
    """Create a default configuration file."""
    save_config(Config.default(), config_path)

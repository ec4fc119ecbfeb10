"""Configuration models."""

from .config import (
    CacheConfig,
    Config,
    IdentityConfig,
    StoreConfig,
    apply_env_overrides,
    create_default_config,
    load_config,
    save_config,
)

__all__ = [
    "CacheConfig",
    "Config",
    "IdentityConfig",
    "StoreConfig",
    "apply_env_overrides",
    "create_default_config",
    "load_config",
    "save_config",
]

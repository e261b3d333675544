"""tokenscope configuration.

Values are resolved from, highest precedence first:

1. keyword arguments passed to :class:`Settings`
2. ``TOKENSCOPE_*`` environment variables (``__`` separates nested sections,
   e.g. ``TOKENSCOPE_CHAIN__RPC_URL``)
3. ``.env``, ``.env.<env>`` and ``.env.local`` in the project root
4. unprefixed variables kept from earlier deployments (``LEGACY_ENV_VARS``)
5. the TOML file named by ``TOKENSCOPE_SETTINGS_FILE``
6. ``config/settings.local.toml``
7. ``config/settings.default.toml``
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from tokenscope.services.addresses import is_valid_address, lookup_address

ENV_VAR_NAME = "TOKENSCOPE_ENV"
SETTINGS_FILE_ENV_VAR = "TOKENSCOPE_SETTINGS_FILE"
DEFAULT_ENV = "local"
PROJECT_ROOT = Path(__file__).resolve().parents[3]
CONFIG_DIR = PROJECT_ROOT / "config"
DEFAULT_CONFIG_FILE = CONFIG_DIR / "settings.default.toml"
LOCAL_CONFIG_FILE = CONFIG_DIR / "settings.local.toml"

# Unprefixed variable -> (section, field)
LEGACY_ENV_VARS: Dict[str, Tuple[str, str]] = {
    "PANCAKE_BUNNY_ADDRESS": ("distribution", "indexed_collection_address"),
}


class RuntimeSettings(BaseModel):
    log_level: str = "INFO"


class APISettings(BaseModel):
    title: str = "tokenscope NFT API"
    cors_allow_origin: str = "*"


class StorageSettings(BaseModel):
    """Firestore project and the names of the four catalogue collections."""

    firestore_project: str | None = None
    firestore_database: str | None = None
    collections_collection: str = "collections"
    tokens_collection: str = "tokens"
    metadata_collection: str = "metadata"
    attributes_collection: str = "attributes"


class ChainSettings(BaseModel):
    """JSON-RPC endpoint used for live ``tokenURI`` reads."""

    network: str = "mainnet"
    rpc_url: str | None = None
    request_timeout_seconds: float = Field(default=15.0, gt=0)
    ipfs_gateway: str = "https://ipfs.io"


class CDNSettings(BaseModel):
    base_uri: str = "https://cdn.example.com"

    @field_validator("base_uri")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class DistributionSettings(BaseModel):
    # Collection counted with one query per catalogue attribute instead of in memory.
    indexed_collection_address: str | None = None

    @field_validator("indexed_collection_address")
    @classmethod
    def _lookup_form(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        if is_valid_address(value):
            return lookup_address(value)
        return value.lower() or None


class PaginationSettings(BaseModel):
    default_token_page_size: int = Field(default=10000, ge=1)
    default_filtered_page_size: int = Field(default=1000, ge=1)


class ObservabilitySettings(BaseModel):
    structured_logging: bool = True
    statsd_host: str | None = None
    statsd_port: int = 8125
    statsd_prefix: str = "tokenscope"
    service_name: str = "tokenscope-api"


class LegacyEnvSource(PydanticBaseSettingsSource):
    """Read the unprefixed variables listed in ``LEGACY_ENV_VARS``."""

    def get_field_value(self, field, field_name):  # pragma: no cover - __call__ does the work
        return None, field_name, False

    def __call__(self) -> Dict[str, Any]:
        values: Dict[str, Dict[str, Any]] = {}
        for variable, (section, name) in LEGACY_ENV_VARS.items():
            raw = os.environ.get(variable)
            if raw:
                values.setdefault(section, {})[name] = raw
        return values


def config_files() -> Tuple[Path, ...]:
    """Existing TOML files, most specific first."""

    candidates = []
    override = os.getenv(SETTINGS_FILE_ENV_VAR)
    if override:
        path = Path(override).expanduser()
        candidates.append(path if path.is_absolute() else (PROJECT_ROOT / path).resolve())
    candidates.extend([LOCAL_CONFIG_FILE, DEFAULT_CONFIG_FILE])
    return tuple(path for path in candidates if path.exists())


class Settings(BaseSettings):
    """Top-level settings with one nested model per subsystem."""

    model_config = SettingsConfigDict(
        env_prefix="TOKENSCOPE_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    env: str = DEFAULT_ENV
    runtime: RuntimeSettings = Field(default_factory=RuntimeSettings)
    api: APISettings = Field(default_factory=APISettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    chain: ChainSettings = Field(default_factory=ChainSettings)
    cdn: CDNSettings = Field(default_factory=CDNSettings)
    distribution: DistributionSettings = Field(default_factory=DistributionSettings)
    pagination: PaginationSettings = Field(default_factory=PaginationSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)
    config_files: Tuple[Path, ...] = Field(default_factory=tuple, exclude=True)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        toml_sources = [TomlConfigSettingsSource(settings_cls, toml_file=path) for path in config_files()]
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            LegacyEnvSource(settings_cls),
            *toml_sources,
            file_secret_settings,
        )

    @model_validator(mode="after")
    def _local_defaults(self) -> "Settings":
        if self.is_local and self.observability.structured_logging:
            self.observability = self.observability.model_copy(update={"structured_logging": False})
        return self

    @property
    def log_level(self) -> str:
        return self.runtime.log_level

    @property
    def indexed_collection_address(self) -> str | None:
        """Lower-cased address of the collection counted per attribute, if any."""

        return self.distribution.indexed_collection_address

    @property
    def is_local(self) -> bool:
        return self.env.strip().lower() == "local"


def _load_settings(env: str | None = None) -> Settings:
    resolved_env = (env or os.getenv(ENV_VAR_NAME) or DEFAULT_ENV).strip()
    env_files = [PROJECT_ROOT / ".env", PROJECT_ROOT / f".env.{resolved_env}", PROJECT_ROOT / ".env.local"]
    return Settings(
        _env_file=[path for path in env_files if path.exists()] or None,
        env=resolved_env,
        config_files=config_files(),
    )


@lru_cache(maxsize=1)
def get_settings(env: str | None = None) -> Settings:
    """Return the process settings, loading them on first use."""

    return _load_settings(env)


def reload_settings(env: str | None = None) -> Settings:
    """Drop the cached settings and load them again (used by tests)."""

    get_settings.cache_clear()
    return get_settings(env)


__all__ = [
    "ENV_VAR_NAME",
    "LEGACY_ENV_VARS",
    "PROJECT_ROOT",
    "SETTINGS_FILE_ENV_VAR",
    "Settings",
    "config_files",
    "get_settings",
    "reload_settings",
]

"""
Honeycomb API configuration

Loads the Honeycomb environments (name + API key) from the config file or the
environment, and holds the tunables used by the client and the column analyzer.
"""

import json
import os
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

DEFAULT_API_ENDPOINT = "https://api.honeycomb.io"
DEFAULT_UI_ENDPOINT = "https://ui.honeycomb.io"
DEFAULT_CONFIG_PATH = Path.home() / ".hny" / "config.json"

# Client tunables
DEFAULT_REQUEST_TIMEOUT = float(os.getenv("HONEYCOMB_REQUEST_TIMEOUT", "30"))
QUERY_MAX_ATTEMPTS = int(os.getenv("HONEYCOMB_QUERY_MAX_ATTEMPTS", "10"))
QUERY_POLL_INTERVAL = float(os.getenv("HONEYCOMB_QUERY_POLL_INTERVAL", "1"))
DEFAULT_QUERY_LIMIT = 100

# Column analysis
DEFAULT_ANALYSIS_TIME_RANGE = 3600
DEFAULT_ANALYSIS_ROW_LIMIT = 1000
DEFAULT_TOP_VALUES_LIMIT = 10
MAX_ANALYZED_COLUMNS = 10

# Cardinality bands by unique-values-to-rows ratio, checked in order.
# A ratio at or above the last cut point is "very high".
CARDINALITY_THRESHOLDS = (
    (0.10, "low"),
    (0.50, "medium"),
    (0.90, "high"),
)
CARDINALITY_TOP_BAND = "very high"


class EnvironmentConfig(BaseModel):
    """One Honeycomb environment the server may talk to."""
    name: str = Field(min_length=1)
    api_key: str = Field(alias="apiKey", min_length=1)
    base_url: str = Field(default=DEFAULT_API_ENDPOINT, alias="baseUrl")

    model_config = {"populate_by_name": True}

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class HoneycombConfig(BaseModel):
    environments: List[EnvironmentConfig]

    @field_validator("environments")
    @classmethod
    def check_environments(cls, value: List[EnvironmentConfig]) -> List[EnvironmentConfig]:
        if not value:
            raise ValueError("No environments configured")
        names = set()
        for env in value:
            if env.name in names:
                raise ValueError(f"Duplicate environment name: {env.name}")
            names.add(env.name)
        return value

    def by_name(self) -> Dict[str, EnvironmentConfig]:
        return {env.name: env for env in self.environments}


class ConfigError(Exception):
    """The Honeycomb configuration is missing or malformed."""


def get_config_path() -> Path:
    return Path(os.getenv("HONEYCOMB_CONFIG_PATH", str(DEFAULT_CONFIG_PATH))).expanduser()


def load_config(config_path: Optional[Path] = None) -> HoneycombConfig:
    """
    Load the Honeycomb configuration.

    HONEYCOMB_API_KEY takes precedence and defines a single environment named by
    HONEYCOMB_ENVIRONMENT (default "default"). Otherwise the JSON config file
    is read: {"environments": [{"name": ..., "apiKey": ..., "baseUrl": ...}]}.

    Raises:
        ConfigError: If no usable configuration is found
    """
    api_key = os.getenv("HONEYCOMB_API_KEY", "")
    if api_key:
        return HoneycombConfig(environments=[
            EnvironmentConfig(
                name=os.getenv("HONEYCOMB_ENVIRONMENT", "default"),
                api_key=api_key,
                base_url=os.getenv("HONEYCOMB_API_ENDPOINT", DEFAULT_API_ENDPOINT),
            )
        ])

    path = config_path or get_config_path()
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise ConfigError(
            f"Could not load config from {path}. Set HONEYCOMB_API_KEY or create this file with your "
            'Honeycomb environments: {"environments": [{"name": "env-name", "apiKey": "your_key_here"}]}'
        )
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}")

    try:
        return HoneycombConfig.model_validate(raw)
    except ValidationError as e:
        details = ", ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError(f"Invalid config format in {path}: {details}")


def validate_honeycomb_config() -> Optional[str]:
    """
    Validate Honeycomb configuration.

    Returns:
        Error message if configuration is invalid, None if valid
    """
    try:
        load_config()
    except ConfigError as e:
        return f"Error: Honeycomb API not configured. {e}"
    return None


def is_honeycomb_configured() -> bool:
    return validate_honeycomb_config() is None


# Metadata cache: resource type -> (env var, default TTL in seconds)
CACHE_RESOURCE_TTLS = {
    "dataset": ("HONEYCOMB_CACHE_DATASET_TTL", 900),
    "column": ("HONEYCOMB_CACHE_COLUMN_TTL", 900),
    "board": ("HONEYCOMB_CACHE_BOARD_TTL", 900),
    "slo": ("HONEYCOMB_CACHE_SLO_TTL", 900),
    "trigger": ("HONEYCOMB_CACHE_TRIGGER_TTL", 900),
    "marker": ("HONEYCOMB_CACHE_MARKER_TTL", 900),
    "recipient": ("HONEYCOMB_CACHE_RECIPIENT_TTL", 900),
    "auth": ("HONEYCOMB_CACHE_AUTH_TTL", 3600),
}


class CacheConfig(BaseModel):
    """TTL cache settings for catalog lookups (datasets, columns, boards, ...)."""
    enabled: bool = True
    default_ttl: int = Field(default=300, gt=0)
    max_size: int = Field(default=1000, gt=0)
    ttl: Dict[str, int] = Field(
        default_factory=lambda: {resource: ttl for resource, (_, ttl) in CACHE_RESOURCE_TTLS.items()}
    )

    @field_validator("ttl")
    @classmethod
    def check_ttls(cls, value: Dict[str, int]) -> Dict[str, int]:
        for resource, ttl in value.items():
            if ttl <= 0:
                raise ValueError(f"TTL for {resource} must be positive")
        return value

    def ttl_for(self, resource: str) -> int:
        return self.ttl.get(resource, self.default_ttl)


def load_cache_config() -> CacheConfig:
    """
    Cache settings from the environment.

    HONEYCOMB_CACHE_ENABLED=false turns caching off; HONEYCOMB_CACHE_MAX_SIZE,
    HONEYCOMB_CACHE_DEFAULT_TTL and HONEYCOMB_CACHE_<RESOURCE>_TTL override
    the defaults.

    Raises:
        ConfigError: If a value is not a positive integer
    """
    try:
        return CacheConfig(
            enabled=os.getenv("HONEYCOMB_CACHE_ENABLED", "true").lower() != "false",
            default_ttl=int(os.getenv("HONEYCOMB_CACHE_DEFAULT_TTL", "300")),
            max_size=int(os.getenv("HONEYCOMB_CACHE_MAX_SIZE", "1000")),
            ttl={
                resource: int(os.getenv(env_var, str(default)))
                for resource, (env_var, default) in CACHE_RESOURCE_TTLS.items()
            },
        )
    except (ValueError, ValidationError) as e:
        raise ConfigError(f"Invalid cache configuration: {e}")

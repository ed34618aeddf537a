"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- ClientConfig: Request timeout, quote depth and pagination settings
- QueryIdConfig: Query ID cache location and refresh behavior
- CredentialsConfig: Auth cookie values or the environment variables holding them
- OutputConfig: Output format settings
- LoggingConfig: Logging behavior
- AppConfig: Root configuration container
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import os
from pathlib import Path
from typing import Any

import yaml


@dataclass
class ClientConfig:
    """Configuration for GraphQL requests and pagination.

    Attributes:
        timeout_seconds: Per-request timeout; None or <= 0 disables it
        quote_depth: Maximum quoted tweet depth (0 disables quoted tweets)
        user_agent: HTTP User-Agent header string
        page_size: Number of tweets requested per page
        page_delay_seconds: Delay between page fetches
        hard_max_pages: Upper bound on pages fetched by one paginated call
        trust_env: Whether to respect system proxy settings
    """

    timeout_seconds: float | None = 20.0
    quote_depth: int = 1
    user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/131.0.0.0 Safari/537.36"
    )
    page_size: int = 20
    page_delay_seconds: float = 1.0
    hard_max_pages: int = 10
    trust_env: bool = True


@dataclass
class QueryIdConfig:
    """Configuration for the GraphQL query ID registry.

    Attributes:
        cache_path: Path of the persisted query ID snapshot
        ttl_seconds: Age after which a snapshot is refreshed on non-forced refresh
        refresh_on_stale: Whether a stale query ID triggers bundle discovery
        discovery_timeout_seconds: Timeout for each discovery request
    """

    cache_path: str | None = None
    ttl_seconds: int = 24 * 60 * 60
    refresh_on_stale: bool = True
    discovery_timeout_seconds: float = 20.0


@dataclass
class CredentialsConfig:
    """Configuration for authentication cookies.

    Attributes:
        auth_token: Inline auth_token cookie value (overrides env var)
        ct0: Inline ct0 cookie value (overrides env var)
        cookie_header: Full cookie header, built from the tokens when absent
        auth_token_env: Environment variable containing auth_token
        ct0_env: Environment variable containing ct0
    """

    auth_token: str | None = None
    ct0: str | None = None
    cookie_header: str | None = None
    auth_token_env: str = "AUTH_TOKEN"
    ct0_env: str = "CT0"


@dataclass
class OutputConfig:
    """Configuration for output generation.

    Attributes:
        format: "text" or "json"
        include_raw: Include the raw GraphQL result in JSON output
    """

    format: str = "text"
    include_raw: bool = False


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to the console (stderr)
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        filename: Name of the log file
        log_dir: Directory for the log file
    """

    level: str = "WARNING"
    console: bool = True
    file: bool = False
    format: str = "jsonl"
    filename: str = "xfeed.jsonl"
    log_dir: str | None = None


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    client: ClientConfig = field(default_factory=ClientConfig)
    query_ids: QueryIdConfig = field(default_factory=QueryIdConfig)
    credentials: CredentialsConfig = field(default_factory=CredentialsConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | None) -> AppConfig:
    """Load configuration from a YAML file with defaults."""
    if not path:
        return AppConfig()

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return _merge_config(AppConfig(), raw)


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig."""
    data = asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if isinstance(value, dict) and isinstance(data[key], dict):
            data[key].update({k: v for k, v in value.items() if k in data[key]})
        else:
            data[key] = value
    return _fromdict(data)


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    return AppConfig(
        client=ClientConfig(**data["client"]),
        query_ids=QueryIdConfig(**data["query_ids"]),
        credentials=CredentialsConfig(**data["credentials"]),
        output=OutputConfig(**data["output"]),
        logging=LoggingConfig(**data["logging"]),
    )


def get_credentials(cfg: CredentialsConfig) -> tuple[str | None, str | None]:
    """Get (auth_token, ct0) from inline config or environment variables."""
    auth_token = cfg.auth_token or os.getenv(cfg.auth_token_env)
    ct0 = cfg.ct0 or os.getenv(cfg.ct0_env)
    return auth_token, ct0


def get_query_id_cache_path(cfg: QueryIdConfig) -> Path:
    """Get the query ID cache path from config, environment, or the default location."""
    if cfg.cache_path:
        return Path(cfg.cache_path).expanduser()
    env_path = os.getenv("XFEED_QUERY_IDS_CACHE")
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / ".config" / "xfeed" / "query-ids-cache.json"

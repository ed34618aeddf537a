"""Session cookie credentials."""

from __future__ import annotations

from dataclasses import dataclass
import re

from .config import CredentialsConfig, get_credentials

_HANDLE_RE = re.compile(r"^[A-Za-z0-9_]{1,15}$")


@dataclass
class TwitterCredentials:
    """Browser session cookies used to authenticate GraphQL requests.

    Attributes:
        auth_token: The ``auth_token`` cookie
        ct0: The ``ct0`` cookie, also sent as the CSRF token header
        cookie_header: Full Cookie header; built from the tokens when empty
    """
    auth_token: str
    ct0: str
    cookie_header: str | None = None

    def __post_init__(self) -> None:
        if not self.auth_token or not self.ct0:
            raise ValueError("Both auth_token and ct0 cookies are required")
        if not self.cookie_header:
            self.cookie_header = f"auth_token={self.auth_token}; ct0={self.ct0}"


def resolve_credentials(cfg: CredentialsConfig) -> TwitterCredentials:
    """Build credentials from config values, falling back to the environment.

    Raises:
        ValueError: If either token is missing
    """
    auth_token, ct0 = get_credentials(cfg)
    if not auth_token or not ct0:
        missing = [
            name
            for name, value in ((cfg.auth_token_env, auth_token), (cfg.ct0_env, ct0))
            if not value
        ]
        raise ValueError(f"Missing credentials: set {', '.join(missing)} or configure them in the config file")
    return TwitterCredentials(auth_token=auth_token, ct0=ct0, cookie_header=cfg.cookie_header)


def normalize_handle(handle: str | None) -> str | None:
    """Strip whitespace and a leading "@"; return None for invalid handles."""
    if not handle:
        return None
    cleaned = handle.strip()
    if cleaned.startswith("@"):
        cleaned = cleaned[1:]
    if not _HANDLE_RE.match(cleaned):
        return None
    return cleaned

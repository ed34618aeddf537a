"""Tests for configuration loading and credential resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from xfeed.config import AppConfig, CredentialsConfig, QueryIdConfig, get_query_id_cache_path, load_config
from xfeed.credentials import TwitterCredentials, normalize_handle, resolve_credentials


def test_load_config_defaults_without_path():
    cfg = load_config(None)

    assert cfg == AppConfig()
    assert cfg.client.page_size == 20
    assert cfg.client.hard_max_pages == 10
    assert cfg.query_ids.ttl_seconds == 24 * 60 * 60


def test_load_config_merges_sections(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "client:\n"
        "  timeout_seconds: 5\n"
        "  quote_depth: 0\n"
        "  unknown_key: ignored\n"
        "query_ids:\n"
        "  refresh_on_stale: false\n"
        "logging:\n"
        "  level: DEBUG\n"
        "not_a_section: 1\n",
        encoding="utf-8",
    )

    cfg = load_config(str(path))

    assert cfg.client.timeout_seconds == 5
    assert cfg.client.quote_depth == 0
    assert cfg.client.page_size == 20
    assert cfg.query_ids.refresh_on_stale is False
    assert cfg.logging.level == "DEBUG"


def test_load_config_empty_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")

    assert load_config(str(path)) == AppConfig()


def test_query_id_cache_path_resolution(monkeypatch, tmp_path):
    monkeypatch.delenv("XFEED_QUERY_IDS_CACHE", raising=False)
    assert get_query_id_cache_path(QueryIdConfig()) == Path.home() / ".config" / "xfeed" / "query-ids-cache.json"

    monkeypatch.setenv("XFEED_QUERY_IDS_CACHE", str(tmp_path / "env.json"))
    assert get_query_id_cache_path(QueryIdConfig()) == tmp_path / "env.json"

    explicit = QueryIdConfig(cache_path=str(tmp_path / "explicit.json"))
    assert get_query_id_cache_path(explicit) == tmp_path / "explicit.json"


def test_resolve_credentials_from_env(monkeypatch):
    monkeypatch.setenv("AUTH_TOKEN", "env-token")
    monkeypatch.setenv("CT0", "env-ct0")

    credentials = resolve_credentials(CredentialsConfig())

    assert credentials.auth_token == "env-token"
    assert credentials.cookie_header == "auth_token=env-token; ct0=env-ct0"


def test_inline_credentials_override_env(monkeypatch):
    monkeypatch.setenv("AUTH_TOKEN", "env-token")
    monkeypatch.setenv("CT0", "env-ct0")

    credentials = resolve_credentials(
        CredentialsConfig(auth_token="inline", ct0="inline-ct0", cookie_header="auth_token=inline; ct0=inline-ct0; lang=en")
    )

    assert credentials.auth_token == "inline"
    assert credentials.cookie_header.endswith("lang=en")


def test_missing_credentials_names_env_vars(monkeypatch):
    monkeypatch.delenv("AUTH_TOKEN", raising=False)
    monkeypatch.setenv("CT0", "present")

    with pytest.raises(ValueError, match="AUTH_TOKEN") as excinfo:
        resolve_credentials(CredentialsConfig())

    assert "CT0" not in str(excinfo.value)


def test_credentials_require_both_tokens():
    with pytest.raises(ValueError):
        TwitterCredentials(auth_token="", ct0="x")


@pytest.mark.parametrize(
    ("handle", "expected"),
    [
        ("jack", "jack"),
        ("@jack", "jack"),
        ("  @Some_User1 ", "Some_User1"),
        ("", None),
        (None, None),
        ("@", None),
        ("has space", None),
        ("a" * 16, None),
        ("bad-char", None),
    ],
)
def test_normalize_handle(handle, expected):
    assert normalize_handle(handle) == expected

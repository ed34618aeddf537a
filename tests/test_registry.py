"""Tests for the query ID registry and its persisted overlay."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
import json

from payloads import FakeDiscovery, make_registry

from xfeed.query_ids.constants import FALLBACK_QUERY_IDS
from xfeed.query_ids.registry import QueryIdRegistry, QueryIdSnapshot

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _write_cache(path, fetched_at: datetime, ids: dict[str, str]) -> None:
    path.write_text(
        json.dumps({"fetchedAt": fetched_at.isoformat(), "ids": ids, "discovery": {}}),
        encoding="utf-8",
    )


def test_candidates_are_ordered_and_deduplicated(tmp_path):
    cache = tmp_path / "query-ids.json"
    _write_cache(cache, NOW, {"Op": "overlay"})
    registry = make_registry(
        defaults={"Op": "default"},
        alternates={"Op": ["alt-1", "overlay", "alt-2", "default"]},
        cache_path=cache,
    )

    assert registry.resolve("Op") == ["overlay", "alt-1", "alt-2", "default"]
    assert registry.primary("Op") == "overlay"


def test_baked_in_defaults_used_without_cache():
    registry = QueryIdRegistry()

    assert registry.resolve("TweetDetail")[-1] == FALLBACK_QUERY_IDS["TweetDetail"]
    assert set(registry.operation_names) == set(FALLBACK_QUERY_IDS)


def test_unknown_operation_resolves_to_empty_list():
    registry = make_registry(defaults={"Op": "default"})

    assert registry.resolve("Other") == []
    assert registry.primary("Other") is None


def test_corrupt_cache_is_ignored(tmp_path):
    cache = tmp_path / "query-ids.json"
    cache.write_text("{not json", encoding="utf-8")
    registry = make_registry(defaults={"Op": "default"}, cache_path=cache)

    assert registry.resolve("Op") == ["default"]
    assert registry.snapshot_info() is None


def test_invalid_snapshot_shape_is_ignored(tmp_path):
    cache = tmp_path / "query-ids.json"
    cache.write_text(json.dumps({"ids": ["Op"]}), encoding="utf-8")
    registry = make_registry(defaults={"Op": "default"}, cache_path=cache)

    assert registry.resolve("Op") == ["default"]


def test_refresh_persists_and_merges(tmp_path):
    cache = tmp_path / "nested" / "query-ids.json"
    discovery = FakeDiscovery({"Op": "new"})
    registry = make_registry(
        defaults={"Op": "default", "Other": "d2"}, discovery=discovery, cache_path=cache, now=lambda: NOW
    )

    asyncio.run(registry.refresh(["Op", "Other"]))

    assert registry.resolve("Op") == ["new", "default"]
    assert registry.refresh_count == 1
    saved = json.loads(cache.read_text(encoding="utf-8"))
    assert saved["ids"] == {"Op": "new"}
    assert saved["fetchedAt"] == NOW.isoformat()
    assert saved["discovery"]["requested"] == ["Op", "Other"]

    reloaded = make_registry(defaults={"Op": "default"}, cache_path=cache)
    assert reloaded.primary("Op") == "new"


def test_refresh_keeps_previous_ids_not_rediscovered(tmp_path):
    cache = tmp_path / "query-ids.json"
    _write_cache(cache, NOW - timedelta(days=2), {"Op": "old", "Other": "kept"})
    discovery = FakeDiscovery({"Op": "new"})
    registry = make_registry(defaults={}, discovery=discovery, cache_path=cache, now=lambda: NOW)

    asyncio.run(registry.refresh(["Op", "Other"]))

    assert registry.primary("Op") == "new"
    assert registry.primary("Other") == "kept"


def test_fresh_snapshot_skips_unforced_refresh(tmp_path):
    cache = tmp_path / "query-ids.json"
    _write_cache(cache, NOW - timedelta(hours=1), {"Op": "cached"})
    discovery = FakeDiscovery({"Op": "new"})
    registry = make_registry(defaults={}, discovery=discovery, cache_path=cache, now=lambda: NOW)

    asyncio.run(registry.refresh(["Op"]))
    assert discovery.calls == []
    assert registry.primary("Op") == "cached"

    asyncio.run(registry.refresh(["Op"], force=True))
    assert len(discovery.calls) == 1
    assert registry.primary("Op") == "new"


def test_expired_snapshot_refreshes(tmp_path):
    cache = tmp_path / "query-ids.json"
    _write_cache(cache, NOW - timedelta(hours=25), {"Op": "cached"})
    discovery = FakeDiscovery({"Op": "new"})
    registry = make_registry(defaults={}, discovery=discovery, cache_path=cache, now=lambda: NOW)

    info = registry.snapshot_info()
    assert info is not None and not info.is_fresh

    asyncio.run(registry.refresh(["Op"]))

    assert registry.primary("Op") == "new"
    assert registry.snapshot_info().is_fresh


def test_refresh_failure_is_swallowed_and_counted(tmp_path):
    cache = tmp_path / "query-ids.json"
    _write_cache(cache, NOW - timedelta(days=3), {"Op": "cached"})
    registry = make_registry(
        defaults={"Op": "default"},
        discovery=FakeDiscovery(error=RuntimeError("network down")),
        cache_path=cache,
        now=lambda: NOW,
    )

    asyncio.run(registry.refresh(["Op"], force=True))
    asyncio.run(registry.refresh(["Op"], force=True))

    assert registry.resolve("Op") == ["cached", "default"]
    assert registry.consecutive_refresh_failures == 2


def test_empty_discovery_counts_as_failure():
    registry = make_registry(defaults={"Op": "default"}, discovery=FakeDiscovery({}))

    asyncio.run(registry.refresh(["Op"], force=True))

    assert registry.consecutive_refresh_failures == 1
    assert registry.resolve("Op") == ["default"]


def test_success_resets_failure_counter():
    discovery = FakeDiscovery(error=RuntimeError("boom"))
    registry = make_registry(defaults={"Op": "default"}, discovery=discovery)

    asyncio.run(registry.refresh(["Op"], force=True))
    discovery.error = None
    discovery.result = {"Op": "new"}
    asyncio.run(registry.refresh(["Op"], force=True))

    assert registry.consecutive_refresh_failures == 0
    assert registry.primary("Op") == "new"


def test_refresh_without_discovery_is_a_no_op():
    registry = make_registry(defaults={"Op": "default"})

    asyncio.run(registry.refresh(["Op"], force=True))

    assert registry.refresh_count == 0
    assert registry.resolve("Op") == ["default"]


def test_snapshot_accepts_trailing_z_timestamp(tmp_path):
    cache = tmp_path / "query-ids.json"
    cache.write_text(
        json.dumps({"fetchedAt": "2024-05-01T11:00:00.000Z", "ids": {"Op": "cached"}}),
        encoding="utf-8",
    )
    registry = make_registry(defaults={}, cache_path=cache, now=lambda: NOW)

    info = registry.snapshot_info()

    assert info.is_fresh
    assert info.age_seconds == 3600


def test_snapshot_from_dict_drops_blank_ids():
    snapshot = QueryIdSnapshot.from_dict({"fetchedAt": "x", "ids": {"A": " id ", "B": "", "C": 3}})

    assert snapshot.ids == {"A": "id"}
    assert snapshot.discovery == {}

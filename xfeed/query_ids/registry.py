"""
Query ID registry with a persisted runtime overlay.

Every GraphQL operation is addressed by an opaque query ID that the platform
rotates without notice. The registry keeps, per operation name, an ordered
list of candidates:
1. The runtime overlay value (from the cache file or the last refresh)
2. Alternate IDs observed in other client builds
3. The baked-in default, always last

The overlay is loaded once per registry from a JSON snapshot on disk and is
replaced as a whole by ``refresh``. Refresh failures never propagate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import json
import logging
from pathlib import Path
from typing import Any, Callable, Iterable, Protocol

from ..logging_utils import log_event
from .constants import ALTERNATE_QUERY_IDS, DEFAULT_TTL_SECONDS, FALLBACK_QUERY_IDS

logger = logging.getLogger(__name__)


class QueryIdSource(Protocol):
    """Anything that can look up current query IDs for operation names."""

    async def discover(self, operation_names: list[str]) -> dict[str, str]:
        ...


@dataclass
class QueryIdSnapshot:
    """Persisted overlay of refreshed query IDs.

    Attributes:
        fetched_at: ISO 8601 timestamp of the refresh that produced the snapshot
        ids: Mapping of operation name to query ID
        discovery: Free-form details about how the IDs were found
    """
    fetched_at: str
    ids: dict[str, str] = field(default_factory=dict)
    discovery: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"fetchedAt": self.fetched_at, "ids": self.ids, "discovery": self.discovery}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QueryIdSnapshot | None:
        fetched_at = data.get("fetchedAt")
        ids = data.get("ids")
        if not isinstance(fetched_at, str) or not isinstance(ids, dict):
            return None
        clean_ids = {
            name: value.strip()
            for name, value in ids.items()
            if isinstance(name, str) and isinstance(value, str) and value.strip()
        }
        discovery = data.get("discovery")
        return cls(
            fetched_at=fetched_at,
            ids=clean_ids,
            discovery=discovery if isinstance(discovery, dict) else {},
        )


@dataclass
class SnapshotInfo:
    """Snapshot plus freshness details, for display."""
    cache_path: Path
    snapshot: QueryIdSnapshot
    age_seconds: float
    is_fresh: bool


class QueryIdRegistry:
    """Resolves candidate query IDs and refreshes them on demand."""

    def __init__(
        self,
        cache_path: Path | None = None,
        discovery: QueryIdSource | None = None,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        defaults: dict[str, str] | None = None,
        alternates: dict[str, list[str]] | None = None,
        now: Callable[[], datetime] | None = None,
    ):
        self.cache_path = cache_path
        self.discovery = discovery
        self.ttl_seconds = ttl_seconds
        self.defaults = dict(FALLBACK_QUERY_IDS if defaults is None else defaults)
        self.alternates = dict(ALTERNATE_QUERY_IDS if alternates is None else alternates)
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._snapshot: QueryIdSnapshot | None = None
        self._loaded = False
        self.refresh_count = 0
        self.consecutive_refresh_failures = 0

    @property
    def operation_names(self) -> list[str]:
        return list(self.defaults)

    def resolve(self, operation_name: str) -> list[str]:
        """Return the ordered, de-duplicated candidate IDs for an operation.

        Never raises. Unknown operations yield only what the overlay knows,
        which may be an empty list.
        """
        self._ensure_loaded()
        candidates: list[str] = []
        snapshot = self._snapshot
        if snapshot is not None and snapshot.ids.get(operation_name):
            candidates.append(snapshot.ids[operation_name])
        candidates.extend(self.alternates.get(operation_name, []))
        default = self.defaults.get(operation_name)
        if default:
            candidates.append(default)
        return list(dict.fromkeys(candidates))

    def primary(self, operation_name: str) -> str | None:
        candidates = self.resolve(operation_name)
        return candidates[0] if candidates else None

    async def refresh(self, operation_names: Iterable[str], force: bool = False) -> None:
        """Re-discover query IDs and replace the runtime overlay.

        A non-forced refresh is skipped while the current snapshot is within
        its TTL. Any failure is logged and swallowed; the previous overlay
        stays in place.

        Args:
            operation_names: Operations to look up
            force: Refresh even if the current snapshot is fresh
        """
        self._ensure_loaded()
        names = list(operation_names)
        if not force and self._snapshot is not None and self._is_fresh(self._snapshot):
            return
        if self.discovery is None:
            return

        self.refresh_count += 1
        try:
            found = await self.discovery.discover(names)
        except Exception as exc:  # noqa: BLE001
            self._record_refresh_failure(f"{type(exc).__name__}: {exc}")
            return

        if not found:
            self._record_refresh_failure("No query IDs discovered")
            return

        previous = self._snapshot.ids if self._snapshot is not None else {}
        merged = {**previous, **found}
        snapshot = QueryIdSnapshot(
            fetched_at=self._now().isoformat(),
            ids=merged,
            discovery={"requested": names, "found": sorted(found)},
        )
        # Rebind rather than mutate so readers never observe a partial overlay
        self._snapshot = snapshot
        self.consecutive_refresh_failures = 0
        log_event(
            logger,
            "Query IDs refreshed",
            event="query_id_refresh",
            found=sorted(found),
            changed=sorted(name for name, value in found.items() if previous.get(name) != value),
        )
        self._persist(snapshot)

    def snapshot_info(self) -> SnapshotInfo | None:
        self._ensure_loaded()
        if self._snapshot is None or self.cache_path is None:
            return None
        age = self._age_seconds(self._snapshot)
        return SnapshotInfo(
            cache_path=self.cache_path,
            snapshot=self._snapshot,
            age_seconds=age,
            is_fresh=age <= self.ttl_seconds,
        )

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        self._loaded = True
        if self.cache_path is None or not self.cache_path.exists():
            return
        try:
            data = json.loads(self.cache_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            log_event(
                logger,
                "Ignoring unreadable query ID cache",
                level=logging.WARNING,
                event="query_id_cache_invalid",
                path=str(self.cache_path),
                error=f"{type(exc).__name__}: {exc}",
            )
            return
        if isinstance(data, dict):
            self._snapshot = QueryIdSnapshot.from_dict(data)

    def _persist(self, snapshot: QueryIdSnapshot) -> None:
        if self.cache_path is None:
            return
        try:
            self.cache_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.cache_path.with_suffix(self.cache_path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(snapshot.to_dict(), indent=2) + "\n", encoding="utf-8")
            tmp_path.replace(self.cache_path)
        except OSError as exc:
            log_event(
                logger,
                "Could not write query ID cache",
                level=logging.WARNING,
                event="query_id_cache_write_failed",
                path=str(self.cache_path),
                error=f"{type(exc).__name__}: {exc}",
            )

    def _record_refresh_failure(self, error: str) -> None:
        self.consecutive_refresh_failures += 1
        log_event(
            logger,
            "Query ID refresh failed; keeping cached IDs",
            level=logging.WARNING,
            event="query_id_refresh_failed",
            error=error,
            consecutive_failures=self.consecutive_refresh_failures,
        )

    def _age_seconds(self, snapshot: QueryIdSnapshot) -> float:
        try:
            fetched_at = datetime.fromisoformat(snapshot.fetched_at.replace("Z", "+00:00"))
        except ValueError:
            return float("inf")
        if fetched_at.tzinfo is None:
            fetched_at = fetched_at.replace(tzinfo=timezone.utc)
        return max(0.0, (self._now() - fetched_at).total_seconds())

    def _is_fresh(self, snapshot: QueryIdSnapshot) -> bool:
        return self._age_seconds(snapshot) <= self.ttl_seconds

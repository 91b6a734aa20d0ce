# tienda/services/config_service.py
"""
Remote settings + coupon registry with a local cache.

The cache moves through these states:

    EMPTY --fetch--> LOADING --ok--> FRESH
                             --fail--> EMPTY (empty registry is served)
    STALE --fetch--> REVALIDATING --ok/304--> FRESH
                                  --fail--> STALE (cached copy is served)

FRESH turns back into STALE once `max_age_seconds` have passed. With
`background=True` a cached copy is returned right away and revalidation
runs in a worker thread.
"""

import enum
import json
import logging
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

import requests

from services.coupon_service import CouponRegistry
from services.delivery_fee_service import FeeSettings

logger = logging.getLogger(__name__)

NOT_MODIFIED = 304


class ConfigFetchError(Exception):
    pass


class CacheState(enum.Enum):
    EMPTY = "empty"
    LOADING = "loading"
    FRESH = "fresh"
    STALE = "stale"
    REVALIDATING = "revalidating"


@dataclass
class ConfigSnapshot:
    settings: Dict[str, str] = field(default_factory=dict)
    cupones: List[dict] = field(default_factory=list)
    last_updated: Optional[str] = None

    @classmethod
    def from_payload(cls, data: dict) -> "ConfigSnapshot":
        metadata = data.get("metadata") or {}
        return cls(
            settings={str(k): str(v) for k, v in (data.get("settings") or {}).items()},
            cupones=list(data.get("cupones") or []),
            last_updated=metadata.get("lastUpdated"),
        )

    def to_payload(self, etag: str) -> dict:
        return {
            "settings": self.settings,
            "cupones": self.cupones,
            "metadata": {
                "etag": etag,
                "lastUpdated": self.last_updated,
                "totalCupones": len(self.cupones),
                "totalSettings": len(self.settings),
            },
        }


@dataclass
class CacheEntry:
    data: ConfigSnapshot
    fetched_at: float
    validator: str  # etag


@dataclass
class FetchResult:
    status: int
    data: Optional[ConfigSnapshot] = None
    etag: Optional[str] = None


ConfigFetcher = Callable[[Optional[str]], FetchResult]


class HttpConfigFetcher:
    """
    GET the config endpoint, sending If-None-Match when we hold an etag.
    Network and server errors are raised as ConfigFetchError.
    """

    def __init__(self, url: str, timeout_seconds: int = 10, session: Optional[requests.Session] = None):
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

    def __call__(self, etag: Optional[str]) -> FetchResult:
        headers = {"Cache-Control": "no-store"}
        if etag:
            headers["If-None-Match"] = etag

        try:
            resp = self.session.get(self.url, headers=headers, timeout=self.timeout_seconds)
            if resp.status_code == NOT_MODIFIED:
                return FetchResult(status=NOT_MODIFIED, etag=etag)
            resp.raise_for_status()
            body = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise ConfigFetchError(f"config fetch failed: {e}") from e

        if not isinstance(body, dict):
            raise ConfigFetchError(f"unexpected config body: {type(body).__name__}")
        if not body.get("success"):
            raise ConfigFetchError(body.get("error") or "Failed to load configuration")

        data = body.get("data") or {}
        try:
            snapshot = ConfigSnapshot.from_payload(data)
            metadata_etag = (data.get("metadata") or {}).get("etag")
        except (AttributeError, TypeError, ValueError) as e:
            raise ConfigFetchError(f"malformed config data: {e}") from e

        new_etag = resp.headers.get("ETag") or metadata_etag or f'"{int(time.time() * 1000)}"'
        return FetchResult(status=resp.status_code, data=snapshot, etag=new_etag)


class ConfigCache:
    def __init__(
            self,
            fetcher: ConfigFetcher,
            cache_path: Optional[Path] = None,
            max_age_seconds: float = 300,
            clock: Callable[[], float] = time.time,
    ):
        self._fetcher = fetcher
        self._cache_path = Path(cache_path) if cache_path else None
        self._max_age = max_age_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._worker: Optional[threading.Thread] = None
        self._closed = False
        self.last_error: Optional[str] = None

        self._entry = self._load_from_disk()
        self._state = CacheState.STALE if self._entry else CacheState.EMPTY

    # ----- public API -----

    @property
    def state(self) -> CacheState:
        with self._lock:
            if self._state is CacheState.FRESH and self._is_expired():
                self._state = CacheState.STALE
            return self._state

    @property
    def entry(self) -> Optional[CacheEntry]:
        return self._entry

    def get_or_refresh(self, force_refresh: bool = False, background: bool = False) -> ConfigSnapshot:
        """
        Return the current config, fetching when needed.

        force_refresh skips the conditional request; a failed forced fetch
        still leaves the previous copy in place.
        """
        state = self.state
        if self._closed:
            return self._current()

        if state is CacheState.FRESH and not force_refresh:
            return self._entry.data

        if state is CacheState.REVALIDATING or state is CacheState.LOADING:
            # someone else is already fetching
            return self._current()

        if background and self._entry is not None:
            cached = self._entry.data
            self._start_background(force_refresh)
            return cached

        self._revalidate(force_refresh)
        return self._current()

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until a background revalidation (if any) finishes."""
        worker = self._worker
        if worker is not None:
            worker.join(timeout)

    def close(self) -> None:
        """Cancel: results of an in-flight fetch are dropped."""
        with self._lock:
            self._closed = True

    def registry(self) -> CouponRegistry:
        return CouponRegistry.from_config(self._current().cupones)

    def fee_settings(self) -> FeeSettings:
        return FeeSettings.from_settings(self._current().settings)

    def get_setting(self, key: str, default: str = "") -> str:
        return self._current().settings.get(key) or default

    # ----- internals -----

    def _current(self) -> ConfigSnapshot:
        entry = self._entry
        return entry.data if entry else ConfigSnapshot()

    def _is_expired(self) -> bool:
        return self._entry is None or self._clock() - self._entry.fetched_at > self._max_age

    def _start_background(self, force_refresh: bool) -> None:
        with self._lock:
            self._state = CacheState.REVALIDATING
        self._worker = threading.Thread(
            target=self._revalidate,
            args=(force_refresh, True),
            name="config-revalidate",
            daemon=True,
        )
        self._worker.start()

    def _revalidate(self, force_refresh: bool, already_marked: bool = False) -> None:
        with self._lock:
            previous = self._entry
            if not already_marked:
                self._state = CacheState.REVALIDATING if previous else CacheState.LOADING

        etag = None if force_refresh or previous is None else previous.validator

        try:
            result = self._fetcher(etag)
        except Exception as e:
            # never leave the state at LOADING / REVALIDATING
            if not isinstance(e, ConfigFetchError):
                logger.exception("Unexpected error fetching config")
            self._fetch_failed(previous, e)
            return

        with self._lock:
            if self._closed:
                logger.info("Config cache closed, dropping fetch result")
                return
            self.last_error = None

            if result.status == NOT_MODIFIED and previous is not None:
                logger.info("Config unchanged, using cache")
                self._entry = CacheEntry(previous.data, self._clock(), previous.validator)
                self._state = CacheState.FRESH
                return

            if result.data is None:
                logger.warning("Config fetch returned no data (status %s)", result.status)
                self._state = CacheState.STALE if previous else CacheState.EMPTY
                return

            etag = result.etag or f'"{int(self._clock() * 1000)}"'
            if previous is not None and previous.validator == etag:
                logger.info("Config unchanged (etag match)")
                self._entry = CacheEntry(previous.data, self._clock(), etag)
            else:
                logger.info("Config changed, updating cache")
                self._entry = CacheEntry(result.data, self._clock(), etag)
                self._save_to_disk(self._entry)
            self._state = CacheState.FRESH

    def _fetch_failed(self, previous: Optional[CacheEntry], error: Exception) -> None:
        with self._lock:
            self.last_error = str(error) or type(error).__name__
            if self._closed:
                return
            if previous is not None:
                logger.warning("Config fetch failed, using cached config: %s", error)
                self._state = CacheState.STALE
            else:
                logger.error("Config fetch failed and no cache available: %s", error)
                self._state = CacheState.EMPTY

    def _load_from_disk(self) -> Optional[CacheEntry]:
        if self._cache_path is None or not self._cache_path.exists():
            return None
        try:
            raw = json.loads(self._cache_path.read_text(encoding="utf-8"))
            return CacheEntry(
                data=ConfigSnapshot.from_payload(raw["data"]),
                fetched_at=float(raw["timestamp"]),
                validator=raw["etag"],
            )
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("Error reading config cache %s: %s", self._cache_path, e)
            return None

    def _save_to_disk(self, entry: CacheEntry) -> None:
        if self._cache_path is None:
            return
        try:
            self._cache_path.parent.mkdir(parents=True, exist_ok=True)
            payload = {
                "data": entry.data.to_payload(entry.validator),
                "timestamp": entry.fetched_at,
                "etag": entry.validator,
            }
            self._cache_path.write_text(json.dumps(payload), encoding="utf-8")
        except OSError as e:
            logger.warning("Error saving config cache %s: %s", self._cache_path, e)

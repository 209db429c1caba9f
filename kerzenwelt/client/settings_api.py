"""Settings access layer: cached reads, probe-then-write upserts and deletes.

Reads are served through the shared :class:`QueryCache`:

* the whole collection lives under ``("settings",)`` and may be served from
  cache for ``config.settings_stale_time_seconds`` (5 minutes by default);
* single settings live under ``("settings", key)``, are always considered
  stale, and are refetched on mount, on window focus and every
  ``config.settings_refetch_interval_seconds`` so that edits made in the back
  office show up quickly everywhere.

Writes probe ``GET /api/settings/{key}`` first and then either ``PUT`` the new
value (200) or ``POST`` a new setting (404). On success both cache keys are
invalidated and the user is notified; on failure the user is notified and
the cache is left alone.
"""

import asyncio
import logging
from collections import Counter
from contextlib import asynccontextmanager
from functools import partial
from urllib.parse import quote

from kerzenwelt.client.http import ApiClient, error_message
from kerzenwelt.client.notifications import LoggingNotifier, Notifier, Variant
from kerzenwelt.client.query_cache import (
    Mutation,
    QueryCache,
    QueryKey,
    QueryObserver,
    QueryOptions,
    QueryResult,
)
from kerzenwelt.config import get_config
from kerzenwelt.exceptions import SettingProbeError, SettingsAccessError, WriteError
from kerzenwelt.schemas.setting import RESERVED_SETTING_KEYS
from kerzenwelt.schemas.setting import SettingResponse as Setting

logger = logging.getLogger(__name__)

SETTINGS_PATH = "/api/settings"
SETTINGS_QUERY_KEY: QueryKey = ("settings",)

_FROM_CONFIG = object()


def setting_query_key(key: str) -> QueryKey:
    """Cache key for a single setting."""
    return ("settings", key)


def setting_path(key: str) -> str:
    """API path for a single setting, with the key URL-encoded."""
    return f"{SETTINGS_PATH}/{quote(key, safe='')}"


def is_addressable_key(key: str) -> bool:
    """Whether ``key`` can be read and written through the single-setting routes.

    Empty keys and the keys of the composite endpoints (``hero``, ``contact``)
    are not.
    """
    return bool(key) and key not in RESERVED_SETTING_KEYS


# Process-wide cache shared by every client that doesn't bring its own
_query_cache: QueryCache | None = None


def get_query_cache() -> QueryCache:
    """Get the shared query cache singleton."""
    global _query_cache
    if _query_cache is None:
        _query_cache = QueryCache()
    return _query_cache


def _check_key(key: str) -> None:
    if not key:
        raise ValueError("Setting key must not be empty")
    if key in RESERVED_SETTING_KEYS:
        raise ValueError(f"'{key}' is a reserved setting key")


class SettingsClient:
    """Read and write shop settings through the REST API."""

    def __init__(
        self,
        api: ApiClient,
        cache: QueryCache | None = None,
        notifier: Notifier | None = None,
        stale_time: float | None = None,
        refetch_interval=_FROM_CONFIG,
    ):
        """Initialize the settings client.

        Args:
            api: HTTP client for the settings API
            cache: Query cache, defaults to the process-wide one
            notifier: Where save/delete outcomes are reported
            stale_time: Freshness window for the collection, in seconds
            refetch_interval: Polling interval for single settings, in seconds;
                ``None`` disables polling
        """
        config = get_config()
        self.api = api
        self.cache = cache if cache is not None else get_query_cache()
        self.notifier = notifier or LoggingNotifier()
        self.stale_time = (
            stale_time if stale_time is not None else config.settings_stale_time_seconds
        )
        if refetch_interval is _FROM_CONFIG:
            refetch_interval = config.settings_refetch_interval_seconds

        self._collection_options = QueryOptions(stale_time=self.stale_time)
        self._key_options = QueryOptions(
            stale_time=0.0,
            refetch_on_window_focus=True,
            refetch_on_mount=True,
            refetch_interval=refetch_interval,
        )

        self._observers: list[QueryObserver] = []
        self._value_observers: dict[str, QueryObserver] = {}
        self._key_locks: dict[str, asyncio.Lock] = {}
        self._key_lock_users: Counter[str] = Counter()

        self.save_mutation: Mutation[Setting] = Mutation(
            self._save,
            on_success=self._on_saved,
            on_error=self._on_save_failed,
        )
        self.delete_mutation: Mutation[str] = Mutation(
            self._delete,
            on_success=self._on_deleted,
            on_error=self._on_delete_failed,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def _fetch_all(self) -> list[Setting]:
        response = await self.api.request("GET", SETTINGS_PATH)
        if response.is_error:
            raise SettingsAccessError(f"Failed to fetch settings: {error_message(response)}")
        return [Setting.model_validate(item) for item in response.json()]

    async def _fetch_one(self, key: str) -> Setting | None:
        response = await self.api.request("GET", setting_path(key))
        if response.status_code == 404:
            return None
        if response.is_error:
            raise SettingsAccessError(
                f'Failed to fetch setting "{key}": {error_message(response)}'
            )
        return Setting.model_validate(response.json())

    async def list_all(self) -> QueryResult[list[Setting]]:
        """Read every setting, served from cache within the staleness window.

        Failures are returned in the result's ``error`` slot, not raised.
        """
        return await self.cache.fetch_query(
            SETTINGS_QUERY_KEY,
            self._fetch_all,
            stale_time=self.stale_time,
        )

    def watch_all(self) -> QueryObserver[list[Setting]]:
        """Mount an observer on the settings collection."""
        observer = self.cache.observe(SETTINGS_QUERY_KEY, self._fetch_all, self._collection_options)
        self._observers.append(observer)
        return observer

    def get_by_key(self, key: str) -> QueryObserver[Setting] | None:
        """Mount an always-fresh observer on one setting.

        Returns None for an empty or reserved key; nothing is fetched in that
        case. An absent setting resolves to a successful result with
        ``data=None``.
        """
        if not is_addressable_key(key):
            return None
        observer = self.cache.observe(
            setting_query_key(key),
            partial(self._fetch_one, key),
            self._key_options,
        )
        self._observers.append(observer)
        return observer

    def get_value(self, key: str, default: str = "") -> str:
        """Current value of a setting, or ``default`` while loading, on error or when absent.

        Never blocks: the first call for a key starts the read and returns the
        default; subsequent calls see the fetched value.
        """
        observer = self._value_observers.get(key)
        if observer is None:
            observer = self.get_by_key(key)
            if observer is None:
                return default
            self._value_observers[key] = observer

        result = observer.result
        if result.is_loading or result.is_error or result.data is None:
            return default
        return result.data.value

    async def as_dict(self) -> dict[str, str]:
        """All settings as a ``{key: value}`` mapping (empty on error)."""
        result = await self.list_all()
        return {setting.key: setting.value for setting in result.data or []}

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def upsert(self, key: str, value: str) -> Setting:
        """Create or update a setting.

        Raises:
            SettingProbeError: The existence probe returned neither 200 nor 404
            WriteError: The create or update request was rejected
            NetworkError: The API could not be reached
            ValueError: The key is empty or reserved
        """
        return await self.save_mutation.mutate_async(key=key, value=value)

    async def remove(self, key: str) -> str:
        """Delete a setting.

        Raises:
            WriteError: The delete request was rejected
            NetworkError: The API could not be reached
        """
        return await self.delete_mutation.mutate_async(key=key)

    @asynccontextmanager
    async def _key_lock(self, key: str):
        """Hold the per-key write lock, dropping it once nobody uses it."""
        lock = self._key_locks.get(key)
        if lock is None:
            lock = self._key_locks[key] = asyncio.Lock()
        self._key_lock_users[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._key_lock_users[key] -= 1
            if not self._key_lock_users[key]:
                del self._key_lock_users[key]
                del self._key_locks[key]

    async def _save(self, key: str, value: str) -> Setting:
        _check_key(key)

        # Probe and write as one step per key so two saves here can't both create
        async with self._key_lock(key):
            path = setting_path(key)
            probe = await self.api.request("GET", path)

            if probe.status_code == 200:
                logger.info(f"Updating setting {key}")
                response = await self.api.request("PUT", path, json={"value": value})
            elif probe.status_code == 404:
                logger.info(f"Creating setting {key}")
                response = await self.api.request(
                    "POST", SETTINGS_PATH, json={"key": key, "value": value}
                )
            else:
                raise SettingProbeError(key, probe.status_code)

            if response.is_error:
                raise WriteError(key, response.status_code, error_message(response))

            return Setting.model_validate(response.json())

    async def _delete(self, key: str) -> str:
        _check_key(key)
        response = await self.api.request("DELETE", setting_path(key))
        if response.is_error:
            raise WriteError(key, response.status_code, error_message(response))
        logger.info(f"Deleted setting {key}")
        return key

    def _invalidate(self, key: str) -> None:
        self.cache.invalidate_queries(SETTINGS_QUERY_KEY)
        self.cache.invalidate_queries(setting_query_key(key))

    def _on_saved(self, setting: Setting, variables: dict) -> None:
        self._invalidate(setting.key)
        self.notifier.send(
            "Setting saved",
            f'Setting "{setting.key}" was saved successfully.',
        )

    def _on_save_failed(self, error: Exception, variables: dict) -> None:
        logger.warning(f"Saving setting {variables.get('key')} failed: {error}")
        self.notifier.send("Error saving setting", str(error), Variant.DESTRUCTIVE)

    def _on_deleted(self, key: str, variables: dict) -> None:
        self._invalidate(key)
        self.notifier.send(
            "Setting deleted",
            f'Setting "{key}" was deleted successfully.',
        )

    def _on_delete_failed(self, error: Exception, variables: dict) -> None:
        logger.warning(f"Deleting setting {variables.get('key')} failed: {error}")
        self.notifier.send("Error deleting setting", str(error), Variant.DESTRUCTIVE)

    def close(self) -> None:
        """Unmount every observer this client created."""
        for observer in self._observers:
            observer.unmount()
        self._observers.clear()
        self._value_observers.clear()

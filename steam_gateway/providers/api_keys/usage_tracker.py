from datetime import datetime
from typing import Callable, Dict, Iterable, Optional
from zoneinfo import ZoneInfo

from steam_gateway.core.constants import (
    KEY_USAGE_PREFIX,
    KEY_USAGE_RETENTION_DAYS,
    REQUEST_COUNT_PREFIX,
    REQUEST_COUNT_RETENTION_DAYS,
    SECONDS_PER_DAY,
)
from steam_gateway.core.exceptions import StorageError
from steam_gateway.core.telemetry import get_logger, mask_key
from steam_gateway.providers.store.interface import KeyValueStoreInterface

logger = get_logger(__name__)


class UsageTracker:
    """Per-day counters of key usage and API requests in the shared store.

    Counters only feed load balancing and metrics, so write failures are
    logged and swallowed instead of failing the request that caused them.
    """

    def __init__(
        self,
        store: KeyValueStoreInterface,
        timezone: str = "UTC",
        now: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.timezone = ZoneInfo(timezone)
        self._now = now or (lambda: datetime.now(self.timezone))

    def today(self) -> str:
        """Current calendar day in the configured timezone."""
        return self._now().astimezone(self.timezone).strftime("%Y-%m-%d")

    def usage_key(self, api_key: str, day: Optional[str] = None) -> str:
        return f"{KEY_USAGE_PREFIX}{day or self.today()}:{api_key}"

    def request_key(self, path: str, day: Optional[str] = None) -> str:
        return f"{REQUEST_COUNT_PREFIX}{day or self.today()}:{path}"

    async def record_use(self, api_key: str) -> None:
        """Count one successful request made with api_key today."""
        await self._increment(
            self.usage_key(api_key), KEY_USAGE_RETENTION_DAYS, mask_key(api_key)
        )

    async def record_request(self, path: str) -> None:
        """Count one request attempt against path today."""
        await self._increment(
            self.request_key(path), REQUEST_COUNT_RETENTION_DAYS, path
        )

    async def _increment(
        self, counter_key: str, retention_days: int, label: str
    ) -> None:
        try:
            count = await self.store.increment(counter_key)
            # Only the creating increment sets the expiry
            if count == 1 and retention_days > 0:
                await self.store.expire(counter_key, SECONDS_PER_DAY * retention_days)
        except StorageError as e:
            logger.warning(f"Failed to update counter for {label}: {e}")

    async def get_today_usage(self, pool: Iterable[str]) -> Dict[str, int]:
        """
        Today's successful-request count for each key in pool that has one.

        Args:
            pool: The API keys of interest

        Returns:
            Mapping of key to count; keys without a record are absent
        """
        wanted = set(pool)
        try:
            counts = await self._read_counters(f"{KEY_USAGE_PREFIX}{self.today()}:")
        except StorageError as e:
            logger.warning(f"Failed to read key usage, balancing without it: {e}")
            return {}

        usage = {key: count for key, count in counts.items() if key in wanted}
        if usage:
            logger.debug(
                "Key usage today: "
                + ", ".join(f"{mask_key(k)}={v}" for k, v in usage.items())
            )
        return usage

    async def get_request_counts(self, day: Optional[str] = None) -> Dict[str, int]:
        """
        Request attempts per API path on a given day (default today).

        Raises:
            StorageError: If the store cannot be read
        """
        return await self._read_counters(f"{REQUEST_COUNT_PREFIX}{day or self.today()}:")

    async def _read_counters(self, prefix: str) -> Dict[str, int]:
        keys = await self.store.list_keys_by_prefix(prefix)
        if not keys:
            return {}

        values = await self.store.multi_get(keys)
        counts = {}
        for key, value in zip(keys, values):
            if value is None:
                continue
            try:
                counts[key[len(prefix) :]] = int(value)
            except ValueError:
                logger.warning(
                    f"Ignoring non-integer counter under {prefix}: {value!r}"
                )
        return counts

"""Per-restaurant daily takeout numbering.

Every takeout order receives a display identifier such as ``00007-20240726``:
the seventh order the restaurant opened that day. Numbers come from a counter
record keyed by (partition, restaurant, day) which is only ever advanced
through one atomic increment in the backing store, so concurrent callers never
share a number and never leave a gap.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional, Protocol, Tuple
from zoneinfo import ZoneInfo

from httpx import ConnectError, ConnectTimeout, PoolTimeout
from httpx import HTTPError as HttpxError
from postgrest import APIError as PostgrestAPIError
from supabase import Client

from backoffice.config.supabase_client import (
    TAKEOUT_COUNTER_BACKOFF_SECONDS,
    TAKEOUT_COUNTER_MAX_ATTEMPTS,
    TAKEOUT_COUNTER_RPC,
    TAKEOUT_COUNTER_TIMEZONE,
)
from backoffice.services.postgrest_errors import is_retryable_postgrest_error

logger = logging.getLogger(__name__)

SEQUENCE_WIDTH = 5
DAY_FORMAT = "%Y%m%d"
MAX_BACKOFF_SECONDS = 1.0


class Partition(str, Enum):
    """Top-level collection group a restaurant's data lives under."""

    TRIAL = "trial"
    PROD = "prod"


PLAN_PARTITIONS: Dict[str, Partition] = {
    "demo": Partition.TRIAL,
    "esencial": Partition.PROD,
    "pro": Partition.PROD,
    "ilimitado": Partition.PROD,
}


class InvalidScope(ValueError):
    """Raised when the restaurant or partition does not name a counter scope."""


class SequenceUnavailable(RuntimeError):
    """Raised when the store could not commit an increment."""


class CounterStoreError(RuntimeError):
    """One failed increment attempt.

    ``retryable`` is only set when the store is known not to have committed
    the increment; otherwise a retry could skip a number.
    """

    def __init__(self, message: str, *, retryable: bool = True):
        super().__init__(message)
        self.retryable = retryable


class CounterStore(Protocol):
    async def increment(self, partition: Partition, tenant_id: str, day: str) -> int:
        """Atomically advance the (partition, tenant, day) counter and return the new count."""
        ...


def resolve_partition(scope_selector: object) -> Partition:
    """Map a selector such as ``"prod"`` or ``Partition.TRIAL`` onto a partition."""

    if isinstance(scope_selector, Partition):
        return scope_selector
    if not isinstance(scope_selector, str):
        raise InvalidScope(f"Unknown partition: {scope_selector!r}")
    try:
        return Partition(scope_selector.strip().lower())
    except ValueError as exc:
        raise InvalidScope(f"Unknown partition: {scope_selector!r}") from exc


def partition_for_plan(plan: Optional[str]) -> Partition:
    """Return the partition used by restaurants on the given subscription plan."""

    partition = PLAN_PARTITIONS.get((plan or "").strip().lower())
    if partition is None:
        raise InvalidScope(f"Unknown plan: {plan!r}")
    return partition


def day_stamp(moment: datetime) -> str:
    return moment.strftime(DAY_FORMAT)


def format_sequence_id(count: int, day: str) -> str:
    return f"{count:0{SEQUENCE_WIDTH}d}-{day}"


def local_clock(timezone_name: Optional[str] = None) -> Callable[[], datetime]:
    """Clock reading the host's local time, or the named IANA zone when given."""

    if not timezone_name:
        return datetime.now
    zone = ZoneInfo(timezone_name)
    return lambda: datetime.now(zone)


class SequenceCounter:
    """Hands out gap-free daily sequence identifiers from a ``CounterStore``."""

    def __init__(
        self,
        store: CounterStore,
        *,
        clock: Optional[Callable[[], datetime]] = None,
        max_attempts: int = TAKEOUT_COUNTER_MAX_ATTEMPTS,
        backoff_seconds: float = TAKEOUT_COUNTER_BACKOFF_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.store = store
        self.clock = clock or local_clock(TAKEOUT_COUNTER_TIMEZONE)
        self.max_attempts = max_attempts
        self.backoff_seconds = max(backoff_seconds, 0.0)
        self._sleep = sleep

    async def next_sequence_id(self, tenant_id: str, scope_selector: object) -> str:
        """Reserve the next number for today and return it as ``NNNNN-YYYYMMDD``."""

        partition = resolve_partition(scope_selector)
        tenant = (tenant_id or "").strip() if isinstance(tenant_id, str) else ""
        if not tenant:
            raise InvalidScope("A restaurant identifier is required.")

        day = day_stamp(self.clock())
        count = await self._increment_with_retry(partition, tenant, day)
        return format_sequence_id(count, day)

    async def _increment_with_retry(self, partition: Partition, tenant_id: str, day: str) -> int:
        delay = self.backoff_seconds
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await self.store.increment(partition, tenant_id, day)
            except CounterStoreError as exc:
                if not exc.retryable:
                    logger.error(
                        "Takeout counter %s/%s/%s rejected by the store: %s",
                        partition.value, tenant_id, day, exc,
                    )
                    raise SequenceUnavailable("Could not generate a new takeout ID.") from exc
                if attempt == self.max_attempts:
                    logger.error(
                        "Takeout counter %s/%s/%s failed after %d attempts: %s",
                        partition.value, tenant_id, day, attempt, exc,
                    )
                    raise SequenceUnavailable("Could not generate a new takeout ID.") from exc
                logger.warning(
                    "Takeout counter attempt %d/%d failed for %s/%s/%s, retrying in %.2fs: %s",
                    attempt, self.max_attempts, partition.value, tenant_id, day, delay, exc,
                )
                await self._sleep(delay)
                delay = min(delay * 2, MAX_BACKOFF_SECONDS)
        raise SequenceUnavailable("Could not generate a new takeout ID.")  # pragma: no cover


class SupabaseCounterStore:
    """Counter store backed by the ``next_takeout_counter`` Postgres function.

    The function performs ``INSERT ... ON CONFLICT DO UPDATE SET count =
    count + 1 RETURNING count`` in a single statement; concurrent calls for one
    key queue on the row lock and each sees the previous caller's result.
    """

    def __init__(self, client: Client, *, rpc_name: str = TAKEOUT_COUNTER_RPC):
        self.client = client
        self.rpc_name = rpc_name

    async def increment(self, partition: Partition, tenant_id: str, day: str) -> int:
        params = {"p_partition": partition.value, "p_restaurant_id": tenant_id, "p_day": day}

        def _request():
            return self.client.rpc(self.rpc_name, params).execute()

        try:
            response = await asyncio.to_thread(_request)
        except PostgrestAPIError as exc:
            raise CounterStoreError(
                f"{self.rpc_name} failed ({exc.code}): {exc.message}",
                retryable=is_retryable_postgrest_error(exc),
            ) from exc
        except (ConnectError, ConnectTimeout, PoolTimeout) as exc:
            raise CounterStoreError(f"Supabase unreachable: {exc}") from exc
        except HttpxError as exc:
            # The request may have reached Postgres; the outcome is unknown.
            raise CounterStoreError(f"{self.rpc_name} outcome unknown: {exc}", retryable=False) from exc

        return _parse_count(response.data)


def _parse_count(data: object) -> int:
    """Accept the scalar, row, or single-row list shapes PostgREST may return."""

    value = data
    if isinstance(value, list):
        if len(value) != 1:
            raise CounterStoreError(f"Unexpected counter payload: {data!r}", retryable=False)
        value = value[0]
    if isinstance(value, dict):
        value = value.get("count", value.get("next_takeout_counter"))
    if isinstance(value, bool):
        raise CounterStoreError(f"Unexpected counter payload: {data!r}", retryable=False)
    try:
        count = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise CounterStoreError(f"Unexpected counter payload: {data!r}", retryable=False) from exc
    if count < 1:
        raise CounterStoreError(f"Counter returned a non-positive value: {count}", retryable=False)
    return count


class InMemoryCounterStore:
    """Process-local store for development without Supabase.

    Each key keeps its count and the time of its last increment. Increments
    are serialized by a single ``asyncio.Lock``.
    """

    def __init__(self) -> None:
        self._records: Dict[Tuple[Partition, str, str], Tuple[int, datetime]] = {}
        self._lock = asyncio.Lock()

    async def increment(self, partition: Partition, tenant_id: str, day: str) -> int:
        key = (partition, tenant_id, day)
        async with self._lock:
            current = self.current(partition, tenant_id, day)
            # Yield while holding the lock so interleaving callers must wait.
            await asyncio.sleep(0)
            self._records[key] = (current + 1, datetime.now())
            return current + 1

    def current(self, partition: Partition, tenant_id: str, day: str) -> int:
        record = self._records.get((partition, tenant_id, day))
        return record[0] if record else 0

    def last_updated(self, partition: Partition, tenant_id: str, day: str) -> Optional[datetime]:
        record = self._records.get((partition, tenant_id, day))
        return record[1] if record else None


__all__ = [
    "CounterStore",
    "CounterStoreError",
    "InMemoryCounterStore",
    "InvalidScope",
    "Partition",
    "SequenceCounter",
    "SequenceUnavailable",
    "SupabaseCounterStore",
    "day_stamp",
    "format_sequence_id",
    "local_clock",
    "partition_for_plan",
    "resolve_partition",
]

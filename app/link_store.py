"""Link store: the code -> URL mapping and its collision-safe creation.

The whole mapping lives in a single named collection. In production that is
one Redis hash (``LINKS_KEY``) shared by every application instance; each
short code is a field and its destination URL the value.

Architecture Overview
=====================
::
    ┌──────────────┐      ┌──────────────────┐      ┌───────────────┐
    │  routes.py   │ ───▶ │    LinkStore     │ ───▶ │ CodeGenerator │
    │ (HTTP layer) │      │  (5 operations)  │      └───────────────┘
    └──────────────┘      └────────┬─────────┘
                          ┌────────┴─────────┐
                          ▼                  ▼
                ┌──────────────────┐ ┌──────────────────┐
                │  RedisLinkStore  │ │ InMemoryLinkStore│
                │ HSETNX/HGET/EVAL │ │  dict + Lock     │
                │ HGETALL/HDEL     │ │                  │
                └──────────────────┘ └──────────────────┘

Create Flow
===========
::
    ┌─────────────┐
    │ create_link │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ generate()  │◀─────────────┐
    └──────┬──────┘              │
           ▼                     │ taken and
    ┌─────────────┐              │ attempts left
    │ HSETNX code │──── 0 ───────┘
    └──────┬──────┘
         1 │            budget spent
           ▼            ──────────▶ CodeSpaceExhaustedError
    ┌─────────────┐
    │ return code │
    └─────────────┘

Key Behaviours
===============
- Claiming a code is a single conditional command, so two concurrent creates
  can never both win the same code and an existing mapping is never replaced.
- Update runs its existence check and overwrite in one Lua script.
- Delete relies on the HDEL removed-count, so it is one round-trip.
- Every Redis command runs under a deadline; RedisError or a missed deadline
  surfaces as StorageError with the cause chained.
- Task cancellation propagates unchanged and nothing is retried.
"""

import abc
import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import redis.asyncio as redis
from prometheus_client import Counter, Histogram
from redis.exceptions import RedisError

from app.codegen import CodeGenerator
from app.enums import LinkOperation, OperationStatus
from app.exceptions import CodeSpaceExhaustedError, LinkNotFoundError, StorageError

__all__ = [
    "DEFAULT_MAX_ATTEMPTS",
    "LinkStore",
    "RedisLinkStore",
    "InMemoryLinkStore",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_COMMAND_TIMEOUT_SECONDS = 2.0

# KEYS[1] = hash, ARGV[1] = code, ARGV[2] = new url
UPDATE_IF_EXISTS_SCRIPT = """
if redis.call("HEXISTS", KEYS[1], ARGV[1]) == 1 then
    redis.call("HSET", KEYS[1], ARGV[1], ARGV[2])
    return 1
else
    return 0
end
"""


# ============================================================================
# PROMETHEUS METRICS
# ============================================================================

LINK_OPERATIONS_TOTAL = Counter(
    "url_shortener_link_operations_total",
    "Link store operations by outcome",
    ["operation", "status"],
)
LINK_OPERATION_DURATION = Histogram(
    "url_shortener_link_operation_duration_seconds",
    "Time taken by link store operations",
    ["operation"],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)
CODE_COLLISIONS_TOTAL = Counter(
    "url_shortener_code_collisions_total",
    "Generated short codes that were already taken",
)


def _status_for(exc: BaseException) -> OperationStatus:
    if isinstance(exc, LinkNotFoundError):
        return OperationStatus.NOT_FOUND
    if isinstance(exc, CodeSpaceExhaustedError):
        return OperationStatus.EXHAUSTED
    return OperationStatus.ERROR


# ============================================================================
# ABSTRACT INTERFACE
# ============================================================================


class LinkStore(abc.ABC):
    """The mapping contract consumed by the HTTP layer.

    Implementations hold no state of their own beyond a handle on the
    backing collection; all five operations may be called concurrently.
    """

    def __init__(self, generator: CodeGenerator, max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be positive, got {max_attempts}")
        self._generator = generator
        self._max_attempts = max_attempts

    @abc.abstractmethod
    async def create_link(self, url: str) -> str:
        """Store ``url`` under a freshly generated code and return the code.

        Raises:
            CodeSpaceExhaustedError: Every candidate within the attempt budget
                was already taken.
            StorageError: The backing store failed.
        """

    @abc.abstractmethod
    async def get_url(self, code: str) -> str:
        """Return the URL stored under ``code``.

        Raises:
            LinkNotFoundError: ``code`` has no entry.
            StorageError: The backing store failed.
        """

    @abc.abstractmethod
    async def list_links(self) -> dict[str, str]:
        """Return the complete code -> URL mapping."""

    @abc.abstractmethod
    async def update_link(self, code: str, new_url: str) -> str:
        """Point an existing ``code`` at ``new_url``; the code never changes.

        Raises:
            LinkNotFoundError: ``code`` has no entry.
            StorageError: The backing store failed.
        """

    @abc.abstractmethod
    async def delete_link(self, code: str) -> None:
        """Remove ``code`` from the mapping.

        Raises:
            LinkNotFoundError: ``code`` has no entry.
            StorageError: The backing store failed.
        """

    async def _claim_code(self, url: str, try_claim: Callable[[str, str], Awaitable[bool]]) -> str:
        """Generate candidates until one is claimed or the budget is spent."""
        for attempt in range(1, self._max_attempts + 1):
            code = self._generator.generate()
            if await try_claim(code, url):
                return code
            CODE_COLLISIONS_TOTAL.inc()
            logger.debug(f"Code collision on attempt {attempt}/{self._max_attempts}: {code}")
        raise CodeSpaceExhaustedError(self._max_attempts)

    async def _observe(self, operation: LinkOperation, call: Awaitable[T]) -> T:
        start_time = time.perf_counter()
        try:
            result = await call
        except Exception as exc:
            LINK_OPERATIONS_TOTAL.labels(operation=operation, status=_status_for(exc)).inc()
            raise
        finally:
            LINK_OPERATION_DURATION.labels(operation=operation).observe(time.perf_counter() - start_time)
        LINK_OPERATIONS_TOTAL.labels(operation=operation, status=OperationStatus.SUCCESS).inc()
        return result


# ============================================================================
# REDIS BACKEND
# ============================================================================


class RedisLinkStore(LinkStore):
    """Link store backed by one Redis hash.

    Example:
        >>> client = redis.from_url("redis://localhost:6379/0", decode_responses=True)
        >>> store = RedisLinkStore(client, CodeGenerator(8), key="url_shortener:links")
        >>> code = await store.create_link("https://example.com")
        >>> await store.get_url(code)
        'https://example.com'
    """

    def __init__(
        self,
        client: redis.Redis,
        generator: CodeGenerator,
        key: str = "url_shortener:links",
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        timeout: float = DEFAULT_COMMAND_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(generator, max_attempts)
        self._redis = client
        self._key = key
        self._timeout = timeout

    async def _execute(self, operation: LinkOperation, command: Callable[..., Awaitable[Any]], *args: Any) -> Any:
        try:
            async with asyncio.timeout(self._timeout):
                return await command(*args)
        except (RedisError, TimeoutError) as exc:
            logger.error(f"Redis {operation} failed on {self._key}: {exc!r}")
            raise StorageError(operation, exc) from exc

    async def _try_claim(self, code: str, url: str) -> bool:
        claimed = await self._execute(LinkOperation.CREATE, self._redis.hsetnx, self._key, code, url)
        return bool(claimed)

    async def create_link(self, url: str) -> str:
        code = await self._observe(LinkOperation.CREATE, self._claim_code(url, self._try_claim))
        logger.info(f"Created link {code} -> {url}")
        return code

    async def get_url(self, code: str) -> str:
        return await self._observe(LinkOperation.READ, self._get_url(code))

    async def _get_url(self, code: str) -> str:
        url = await self._execute(LinkOperation.READ, self._redis.hget, self._key, code)
        if url is None:
            raise LinkNotFoundError(code)
        return url

    async def list_links(self) -> dict[str, str]:
        links = await self._observe(
            LinkOperation.LIST,
            self._execute(LinkOperation.LIST, self._redis.hgetall, self._key),
        )
        return dict(links)

    async def update_link(self, code: str, new_url: str) -> str:
        return await self._observe(LinkOperation.UPDATE, self._update_link(code, new_url))

    async def _update_link(self, code: str, new_url: str) -> str:
        updated = await self._execute(
            LinkOperation.UPDATE,
            self._redis.eval,
            UPDATE_IF_EXISTS_SCRIPT,
            1,
            self._key,
            code,
            new_url,
        )
        if not updated:
            raise LinkNotFoundError(code)
        logger.info(f"Updated link {code} -> {new_url}")
        return code

    async def delete_link(self, code: str) -> None:
        await self._observe(LinkOperation.DELETE, self._delete_link(code))

    async def _delete_link(self, code: str) -> None:
        removed = await self._execute(LinkOperation.DELETE, self._redis.hdel, self._key, code)
        if not removed:
            raise LinkNotFoundError(code)
        logger.info(f"Deleted link {code}")


# ============================================================================
# IN-MEMORY BACKEND
# ============================================================================


class InMemoryLinkStore(LinkStore):
    """Dict-backed link store for local runs and tests.

    Same semantics as :class:`RedisLinkStore`; a lock stands in for Redis'
    per-command serialization.
    """

    def __init__(self, generator: CodeGenerator, max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> None:
        super().__init__(generator, max_attempts)
        self._links: dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def _try_claim(self, code: str, url: str) -> bool:
        async with self._lock:
            if code in self._links:
                return False
            self._links[code] = url
            return True

    async def create_link(self, url: str) -> str:
        code = await self._observe(LinkOperation.CREATE, self._claim_code(url, self._try_claim))
        logger.info(f"Created link {code} -> {url}")
        return code

    async def get_url(self, code: str) -> str:
        return await self._observe(LinkOperation.READ, self._get_url(code))

    async def _get_url(self, code: str) -> str:
        async with self._lock:
            try:
                return self._links[code]
            except KeyError:
                raise LinkNotFoundError(code) from None

    async def list_links(self) -> dict[str, str]:
        return await self._observe(LinkOperation.LIST, self._snapshot())

    async def _snapshot(self) -> dict[str, str]:
        async with self._lock:
            return dict(self._links)

    async def update_link(self, code: str, new_url: str) -> str:
        return await self._observe(LinkOperation.UPDATE, self._update_link(code, new_url))

    async def _update_link(self, code: str, new_url: str) -> str:
        async with self._lock:
            if code not in self._links:
                raise LinkNotFoundError(code)
            self._links[code] = new_url
        logger.info(f"Updated link {code} -> {new_url}")
        return code

    async def delete_link(self, code: str) -> None:
        await self._observe(LinkOperation.DELETE, self._delete_link(code))

    async def _delete_link(self, code: str) -> None:
        async with self._lock:
            if self._links.pop(code, None) is None:
                raise LinkNotFoundError(code)
        logger.info(f"Deleted link {code}")

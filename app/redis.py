"""Redis client management for the URL shortener.

This module provides a singleton Redis client with connection management
for the hash that holds every code -> URL mapping.

Flow Diagram — Redis Operations
=============================
::
    ┌─────────────┐
    │  Service    │
    │  Manager    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ get_redis()  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Check global │
    │ client var   │
    └──────┬──────┘
    EXISTS?  │
    ┌─────┴─────┐
    │ NO         │ YES
    ▼            ▼
┌─────────┐  ┌─────────┐
│ Create  │  │ Return  │
│ Redis   │  │ existing│
│ client  │  │ client  │
└─────────┘  └─────────┘

How to Use
===========
**Step 1 — Get the shared client**::
    client = await get_redis()
    await client.hget(settings.LINKS_KEY, "abc12345")

**Step 2 — Cleanup on shutdown**::
    await close_redis()

Key Behaviours
===============
- Redis client is created lazily on first access.
- Global client is reused across all requests.
- Socket timeouts follow REDIS_COMMAND_TIMEOUT_SECONDS.
- UTF-8 encoding with decode_responses for string operations.

Functions:
    get_redis():  Shared Redis client.
    close_redis():  Cleanup function for shutdown.
"""

import redis.asyncio as redis

from app.config import get_settings

__all__ = ["close_redis", "get_redis"]

settings = get_settings()

redis_client: redis.Redis | None = None


async def get_redis() -> redis.Redis:
    global redis_client
    if redis_client is None:
        redis_client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_timeout=settings.REDIS_COMMAND_TIMEOUT_SECONDS,
            socket_connect_timeout=settings.REDIS_COMMAND_TIMEOUT_SECONDS,
        )
    return redis_client


async def close_redis() -> None:
    global redis_client
    if redis_client is not None:
        await redis_client.aclose()
        redis_client = None

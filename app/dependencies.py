"""Dependency injection with a singleton service manager.

This module provides a centralized way to inject the link store, settings and
logging into API endpoints, using a singleton pattern for shared resources to
minimize per-request overhead. It also hosts the admin basic-auth guard.
"""

import logging
import secrets
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

import redis.asyncio as redis
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from app.codegen import CodeGenerator
from app.config import Settings, get_settings
from app.enums import HealthStatus
from app.link_store import InMemoryLinkStore, LinkStore, RedisLinkStore
from app.redis import close_redis, get_redis

REQUEST_ID_HEADER = "X-Request-ID"
ADMIN_REALM = "Restricted"


# ============================================================================
# SINGLETON SERVICE MANAGER
# ============================================================================


class ServiceManager:
    """Singleton service manager for shared resources.

    Owns the settings, the service logger, the Redis client (when the Redis
    backend is selected) and the link store built on top of it.
    """

    _instance: Optional["ServiceManager"] = None
    _initialized: bool = False

    def __new__(cls) -> "ServiceManager":
        """Implement singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    async def initialize(self, link_store: LinkStore | None = None) -> None:
        """Initialize shared resources once at startup.

        Args:
            link_store: Use this store instead of building one from settings.
        """
        if self._initialized:
            return
        self.settings = get_settings()
        self.logger = self._setup_logger()
        self.cache: redis.Redis | None = None
        if link_store is None:
            link_store = await self._setup_link_store()
        self.link_store = link_store
        self._initialized = True
        self.logger.info(f"Link store ready: {type(link_store).__name__}")

    def _setup_logger(self) -> logging.Logger:
        """Setup logger once.

        The "app" package logger gets the same handler so link store and
        access log records share the service format.
        """
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        for name in (self.settings.APP_NAME, "app"):
            logger = logging.getLogger(name)
            if not logger.handlers:
                handler = logging.StreamHandler()
                handler.setFormatter(formatter)
                logger.addHandler(handler)
                logger.setLevel(self.settings.LOG_LEVEL.upper())
        return logging.getLogger(self.settings.APP_NAME)

    async def _setup_link_store(self) -> LinkStore:
        generator = CodeGenerator(self.settings.SHORT_CODE_LENGTH)
        if self.settings.LINK_STORE_BACKEND == "memory":
            return InMemoryLinkStore(generator, self.settings.CODE_GENERATION_ATTEMPTS)
        self.cache = await get_redis()
        return RedisLinkStore(
            self.cache,
            generator,
            key=self.settings.LINKS_KEY,
            max_attempts=self.settings.CODE_GENERATION_ATTEMPTS,
            timeout=self.settings.REDIS_COMMAND_TIMEOUT_SECONDS,
        )

    async def check_store_health(self) -> HealthStatus:
        if self.cache is None:
            return HealthStatus.HEALTHY
        try:
            await self.cache.ping()
        except Exception as e:
            self.logger.error(f"Store health check failed: {e}")
            return HealthStatus.UNHEALTHY
        return HealthStatus.HEALTHY

    async def cleanup(self) -> None:
        """Cleanup shared resources at shutdown."""
        if getattr(self, "cache", None) is not None:
            await close_redis()
            self.cache = None
        self._initialized = False


# Global singleton instance
_service_manager = ServiceManager()


# ============================================================================
# LIGHTWEIGHT REQUEST CONTEXT
# ============================================================================


@dataclass
class RequestContext:
    """Per-request context with tracking and shared resource access.

    Attributes:
        service_manager: Singleton service manager with shared resources
        request_id: Unique identifier for this request
        client_ip: Client IP address
        user_agent: Client user agent string
        start_time: Request start timestamp
    """

    service_manager: ServiceManager
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    client_ip: Optional[str] = None
    user_agent: Optional[str] = None
    start_time: float = field(default_factory=lambda: time.time())

    @property
    def link_store(self) -> LinkStore:
        return self.service_manager.link_store

    @property
    def settings(self) -> Settings:
        return self.service_manager.settings

    @property
    def logger(self) -> logging.LoggerAdapter:
        """Get shared logger with request context."""
        return logging.LoggerAdapter(
            self.service_manager.logger,
            {"request_id": self.request_id, "client_ip": self.client_ip},
        )

    def get_duration(self) -> float:
        """Get request duration in milliseconds."""
        return (time.time() - self.start_time) * 1000


# ============================================================================
# DEPENDENCY FUNCTIONS
# ============================================================================


async def get_service_manager() -> ServiceManager:
    """Get the singleton service manager, initializing it on first use."""
    if not _service_manager._initialized:
        await _service_manager.initialize()
    return _service_manager


async def get_request_context(
    request: Request,
    manager: ServiceManager = Depends(get_service_manager),
) -> RequestContext:
    # RequestIDMiddleware stores the id on request.state
    request_id = getattr(request.state, "request_id", None) or str(uuid.uuid4())
    return RequestContext(
        service_manager=manager,
        request_id=request_id,
        client_ip=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


async def get_link_store(manager: ServiceManager = Depends(get_service_manager)) -> LinkStore:
    return manager.link_store


_basic_auth = HTTPBasic(realm=ADMIN_REALM)


async def require_admin(
    credentials: HTTPBasicCredentials = Depends(_basic_auth),
    manager: ServiceManager = Depends(get_service_manager),
) -> str:
    """Reject the request unless it carries the configured admin credentials."""
    settings = manager.settings
    username_ok = secrets.compare_digest(
        credentials.username.encode("utf-8"), settings.BASIC_AUTH_USERNAME.encode("utf-8")
    )
    password_ok = secrets.compare_digest(
        credentials.password.encode("utf-8"), settings.BASIC_AUTH_PASSWORD.encode("utf-8")
    )
    if not (username_ok and password_ok):
        manager.logger.warning(f"Rejected admin credentials for user {credentials.username!r}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": f'Basic realm="{ADMIN_REALM}"'},
        )
    return credentials.username

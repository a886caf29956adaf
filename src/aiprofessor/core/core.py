from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, cast
from urllib.parse import urlparse

from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase
from redis.asyncio import Redis

from aiprofessor.config import Config

if TYPE_CHECKING:
    from aiprofessor.core.modules.counter.service import CounterService
    from aiprofessor.core.modules.document.service import DocumentService
    from aiprofessor.core.modules.history.service import HistoryService
    from aiprofessor.core.modules.session.service import SessionService
    from aiprofessor.core.modules.user.service import UserService


class Service:
    """Base class for services with direct access to MongoDB, Redis and configuration."""

    def __init__(self, config: Config, database: AsyncDatabase[dict[str, Any]], redis: Redis) -> None:
        self.config = config
        self.database = database
        self.redis = redis
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry that automatically discovers and initializes services."""

    counter: CounterService
    user: UserService
    session: SessionService
    history: HistoryService
    document: DocumentService

    def __init__(self, config: Config, database: AsyncDatabase[dict[str, Any]], redis: Redis) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []

        # Service configuration: (attribute_name, module_path, class_name)
        # Order matters for initialization - counter must be first, user before session
        service_configs = [
            ("counter", "aiprofessor.core.modules.counter.service", "CounterService"),
            ("user", "aiprofessor.core.modules.user.service", "UserService"),
            ("session", "aiprofessor.core.modules.session.service", "SessionService"),
            ("history", "aiprofessor.core.modules.history.service", "HistoryService"),
            ("document", "aiprofessor.core.modules.document.service", "DocumentService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(config, database, redis)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        """Start all services that have startup logic."""
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        """Stop all services that have cleanup logic."""
        for service in self._services:
            await service.on_stop()


class Core:
    """Container providing config, database, Redis and all service instances."""

    config: Config
    mongo_client: AsyncMongoClient[dict[str, Any]]
    database: AsyncDatabase[dict[str, Any]]
    redis: Redis
    services: Services

    def __init__(self, config: Config) -> None:
        """Initialize core with config, MongoDB, Redis, and auto-register services."""
        self.config = config
        self.mongo_client = AsyncMongoClient(config.database_url, tz_aware=True)
        self.database = self.mongo_client.get_database(urlparse(config.database_url).path[1:])
        self.redis = Redis.from_url(config.redis_url, decode_responses=True)
        self.services = Services(config, self.database, self.redis)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        """Start all services on application startup."""
        await self.services.start_all()

    async def on_stop(self) -> None:
        """Stop services and close MongoDB and Redis connections on shutdown."""
        await self.services.stop_all()
        await self.redis.aclose()
        await self.mongo_client.aclose()

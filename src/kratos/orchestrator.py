"""Startup sequence for the moderation service.

``Orchestrator.start`` builds every subsystem in dependency order, awaiting
each configuration load before anything that depends on it is constructed,
publishes them in a ``ServiceRegistry``, installs commands, hooks the
blacklist load onto the transport's ready signal, logs in and finally starts
the unpunisher loop. ``run`` then parks until shutdown is requested or the
connection ends.
"""
from __future__ import annotations

import asyncio
from typing import Callable, Optional

import discord

from .config.settings import CORE_CONFIG_NAME, CoreConfig, RuntimeSettings, default_core_config
from .config.store import ConfigStore
from .discord.commands import COMMAND_MODULES, CommandHandler
from .domain.interfaces import CommandInstaller, Transport
from .errors import ConnectFailure, DeferredHookFailure, KratosError
from .infrastructure.logging.structured_logging import (
    critical as log_critical,
    error as log_error,
    info as log_info,
)
from .infrastructure.persistence.db_core import RecordDB
from .services.alias_service import AliasTrackingService
from .services.blacklist_service import BlacklistService
from .services.modlog_service import ModLogService
from .services.moderation_service import ModerationService
from .services.permissions_service import PermissionsService
from .services.ratelimit_service import RatelimitService
from .services.record_service import RecordService
from .services.registry import ServiceRegistry
from .services.slowmode_service import SlowmodeService
from .services.tag_service import TagService
from .services.unpunish_service import UnpunishService
from .services.usernote_service import UsernoteService

_SOURCE = "Kratos"


def _default_transport() -> Transport:
    from .discord.client import KratosClient
    return KratosClient()


class Orchestrator:
    def __init__(
        self,
        settings: RuntimeSettings,
        *,
        transport_factory: Callable[[], Transport] = _default_transport,
        command_handler_factory: Callable[[ServiceRegistry], CommandInstaller] = CommandHandler,
        store: Optional[ConfigStore] = None,
        db: Optional[RecordDB] = None,
    ):
        self.settings = settings
        self.store = store or ConfigStore(settings.config_dir)
        self._db = db
        self._transport_factory = transport_factory
        self._command_handler_factory = command_handler_factory
        self.registry = ServiceRegistry()
        self.transport: Optional[Transport] = None
        self.core: Optional[CoreConfig] = None
        self.commands: Optional[CommandInstaller] = None
        self.ready_runs = 0
        self._ready_handled = False
        self._connection: Optional[asyncio.Task] = None
        self._shutdown = asyncio.Event()
        self._started = False

    # ---- startup -------------------------------------------------------
    async def start(self) -> ServiceRegistry:
        if self._started:
            raise RuntimeError("orchestrator already started")
        self._started = True
        try:
            await self._initialize()
        except Exception as e:
            log_critical("startup.failed", source=_SOURCE, failure=e)
            raise
        try:
            await self._connect()
        except KratosError as e:
            log_critical("startup.connect_failed", source=_SOURCE, failure=e)
            raise
        await self.registry.get(UnpunishService).start()
        log_info("startup.complete", source=_SOURCE, services=len(self.registry))
        return self.registry

    async def _initialize(self) -> None:
        self.store.ensure_directory()
        self.core = await self.store.load_existing_or_create(
            CORE_CONFIG_NAME, CoreConfig, default_core_config(self.settings)
        )
        core = self.core
        transport = self.transport = self._transport_factory()
        db = self._db = self._db or RecordDB(self.settings.database_path)

        moderation = ModerationService(self.store)
        await moderation.load_existing_or_create()
        usernotes = UsernoteService(db)
        records = RecordService(db)
        tags = TagService(db)

        modlog = ModLogService(transport, self.store)
        await modlog.load_existing_or_create()

        unpunish = UnpunishService(transport, modlog, records, core)
        await unpunish.get_records_async()

        slowmode = SlowmodeService(transport, modlog, unpunish)

        ratelimit = RatelimitService(transport, core, records, unpunish, modlog, self.store)
        await ratelimit.load_existing_or_create()
        if ratelimit.is_enabled:
            ratelimit.enable(ratelimit.limit)

        # configuration is loaded by the ready hook, it needs the live guild
        blacklist = BlacklistService(transport, unpunish, modlog, core, self.store)
        unpunish.attach_blacklist(blacklist)

        aliases = AliasTrackingService(transport, self.store)
        await aliases.load_existing_or_create()

        permissions = PermissionsService(self.store)
        permissions.load_permissions(COMMAND_MODULES)
        await permissions.load_existing_or_create()

        registry = self.registry
        for service in (moderation, blacklist, aliases, permissions, usernotes, records, tags,
                        unpunish, modlog, slowmode, ratelimit):
            registry.register(service)
        registry.register(db)
        registry.register(core)
        registry.register(self.store)
        registry.register(transport, Transport)
        registry.freeze()

        self.commands = self._command_handler_factory(registry)
        await self.commands.install()
        transport.attach_registry(registry)
        transport.add_ready_hook(self._on_ready)

    async def _on_ready(self) -> None:
        if self._ready_handled:
            return
        self._ready_handled = True
        self.ready_runs += 1
        try:
            await self.registry.get(BlacklistService).load_existing_or_create()
        except Exception as e:  # noqa: BLE001
            failure = DeferredHookFailure(f"Blacklist load after ready failed: {e}")
            failure.__cause__ = e
            log_error("ready.hook_failed", source=_SOURCE, failure=failure)
            return
        log_info("ready.hook_complete", source=_SOURCE)

    async def _connect(self) -> None:
        token = self.core.token if self.core else ""
        if not token:
            raise ConnectFailure(f"No token configured; set it in {self.store.path_for(CORE_CONFIG_NAME)}")
        try:
            await self.transport.login(token)
        except (discord.LoginFailure, discord.HTTPException, OSError) as e:
            raise ConnectFailure(f"Login failed: {e}") from e
        self._connection = asyncio.create_task(self.transport.connect(), name="kratos-transport")
        log_info("startup.connecting", source=_SOURCE)

    # ---- lifetime ------------------------------------------------------
    def request_shutdown(self) -> None:
        self._shutdown.set()

    async def run(self) -> None:
        """Start, then park until shutdown is requested or the connection dies."""
        try:
            await self.start()
            await self._park()
        finally:
            await self.shutdown()

    async def _park(self) -> None:
        waiter = asyncio.create_task(self._shutdown.wait())
        done, _ = await asyncio.wait({waiter, self._connection}, return_when=asyncio.FIRST_COMPLETED)
        if waiter in done:
            return
        waiter.cancel()
        cause = None if self._connection.cancelled() else self._connection.exception()
        failure = ConnectFailure("Transport connection ended unexpectedly")
        if cause is not None:
            failure.__cause__ = cause
        log_critical("transport.connection_lost", source=_SOURCE, failure=failure)
        raise failure

    async def shutdown(self) -> None:
        if UnpunishService in self.registry:
            await self.registry.get(UnpunishService).stop()
        if self.transport is not None and self._connection is not None:
            if not self._connection.done():
                await self.transport.close()
                try:
                    await self._connection
                except asyncio.CancelledError:
                    pass
                except Exception as e:  # noqa: BLE001
                    log_error("shutdown.connection_error", source=_SOURCE, failure=e)
            self._connection = None
        if self._db is not None:
            self._db.close()
            self._db = None
        log_info("shutdown.complete", source=_SOURCE)


__all__ = ["Orchestrator"]

from __future__ import annotations

import asyncio
import json
import logging

import discord
import pytest

from kratos.config.settings import CoreConfig, RuntimeSettings
from kratos.config.store import ConfigStore
from kratos.domain.interfaces import Transport
from kratos.errors import ConfigCorrupt, ConnectFailure, DeferredHookFailure
from kratos.infrastructure.persistence.db_core import RecordDB
from kratos.orchestrator import Orchestrator
from kratos.services.alias_service import AliasTrackingService
from kratos.services.blacklist_service import BlacklistService
from kratos.services.modlog_service import ModLogService
from kratos.services.moderation_service import ModerationService
from kratos.services.permissions_service import PermissionsService
from kratos.services.ratelimit_service import RatelimitConfig, RatelimitService
from kratos.services.record_service import RecordService
from kratos.services.slowmode_service import SlowmodeService
from kratos.services.tag_service import TagService
from kratos.services.unpunish_service import UnpunishService
from kratos.services.usernote_service import UsernoteService

from conftest import FakeTransport, StubCommandHandler

SERVICES = [
    ModerationService, BlacklistService, AliasTrackingService, PermissionsService, UsernoteService,
    RecordService, TagService, UnpunishService, ModLogService, SlowmodeService, RatelimitService,
]


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def make_orchestrator(transport):
    created = []

    def factory(settings):
        orch = Orchestrator(settings, transport_factory=lambda: transport, command_handler_factory=StubCommandHandler)
        created.append(orch)
        return orch

    yield factory
    for orch in created:
        if orch._db is not None:
            orch._db.close()


def config_files(settings: RuntimeSettings):
    return sorted(p.name for p in ConfigStore(settings.config_dir).directory.glob("*.json"))


@pytest.mark.asyncio
async def test_fresh_start_creates_defaults_and_registers_everything(settings, transport, make_orchestrator):
    orch = make_orchestrator(settings)
    registry = await orch.start()
    try:
        assert config_files(settings) == [
            "aliases.json", "core.json", "moderation.json", "modlog.json", "permissions.json", "ratelimit.json",
        ]
        core = json.loads((ConfigStore(settings.config_dir).path_for("core")).read_text(encoding="utf-8"))
        assert core["token"] == "test-token"
        assert transport.logged_in_with == "test-token"
        assert registry.frozen
        for service in SERVICES:
            assert service in registry
        assert registry.get(Transport) is transport
        assert isinstance(registry.get(CoreConfig), CoreConfig)
        assert isinstance(registry.get(RecordDB), RecordDB)
        assert transport.registry is registry
        assert registry in StubCommandHandler.installed
        assert registry.get(UnpunishService).is_running
        assert "moderation.mute" in registry.get(PermissionsService).known_permissions
    finally:
        await orch.shutdown()


@pytest.mark.asyncio
async def test_dependencies_are_the_registered_instances(settings, make_orchestrator):
    orch = make_orchestrator(settings)
    registry = await orch.start()
    try:
        unpunish = registry.get(UnpunishService)
        assert unpunish.blacklist is registry.get(BlacklistService)
        assert unpunish._modlog is registry.get(ModLogService)
        assert unpunish._records is registry.get(RecordService)
        assert registry.get(SlowmodeService)._unpunish is unpunish
        ratelimit = registry.get(RatelimitService)
        assert ratelimit._unpunish is unpunish
        assert ratelimit._core is registry.get(CoreConfig)
        assert registry.get(BlacklistService)._unpunish is unpunish
    finally:
        await orch.shutdown()


@pytest.mark.asyncio
async def test_blacklist_loads_once_after_ready(settings, transport, make_orchestrator):
    orch = make_orchestrator(settings)
    registry = await orch.start()
    try:
        blacklist = registry.get(BlacklistService)
        assert not blacklist.is_configured
        assert "blacklist.json" not in config_files(settings)

        await transport.fire_ready()
        await transport.fire_ready()

        assert blacklist.is_configured
        assert "blacklist.json" in config_files(settings)
        assert orch.ready_runs == 1
    finally:
        await orch.shutdown()


@pytest.mark.asyncio
async def test_ready_hook_failure_is_logged_not_fatal(settings, transport, make_orchestrator, caplog):
    orch = make_orchestrator(settings)
    registry = await orch.start()
    try:
        ConfigStore(settings.config_dir).path_for("blacklist").write_text("{broken", encoding="utf-8")
        with caplog.at_level(logging.ERROR):
            await transport.fire_ready()
        assert not registry.get(BlacklistService).is_configured
        failures = [r for r in caplog.records if r.exc_info and isinstance(r.exc_info[1], DeferredHookFailure)]
        assert len(failures) == 1
        assert isinstance(failures[0].exc_info[1].__cause__, ConfigCorrupt)
        assert registry.get(UnpunishService).is_running
    finally:
        await orch.shutdown()


@pytest.mark.asyncio
async def test_existing_configuration_is_read_not_replaced(settings, make_orchestrator):
    store = ConfigStore(settings.config_dir)
    store.ensure_directory()
    store.save("core", CoreConfig(token="kept-token", guild_id=5, mute_role_id=9))
    store.save("ratelimit", RatelimitConfig(is_enabled=True, limit=3))

    orch = make_orchestrator(settings)
    registry = await orch.start()
    try:
        assert registry.get(CoreConfig).token == "kept-token"
        assert registry.get(CoreConfig).guild_id == 5
        ratelimit = registry.get(RatelimitService)
        assert ratelimit.is_active
        assert ratelimit.active_limit == 3
    finally:
        await orch.shutdown()


@pytest.mark.asyncio
async def test_corrupt_core_configuration_aborts(settings, transport, make_orchestrator):
    store = ConfigStore(settings.config_dir)
    store.ensure_directory()
    store.path_for("core").write_text("{nope", encoding="utf-8")

    orch = make_orchestrator(settings)
    with pytest.raises(ConfigCorrupt):
        await orch.start()
    assert len(orch.registry) == 0
    assert transport.logged_in_with is None
    assert store.path_for("core").read_text(encoding="utf-8") == "{nope"
    await orch.shutdown()


@pytest.mark.asyncio
async def test_missing_token_is_a_connect_failure(tmp_path, transport, make_orchestrator):
    settings = RuntimeSettings(
        config_dir=str(tmp_path / "config"),
        log_dir=str(tmp_path / "logs"),
        database_path=str(tmp_path / "storage" / "kratos.db"),
        _env_file=None,
    )
    orch = make_orchestrator(settings)
    with pytest.raises(ConnectFailure, match="core.json"):
        await orch.start()
    assert not orch.registry.get(UnpunishService).is_running
    await orch.shutdown()


@pytest.mark.asyncio
async def test_login_rejection_is_a_connect_failure(settings, transport, make_orchestrator):
    transport.login_error = discord.LoginFailure("Improper token has been passed.")
    orch = make_orchestrator(settings)
    with pytest.raises(ConnectFailure) as info:
        await orch.start()
    assert isinstance(info.value.__cause__, discord.LoginFailure)
    await orch.shutdown()


@pytest.mark.asyncio
async def test_start_twice_is_rejected(settings, make_orchestrator):
    orch = make_orchestrator(settings)
    await orch.start()
    try:
        with pytest.raises(RuntimeError):
            await orch.start()
    finally:
        await orch.shutdown()


@pytest.mark.asyncio
async def test_run_until_shutdown_requested(settings, transport, make_orchestrator):
    orch = make_orchestrator(settings)
    runner = asyncio.create_task(orch.run())
    for _ in range(200):
        if orch.registry.frozen and UnpunishService in orch.registry and orch.registry.get(UnpunishService).is_running:
            break
        await asyncio.sleep(0.01)
    unpunish = orch.registry.get(UnpunishService)

    orch.request_shutdown()
    await asyncio.wait_for(runner, timeout=5)

    assert transport.closed
    assert not unpunish.is_running


@pytest.mark.asyncio
async def test_lost_connection_ends_run(settings, transport, make_orchestrator):
    transport.connect_error = OSError("gateway unreachable")
    orch = make_orchestrator(settings)
    with pytest.raises(ConnectFailure) as info:
        await asyncio.wait_for(orch.run(), timeout=5)
    assert isinstance(info.value.__cause__, OSError)
    assert not orch.registry.get(UnpunishService).is_running

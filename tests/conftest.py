from __future__ import annotations

import asyncio
import io
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
import pytest_asyncio

from kratos.config.settings import CoreConfig, RuntimeSettings
from kratos.config.store import ConfigStore
from kratos.infrastructure.logging.sink import DiagnosticLogSink
from kratos.infrastructure.persistence.db_core import RecordDB
from kratos.services.modlog_service import ModLogConfig, ModLogService
from kratos.services.record_service import RecordService
from kratos.services.unpunish_service import UnpunishService


class FakeRole:
    def __init__(self, id: int, name: str = "role"):
        self.id = id
        self.name = name

    def __repr__(self):
        return f"<FakeRole id={self.id} name={self.name}>"


class FakeGuild:
    def __init__(self, id: int = 1, owner_id: int = 999, roles=None, name: str = "Test Guild"):
        self.id = id
        self.owner_id = owner_id
        self.name = name
        self.roles = list(roles or [])
        self.members = {}

    def get_role(self, role_id):
        return next((r for r in self.roles if r.id == role_id), None)

    def get_member(self, user_id):
        return self.members.get(user_id)


class FakeMember:
    def __init__(self, id: int, guild: FakeGuild, roles=None, name: str = "member", administrator: bool = False):
        self.id = id
        self.guild = guild
        self.name = name
        self.nick = None
        self.bot = False
        self.roles = list(roles or [])
        self.guild_permissions = SimpleNamespace(administrator=administrator)
        self.sent = []
        self.fail_role_changes = None
        guild.members[id] = self

    async def add_roles(self, role, reason=None):
        if self.fail_role_changes:
            raise self.fail_role_changes
        self.roles.append(role)

    async def remove_roles(self, role, reason=None):
        if self.fail_role_changes:
            raise self.fail_role_changes
        self.roles.remove(role)

    async def send(self, text):
        self.sent.append(text)

    def __str__(self):
        return self.name


class FakeChannel:
    def __init__(self, id: int = 50):
        self.id = id
        self.sent = []

    async def send(self, text):
        self.sent.append(text)


class FakeMessage:
    _next_id = 1000

    def __init__(self, author: FakeMember, content: str, channel: FakeChannel | None = None):
        FakeMessage._next_id += 1
        self.id = FakeMessage._next_id
        self.author = author
        self.guild = author.guild
        self.content = content
        self.channel = channel or FakeChannel()
        self.deleted = False

    async def delete(self):
        self.deleted = True


class FakeTransport:
    """Stands in for the Discord client."""

    def __init__(self, guilds=None, channels=None):
        self.guilds = {g.id: g for g in (guilds or [])}
        self.channels = {c.id: c for c in (channels or [])}
        self.ready_hooks = []
        self.registry = None
        self.logged_in_with = None
        self.login_error = None
        self.connect_error = None
        self.closed = False
        self._closed = asyncio.Event()

    def get_guild(self, guild_id):
        return self.guilds.get(guild_id)

    def get_channel(self, channel_id):
        return self.channels.get(channel_id)

    def add_ready_hook(self, hook):
        self.ready_hooks.append(hook)

    def attach_registry(self, registry):
        self.registry = registry

    async def login(self, token):
        if self.login_error:
            raise self.login_error
        self.logged_in_with = token

    async def connect(self):
        if self.connect_error:
            raise self.connect_error
        await self._closed.wait()

    async def close(self):
        self.closed = True
        self._closed.set()

    async def fire_ready(self):
        for hook in list(self.ready_hooks):
            await hook()


class StubCommandHandler:
    installed = []

    def __init__(self, registry):
        self.registry = registry

    async def install(self):
        StubCommandHandler.installed.append(self.registry)


FIXED_NOW = datetime(2024, 5, 17, 13, 45, 9, tzinfo=timezone.utc)
MUTE_ROLE_ID = 77
MOD_ROLE_ID = 12
MODLOG_CHANNEL_ID = 50


@pytest.fixture
def console():
    return io.StringIO()


@pytest.fixture
def sink(tmp_path, console):
    return DiagnosticLogSink(tmp_path / "logs", stream=console, clock=lambda: FIXED_NOW, color=False)


@pytest.fixture
def store(tmp_path):
    s = ConfigStore(tmp_path / "config")
    s.ensure_directory()
    return s


@pytest.fixture
def db(tmp_path):
    database = RecordDB(str(tmp_path / "storage" / "kratos.db"))
    yield database
    try:
        database.close()
    except Exception:
        pass


@pytest.fixture
def settings(tmp_path):
    return RuntimeSettings(
        config_dir=str(tmp_path / "config"),
        log_dir=str(tmp_path / "logs"),
        database_path=str(tmp_path / "storage" / "kratos.db"),
        discord_token="test-token",
        _env_file=None,
    )


@pytest.fixture
def guild():
    return FakeGuild(id=1, owner_id=999, roles=[FakeRole(MUTE_ROLE_ID, "Muted"), FakeRole(MOD_ROLE_ID, "Moderator")])


@pytest.fixture
def modlog_channel():
    return FakeChannel(MODLOG_CHANNEL_ID)


@pytest.fixture
def transport(guild, modlog_channel):
    return FakeTransport(guilds=[guild], channels=[modlog_channel])


@pytest.fixture
def core():
    return CoreConfig(token="t", guild_id=1, owner_id=999, mute_role_id=MUTE_ROLE_ID, unpunish_interval_seconds=1)


@pytest_asyncio.fixture
async def modlog(transport, store):
    store.save("modlog", ModLogConfig(channel_id=MODLOG_CHANNEL_ID))
    service = ModLogService(transport, store)
    await service.load_existing_or_create()
    return service


@pytest.fixture
def records(db):
    return RecordService(db)


@pytest.fixture
def unpunish(transport, modlog, records, core):
    return UnpunishService(transport, modlog, records, core)

from __future__ import annotations

import asyncio
from types import SimpleNamespace

import discord
import pytest

from kratos.infrastructure.logging.structured_logging import VERBOSE

from conftest import MUTE_ROLE_ID, FakeMember


class StrikeLedger:
    def __init__(self):
        self.cleared = []

    def clear_strikes(self, user_id):
        self.cleared.append(user_id)


def http_error(status=500):
    return discord.HTTPException(SimpleNamespace(status=status, reason="Server Error"), "boom")


@pytest.mark.asyncio
async def test_mute_applies_role_and_tracks_record(unpunish, guild, modlog_channel, records):
    member = FakeMember(5, guild, name="spammer")
    record = await unpunish.mute(member, 600, "spam", moderator_id=999)
    assert record is not None
    assert guild.get_role(MUTE_ROLE_ID) in member.roles
    assert record.expires_at - record.ts == 600
    assert [r.id for r in unpunish.pending] == [record.id]
    assert records.get(record.id).moderator_id == 999
    assert modlog_channel.sent == [":mute: spammer muted for 10m: spam"]


@pytest.mark.asyncio
async def test_mute_without_configured_role_does_nothing(unpunish, guild, core):
    guild.roles = []
    member = FakeMember(5, guild)
    assert await unpunish.mute(member, 60, "spam") is None
    assert unpunish.pending == []


@pytest.mark.asyncio
async def test_mute_http_failure_is_not_recorded(unpunish, guild):
    member = FakeMember(5, guild)
    member.fail_role_changes = http_error()
    assert await unpunish.mute(member, 60, "spam") is None
    assert unpunish.pending == []


@pytest.mark.asyncio
async def test_sweep_lifts_only_expired_mutes(unpunish, guild, records):
    ledger = StrikeLedger()
    unpunish.attach_blacklist(ledger)
    role = guild.get_role(MUTE_ROLE_ID)
    expired_member = FakeMember(5, guild, roles=[role])
    waiting_member = FakeMember(6, guild, roles=[role])
    expired = records.add(guild.id, expired_member.id, None, "mute:blacklist", "bad word", 60, now=1000)
    waiting = records.add(guild.id, waiting_member.id, None, "mute", "later", 5000, now=1000)
    unpunish.track(expired)
    unpunish.track(waiting)

    lifted = await unpunish.sweep(now=2000)

    assert [r.id for r in lifted] == [expired.id]
    assert role not in expired_member.roles
    assert role in waiting_member.roles
    assert records.get(expired.id).resolved_at == 2000
    assert records.get(waiting.id).resolved_at is None
    assert [r.id for r in unpunish.pending] == [waiting.id]
    assert ledger.cleared == [expired_member.id]


@pytest.mark.asyncio
async def test_failed_reversal_stays_pending(unpunish, guild, records):
    unpunish.attach_blacklist(StrikeLedger())
    member = FakeMember(5, guild, roles=[guild.get_role(MUTE_ROLE_ID)])
    member.fail_role_changes = http_error()
    record = records.add(guild.id, member.id, None, "mute", "spam", 60, now=1000)
    unpunish.track(record)

    assert await unpunish.sweep(now=2000) == []
    assert [r.id for r in unpunish.pending] == [record.id]
    assert records.get(record.id).resolved_at is None

    member.fail_role_changes = None
    assert [r.id for r in await unpunish.sweep(now=2001)] == [record.id]


@pytest.mark.asyncio
async def test_records_reload_from_database(unpunish, guild, records):
    kept = records.add(guild.id, 5, None, "mute", "spam", 60, now=1000)
    done = records.add(guild.id, 6, None, "mute", "spam", 60, now=1000)
    records.add(guild.id, 7, None, "warn", "permanent note")
    records.resolve(done.id, now=1100)

    assert await unpunish.get_records_async() == 1
    assert [r.id for r in unpunish.pending] == [kept.id]


@pytest.mark.asyncio
async def test_start_requires_attached_blacklist(unpunish):
    with pytest.raises(RuntimeError):
        await unpunish.start()


@pytest.mark.asyncio
async def test_start_and_stop(unpunish, caplog):
    unpunish.attach_blacklist(StrikeLedger())
    with pytest.raises(RuntimeError):
        unpunish.attach_blacklist(StrikeLedger())
    await unpunish.start()
    assert unpunish.is_running
    with pytest.raises(RuntimeError):
        await unpunish.start()
    with caplog.at_level(VERBOSE):
        for _ in range(3):
            await asyncio.sleep(0)
    assert any(r.levelno == VERBOSE and "unpunish.sweep lifted=0 pending=0" in r.getMessage() for r in caplog.records)
    await unpunish.stop()
    assert not unpunish.is_running

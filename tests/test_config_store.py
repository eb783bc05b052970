from __future__ import annotations

import pytest
from pydantic import BaseModel

from kratos.config.store import ConfigStore, ConfigurableSubsystem
from kratos.errors import ConfigCorrupt, IoFailure


class WidgetConfig(BaseModel):
    enabled: bool = False
    limit: int = 3


class WidgetService(ConfigurableSubsystem):
    config_name = "widget"
    config_model = WidgetConfig

    def __init__(self, store):
        super().__init__(store)
        self.loaded_hook_calls = 0

    async def _on_config_loaded(self):
        self.loaded_hook_calls += 1


@pytest.mark.asyncio
async def test_first_start_creates_exactly_one_artifact(store):
    service = WidgetService(store)
    conf = await service.load_existing_or_create()
    assert conf == WidgetConfig()
    assert [p.name for p in store.directory.iterdir()] == ["widget.json"]


@pytest.mark.asyncio
async def test_restart_reads_existing_artifact(store):
    await WidgetService(store).load_existing_or_create()
    store.path_for("widget").write_text('{"enabled": true, "limit": 9}', encoding="utf-8")

    fresh_store = ConfigStore(store.directory)
    conf = await WidgetService(fresh_store).load_existing_or_create()
    assert conf == WidgetConfig(enabled=True, limit=9)
    assert len(list(store.directory.iterdir())) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [b"{not json", b'{"limit": "many"}', b"\xff\xfe"])
async def test_corrupt_artifact_is_not_overwritten(store, payload):
    path = store.path_for("widget")
    path.write_bytes(payload)
    before = path.read_bytes()
    with pytest.raises(ConfigCorrupt) as info:
        await WidgetService(store).load_existing_or_create()
    assert info.value.path == path
    assert path.read_bytes() == before


@pytest.mark.asyncio
async def test_second_load_in_process_does_not_touch_disk(store):
    service = WidgetService(store)
    first = await service.load_existing_or_create()
    store.path_for("widget").unlink()
    second = await service.load_existing_or_create()
    assert second is first
    assert not store.exists("widget")
    assert service.loaded_hook_calls == 1


def test_config_before_load_raises(store):
    service = WidgetService(store)
    assert not service.is_configured
    with pytest.raises(RuntimeError):
        _ = service.config


@pytest.mark.asyncio
async def test_save_configuration_replaces_artifact(store):
    service = WidgetService(store)
    await service.load_existing_or_create()
    service._config = WidgetConfig(enabled=True, limit=4)
    await service.save_configuration()
    assert store.read("widget", WidgetConfig) == WidgetConfig(enabled=True, limit=4)


def test_create_never_overwrites(store):
    store.create("widget", WidgetConfig())
    with pytest.raises(IoFailure):
        store.create("widget", WidgetConfig(limit=1))
    assert store.read("widget", WidgetConfig) == WidgetConfig()


def test_ensure_directory_fails_when_path_is_a_file(tmp_path):
    blocker = tmp_path / "config"
    blocker.write_text("x")
    with pytest.raises(IoFailure):
        ConfigStore(blocker).ensure_directory()

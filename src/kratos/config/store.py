"""JSON configuration artifacts and the configurable-subsystem contract.

Each subsystem that needs durable settings owns one ``<name>.json`` artifact
inside the configuration directory. The first start creates it with defaults;
later starts read it back. An artifact that exists but cannot be parsed is
never replaced with defaults, since it most likely holds operator edits.
"""
from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import ClassVar, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..errors import ConfigCorrupt, IoFailure
from ..infrastructure.logging.structured_logging import debug as log_debug, info as log_info

M = TypeVar("M", bound=BaseModel)

_SOURCE = "Config"


class ConfigStore:
    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def ensure_directory(self) -> Path:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IoFailure(f"Cannot create configuration directory {self.directory}: {e}", self.directory) from e
        return self.directory

    def path_for(self, name: str) -> Path:
        return self.directory / f"{name}.json"

    def exists(self, name: str) -> bool:
        return self.path_for(name).is_file()

    def read(self, name: str, model: Type[M]) -> M:
        path = self.path_for(name)
        try:
            raw = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigCorrupt(f"Cannot read {path}: {e}", path) from e
        try:
            return model.model_validate_json(raw)
        except ValidationError as e:
            raise ConfigCorrupt(f"Invalid configuration in {path}: {e}", path) from e

    def create(self, name: str, instance: BaseModel) -> Path:
        path = self.path_for(name)
        try:
            with open(path, "x", encoding="utf-8") as fh:
                fh.write(instance.model_dump_json(indent=2))
        except OSError as e:
            raise IoFailure(f"Cannot create {path}: {e}", path) from e
        return path

    def save(self, name: str, instance: BaseModel) -> Path:
        path = self.path_for(name)
        tmp = path.with_suffix(".json.tmp")
        try:
            tmp.write_text(instance.model_dump_json(indent=2), encoding="utf-8")
            os.replace(tmp, path)
        except OSError as e:
            raise IoFailure(f"Cannot save {path}: {e}", path) from e
        return path

    def _load_or_create(self, name: str, model: Type[M], default: Optional[M]) -> M:
        if self.exists(name):
            conf = self.read(name, model)
            log_debug("config.loaded", source=_SOURCE, name=name)
            return conf
        conf = default if default is not None else model()
        self.create(name, conf)
        log_info("config.created", source=_SOURCE, name=name, path=self.path_for(name))
        return conf

    async def load_existing_or_create(self, name: str, model: Type[M], default: Optional[M] = None) -> M:
        return await asyncio.to_thread(self._load_or_create, name, model, default)


class ConfigurableSubsystem:
    """Mixin for subsystems backed by one configuration artifact.

    Subclasses set ``config_name`` and ``config_model`` and may override
    ``_on_config_loaded`` for work that needs the loaded settings.
    """
    config_name: ClassVar[str]
    config_model: ClassVar[Type[BaseModel]]

    def __init__(self, store: ConfigStore):
        self._store = store
        self._config: Optional[BaseModel] = None

    @property
    def is_configured(self) -> bool:
        return self._config is not None

    @property
    def config(self):
        if self._config is None:
            raise RuntimeError(f"{type(self).__name__} configuration not loaded")
        return self._config

    async def load_existing_or_create(self):
        if self._config is not None:
            log_debug("config.already_loaded", source=_SOURCE, name=self.config_name)
            return self._config
        self._config = await self._store.load_existing_or_create(self.config_name, self.config_model)
        await self._on_config_loaded()
        return self._config

    async def save_configuration(self) -> None:
        await asyncio.to_thread(self._store.save, self.config_name, self.config)

    async def _on_config_loaded(self) -> None:
        return None


__all__ = ["ConfigStore", "ConfigurableSubsystem"]

"""Behavioral contracts between the orchestrator, the transport and subsystems."""
from __future__ import annotations

from typing import Any, Awaitable, Callable, Protocol, runtime_checkable

ReadyHook = Callable[[], Awaitable[None]]


@runtime_checkable
class Transport(Protocol):
    def add_ready_hook(self, hook: ReadyHook) -> None: ...
    def attach_registry(self, registry: Any) -> None: ...
    async def login(self, token: str) -> None: ...
    async def connect(self) -> None: ...
    async def close(self) -> None: ...


@runtime_checkable
class MessageChecker(Protocol):
    async def check(self, message) -> bool: ...


@runtime_checkable
class CommandInstaller(Protocol):
    async def install(self) -> None: ...


__all__ = ["Transport", "MessageChecker", "CommandInstaller", "ReadyHook"]

"""Capability registry populated once at startup."""
from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional, Type, TypeVar

T = TypeVar("T")


class ServiceRegistry:
    """Maps a capability type to its process-wide instance.

    Written only by the orchestrator; ``freeze()`` makes it read-only once
    startup has registered everything.
    """

    def __init__(self):
        self._services: Dict[type, Any] = {}
        self._frozen = False

    def register(self, instance: Any, capability: Optional[type] = None) -> None:
        if self._frozen:
            raise RuntimeError("service registry is frozen")
        key = capability or type(instance)
        if key in self._services:
            raise ValueError(f"{key.__name__} already registered")
        self._services[key] = instance

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, capability: Type[T]) -> T:
        try:
            return self._services[capability]
        except KeyError:
            raise LookupError(f"no service registered for {capability.__name__}") from None

    def __getitem__(self, capability: Type[T]) -> T:
        return self.get(capability)

    def __contains__(self, capability: type) -> bool:
        return capability in self._services

    def __len__(self) -> int:
        return len(self._services)

    def __iter__(self) -> Iterator[type]:
        return iter(list(self._services))

    def names(self) -> List[str]:
        return [k.__name__ for k in self._services]


__all__ = ["ServiceRegistry"]

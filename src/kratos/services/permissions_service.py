"""Role based command permissions producing ``AuthorizationResult`` values."""
from __future__ import annotations

from typing import Dict, Iterable, List, Set

from pydantic import BaseModel, Field

from ..config.store import ConfigStore, ConfigurableSubsystem
from ..domain.permissions.result import AuthorizationResult
from ..infrastructure.logging.structured_logging import info as log_info

_SOURCE = "Permissions"


class PermissionsConfig(BaseModel):
    # role id (as string, JSON keys) -> permission names
    role_permissions: Dict[str, List[str]] = Field(default_factory=dict)


class PermissionsService(ConfigurableSubsystem):
    config_name = "permissions"
    config_model = PermissionsConfig

    def __init__(self, store: ConfigStore):
        super().__init__(store)
        self._known: Set[str] = set()

    @property
    def known_permissions(self) -> List[str]:
        return sorted(self._known)

    def load_permissions(self, modules: Iterable) -> int:
        """Collect the ``PERMISSIONS`` declared by command modules."""
        for module in modules:
            for name in getattr(module, "PERMISSIONS", ()):
                self._known.add(name)
        log_info("permissions.discovered", source=_SOURCE, count=len(self._known))
        return len(self._known)

    def granted_for(self, role_ids: Iterable[int]) -> Set[str]:
        conf: PermissionsConfig = self.config
        granted: Set[str] = set()
        for role_id in role_ids:
            granted.update(conf.role_permissions.get(str(role_id), ()))
        return granted

    def check(self, member, permission: str) -> AuthorizationResult:
        if permission not in self._known:
            return AuthorizationResult.failure(f"`{permission}` is not a registered permission.")
        if member is None or getattr(member, 'guild', None) is None:
            return AuthorizationResult.failure("This command can only be used inside a server.")
        if getattr(member.guild, 'owner_id', None) == member.id:
            return AuthorizationResult.success("Server owner.")
        role_ids = [role.id for role in getattr(member, 'roles', [])]
        if permission in self.granted_for(role_ids):
            return AuthorizationResult.success(f"`{permission}` granted by role.")
        perms = getattr(member, 'guild_permissions', None)
        if perms is not None and getattr(perms, 'administrator', False):
            return AuthorizationResult.warning(
                f"No role grants `{permission}`; allowed because you are an administrator."
            )
        return AuthorizationResult.failure(f"You need the `{permission}` permission to do that.")

    async def grant(self, role_id: int, permission: str) -> bool:
        if permission not in self._known:
            raise ValueError(f"unknown permission {permission}")
        conf: PermissionsConfig = self.config
        current = list(conf.role_permissions.get(str(role_id), []))
        if permission in current:
            return False
        mapping = dict(conf.role_permissions)
        mapping[str(role_id)] = sorted([*current, permission])
        self._config = PermissionsConfig(role_permissions=mapping)
        await self.save_configuration()
        return True

    async def revoke(self, role_id: int, permission: str) -> bool:
        conf: PermissionsConfig = self.config
        current = list(conf.role_permissions.get(str(role_id), []))
        if permission not in current:
            return False
        mapping = dict(conf.role_permissions)
        remaining = [p for p in current if p != permission]
        if remaining:
            mapping[str(role_id)] = remaining
        else:
            mapping.pop(str(role_id), None)
        self._config = PermissionsConfig(role_permissions=mapping)
        await self.save_configuration()
        return True

__all__ = ["PermissionsService", "PermissionsConfig"]

from __future__ import annotations

from typing import Mapping

from .enums import Capability, Role
from .exceptions import AuthorizationError

_EVERYONE = frozenset({Capability.VOTE, Capability.EVALUATE, Capability.REQUEST_LEAVE})

ROLE_CAPABILITIES: Mapping[Role, frozenset[Capability]] = {
    Role.ADMIN: frozenset(Capability),
    Role.TOWN_STAFF: _EVERYONE,
    Role.STATION_STAFF: _EVERYONE | {Capability.TEAM_EVALUATE},
    Role.WORK_TEAM: _EVERYONE,
}


def has_capability(role: Role, capability: Capability) -> bool:
    return capability in ROLE_CAPABILITIES.get(role, frozenset())


def require_capability(role: Role, capability: Capability) -> None:
    if not has_capability(role, capability):
        raise AuthorizationError("您没有权限执行此操作")

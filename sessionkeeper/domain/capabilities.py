"""
Role capabilities

Closed lookup table from role to what the role may do with sessions.
Evaluated once per request instead of comparing role strings in handlers.
"""

from enum import Enum
from typing import Union

from .entities.enums import Role


class Capability(str, Enum):
    manage_own_sessions = "manage_own_sessions"
    revoke_tenant_sessions = "revoke_tenant_sessions"
    revoke_any_sessions = "revoke_any_sessions"


_SELF_SERVICE = frozenset({Capability.manage_own_sessions})

ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.master: frozenset(
        {
            Capability.manage_own_sessions,
            Capability.revoke_tenant_sessions,
            Capability.revoke_any_sessions,
        }
    ),
    Role.company_admin: frozenset(
        {Capability.manage_own_sessions, Capability.revoke_tenant_sessions}
    ),
    Role.admin: frozenset(
        {Capability.manage_own_sessions, Capability.revoke_tenant_sessions}
    ),
    Role.manager: _SELF_SERVICE,
    Role.driver: _SELF_SERVICE,
    Role.helper: _SELF_SERVICE,
}


def capabilities_for(role: Union[Role, str]) -> frozenset[Capability]:
    """Unknown roles get no capabilities at all."""
    try:
        return ROLE_CAPABILITIES[Role(role)]
    except ValueError:
        return frozenset()


def has_capability(role: Union[Role, str], capability: Capability) -> bool:
    return capability in capabilities_for(role)

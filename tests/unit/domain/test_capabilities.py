import pytest

from sessionkeeper.domain.capabilities import (
    ROLE_CAPABILITIES,
    Capability,
    capabilities_for,
    has_capability,
)
from sessionkeeper.domain.entities import Role


def test_every_role_has_an_entry():
    assert set(ROLE_CAPABILITIES) == set(Role)


def test_every_role_manages_its_own_sessions():
    for role in Role:
        assert has_capability(role, Capability.manage_own_sessions)


@pytest.mark.parametrize("role", ["company_admin", "admin"])
def test_tenant_admins_revoke_within_tenant_only(role):
    assert has_capability(role, Capability.revoke_tenant_sessions)
    assert not has_capability(role, Capability.revoke_any_sessions)


def test_master_can_revoke_any_sessions():
    assert has_capability(Role.master, Capability.revoke_any_sessions)


@pytest.mark.parametrize("role", ["manager", "driver", "helper"])
def test_regular_roles_cannot_revoke_others(role):
    assert capabilities_for(role) == frozenset({Capability.manage_own_sessions})


def test_unknown_role_has_no_capabilities():
    assert capabilities_for("superuser") == frozenset()

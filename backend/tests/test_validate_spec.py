from erp.services.provisioning import (
    AdminSpec, ModuleSpec, OrganizationSpec, PermissionSpec, RoleSpec, SeedSpec, StorageLocationSpec,
    expand_role_codes, validate_spec, plan_role_permissions, MissingRoleError, UnresolvedPermissionError,
)
import pytest


def _spec(**overrides):
    base = dict(
        organization=OrganizationSpec(tax_id='1', legal_name='Org'),
        storage_location=StorageLocationSpec(name='Main'),
        modules=[ModuleSpec('SEGURIDAD', 'Seguridad', 1)],
        permissions=[PermissionSpec('USUARIO_VER', 'Ver usuarios', 'SEGURIDAD')],
        roles=[RoleSpec('ADMIN')],
        role_permissions={'ADMIN': ['*']},
        admin=AdminSpec(username='admin', password='pw', name='Admin'),
    )
    base.update(overrides)
    return SeedSpec(**base)


def test_expand_wildcard_and_dedupe():
    assert expand_role_codes(['B', '*', 'A'], ['A', 'B', 'C']) == ['B', 'A', 'C']
    assert expand_role_codes(['A', 'A'], ['A']) == ['A']


def test_validate_reports_each_problem():
    spec = _spec(
        modules=[ModuleSpec('SEGURIDAD', 'Seguridad', 1), ModuleSpec('SEGURIDAD', 'Dup', 2)],
        permissions=[PermissionSpec('USUARIO_VER', 'Ver usuarios', 'NOPE')],
        role_permissions={'ADMIN': ['GHOST_PERM'], 'AUDITOR': []},
        admin=AdminSpec(username='admin', password='pw', name='Admin', role='ROOT'),
    )
    problems = validate_spec(spec)
    assert 'Duplicate module code: SEGURIDAD' in problems
    assert 'Permission USUARIO_VER references missing module: NOPE' in problems
    assert "Role 'ADMIN' references missing permission code: GHOST_PERM" in problems
    assert 'Role mapping references missing role: AUDITOR' in problems
    assert 'Admin user role missing: ROOT' in problems


def test_validate_tolerant_ignores_unknown_codes():
    spec = _spec(role_permissions={'ADMIN': ['GHOST_PERM']})
    assert validate_spec(spec, 'tolerant') == []
    assert validate_spec(spec, 'strict') != []


def test_plan_strict_collects_all_unresolved():
    with pytest.raises(UnresolvedPermissionError) as exc:
        plan_role_permissions({'A': ['X', 'P'], 'B': ['Y']}, {'A': 1, 'B': 2}, {'P': 10})
    assert exc.value.unresolved == {'A': ['X'], 'B': ['Y']}


def test_plan_tolerant_drops():
    planned, dropped = plan_role_permissions({'A': ['X', 'P']}, {'A': 1}, {'P': 10}, 'tolerant')
    assert planned == {'A': ['P']}
    assert dropped == {'A': ['X']}


def test_plan_unknown_role():
    with pytest.raises(MissingRoleError):
        plan_role_permissions({'GHOST': []}, {}, {})

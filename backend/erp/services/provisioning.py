"""Idempotent provisioning of the ERP authorization fixtures.

Brings a store into the canonical state described by a ``SeedSpec``:

1. organization (by tax id)
2. default storage location (by organization + name)
3. modules (by code, declared order)
4. permissions (by code; owning module must exist)
5. roles (by name)
6. role -> permission assignments (delete-then-insert per role)
7. administrative user (by username)
8. administrative user -> role link (by pair)

Each phase returns the identifiers it produced and the next phase receives them
as arguments. Nothing is committed here: the caller owns the outer transaction
(the seed script commits, or rolls back for ``--dry-run`` and on errors).
Re-running after a failure converges to the same end state.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import logging

from erp.config.settings import POLICIES, POLICY_STRICT, DEFAULT_HASH_COST
from erp.constants import catalog
from erp.models.authz import Module, Permission, Role, RolePermission, User, UserRole
from erp.models.organization import Organization, StorageLocation
from erp.services.passwords import hash_method, hash_password, needs_rehash
from erp.services.store import upsert, delete_many, create_many

log = logging.getLogger(__name__)

ADDRESS_PLACEHOLDER = '—'


# ---------------- Seed specification ---------------- #
@dataclass(frozen=True)
class OrganizationSpec:
    tax_id: str
    legal_name: str
    trade_name: Optional[str] = None
    address: Optional[str] = None
    ubigeo: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


@dataclass(frozen=True)
class StorageLocationSpec:
    name: str
    # None -> organization address (or placeholder)
    address: Optional[str] = None


@dataclass(frozen=True)
class ModuleSpec:
    code: str
    name: str
    sort_order: int
    base_route: Optional[str] = None


@dataclass(frozen=True)
class PermissionSpec:
    code: str
    description: str
    module_code: str


@dataclass(frozen=True)
class RoleSpec:
    name: str
    description: Optional[str] = None


@dataclass(frozen=True)
class AdminSpec:
    username: str
    password: str
    name: str
    email: Optional[str] = None
    role: str = 'ADMIN'


@dataclass
class SeedSpec:
    organization: OrganizationSpec
    storage_location: StorageLocationSpec
    modules: List[ModuleSpec]
    permissions: List[PermissionSpec]
    roles: List[RoleSpec]
    role_permissions: Dict[str, List[str]]
    admin: AdminSpec


def build_default_spec(admin_password: Optional[str] = None) -> SeedSpec:
    """SeedSpec built from ``erp.constants.catalog``."""
    return SeedSpec(
        organization=OrganizationSpec(**catalog.ORGANIZATION),
        storage_location=StorageLocationSpec(name=catalog.STORAGE_LOCATION_NAME),
        modules=[ModuleSpec(code, name, order, route) for code, name, order, route in catalog.MODULES],
        permissions=[PermissionSpec(code, desc, mod) for code, desc, mod in catalog.PERMISSIONS],
        roles=[RoleSpec(name, desc) for name, desc in catalog.ROLES],
        role_permissions={role: list(codes) for role, codes in catalog.ROLE_PERMISSIONS.items()},
        admin=AdminSpec(password=admin_password or 'Admin123*', **catalog.ADMIN_USER),
    )


# ---------------- Errors ---------------- #
class ProvisioningError(Exception):
    """Configuration integrity failure; aborts the whole run."""


class MissingModuleError(ProvisioningError):
    def __init__(self, permission_code: str, module_code: str):
        self.permission_code = permission_code
        self.module_code = module_code
        super().__init__(f"Module not found for permission {permission_code}: {module_code}")


class MissingRoleError(ProvisioningError):
    def __init__(self, role_name: str, context: str = 'role permission mapping'):
        self.role_name = role_name
        self.context = context
        super().__init__(f"Role not found ({context}): {role_name}")


class UnresolvedPermissionError(ProvisioningError):
    def __init__(self, unresolved: Dict[str, List[str]]):
        self.unresolved = unresolved
        detail = '; '.join(f"{role}: {', '.join(codes)}" for role, codes in sorted(unresolved.items()))
        super().__init__(f"Unresolved permission codes in role mapping ({detail})")


# ---------------- Options / result ---------------- #
@dataclass
class ProvisionOptions:
    policy: str = POLICY_STRICT
    hash_cost: int = DEFAULT_HASH_COST

    def __post_init__(self):
        if self.policy not in POLICIES:
            raise ValueError(f"policy must be one of {POLICIES} (got {self.policy!r})")
        hash_method(self.hash_cost)


@dataclass
class ProvisionResult:
    organization_id: int
    storage_location_id: int
    module_ids: Dict[str, int]
    permission_ids: Dict[str, int]
    role_ids: Dict[str, int]
    assignments: Dict[str, List[str]]
    admin_user_id: int
    admin_username: str
    admin_password: str
    dropped: Dict[str, List[str]] = field(default_factory=dict)
    password_rehashed: bool = True


# ---------------- Pure helpers ---------------- #
def expand_role_codes(codes: List[str], all_codes: List[str]) -> List[str]:
    """Expand the ``*`` wildcard and drop repeats, keeping declared order."""
    out: List[str] = []
    seen = set()
    for code in codes:
        batch = all_codes if code == catalog.WILDCARD else [code]
        for c in batch:
            if c not in seen:
                seen.add(c)
                out.append(c)
    return out


def _duplicates(values: List[str]) -> List[str]:
    seen, dupes = set(), []
    for v in values:
        if v in seen and v not in dupes:
            dupes.append(v)
        seen.add(v)
    return dupes


def validate_spec(spec: SeedSpec, policy: str = POLICY_STRICT) -> List[str]:
    """Store-free integrity check; returns human readable problems (empty when valid)."""
    problems: List[str] = []
    module_codes = [m.code for m in spec.modules]
    perm_codes = [p.code for p in spec.permissions]
    role_names = [r.name for r in spec.roles]
    for kind, values in (('module code', module_codes), ('permission code', perm_codes), ('role name', role_names)):
        for dup in _duplicates(values):
            problems.append(f"Duplicate {kind}: {dup}")
    known_modules = set(module_codes)
    for p in spec.permissions:
        if p.module_code not in known_modules:
            problems.append(f"Permission {p.code} references missing module: {p.module_code}")
    known_roles = set(role_names)
    known_perms = set(perm_codes)
    for role_name, codes in spec.role_permissions.items():
        if role_name not in known_roles:
            problems.append(f"Role mapping references missing role: {role_name}")
        if policy == POLICY_STRICT:
            for code in expand_role_codes(codes, perm_codes):
                if code not in known_perms:
                    problems.append(f"Role '{role_name}' references missing permission code: {code}")
    if spec.admin.role not in known_roles:
        problems.append(f"Admin user role missing: {spec.admin.role}")
    return problems


# ---------------- Phases ---------------- #
def upsert_organization(session, org: OrganizationSpec) -> int:
    fields = {
        'legal_name': org.legal_name,
        'trade_name': org.trade_name,
        'address': org.address,
        'ubigeo': org.ubigeo,
        'email': org.email,
        'phone': org.phone,
        'is_active': True,
    }
    row = upsert(session, Organization, {'tax_id': org.tax_id}, fields)
    return row.id


def upsert_storage_location(session, organization_id: int, location: StorageLocationSpec, org_address: Optional[str]) -> int:
    address = location.address or org_address or ADDRESS_PLACEHOLDER
    row = upsert(
        session, StorageLocation,
        {'organization_id': organization_id, 'name': location.name},
        {'address': address, 'is_active': True},
    )
    return row.id


def upsert_modules(session, modules: List[ModuleSpec]) -> Dict[str, int]:
    ids: Dict[str, int] = {}
    for m in modules:
        row = upsert(session, Module, {'code': m.code}, {
            'name': m.name,
            'sort_order': m.sort_order,
            'base_route': m.base_route,
            'is_active': True,
        })
        ids[m.code] = row.id
    return ids


def upsert_permissions(session, permissions: List[PermissionSpec], module_ids: Dict[str, int]) -> Dict[str, int]:
    ids: Dict[str, int] = {}
    for p in permissions:
        module_id = module_ids.get(p.module_code)
        if module_id is None:
            raise MissingModuleError(p.code, p.module_code)
        row = upsert(session, Permission, {'code': p.code}, {'description': p.description, 'module_id': module_id})
        ids[p.code] = row.id
    return ids


def upsert_roles(session, roles: List[RoleSpec]) -> Dict[str, int]:
    ids: Dict[str, int] = {}
    for r in roles:
        row = upsert(session, Role, {'name': r.name}, {'description': r.description, 'is_active': True})
        ids[r.name] = row.id
    return ids


def plan_role_permissions(
    mapping: Dict[str, List[str]],
    role_ids: Dict[str, int],
    permission_ids: Dict[str, int],
    policy: str = POLICY_STRICT,
) -> Tuple[Dict[str, List[str]], Dict[str, List[str]]]:
    """Resolve the mapping against known ids without touching the store.

    Returns ``(planned, dropped)``: role -> resolvable codes, role -> unresolved codes.
    Raises ``MissingRoleError`` for an unknown role and, under the strict policy,
    ``UnresolvedPermissionError`` listing every unresolved code.
    """
    all_codes = list(permission_ids)
    planned: Dict[str, List[str]] = {}
    dropped: Dict[str, List[str]] = {}
    for role_name, codes in mapping.items():
        if role_name not in role_ids:
            raise MissingRoleError(role_name)
        expanded = expand_role_codes(codes, all_codes)
        planned[role_name] = [c for c in expanded if c in permission_ids]
        missing = [c for c in expanded if c not in permission_ids]
        if missing:
            dropped[role_name] = missing
    if dropped and policy == POLICY_STRICT:
        raise UnresolvedPermissionError(dropped)
    for role_name, codes in dropped.items():
        log.warning("Dropping unresolved permission codes for role %s: %s", role_name, ', '.join(codes))
    return planned, dropped


def reconcile_role_permissions(
    session,
    mapping: Dict[str, List[str]],
    role_ids: Dict[str, int],
    permission_ids: Dict[str, int],
    policy: str = POLICY_STRICT,
) -> Tuple[Dict[str, List[str]], Dict[str, List[str]]]:
    """Make each mapped role's permission set equal the declared set.

    Everything is resolved before the first delete; each role's delete + insert
    pair runs inside one savepoint.
    """
    planned, dropped = plan_role_permissions(mapping, role_ids, permission_ids, policy)
    for role_name, codes in planned.items():
        role_id = role_ids[role_name]
        with session.begin_nested():
            removed = delete_many(session, RolePermission, role_id=role_id)
            create_many(
                session, RolePermission,
                [{'role_id': role_id, 'permission_id': permission_ids[c]} for c in codes],
                skip_duplicates=True,
            )
        log.debug("Role %s: replaced %s assignments with %s", role_name, removed, len(codes))
    return {name: sorted(codes) for name, codes in planned.items()}, dropped


def upsert_admin_user(session, admin: AdminSpec, organization_id: int, hash_cost: int = DEFAULT_HASH_COST) -> Tuple[int, bool]:
    """Returns ``(user_id, rehashed)``; an existing hash that already verifies with the same cost is kept."""
    existing = session.query(User).filter_by(username=admin.username).one_or_none()
    rehash = existing is None or needs_rehash(existing.password_hash, admin.password, hash_cost)
    pw_hash = hash_password(admin.password, hash_cost) if rehash else existing.password_hash
    row = upsert(session, User, {'username': admin.username}, {
        'password_hash': pw_hash,
        'name': admin.name,
        'email': admin.email,
        'is_active': True,
        'organization_id': organization_id,
    })
    return row.id, rehash


def ensure_user_role(session, user_id: int, role_id: int) -> int:
    row = upsert(session, UserRole, {'user_id': user_id, 'role_id': role_id}, {})
    return row.id


# ---------------- Orchestration ---------------- #
def provision(session, spec: Optional[SeedSpec] = None, options: Optional[ProvisionOptions] = None) -> ProvisionResult:
    spec = spec or build_default_spec()
    options = options or ProvisionOptions()

    organization_id = upsert_organization(session, spec.organization)
    location_id = upsert_storage_location(session, organization_id, spec.storage_location, spec.organization.address)
    module_ids = upsert_modules(session, spec.modules)
    log.info("Modules upserted: %s", len(module_ids))
    permission_ids = upsert_permissions(session, spec.permissions, module_ids)
    log.info("Permissions upserted: %s", len(permission_ids))
    role_ids = upsert_roles(session, spec.roles)
    log.info("Roles upserted: %s", len(role_ids))
    assignments, dropped = reconcile_role_permissions(
        session, spec.role_permissions, role_ids, permission_ids, options.policy)

    admin_role_id = role_ids.get(spec.admin.role)
    if admin_role_id is None:
        raise MissingRoleError(spec.admin.role, 'admin user')
    admin_id, rehashed = upsert_admin_user(session, spec.admin, organization_id, options.hash_cost)
    ensure_user_role(session, admin_id, admin_role_id)
    log.info("Admin user %s linked to role %s", spec.admin.username, spec.admin.role)

    return ProvisionResult(
        organization_id=organization_id,
        storage_location_id=location_id,
        module_ids=module_ids,
        permission_ids=permission_ids,
        role_ids=role_ids,
        assignments=assignments,
        admin_user_id=admin_id,
        admin_username=spec.admin.username,
        admin_password=spec.admin.password,
        dropped=dropped,
        password_rehashed=rehashed,
    )

__all__ = [
    'OrganizationSpec', 'StorageLocationSpec', 'ModuleSpec', 'PermissionSpec', 'RoleSpec', 'AdminSpec', 'SeedSpec',
    'build_default_spec', 'ProvisioningError', 'MissingModuleError', 'MissingRoleError', 'UnresolvedPermissionError',
    'ProvisionOptions', 'ProvisionResult', 'expand_role_codes', 'validate_spec',
    'upsert_organization', 'upsert_storage_location', 'upsert_modules', 'upsert_permissions', 'upsert_roles',
    'plan_role_permissions', 'reconcile_role_permissions', 'upsert_admin_user', 'ensure_user_role', 'provision',
]

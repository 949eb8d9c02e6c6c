from __future__ import annotations
from typing import Any, Dict, List, Tuple
import hashlib
import json

from sqlalchemy import select, func

from erp.models.authz import Module, Permission, Role, RolePermission, User, UserRole
from erp.models.organization import Organization, StorageLocation

COUNTED_MODELS = (Organization, StorageLocation, Module, Permission, Role, RolePermission, User, UserRole)


def build_role_permission_map(session) -> Dict[str, List[str]]:
    """Role name -> sorted permission codes as currently stored (roles without permissions included)."""
    mapping: Dict[str, List[str]] = {name: [] for name in session.execute(select(Role.name)).scalars()}
    rows = session.execute(
        select(Role.name, Permission.code)
        .join(RolePermission, RolePermission.role_id == Role.id)
        .join(Permission, Permission.id == RolePermission.permission_id)
    )
    for role_name, code in rows:
        mapping[role_name].append(code)
    return {name: sorted(set(codes)) for name, codes in mapping.items()}


def summarize_roles(mapping: Dict[str, List[str]], sample_size: int = 8) -> List[Tuple[str, int, List[str]]]:
    return [(name, len(codes), codes[:sample_size]) for name, codes in sorted(mapping.items())]


def format_role_summary(rows) -> str:
    if not rows:
        return "[INFO] No roles present."
    name_w = max(len('Role'), max(len(r[0]) for r in rows))
    lines = [f"{'Role'.ljust(name_w)} | Count | Sample (up to 8)", '-' * (name_w + 40)]
    for name, cnt, sample in rows:
        lines.append(f"{name.ljust(name_w)} | {str(cnt).rjust(5)} | {', '.join(sample)}")
    return '\n'.join(lines)


def roles_checksum(mapping: Dict[str, List[str]]) -> str:
    # Deterministic checksum for build caching / change detection
    canonical = json.dumps(mapping, sort_keys=True, separators=(',', ':'))
    return hashlib.sha256(canonical.encode('utf-8')).hexdigest()


def export_payload(mapping: Dict[str, List[str]], dry_run: bool = False) -> Dict[str, Any]:
    return {
        'roles': mapping,
        'meta': {
            'permissions_total': sum(len(v) for v in mapping.values()),
            'distinct_permissions': len({p for plist in mapping.values() for p in plist}),
            'roles_checksum_sha256': roles_checksum(mapping),
            'role_names_sorted': sorted(mapping.keys()),
            'dry_run': dry_run,
        }
    }


def count_entities(session) -> Dict[str, int]:
    return {
        model.__tablename__: session.execute(select(func.count()).select_from(model)).scalar_one()
        for model in COUNTED_MODELS
    }


def user_role_names(session, username: str) -> List[str]:
    """Role names linked to ``username`` (one entry per assignment row)."""
    return list(session.execute(
        select(Role.name)
        .join(UserRole, UserRole.role_id == Role.id)
        .join(User, User.id == UserRole.user_id)
        .where(User.username == username)
        .order_by(Role.name)
    ).scalars())

__all__ = [
    'build_role_permission_map', 'summarize_roles', 'format_role_summary', 'roles_checksum',
    'export_payload', 'count_entities', 'user_role_names',
]

import pytest
from sqlalchemy.exc import IntegrityError

from erp.models.authz import Module, Permission, Role, RolePermission
from erp.services.store import upsert, delete_many, create_many, unique_columns


def _role(session, name):
    return upsert(session, Role, {'name': name}, {'description': name, 'is_active': True})


def test_upsert_creates_then_updates(session):
    first = upsert(session, Module, {'code': 'VENTAS'}, {'name': 'Ventas', 'sort_order': 5})
    assert first.id is not None  # flushed
    second = upsert(session, Module, {'code': 'VENTAS'}, {'name': 'Ventas y caja', 'sort_order': 6})
    session.commit()
    assert second.id == first.id
    assert session.query(Module).count() == 1
    row = session.query(Module).filter_by(code='VENTAS').one()
    assert (row.name, row.sort_order) == ('Ventas y caja', 6)


def test_upsert_create_fields_differ_from_update(session):
    role = upsert(session, Role, {'name': 'ADMIN'}, {'description': 'updated'}, {'description': 'created'})
    assert role.description == 'created'
    role = upsert(session, Role, {'name': 'ADMIN'}, {'description': 'updated'}, {'description': 'created'})
    assert role.description == 'updated'


def test_upsert_empty_update_is_noop(session):
    role = _role(session, 'ADMIN')
    again = upsert(session, Role, {'name': 'ADMIN'}, {})
    assert again.id == role.id
    assert again.description == 'ADMIN'


def test_create_many_skips_duplicates(session):
    mod = upsert(session, Module, {'code': 'SEGURIDAD'}, {'name': 'Seguridad', 'sort_order': 1})
    perm = upsert(session, Permission, {'code': 'ROL_VER'}, {'description': 'Ver roles', 'module_id': mod.id})
    role = _role(session, 'ADMIN')
    rows = [{'role_id': role.id, 'permission_id': perm.id}]
    create_many(session, RolePermission, rows)
    create_many(session, RolePermission, rows + rows)
    session.commit()
    assert session.query(RolePermission).count() == 1


def test_create_many_strict_raises_on_duplicate(session):
    mod = upsert(session, Module, {'code': 'SEGURIDAD'}, {'name': 'Seguridad', 'sort_order': 1})
    perm = upsert(session, Permission, {'code': 'ROL_VER'}, {'description': 'Ver roles', 'module_id': mod.id})
    role = _role(session, 'ADMIN')
    rows = [{'role_id': role.id, 'permission_id': perm.id}]
    create_many(session, RolePermission, rows)
    with pytest.raises(IntegrityError):
        create_many(session, RolePermission, rows, skip_duplicates=False)
    session.rollback()


def test_create_many_empty_returns_zero(session):
    assert create_many(session, RolePermission, []) == 0


def test_delete_many_filters_by_key(session):
    mod = upsert(session, Module, {'code': 'SEGURIDAD'}, {'name': 'Seguridad', 'sort_order': 1})
    p1 = upsert(session, Permission, {'code': 'ROL_VER'}, {'description': 'Ver roles', 'module_id': mod.id})
    p2 = upsert(session, Permission, {'code': 'ROL_EDITAR'}, {'description': 'Editar roles', 'module_id': mod.id})
    admin, other = _role(session, 'ADMIN'), _role(session, 'OTHER')
    create_many(session, RolePermission, [
        {'role_id': admin.id, 'permission_id': p1.id},
        {'role_id': admin.id, 'permission_id': p2.id},
        {'role_id': other.id, 'permission_id': p1.id},
    ])
    assert delete_many(session, RolePermission, role_id=admin.id) == 2
    session.commit()
    remaining = session.query(RolePermission.role_id).all()
    assert [r[0] for r in remaining] == [other.id]


def test_unique_columns():
    assert unique_columns(RolePermission) == ['role_id', 'permission_id']
    assert unique_columns(Module) == ['code']

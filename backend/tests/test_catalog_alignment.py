from erp.constants.catalog import MODULES, PERMISSIONS, ROLES, ROLE_PERMISSIONS, ADMIN_USER, WILDCARD
from erp.services.provisioning import build_default_spec, validate_spec, expand_role_codes


def test_default_catalog_is_valid():
    assert validate_spec(build_default_spec()) == []


def test_every_permission_module_declared():
    module_codes = {m[0] for m in MODULES}
    missing = sorted({p[2] for p in PERMISSIONS} - module_codes)
    assert not missing, f"Permissions reference undeclared modules: {missing}"


def test_role_presets_reference_known_codes():
    perm_codes = {p[0] for p in PERMISSIONS}
    role_names = {r[0] for r in ROLES}
    assert set(ROLE_PERMISSIONS) <= role_names
    for role, codes in ROLE_PERMISSIONS.items():
        unknown = [c for c in codes if c != WILDCARD and c not in perm_codes]
        assert not unknown, f"Role {role} references unknown permissions: {unknown}"


def test_admin_role_holds_everything():
    assert ADMIN_USER['role'] in ROLE_PERMISSIONS
    all_codes = [p[0] for p in PERMISSIONS]
    assert expand_role_codes(ROLE_PERMISSIONS[ADMIN_USER['role']], all_codes) == all_codes


def test_module_order_is_menu_order():
    orders = [m[2] for m in MODULES]
    assert orders == sorted(orders)

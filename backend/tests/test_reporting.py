from erp.services.reporting import summarize_roles, format_role_summary, roles_checksum, export_payload


def test_checksum_is_order_independent():
    a = {'ADMIN': ['A', 'B'], 'VENTAS': ['A']}
    b = {'VENTAS': ['A'], 'ADMIN': ['A', 'B']}
    assert roles_checksum(a) == roles_checksum(b)
    assert roles_checksum(a) != roles_checksum({'ADMIN': ['A']})


def test_export_payload_meta():
    payload = export_payload({'ADMIN': ['A', 'B'], 'VENTAS': ['A']}, dry_run=True)
    meta = payload['meta']
    assert meta['permissions_total'] == 3
    assert meta['distinct_permissions'] == 2
    assert meta['role_names_sorted'] == ['ADMIN', 'VENTAS']
    assert meta['dry_run'] is True


def test_role_summary_table():
    rows = summarize_roles({'VENTAS': ['CLIENTE_VER'], 'ADMIN': [f'P{i}' for i in range(10)]})
    assert rows[0] == ('ADMIN', 10, [f'P{i}' for i in range(8)])
    text = format_role_summary(rows)
    assert text.splitlines()[0].startswith('Role')
    assert 'VENTAS |     1 | CLIENTE_VER' in text
    assert format_role_summary([]) == '[INFO] No roles present.'

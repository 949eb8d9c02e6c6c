"""Default ERP seed catalog: the single source of truth for modules, permissions and role presets.
Extend cautiously; never rename codes silently. Add new codes and retire old ones through a migration.
"""
from __future__ import annotations
from typing import Dict, List, Tuple

ORGANIZATION = {
    'tax_id': '20123456789',
    'legal_name': 'Mi Empresa S.A.C.',
    'trade_name': 'Mi Empresa',
    'address': 'Lima, Perú',
    'ubigeo': '150101',
    'email': 'admin@miempresa.com',
    'phone': '999999999',
}

STORAGE_LOCATION_NAME = 'Almacén Principal'

# (code, name, sort_order, base_route) in menu order
MODULES: List[Tuple[str, str, int, str]] = [
    ('SEGURIDAD', 'Seguridad', 1, '/seguridad'),
    ('MAESTROS', 'Maestros', 2, '/maestros'),
    ('INVENTARIO', 'Inventario', 3, '/inventario'),
    ('COMPRAS', 'Compras', 4, '/compras'),
    ('VENTAS', 'Ventas', 5, '/ventas'),
    ('SUNAT', 'SUNAT', 6, '/sunat'),
    ('REPORTES', 'Reportes', 7, '/reportes'),
]

# (code, description, module_code)
PERMISSIONS: List[Tuple[str, str, str]] = [
    ('USUARIO_VER', 'Ver usuarios', 'SEGURIDAD'),
    ('USUARIO_CREAR', 'Crear usuarios', 'SEGURIDAD'),
    ('USUARIO_EDITAR', 'Editar usuarios', 'SEGURIDAD'),
    ('USUARIO_DESACTIVAR', 'Desactivar usuarios', 'SEGURIDAD'),
    ('ROL_VER', 'Ver roles', 'SEGURIDAD'),
    ('ROL_EDITAR', 'Editar roles', 'SEGURIDAD'),
    ('AUDIT_VER', 'Ver auditoría', 'SEGURIDAD'),

    ('CLIENTE_VER', 'Ver clientes', 'MAESTROS'),
    ('CLIENTE_CREAR', 'Crear clientes', 'MAESTROS'),
    ('CLIENTE_EDITAR', 'Editar clientes', 'MAESTROS'),
    ('PROVEEDOR_VER', 'Ver proveedores', 'MAESTROS'),
    ('PROVEEDOR_CREAR', 'Crear proveedores', 'MAESTROS'),
    ('PROVEEDOR_EDITAR', 'Editar proveedores', 'MAESTROS'),
    ('PRODUCTO_VER', 'Ver productos', 'MAESTROS'),
    ('PRODUCTO_CREAR', 'Crear productos', 'MAESTROS'),
    ('PRODUCTO_EDITAR', 'Editar productos', 'MAESTROS'),

    ('STOCK_VER', 'Ver stock', 'INVENTARIO'),
    ('KARDEX_VER', 'Ver kardex', 'INVENTARIO'),
    ('STOCK_AJUSTAR', 'Ajustar stock', 'INVENTARIO'),
    ('MOVIMIENTO_VER', 'Ver movimientos inventario', 'INVENTARIO'),

    ('COMPRA_VER', 'Ver compras', 'COMPRAS'),
    ('COMPRA_CREAR', 'Crear compras', 'COMPRAS'),
    ('COMPRA_CONFIRMAR', 'Confirmar compras', 'COMPRAS'),
    ('COMPRA_ANULAR', 'Anular compras', 'COMPRAS'),

    ('COMPROBANTE_VER', 'Ver comprobantes', 'VENTAS'),
    ('COMPROBANTE_CREAR', 'Crear comprobantes', 'VENTAS'),
    ('COMPROBANTE_CONFIRMAR', 'Confirmar comprobantes', 'VENTAS'),
    ('COMPROBANTE_ANULAR', 'Anular comprobantes', 'VENTAS'),
    ('PAGO_REGISTRAR', 'Registrar pagos', 'VENTAS'),

    ('SUNAT_ENVIAR', 'Enviar a SUNAT', 'SUNAT'),
    ('SUNAT_REENVIAR', 'Reenviar a SUNAT', 'SUNAT'),
    ('SUNAT_VER_CDR', 'Ver CDR', 'SUNAT'),

    ('REPORTES_VER', 'Ver reportes', 'REPORTES'),
    ('REPORTES_EXPORTAR', 'Exportar reportes', 'REPORTES'),
]

ROLES: List[Tuple[str, str]] = [
    ('ADMIN', 'Acceso total'),
    ('VENTAS', 'Ventas + clientes + SUNAT'),
    ('ALMACEN', 'Productos + stock + compras'),
    ('CONTADOR', 'Reportes + lectura SUNAT'),
]

WILDCARD = '*'

ROLE_PERMISSIONS: Dict[str, List[str]] = {
    'ADMIN': [WILDCARD],
    'VENTAS': [
        'CLIENTE_VER', 'CLIENTE_CREAR', 'CLIENTE_EDITAR',
        'COMPROBANTE_VER', 'COMPROBANTE_CREAR', 'COMPROBANTE_CONFIRMAR', 'COMPROBANTE_ANULAR',
        'PAGO_REGISTRAR',
        'SUNAT_ENVIAR', 'SUNAT_REENVIAR', 'SUNAT_VER_CDR',
        'REPORTES_VER',
    ],
    'ALMACEN': [
        'PRODUCTO_VER', 'PRODUCTO_CREAR', 'PRODUCTO_EDITAR',
        'STOCK_VER', 'KARDEX_VER', 'STOCK_AJUSTAR', 'MOVIMIENTO_VER',
        'COMPRA_VER', 'COMPRA_CREAR', 'COMPRA_CONFIRMAR', 'COMPRA_ANULAR',
    ],
    'CONTADOR': [
        'COMPROBANTE_VER', 'SUNAT_VER_CDR', 'REPORTES_VER', 'REPORTES_EXPORTAR', 'AUDIT_VER',
    ],
}

ADMIN_USER = {
    'username': 'admin',
    'name': 'Administrador',
    'email': 'admin@miempresa.com',
    'role': 'ADMIN',
}

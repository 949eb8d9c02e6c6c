#!/usr/bin/env python
"""Idempotent seed for the ERP organization, modules, permissions, roles and admin user.

Usage:
    python backend/scripts/seed_erp.py                       # seed normally
    python backend/scripts/seed_erp.py --show-roles          # print role -> permission counts after seeding
    python backend/scripts/seed_erp.py --dry-run             # run logic then rollback (no DB changes)
    python backend/scripts/seed_erp.py --validate            # check the catalog before touching the DB
    python backend/scripts/seed_erp.py --policy tolerant     # drop (and warn about) unknown permission codes

Exit codes: 0 success, 1 provisioning/database error, 2 validation failure, 4 checksum mismatch.
"""
from __future__ import annotations
import os, sys, argparse, textwrap, json, logging
from sqlalchemy import inspect

# Allow running from repo root
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from erp import create_app, get_db, configure_logging  # noqa: E402
from erp.config.settings import POLICIES  # noqa: E402
from erp.models.authz import Base  # noqa: E402
from erp.services.provisioning import (  # noqa: E402
    ProvisionOptions, ProvisioningError, build_default_spec, provision, validate_spec,
)
from erp.services.reporting import (  # noqa: E402
    build_role_permission_map, export_payload, format_role_summary, roles_checksum, summarize_roles,
)

log = logging.getLogger('seed_erp')


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="Seed ERP organization, RBAC catalog and admin user",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""Examples:\n  seed normally: seed_erp.py\n  dry run: seed_erp.py --dry-run\n  show roles: seed_erp.py --show-roles\n""")
    )
    p.add_argument('--show-roles', action='store_true', help='Print role permission counts after seeding')
    p.add_argument('--dry-run', action='store_true', help='Rollback after operations (no commit)')
    p.add_argument('--export-json', nargs='?', const='-', metavar='FILE', help='Export role->permissions JSON (to FILE or stdout if omitted)')
    p.add_argument('--validate', action='store_true', help='Validate the seed catalog first; exits 2 on problems')
    p.add_argument('--fail-if-changed', metavar='CHECKSUM', help='Exit 4 (and rollback) if computed roles checksum differs from provided value')
    p.add_argument('--policy', choices=POLICIES, help='Unresolved permission codes: strict fails, tolerant drops (default: SEED_PERMISSION_POLICY)')
    p.add_argument('--hash-cost', type=int, metavar='N', help='Password hash work factor, log2 (default: SEED_HASH_COST)')
    return p.parse_args(argv)


def ensure_schema(session) -> bool:
    """Create tables when missing (bootstrap fallback; prefer ``alembic upgrade head``)."""
    conn = session.connection()
    if inspect(conn).has_table('modules'):
        return False
    Base.metadata.create_all(conn)
    return True


def main(argv=None, app=None) -> int:
    args = parse_args(argv)
    if app is None:
        try:
            app = create_app()
        except ValueError as e:
            print(f"[ERROR] {e}")
            return 2
    configure_logging(app.config['LOG_LEVEL'])
    policy = args.policy or app.config['SEED_PERMISSION_POLICY']
    hash_cost = args.hash_cost if args.hash_cost is not None else app.config['SEED_HASH_COST']
    try:
        options = ProvisionOptions(policy=policy, hash_cost=hash_cost)
    except ValueError as e:
        print(f"[ERROR] {e}")
        return 2
    spec = build_default_spec(app.config['SEED_ADMIN_PASSWORD'])

    if args.validate:
        problems = validate_spec(spec, policy)
        if problems:
            print('\n[VALIDATION] FAIL:')
            for problem in problems:
                print(' -', problem)
            return 2
        print('[VALIDATION] OK: All module, permission & role references valid.')

    with app.app_context():
        session = get_db()
        try:
            if ensure_schema(session):
                print('[INFO] Schema missing; created tables from models.')
            result = provision(session, spec, options)
            role_perm_map = build_role_permission_map(session)
            checksum = roles_checksum(role_perm_map)
            if args.fail_if_changed and checksum != args.fail_if_changed:
                print(f"[CHECKSUM] MISMATCH: expected {args.fail_if_changed} got {checksum}")
                session.rollback()
                return 4
            if args.dry_run:
                session.rollback()
                print(f"[DRY-RUN] (rolled back) Modules: {len(result.module_ids)}, Permissions: {len(result.permission_ids)}, Roles: {len(result.role_ids)}")
            else:
                session.commit()
                print(f"[DONE] Modules: {len(result.module_ids)}, Permissions: {len(result.permission_ids)}, Roles: {len(result.role_ids)}")
            for role_name, codes in sorted(result.dropped.items()):
                print(f"[WARN] Dropped unresolved permission codes for role {role_name}: {', '.join(codes)}")
            if args.fail_if_changed:
                print(f"[CHECKSUM] OK: {checksum}")
            if args.show_roles:
                print('\nRole Permission Summary:')
                print(format_role_summary(summarize_roles(role_perm_map)))
            if args.export_json is not None:
                payload = export_payload(role_perm_map, dry_run=args.dry_run)
                if args.export_json == '-':
                    print(json.dumps(payload, indent=2, sort_keys=True))
                else:
                    with open(args.export_json, 'w', encoding='utf-8') as f:
                        json.dump(payload, f, indent=2, sort_keys=True)
                    print(f"[INFO] Exported JSON to {args.export_json}")
            if not args.dry_run:
                print(f"[INFO] User: {result.admin_username}")
                print(f"[INFO] Password: {result.admin_password}")
            return 0
        except ProvisioningError as e:
            session.rollback()
            log.error("Seed error: %s", e)
            return 1
        except Exception:
            session.rollback()
            log.exception("Seed error")
            return 1
        finally:
            session.close()


if __name__ == '__main__':
    sys.exit(main())

import os
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from erp.models.authz import Base

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))


def _schema_shape(engine):
    insp = inspect(engine)
    shape = {}
    for table in sorted(insp.get_table_names()):
        if table == 'alembic_version':
            continue
        indexes = {(ix['name'], tuple(ix['column_names']), bool(ix['unique'])) for ix in insp.get_indexes(table)}
        uniques = {(uq['name'], tuple(uq['column_names'])) for uq in insp.get_unique_constraints(table)}
        shape[table] = (indexes, uniques)
    return shape


def test_initial_migration_matches_models(tmp_path, monkeypatch):
    migrated_url = f"sqlite:///{tmp_path / 'migrated.db'}"
    monkeypatch.setenv('DATABASE_URL', migrated_url)
    cfg = Config()
    cfg.set_main_option('script_location', os.path.join(ROOT, 'migrations'))
    command.upgrade(cfg, 'head')

    reference = create_engine(f"sqlite:///{tmp_path / 'models.db'}")
    Base.metadata.create_all(reference)
    migrated = create_engine(migrated_url)
    try:
        assert _schema_shape(migrated) == _schema_shape(reference)
        indexes, _ = _schema_shape(migrated)['modules']
        assert ('ix_modules_code', ('code',), True) in indexes
    finally:
        migrated.dispose()
        reference.dispose()

import os, sys, pytest
# Ensure backend directory is on path so 'erp' and 'scripts' can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from erp import create_app, get_db
import erp
from erp.models.authz import Base  # also registers organization tables


@pytest.fixture(scope='session', autouse=True)
def app_instance():
    app = create_app({'DATABASE_URL': 'sqlite+pysqlite:///:memory:', 'SEED_HASH_COST': 7, 'TESTING': True})
    Base.metadata.create_all(erp.db_engine)
    yield app


@pytest.fixture(autouse=True)
def clean_tables(app_instance):
    session = get_db()
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    yield
    session = get_db()
    session.rollback()
    erp.SessionLocal.remove()


@pytest.fixture()
def client(app_instance):
    return app_instance.test_client()


@pytest.fixture()
def session():
    return get_db()

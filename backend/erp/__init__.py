from flask import Flask, abort, g, request, make_response
from werkzeug.exceptions import HTTPException
from sqlalchemy import create_engine, event
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker, scoped_session
from dotenv import load_dotenv
from typing import Optional, Dict, Any
import logging
import time

load_dotenv()

from .config.settings import load_settings  # noqa: E402  (settings read env after load_dotenv)

db_engine = None
SessionLocal = None

SECURITY_HEADERS = {
    'X-Content-Type-Options': 'nosniff',
    'X-Frame-Options': 'SAMEORIGIN',
    'Referrer-Policy': 'no-referrer',
    'Cross-Origin-Resource-Policy': 'same-origin',
}
CORS_ALLOW_METHODS = 'GET,HEAD,PUT,PATCH,POST,DELETE'
CORS_ALLOW_HEADERS = 'Content-Type,Authorization'


def enable_sqlite_savepoints(engine):
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINT (session.begin_nested) works on pysqlite."""
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def init_engine(db_url: str):
    """(Re)bind the module level engine and session factory to ``db_url``."""
    global db_engine, SessionLocal
    if SessionLocal is not None:
        SessionLocal.remove()
    if db_url.endswith(':memory:'):
        # Ensure a single shared in-memory SQLite database across all sessions
        db_engine = create_engine(
            db_url,
            echo=False,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        db_engine = create_engine(db_url, echo=False, future=True)
    if db_engine.dialect.name == 'sqlite':
        enable_sqlite_savepoints(db_engine)
    SessionLocal = scoped_session(sessionmaker(bind=db_engine, expire_on_commit=False, autoflush=False))
    return db_engine


def create_app(config: Optional[Dict[str, Any]] = None):
    app = Flask(__name__)
    app.config.update(load_settings())

    if config:
        # allow tests or callers to override default config values
        app.config.update(config)

    app.logger.setLevel(app.config['LOG_LEVEL'])
    init_engine(app.config['DATABASE_URL'])

    @app.before_request
    def start_timer():
        g.request_started = time.perf_counter()
        limit = app.config.get('MAX_CONTENT_LENGTH')
        # enforced before routing: no route reads a body
        if limit and request.content_length and request.content_length > limit:
            abort(413)
        if request.method == 'OPTIONS':
            # CORS preflight; headers are added in after_request
            return make_response('', 204)

    @app.after_request
    def decorate_response(resp):
        for name, value in SECURITY_HEADERS.items():
            resp.headers.setdefault(name, value)
        resp.headers['Access-Control-Allow-Origin'] = app.config['CORS_ORIGIN']
        resp.headers['Access-Control-Allow-Credentials'] = 'true'
        resp.headers.add('Vary', 'Origin')
        if request.method == 'OPTIONS':
            resp.headers['Access-Control-Allow-Methods'] = CORS_ALLOW_METHODS
            resp.headers['Access-Control-Allow-Headers'] = request.headers.get(
                'Access-Control-Request-Headers', CORS_ALLOW_HEADERS)
        started = g.get('request_started')
        elapsed_ms = (time.perf_counter() - started) * 1000 if started else 0.0
        app.logger.info('%s %s %s %.1f ms', request.method, request.path, resp.status_code, elapsed_ms)
        return resp

    @app.route('/health')
    def health():
        return {'ok': True}

    # Unified error handler producing standardized JSON shape
    @app.errorhandler(Exception)
    def handle_errors(e):  # type: ignore
        if isinstance(e, HTTPException):
            payload = {
                'error': {
                    'status': e.code,
                    'title': e.name,
                    'detail': e.description,
                }
            }
            return payload, e.code
        # Unhandled exception
        app.logger.exception('Unhandled exception')
        return {
            'error': {
                'status': 500,
                'title': 'Internal Server Error',
                'detail': 'Unexpected error'
            }
        }, 500

    return app


def get_db():
    return SessionLocal()


def configure_logging(level: str = 'INFO'):
    logging.basicConfig(level=level, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

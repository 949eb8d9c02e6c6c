"""Environment driven defaults shared by the Flask app and the seed script.

Values are read once at import time (after ``load_dotenv`` in the package
``__init__``). ``create_app(config)`` copies them into ``app.config`` and lets
callers override any key.
"""
from __future__ import annotations
import os
from typing import Any, Dict

POLICY_STRICT = 'strict'
POLICY_TOLERANT = 'tolerant'
POLICIES = (POLICY_STRICT, POLICY_TOLERANT)

DEFAULT_HASH_COST = 10
DEFAULT_PORT = 4000
DEFAULT_MAX_CONTENT_LENGTH = 2 * 1024 * 1024


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f'{name} must be int (got {raw!r})')


def load_settings() -> Dict[str, Any]:
    policy = os.getenv('SEED_PERMISSION_POLICY', POLICY_STRICT).lower()
    if policy not in POLICIES:
        raise ValueError(f'SEED_PERMISSION_POLICY must be one of {POLICIES} (got {policy!r})')
    return {
        'DATABASE_URL': os.getenv('DATABASE_URL', 'sqlite:///dev.db'),
        'CORS_ORIGIN': os.getenv('CORS_ORIGIN', 'http://localhost:5173'),
        'PORT': _int_env('PORT', DEFAULT_PORT),
        'MAX_CONTENT_LENGTH': _int_env('MAX_CONTENT_LENGTH', DEFAULT_MAX_CONTENT_LENGTH),
        'LOG_LEVEL': os.getenv('LOG_LEVEL', 'INFO').upper(),
        'SEED_HASH_COST': _int_env('SEED_HASH_COST', DEFAULT_HASH_COST),
        'SEED_PERMISSION_POLICY': policy,
        'SEED_ADMIN_PASSWORD': os.getenv('SEED_ADMIN_PASSWORD', 'Admin123*'),
    }

__all__ = ['load_settings', 'POLICY_STRICT', 'POLICY_TOLERANT', 'POLICIES', 'DEFAULT_HASH_COST']

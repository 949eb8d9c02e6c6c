"""One-way credential hashing on top of ``werkzeug.security``.

``cost`` is a log2 work factor (the scrypt ``N`` parameter is ``2**cost``), so
raising it by one doubles the hashing work. Development seeds use a low value;
production deployments raise ``SEED_HASH_COST`` without code changes.
"""
from __future__ import annotations
from werkzeug.security import generate_password_hash, check_password_hash

from erp.config.settings import DEFAULT_HASH_COST

# below N=128 werkzeug's scrypt maxmem (132*N*r*p) is smaller than what OpenSSL allocates
MIN_COST = 7
MAX_COST = 20
SCRYPT_BLOCK_SIZE = 8
SCRYPT_PARALLELISM = 1


def hash_method(cost: int = DEFAULT_HASH_COST) -> str:
    if not isinstance(cost, int) or isinstance(cost, bool):
        raise ValueError('hash cost must be int')
    if not MIN_COST <= cost <= MAX_COST:
        raise ValueError(f'hash cost must be between {MIN_COST} and {MAX_COST} (got {cost})')
    return f'scrypt:{2 ** cost}:{SCRYPT_BLOCK_SIZE}:{SCRYPT_PARALLELISM}'


def hash_password(plaintext: str, cost: int = DEFAULT_HASH_COST) -> str:
    return generate_password_hash(plaintext, method=hash_method(cost))


def verify_password(pw_hash: str, plaintext: str) -> bool:
    if not pw_hash:
        return False
    return check_password_hash(pw_hash, plaintext)


def needs_rehash(pw_hash: str, plaintext: str, cost: int = DEFAULT_HASH_COST) -> bool:
    """True unless ``pw_hash`` already verifies ``plaintext`` with the method for ``cost``."""
    if not pw_hash or not pw_hash.startswith(hash_method(cost) + '$'):
        return True
    return not verify_password(pw_hash, plaintext)

__all__ = ['hash_method', 'hash_password', 'verify_password', 'needs_rehash', 'MIN_COST', 'MAX_COST']

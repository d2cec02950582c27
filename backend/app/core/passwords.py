"""Argon2id password hashing for stored user credentials."""

from __future__ import annotations

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

_hasher = PasswordHasher(time_cost=3, memory_cost=65536, parallelism=4, hash_len=32, salt_len=16)


def hash_password(password: str) -> str:
    """Return an encoded Argon2id hash; the salt is embedded in the output."""
    return _hasher.hash(password)


def verify_password(password: str, encoded: str) -> bool:
    """Check *password* against a hash produced by `hash_password`."""
    try:
        return _hasher.verify(encoded, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False

"""
security helpers:
- Argon2 password hashing via argon2-cffi
- random refresh token generation
"""
from __future__ import annotations

import uuid

from argon2 import PasswordHasher
from argon2.exceptions import VerificationError, InvalidHashError

ph = PasswordHasher()


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    """ Verify a plaintext password against an argon2 hash
    """
    if not password_hash:
        return False
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def generate_token(*exclude: str | None) -> str:
    """Generate an opaque refresh token that differs from every value in `exclude`.
    """
    while True:
        token = str(uuid.uuid4())
        if token not in exclude:
            return token

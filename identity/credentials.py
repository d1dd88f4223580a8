from __future__ import annotations

import logging

from identity.errors import InvalidCredentials
from identity.security import hash_password, verify_password

logger = logging.getLogger(__name__)

# checked on unknown emails so both failure paths cost one argon2 verify
_DUMMY_HASH = hash_password("not-a-real-password")


def normalize_email(email: str | None) -> str:
    return email.strip().lower() if isinstance(email, str) else ""


class CredentialVerifier:
    """
    Checks an email/password pair against stored credentials.

    `repository` only needs `find_user_by_email(email)`. Both a missing user
    and a wrong password raise the same InvalidCredentials.
    """

    def __init__(self, repository):
        self.repository = repository

    def verify(self, email: str, password: str):
        email = normalize_email(email)
        user = self.repository.find_user_by_email(email) if email else None
        if user is None:
            logger.warning("login failed, email %s not found", email)
            verify_password(password or "", _DUMMY_HASH)
            raise InvalidCredentials()
        if not verify_password(password or "", user.password_hash):
            logger.warning("login failed, password problem for user %s", email)
            raise InvalidCredentials()
        return user

"""
Error taxonomy for the identity core.

Client-facing failures (bad credentials, unusable refresh tokens) are kept
generic on purpose; structural faults (AmbiguousRefreshState,
ClaimsBuildFailure) mean the rotation invariant or a user record is broken
and must reach the caller as server errors.
"""
from __future__ import annotations


class IdentityError(Exception):
    """Base class for every failure raised by the identity core."""

    message = "Identity error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class InvalidCredentials(IdentityError):
    # Same message for "no such user" and "wrong password".
    message = "User/Password problem"


class DuplicateRegistration(IdentityError):
    message = "Email already registered"

    def __init__(self, email: str | None = None):
        super().__init__()
        self.email = email
        self.errors = {"email": [self.message]}


class MalformedToken(IdentityError):
    message = "Malformed token"


class UnknownSubject(IdentityError):
    message = "Token subject not found"


class NoValidToken(IdentityError):
    message = "No valid refresh token"


class TokenExpired(IdentityError):
    message = "Token expired"


class AmbiguousRefreshState(IdentityError):
    message = "More than one valid refresh token found"


class ClaimsBuildFailure(IdentityError):
    message = "Could not build claims for user"

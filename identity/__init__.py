"""
Identity core: credential checks, claims, signed access tokens and the
single-slot refresh-token rotation protocol.
"""
from identity.errors import (
    IdentityError,
    InvalidCredentials,
    DuplicateRegistration,
    MalformedToken,
    UnknownSubject,
    NoValidToken,
    TokenExpired,
    AmbiguousRefreshState,
    ClaimsBuildFailure,
)
from identity.session import SessionCoordinator, SessionTokens

"""
Session coordinator: Login, Register and Refresh.

Composes CredentialVerifier, ClaimsIssuer, TokenEncoder and
RefreshTokenStore over a repository that provides
`find_user_by_email`, `create_user` and the refresh-slot operations
documented in identity.refresh.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional

from identity.claims import ClaimSet, ClaimsIssuer
from identity.credentials import CredentialVerifier, normalize_email
from identity.errors import DuplicateRegistration, InvalidCredentials, UnknownSubject
from identity.refresh import RefreshSlot, RefreshTokenStore
from identity.security import hash_password
from identity.timing import FailureDelay
from identity.tokens import TokenEncoder

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SessionTokens:
    access_token: str
    access_token_expiry: datetime
    slot: RefreshSlot
    first_name: str
    last_name: str

    @property
    def refresh_token(self) -> str:
        return self.slot.current.token

    @property
    def refresh_token_expiry(self) -> datetime:
        return self.slot.current.expires_at

    @property
    def previous_refresh_token(self) -> Optional[str]:
        return self.slot.previous.token if self.slot.previous else None

    @property
    def previous_refresh_token_expiry(self) -> Optional[datetime]:
        return self.slot.previous.expires_at if self.slot.previous else None


class SessionCoordinator:
    def __init__(
        self,
        repository,
        encoder: TokenEncoder,
        refresh_store: RefreshTokenStore,
        access_lifetime: timedelta = timedelta(minutes=15),
        failure_delay: FailureDelay | None = None,
        default_roles: Iterable[str] = ("user",),
        clock: Callable[[], datetime] = utcnow,
    ):
        self.repository = repository
        self.verifier = CredentialVerifier(repository)
        self.claims = ClaimsIssuer()
        self.encoder = encoder
        self.refresh_store = refresh_store
        self.access_lifetime = access_lifetime
        self.failure_delay = failure_delay or FailureDelay()
        self.default_roles = list(default_roles)
        self.clock = clock

    def _tokens_for(self, claims: ClaimSet, slot: RefreshSlot, now: datetime) -> SessionTokens:
        expires_at = now + self.access_lifetime
        return SessionTokens(
            access_token=self.encoder.encode(claims, expires_at, issued_at=now),
            access_token_expiry=expires_at,
            slot=slot,
            first_name=claims.first_name,
            last_name=claims.last_name,
        )

    def login(self, email: str, password: str) -> SessionTokens:
        try:
            user = self.verifier.verify(email, password)
        except InvalidCredentials:
            self.failure_delay()
            raise
        claims = self.claims.issue(user)
        now = self.clock()
        slot = self.refresh_store.ensure_current(user.id, now)
        return self._tokens_for(claims, slot, now)

    def register(self, email: str, password: str, first_name: str | None, last_name: str | None) -> SessionTokens:
        email = normalize_email(email)
        if self.repository.find_user_by_email(email) is not None:
            logger.warning("user with email %s already exists", email)
            self.failure_delay()
            raise DuplicateRegistration(email)

        user = self.repository.create_user(
            email=email,
            password_hash=hash_password(password),
            first_name=first_name or "",
            last_name=last_name or "",
            roles=list(self.default_roles),
        )
        if user is None:
            # lost a race with a concurrent registration of the same email
            logger.warning("user with email %s already exists", email)
            self.failure_delay()
            raise DuplicateRegistration(email)

        claims = self.claims.issue(user)
        now = self.clock()
        slot = self.refresh_store.create_initial(user.id, now)
        logger.info("registered user %s", user.id)
        return self._tokens_for(claims, slot, now)

    def refresh(self, access_token: str, refresh_token: str) -> SessionTokens:
        claims = self.encoder.decode(access_token)
        user = self.repository.find_user_by_email(normalize_email(claims.email))
        if user is None:
            logger.warning("refresh for unknown email %s", claims.email)
            raise UnknownSubject(f"User with email {claims.email} not found")
        fresh_claims = self.claims.issue(user)
        now = self.clock()
        slot = self.refresh_store.rotate(user.id, refresh_token, now)
        return self._tokens_for(fresh_claims, slot, now)

    def current_user(self, access_token: str):
        """Resolve the user behind a still-valid access token."""
        claims = self.encoder.authenticate(access_token, self.clock())
        user = self.repository.find_user_by_email(normalize_email(claims.email))
        if user is None:
            raise UnknownSubject()
        return user

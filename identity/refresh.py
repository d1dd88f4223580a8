"""
Single-slot refresh-token rotation.

Each user owns exactly one RefreshSlot: a `current` token with a long expiry
and an optional `previous` token that stays valid for a short grace window
after a rotation, so a client retrying a refresh whose response it never saw
is answered instead of locked out.

The store is backed by a repository exposing:
- get_refresh_slot(user_id) -> RefreshSlot | None
- insert_refresh_slot(user_id, slot) -> bool      (False if one already exists)
- swap_refresh_slot(user_id, expected_token, slot) -> bool
  (replaces the slot only while its current token still equals expected_token)

All writes go through the compare-and-swap, which makes rotation
linearizable per user without any lock shared between users.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from identity.errors import AmbiguousRefreshState, NoValidToken
from identity.security import generate_token

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3


@dataclass(frozen=True)
class TokenWindow:
    token: str
    expires_at: datetime

    def matches(self, token: str, now: datetime) -> bool:
        return self.token == token and self.expires_at > now


@dataclass(frozen=True)
class RefreshSlot:
    current: TokenWindow
    previous: Optional[TokenWindow] = None

    def rotated(self, now: datetime, lifetime: timedelta, grace: timedelta) -> "RefreshSlot":
        """Return the slot after one rotation: current becomes previous."""
        exclude = (self.current.token, self.previous.token if self.previous else None)
        return RefreshSlot(
            current=TokenWindow(generate_token(*exclude), now + lifetime),
            previous=TokenWindow(self.current.token, now + grace),
        )


class RefreshTokenStore:
    def __init__(self, repository, lifetime: timedelta = timedelta(days=7),
                 grace: timedelta = timedelta(minutes=1)):
        self.repository = repository
        self.lifetime = lifetime
        self.grace = grace

    def _fresh(self, now: datetime, exclude: RefreshSlot | None = None) -> RefreshSlot:
        excluded = ()
        if exclude is not None:
            excluded = (exclude.current.token, exclude.previous.token if exclude.previous else None)
        return RefreshSlot(current=TokenWindow(generate_token(*excluded), now + self.lifetime))

    def get(self, user_id: str) -> RefreshSlot | None:
        return self.repository.get_refresh_slot(user_id)

    def create_initial(self, user_id: str, now: datetime) -> RefreshSlot:
        """
        Create the user's slot with a fresh current token and no previous.
        If another caller created it first, that slot is returned instead.
        """
        slot = self._fresh(now)
        if self.repository.insert_refresh_slot(user_id, slot):
            return slot
        existing = self.repository.get_refresh_slot(user_id)
        if existing is None:
            raise AmbiguousRefreshState(f"Refresh slot for user {user_id} could not be created")
        return existing

    def ensure_current(self, user_id: str, now: datetime) -> RefreshSlot:
        """
        Login path: keep a still-valid current token, otherwise start over the
        way registration does (fresh current, empty previous).
        """
        for _ in range(MAX_ATTEMPTS):
            slot = self.repository.get_refresh_slot(user_id)
            if slot is None:
                return self.create_initial(user_id, now)
            if slot.current.expires_at > now:
                return slot
            fresh = self._fresh(now, exclude=slot)
            if self.repository.swap_refresh_slot(user_id, slot.current.token, fresh):
                logger.info("refresh slot reissued for user %s", user_id)
                return fresh
        raise AmbiguousRefreshState(f"Refresh slot for user {user_id} kept changing")

    def rotate(self, user_id: str, supplied: str, now: datetime) -> RefreshSlot:
        """
        Validate `supplied` against the user's slot and rotate if it is the
        current token.

        - no unexpired match: NoValidToken, nothing is written
        - match on both positions: AmbiguousRefreshState
        - match on current: rotate and return the new slot
        - match on previous only: return the slot unchanged (retry after a
          rotation that already succeeded)
        """
        for _ in range(MAX_ATTEMPTS):
            slot = self.repository.get_refresh_slot(user_id)
            if slot is None or not supplied:
                logger.warning("refresh denied for user %s: no refresh slot", user_id)
                raise NoValidToken()

            on_current = slot.current.matches(supplied, now)
            on_previous = slot.previous is not None and slot.previous.matches(supplied, now)

            if on_current and on_previous:
                logger.error("refresh slot for user %s has the same token in both positions", user_id)
                raise AmbiguousRefreshState()
            if on_previous:
                return slot
            if not on_current:
                logger.warning("refresh denied for user %s: token unknown or expired", user_id)
                raise NoValidToken()

            rotated = slot.rotated(now, self.lifetime, self.grace)
            if self.repository.swap_refresh_slot(user_id, slot.current.token, rotated):
                logger.info("refresh token rotated for user %s", user_id)
                return rotated
            logger.warning("refresh slot for user %s changed during rotation, re-reading", user_id)

        logger.error("refresh slot for user %s kept changing during rotation", user_id)
        raise AmbiguousRefreshState("Refresh slot changed concurrently")

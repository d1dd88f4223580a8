"""
Claims assembly: a pure projection of a user record into the identity
claims embedded in access tokens.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

from identity.errors import ClaimsBuildFailure, MalformedToken


@dataclass(frozen=True)
class ClaimSet:
    subject: str
    email: str
    first_name: str = ""
    last_name: str = ""
    roles: Tuple[str, ...] = field(default_factory=tuple)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "sub": self.subject,
            "email": self.email,
            "given_name": self.first_name,
            "family_name": self.last_name,
            "roles": list(self.roles),
        }

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ClaimSet":
        """Rebuild a claim set from a decoded token; the email claim is mandatory."""
        email = payload.get("email")
        if not email or not isinstance(email, str):
            raise MalformedToken("Token has no email claim")
        roles = payload.get("roles") or []
        if isinstance(roles, str):
            roles = [roles]
        return cls(
            subject=str(payload.get("sub") or ""),
            email=email,
            first_name=payload.get("given_name") or "",
            last_name=payload.get("family_name") or "",
            roles=tuple(roles),
        )


class ClaimsIssuer:
    """Builds a ClaimSet for a verified user."""

    def issue(self, user) -> ClaimSet:
        user_id = getattr(user, "id", None)
        email = getattr(user, "email", None)
        if not user_id or not email:
            raise ClaimsBuildFailure(f"User record {user_id!r} is missing id or email")
        roles = getattr(user, "roles", None) or []
        return ClaimSet(
            subject=str(user_id),
            email=email,
            first_name=getattr(user, "first_name", None) or "",
            last_name=getattr(user, "last_name", None) or "",
            roles=tuple(sorted(set(roles))),
        )

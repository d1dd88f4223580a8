"""
Access-token encoding and verification (JWT via PyJWT).

`decode` checks structure, signature, issuer and audience but deliberately
leaves expiry alone: the refresh flow accepts an expired access token and
relies on the refresh token's own expiry instead. `authenticate` is the
strict variant for ordinary authenticated requests.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

import jwt

from identity.claims import ClaimSet
from identity.errors import MalformedToken, TokenExpired
from identity.security import generate_token


class TokenEncoder:
    def __init__(self, secret: str, issuer: str, audience: str | None = None, algorithm: str = "HS256"):
        if not secret:
            raise ValueError("a signing secret is required")
        self._secret = secret
        self.issuer = issuer
        self.audience = audience or issuer
        self.algorithm = algorithm

    def encode(self, claims: ClaimSet, expires_at: datetime, issued_at: datetime | None = None) -> str:
        """Sign `claims` into a compact JWT that expires at `expires_at`."""
        payload = claims.to_payload()
        payload.update(
            {
                "iss": self.issuer,
                "aud": self.audience,
                "exp": int(expires_at.timestamp()),
                "jti": generate_token(),
            }
        )
        if issued_at is not None:
            payload["iat"] = int(issued_at.timestamp())
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def decode_payload(self, token: str) -> Dict[str, Any]:
        if not token or not isinstance(token, str):
            raise MalformedToken("No token")
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
                options={"verify_exp": False, "verify_iat": False, "require": ["exp"]},
            )
        except jwt.InvalidTokenError as exc:
            raise MalformedToken(f"Cant parse the token: {exc}")

    def decode(self, token: str) -> ClaimSet:
        return ClaimSet.from_payload(self.decode_payload(token))

    def authenticate(self, token: str, now: datetime) -> ClaimSet:
        """Decode `token` and reject it if it expired before `now`."""
        payload = self.decode_payload(token)
        if int(payload["exp"]) <= int(now.timestamp()):
            raise TokenExpired()
        return ClaimSet.from_payload(payload)

"""Unit tests for TokenEncoder."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from identity.claims import ClaimSet
from identity.errors import MalformedToken, TokenExpired
from identity.tokens import TokenEncoder

SECRET = "unit-test-secret-with-at-least-32-bytes"


@pytest.fixture
def encoder():
    return TokenEncoder(SECRET, issuer="identity-tests")


@pytest.fixture
def claims():
    return ClaimSet(subject="u-1", email="alice@x.test", first_name="Alice", last_name="A", roles=("user",))


class TestTokenEncoder:
    def test_encode_then_decode_recovers_claims(self, encoder, claims):
        now = datetime.now(timezone.utc)
        token = encoder.encode(claims, now + timedelta(minutes=5))

        assert encoder.decode(token) == claims

    def test_payload_carries_issuer_audience_and_expiry(self, encoder, claims):
        expires = datetime.now(timezone.utc) + timedelta(minutes=5)
        payload = encoder.decode_payload(encoder.encode(claims, expires))

        assert payload["iss"] == "identity-tests"
        assert payload["aud"] == "identity-tests"
        assert payload["exp"] == int(expires.timestamp())
        assert payload["given_name"] == "Alice"
        assert payload["roles"] == ["user"]

    def test_decode_ignores_expiry(self, encoder, claims):
        expired = datetime.now(timezone.utc) - timedelta(days=1)
        token = encoder.encode(claims, expired)

        assert encoder.decode(token).email == "alice@x.test"

    def test_authenticate_rejects_expired_token(self, encoder, claims):
        now = datetime.now(timezone.utc)
        token = encoder.encode(claims, now + timedelta(minutes=5))

        assert encoder.authenticate(token, now).subject == "u-1"
        with pytest.raises(TokenExpired):
            encoder.authenticate(token, now + timedelta(minutes=5))

    def test_tokens_are_unique_per_call(self, encoder, claims):
        expires = datetime.now(timezone.utc) + timedelta(minutes=5)
        assert encoder.encode(claims, expires) != encoder.encode(claims, expires)

    @pytest.mark.parametrize("token", ["", "not-a-jwt", "a.b.c"])
    def test_garbage_is_malformed(self, encoder, token):
        with pytest.raises(MalformedToken):
            encoder.decode(token)

    def test_wrong_signature_is_malformed(self, encoder, claims):
        other = TokenEncoder("another-secret-with-at-least-32-bytes!", issuer="identity-tests")
        token = other.encode(claims, datetime.now(timezone.utc) + timedelta(minutes=5))

        with pytest.raises(MalformedToken):
            encoder.decode(token)

    def test_wrong_audience_is_malformed(self, encoder, claims):
        other = TokenEncoder(SECRET, issuer="identity-tests", audience="someone-else")
        token = other.encode(claims, datetime.now(timezone.utc) + timedelta(minutes=5))

        with pytest.raises(MalformedToken):
            encoder.decode(token)

    def test_missing_email_claim_is_malformed(self, encoder):
        exp = int((datetime.now(timezone.utc) + timedelta(minutes=5)).timestamp())
        token = jwt.encode(
            {"sub": "u-1", "iss": "identity-tests", "aud": "identity-tests", "exp": exp},
            SECRET,
            algorithm="HS256",
        )

        with pytest.raises(MalformedToken):
            encoder.decode(token)

    def test_missing_secret_is_rejected(self):
        with pytest.raises(ValueError):
            TokenEncoder("", issuer="identity-tests")

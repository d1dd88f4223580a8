"""Unit tests for ClaimsIssuer and CredentialVerifier."""

from types import SimpleNamespace
from unittest.mock import patch

import pytest

from identity.claims import ClaimsIssuer, ClaimSet
from identity.credentials import CredentialVerifier
from identity.errors import ClaimsBuildFailure, InvalidCredentials
from identity.security import hash_password


def _user(**overrides):
    fields = {
        "id": "u-1",
        "email": "alice@x.test",
        "first_name": "Alice",
        "last_name": "A",
        "roles": ["user", "admin", "user"],
        "password_hash": None,
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


class TestClaimsIssuer:
    def test_projects_user_fields(self):
        claims = ClaimsIssuer().issue(_user())

        assert claims == ClaimSet("u-1", "alice@x.test", "Alice", "A", ("admin", "user"))

    def test_is_deterministic(self):
        user = _user()
        assert ClaimsIssuer().issue(user) == ClaimsIssuer().issue(user)

    def test_missing_names_become_empty(self):
        claims = ClaimsIssuer().issue(_user(first_name=None, last_name=None, roles=None))

        assert claims.first_name == ""
        assert claims.last_name == ""
        assert claims.roles == ()

    @pytest.mark.parametrize("field", ["id", "email"])
    def test_incomplete_record_fails(self, field):
        with pytest.raises(ClaimsBuildFailure):
            ClaimsIssuer().issue(_user(**{field: None}))


class _Users:
    def __init__(self, *users):
        self.users = {u.email: u for u in users}

    def find_user_by_email(self, email):
        return self.users.get(email)


class TestCredentialVerifier:
    @pytest.fixture
    def verifier(self):
        return CredentialVerifier(_Users(_user(password_hash=hash_password("Secret1!"))))

    def test_correct_password_returns_user(self, verifier):
        assert verifier.verify("alice@x.test", "Secret1!").id == "u-1"

    def test_email_is_normalized(self, verifier):
        assert verifier.verify("  Alice@X.test ", "Secret1!").id == "u-1"

    def test_wrong_password_and_unknown_email_fail_alike(self, verifier):
        with pytest.raises(InvalidCredentials) as wrong_password:
            verifier.verify("alice@x.test", "nope-nope")
        with pytest.raises(InvalidCredentials) as unknown_user:
            verifier.verify("bob@x.test", "Secret1!")

        assert type(wrong_password.value) is type(unknown_user.value)
        assert wrong_password.value.message == unknown_user.value.message

    def test_empty_inputs_fail(self, verifier):
        with pytest.raises(InvalidCredentials):
            verifier.verify("", "")

    @pytest.mark.parametrize("email,password", [("bob@x.test", "Secret1!"), ("alice@x.test", "nope-nope")])
    def test_both_failure_paths_run_one_password_check(self, verifier, email, password):
        with patch("identity.credentials.verify_password", return_value=False) as check:
            with pytest.raises(InvalidCredentials):
                verifier.verify(email, password)

        check.assert_called_once()
        assert check.call_args.args[0] == password

"""Tests for the SQLAlchemy repository behind the identity core."""

from datetime import datetime, timedelta, timezone

import pytest

from identity.refresh import RefreshSlot, TokenWindow
from models import storage

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def user(app):
    with app.app_context():
        yield storage.create_user(email="alice@x.test", password_hash="x", first_name="Alice", last_name="A")


def _slot(token, previous=None):
    prev = TokenWindow(previous, NOW + timedelta(minutes=1)) if previous else None
    return RefreshSlot(current=TokenWindow(token, NOW + timedelta(days=7)), previous=prev)


class TestUsers:
    def test_lookup_is_case_insensitive(self, user):
        assert storage.find_user_by_email("ALICE@x.test ").id == user.id

    def test_duplicate_email_returns_none(self, user):
        assert storage.create_user(email="alice@x.test", password_hash="y") is None
        # session is still usable after the rollback
        assert storage.find_user_by_email("alice@x.test").id == user.id

    def test_default_role(self, user):
        assert storage.get_user(user.id).roles == ["user"]


class TestRefreshSlots:
    def test_missing_slot_reads_as_none(self, user):
        assert storage.get_refresh_slot(user.id) is None

    def test_insert_then_read_round_trips_as_utc(self, user):
        assert storage.insert_refresh_slot(user.id, _slot("t1"))

        slot = storage.get_refresh_slot(user.id)
        assert slot == _slot("t1")
        assert slot.current.expires_at.tzinfo is not None

    def test_second_insert_is_refused(self, user):
        assert storage.insert_refresh_slot(user.id, _slot("t1"))
        assert not storage.insert_refresh_slot(user.id, _slot("t2"))
        assert storage.get_refresh_slot(user.id).current.token == "t1"

    def test_swap_with_expected_token_succeeds(self, user):
        storage.insert_refresh_slot(user.id, _slot("t1"))

        assert storage.swap_refresh_slot(user.id, "t1", _slot("t2", previous="t1"))
        assert storage.get_refresh_slot(user.id) == _slot("t2", previous="t1")

    def test_swap_with_stale_token_changes_nothing(self, user):
        storage.insert_refresh_slot(user.id, _slot("t1"))
        storage.swap_refresh_slot(user.id, "t1", _slot("t2", previous="t1"))

        assert not storage.swap_refresh_slot(user.id, "t1", _slot("t3", previous="t1"))
        assert storage.get_refresh_slot(user.id).current.token == "t2"

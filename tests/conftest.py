"""Pytest configuration and fixtures."""

import threading
from datetime import datetime, timedelta, timezone

import pytest

from api import create_app, build_session_coordinator
from identity.refresh import RefreshSlot
from models import storage


class FakeClock:
    """Controllable replacement for utcnow()."""

    def __init__(self, now=None):
        self.now = now or datetime.now(timezone.utc).replace(microsecond=0)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


class MemorySlotRepository:
    """
    In-memory refresh-slot repository with the same compare-and-swap
    contract as DBStorage. `on_read` runs after every read, outside the lock,
    so tests can hold readers at a barrier.
    """

    def __init__(self):
        self._slots = {}
        self._lock = threading.Lock()
        self.on_read = None
        self.swaps = 0
        self.failed_swaps = 0

    def get_refresh_slot(self, user_id):
        with self._lock:
            slot = self._slots.get(user_id)
        if self.on_read is not None:
            self.on_read()
        return slot

    def insert_refresh_slot(self, user_id, slot: RefreshSlot) -> bool:
        with self._lock:
            if user_id in self._slots:
                return False
            self._slots[user_id] = slot
            return True

    def swap_refresh_slot(self, user_id, expected_token, slot: RefreshSlot) -> bool:
        with self._lock:
            stored = self._slots.get(user_id)
            if stored is None or stored.current.token != expected_token:
                self.failed_swaps += 1
                return False
            self._slots[user_id] = slot
            self.swaps += 1
            return True

    def put(self, user_id, slot: RefreshSlot):
        with self._lock:
            self._slots[user_id] = slot


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def app(clock):
    app = create_app("testing")
    app.extensions["identity"] = build_session_coordinator(app.config, storage, clock=clock)
    yield app
    storage.close()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def coordinator(app):
    with app.app_context():
        yield app.extensions["identity"]


@pytest.fixture
def memory_repo():
    return MemorySlotRepository()


@pytest.fixture
def register(client):
    """Register a user over HTTP and return the JSON body."""

    def _register(email="alice@x.test", password="Secret1!", first_name="Alice", last_name="A"):
        resp = client.post(
            "/api/v1/identity/account/register",
            json={"email": email, "password": password, "firstName": first_name, "lastName": last_name},
        )
        assert resp.status_code == 200, resp.get_json()
        return resp.get_json()

    return _register

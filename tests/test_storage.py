import json

import pytest

from seedkey.models import TokenInfo
from seedkey.storage import (
    ACCESS_TOKEN_KEY,
    EXPIRES_AT_KEY,
    REFRESH_TOKEN_KEY,
    USER_ID_KEY,
    JsonFileStore,
    MemoryStore,
    SessionLedger,
)

T0 = 1_700_000_000_000


class Clock:
    def __init__(self, now=T0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def ledger(store, clock):
    return SessionLedger(store, clock=clock)


def tokens(expires_in=3600):
    return TokenInfo(access_token="a1", refresh_token="r1", expires_in=expires_in)


class TestSave:
    def test_round_trip(self, ledger, store):
        expires_at = ledger.save(tokens(), user_id="u1")

        assert expires_at == T0 + 3_600_000
        assert store.data[EXPIRES_AT_KEY] == str(T0 + 3_600_000)
        assert ledger.get_access_token() == "a1"
        assert ledger.get_refresh_token() == "r1"
        assert ledger.get_user_id() == "u1"
        assert ledger.has_token()

    def test_user_id_is_optional(self, ledger, store):
        ledger.save(tokens())

        assert USER_ID_KEY not in store.data
        assert ledger.get_user_id() is None

    def test_empty_user_id_is_not_written(self, ledger, store):
        store.set(USER_ID_KEY, "old")

        ledger.save(tokens(), user_id="")

        assert ledger.get_user_id() == "old"

    def test_expiry_is_fixed_at_save_time(self, ledger, clock):
        ledger.save(tokens(600))
        clock.now += 60_000

        assert ledger.expires_at() == T0 + 600_000

    def test_partial_tokens_write_only_present_fields(self, ledger, store):
        store.set(EXPIRES_AT_KEY, str(T0 + 3_600_000))

        expires_at = ledger.save(TokenInfo(access_token="a2"))

        assert expires_at is None
        assert ledger.get_access_token() == "a2"
        assert REFRESH_TOKEN_KEY not in store.data
        assert EXPIRES_AT_KEY not in store.data
        assert ledger.is_expired() is True


class TestExpiry:
    def test_nothing_stored_is_expired(self, ledger):
        assert ledger.is_expired() is True

    def test_inside_buffer_is_expired(self, ledger):
        ledger.save(tokens(4 * 60))

        assert ledger.is_expired() is True

    def test_just_outside_buffer_is_valid(self, ledger, store):
        store.set(EXPIRES_AT_KEY, str(T0 + 5 * 60_000 + 1))

        assert ledger.is_expired() is False

    def test_exactly_at_buffer_is_valid(self, ledger, store):
        store.set(EXPIRES_AT_KEY, str(T0 + 5 * 60_000))

        assert ledger.is_expired() is False

    def test_becomes_expired_as_clock_advances(self, ledger, clock):
        ledger.save(tokens(3600))
        assert ledger.is_expired() is False

        clock.now += 55 * 60_000 + 1

        assert ledger.is_expired() is True

    def test_unparseable_expiry_counts_as_expired(self, ledger, store):
        store.set(EXPIRES_AT_KEY, "soon")

        assert ledger.expires_at() is None
        assert ledger.is_expired() is True


class TestClear:
    def test_clear_removes_only_managed_keys(self, ledger, store):
        store.set("theme", "dark")
        ledger.save(tokens(), user_id="u1")

        ledger.clear()

        assert store.data == {"theme": "dark"}
        assert not ledger.has_token()
        assert ledger.is_expired()

    def test_session_snapshot(self, ledger):
        ledger.save(tokens(), user_id="u1")

        session = ledger.get_session()

        assert session.access_token == "a1"
        assert session.refresh_token == "r1"
        assert session.user_id == "u1"
        assert session.is_expired is False


class TestJsonFileStore:
    def test_creates_file_and_persists(self, tmp_path):
        path = tmp_path / "session.json"
        store = JsonFileStore(str(path))
        assert json.loads(path.read_text()) == {}

        SessionLedger(store, clock=Clock()).save(tokens(), user_id="u1")

        reopened = JsonFileStore(str(path))
        assert reopened.get(ACCESS_TOKEN_KEY) == "a1"
        assert reopened.get(REFRESH_TOKEN_KEY) == "r1"
        assert reopened.get(USER_ID_KEY) == "u1"

    def test_remove_missing_key_is_noop(self, tmp_path):
        store = JsonFileStore(str(tmp_path / "s.json"))

        store.remove("nothing")

        assert store.get("nothing") is None

    def test_clear_through_file_store(self, tmp_path):
        path = tmp_path / "s.json"
        store = JsonFileStore(str(path))
        store.set("other", "keep")
        ledger = SessionLedger(store, clock=Clock())
        ledger.save(tokens(), user_id="u1")

        ledger.clear()

        assert json.loads(path.read_text()) == {"other": "keep"}

    def test_corrupt_file_reads_as_empty(self, tmp_path):
        path = tmp_path / "s.json"
        path.write_text("{not json")
        store = JsonFileStore(str(path))

        session = SessionLedger(store, clock=Clock()).get_session()

        assert session.access_token is None
        assert session.is_expired is True

    def test_corrupt_file_is_replaced_on_write(self, tmp_path):
        path = tmp_path / "s.json"
        path.write_text("garbage")
        store = JsonFileStore(str(path))

        store.set(ACCESS_TOKEN_KEY, "a1")

        assert json.loads(path.read_text()) == {ACCESS_TOKEN_KEY: "a1"}

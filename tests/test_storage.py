"""
Credential Storage and Session Tests
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from ixrlib import EnvironmentStorage, FileStorage, MemoryStorage, Session
from ixrlib.types import CredentialStore


class TestStorage:
    """Tests for credential storage implementations."""

    def test_memory_storage(self):
        storage = MemoryStorage()

        assert storage.get("apiToken") is None

        storage.set("apiToken", "token")
        assert storage.get("apiToken") == "token"

        storage.remove("apiToken")
        assert storage.get("apiToken") is None

    def test_file_storage(self, tmp_path):
        file_path = tmp_path / "nested" / "credentials.json"
        storage = FileStorage(str(file_path))

        assert storage.get("apiToken") is None

        storage.set("apiToken", "token")
        storage.set("apiSecret", "secret")

        assert file_path.exists()
        assert json.loads(file_path.read_text()) == {"apiToken": "token", "apiSecret": "secret"}
        # A second instance sees the persisted values
        assert FileStorage(str(file_path)).get("apiSecret") == "secret"

        storage.remove("apiSecret")
        assert storage.get("apiSecret") is None

        storage.clear()
        assert not file_path.exists()

    def test_file_storage_batch_update(self, tmp_path):
        file_path = tmp_path / "credentials.json"
        file_path.write_text(json.dumps({"sessionId": "old"}))
        storage = FileStorage(str(file_path))

        storage.update({"apiSecret": "secret", "sessionId": None, "apiToken": "token"})

        assert json.loads(file_path.read_text()) == {"apiSecret": "secret", "apiToken": "token"}
        assert oct(file_path.stat().st_mode & 0o777) == oct(0o600)

    def test_corrupt_file_reads_as_empty(self, tmp_path):
        file_path = tmp_path / "credentials.json"
        file_path.write_text("{not json")

        assert FileStorage(str(file_path)).get("apiToken") is None

    def test_environment_storage(self, monkeypatch):
        monkeypatch.delenv("IXR_APITOKEN", raising=False)
        storage = EnvironmentStorage()

        assert storage.get("apiToken") is None
        storage.set("apiToken", "token")
        assert storage.get("apiToken") == "token"
        storage.remove("apiToken")
        assert storage.get("apiToken") is None

    def test_implementations_satisfy_protocol(self, tmp_path):
        assert isinstance(MemoryStorage(), CredentialStore)
        assert isinstance(FileStorage(str(tmp_path / "c.json")), CredentialStore)
        assert isinstance(EnvironmentStorage(), CredentialStore)


class TestSession:
    """Tests for the Session credential state."""

    def test_starts_unauthenticated(self):
        session = Session(MemoryStorage())
        assert not session.is_authenticated()
        assert session.credentials.token == ""
        assert session.credentials.expires_at is None

    def test_loads_from_store(self):
        store = MemoryStorage()
        store.set("apiToken", "token")
        store.set("apiSecret", "secret")
        store.set("sessionId", "session")
        store.set("tokenExpiration", "2033-05-18T03:33:20Z")

        credentials = Session(store).credentials

        assert credentials.token == "token"
        assert credentials.secret == "secret"
        assert credentials.session_id == "session"
        assert credentials.expires_at == datetime(2033, 5, 18, 3, 33, 20, tzinfo=timezone.utc)

    def test_half_pair_is_ignored(self):
        store = MemoryStorage()
        store.set("apiToken", "token")

        session = Session(store)

        assert not session.is_authenticated()
        assert session.credentials.token == ""

    def test_unparseable_expiration(self):
        store = MemoryStorage()
        store.set("tokenExpiration", "soon")
        assert Session(store).credentials.expires_at is None

    def test_update_writes_through(self):
        store = MemoryStorage()
        session = Session(store)
        expires_at = datetime(2030, 1, 1, tzinfo=timezone.utc)

        session.update("token", "secret", "session", expires_at)

        assert session.is_authenticated()
        assert store.get("apiToken") == "token"
        assert store.get("apiSecret") == "secret"
        assert store.get("sessionId") == "session"
        assert store.get("tokenExpiration") == "2030-01-01T00:00:00Z"

    def test_update_without_expiry_clears_stale_value(self):
        store = MemoryStorage()
        store.set("tokenExpiration", "2000-01-01T00:00:00Z")

        Session(store).update("token", "secret")

        assert store.get("tokenExpiration") is None

    def test_update_rejects_half_pair(self):
        session = Session(MemoryStorage())
        with pytest.raises(ValueError):
            session.update("token", "")
        assert not session.is_authenticated()

    def test_is_expired(self):
        session = Session(MemoryStorage())
        now = datetime(2030, 1, 1, tzinfo=timezone.utc)
        assert not session.is_expired(now)

        session.update("token", "secret", expires_at=now - timedelta(seconds=1))
        assert session.is_expired(now)

        session.update("token", "secret", expires_at=now + timedelta(hours=1))
        assert not session.is_expired(now)

    def test_store_failures_degrade(self):
        class BrokenStore:
            def get(self, key):
                raise OSError("unavailable")

            def set(self, key, value):
                raise OSError("unavailable")

            def remove(self, key):
                raise OSError("unavailable")

        session = Session(BrokenStore())
        assert not session.is_authenticated()

        session.update("token", "secret")
        assert session.is_authenticated()

    def test_failed_secret_write_never_mixes_logins(self):
        class FlakySecretStore:
            """Key-by-key store whose secret write can be made to fail."""

            def __init__(self):
                self.data = {}
                self.fail_secret = False

            def get(self, key):
                return self.data.get(key)

            def set(self, key, value):
                if key == "apiSecret" and self.fail_secret:
                    raise OSError("disk full")
                self.data[key] = value

            def remove(self, key):
                self.data.pop(key, None)

        store = FlakySecretStore()
        session = Session(store)
        session.update("token_1", "secret_1")

        store.fail_secret = True
        session.update("token_2", "secret_2")

        assert session.credentials.token == "token_2"
        assert session.credentials.secret == "secret_2"
        assert store.get("apiToken") is None
        assert store.get("apiSecret") is None
        assert not Session(store).is_authenticated()

    def test_key_by_key_store_writes_token_last(self):
        order = []

        class RecordingStore:
            def get(self, key):
                return None

            def set(self, key, value):
                order.append(key)

            def remove(self, key):
                order.append(f"-{key}")

        Session(RecordingStore()).update("token", "secret", "session")

        assert order[0] == "apiSecret"
        assert order[-1] == "apiToken"

    def test_file_store_keeps_previous_pair_when_write_fails(self, tmp_path, monkeypatch):
        file_path = tmp_path / "credentials.json"
        store = FileStorage(str(file_path))
        session = Session(store)
        session.update("token_1", "secret_1", "session_1")

        def failing_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("ixrlib.storage.os.replace", failing_replace)
        session.update("token_2", "secret_2", "session_2")
        monkeypatch.undo()

        reloaded = Session(FileStorage(str(file_path))).credentials
        assert (reloaded.token, reloaded.secret) == ("token_1", "secret_1")
        assert [p.name for p in tmp_path.iterdir()] == ["credentials.json"]

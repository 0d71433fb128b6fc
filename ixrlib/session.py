"""
Session credential state shared by a client, its signer and its auth namespace.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Dict, Optional

from .types import (
    EXPIRATION_KEY,
    SECRET_KEY,
    SESSION_ID_KEY,
    TOKEN_KEY,
    CredentialStore,
    Credentials,
)


logger = logging.getLogger("ixrlib")


def _parse_expiration(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _format_expiration(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


class Session:
    """
    In-memory credentials backed by a write-through CredentialStore.

    Token and secret always change together. Readers get an immutable
    Credentials snapshot, so a login completing mid-request is picked up
    by the next signing step without reconstructing anything.
    """

    def __init__(self, store: CredentialStore) -> None:
        self._store = store
        self._lock = threading.Lock()
        self._credentials = self._load()

    @property
    def store(self) -> CredentialStore:
        return self._store

    @property
    def credentials(self) -> Credentials:
        with self._lock:
            return self._credentials

    @property
    def session_id(self) -> str:
        return self.credentials.session_id

    def is_authenticated(self) -> bool:
        return self.credentials.is_complete

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Whether the decoded token expiry has passed. Informational only."""
        expires_at = self.credentials.expires_at
        if expires_at is None:
            return False
        return (now or datetime.now(timezone.utc)) >= expires_at

    def update(
        self,
        token: str,
        secret: str,
        session_id: str = "",
        expires_at: Optional[datetime] = None,
    ) -> Credentials:
        """Replace the credentials and persist them immediately.

        If the store rejects any write, the stored token and secret are
        removed so a later load never pairs values from different logins.
        The in-memory credentials are replaced regardless.
        """
        if not token or not secret:
            raise ValueError("token and secret must both be non-empty")

        credentials = Credentials(
            token=token,
            secret=secret,
            session_id=session_id,
            expires_at=expires_at,
        )
        # Token last for stores written key by key
        values: Dict[str, Optional[str]] = {
            SECRET_KEY: secret,
            SESSION_ID_KEY: session_id,
            EXPIRATION_KEY: _format_expiration(expires_at) if expires_at is not None else None,
            TOKEN_KEY: token,
        }
        with self._lock:
            self._credentials = credentials
            self._persist(values)
        return credentials

    def _load(self) -> Credentials:
        token = self._read(TOKEN_KEY) or ""
        secret = self._read(SECRET_KEY) or ""
        if not (token and secret):
            # Half a pair is unusable
            token, secret = "", ""
        return Credentials(
            token=token,
            secret=secret,
            session_id=self._read(SESSION_ID_KEY) or "",
            expires_at=_parse_expiration(self._read(EXPIRATION_KEY)),
        )

    def _read(self, key: str) -> Optional[str]:
        try:
            return self._store.get(key)
        except Exception as e:
            logger.warning("Credential store read failed for %s: %s", key, e)
            return None

    def _persist(self, values: Dict[str, Optional[str]]) -> None:
        batch = getattr(self._store, "update", None)
        try:
            if callable(batch):
                batch(values)
            else:
                for key, value in values.items():
                    if value is None:
                        self._store.remove(key)
                    else:
                        self._store.set(key, value)
        except Exception as e:
            logger.error("Credential store write failed: %s", e)
            self._discard_pair()

    def _discard_pair(self) -> None:
        for key in (TOKEN_KEY, SECRET_KEY):
            try:
                self._store.remove(key)
            except Exception as e:
                logger.error("Credential store remove failed for %s: %s", key, e)

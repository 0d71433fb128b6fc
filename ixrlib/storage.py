"""
iXR Library Credential Storage Implementations

Key-value backends for persisting session credentials between calls.
Reads never raise: an unavailable medium reads as "no credentials".

Each backend also offers ``update(values)``, which applies a batch of
writes (None removes a key) as one unit.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, Mapping, Optional


logger = logging.getLogger("ixrlib")


class MemoryStorage:
    """In-memory credential storage (default, non-persistent)."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def update(self, values: Mapping[str, Optional[str]]) -> None:
        with self._lock:
            _apply(self._data, values)


class FileStorage:
    """File-based credential storage (persistent across restarts).

    The file is rewritten through a temporary file and ``os.replace``, so a
    reader sees either the previous contents or the new ones.
    """

    def __init__(self, file_path: Optional[str] = None) -> None:
        """
        Initialize file storage.

        Args:
            file_path: Path to credentials file. Defaults to ~/.ixrlib/credentials.json
        """
        if file_path:
            self._file_path = Path(file_path)
        else:
            self._file_path = Path.home() / ".ixrlib" / "credentials.json"

        self._lock = threading.Lock()

    def _read_data(self) -> Dict[str, str]:
        try:
            if self._file_path.exists():
                with open(self._file_path, "r") as f:
                    data = json.load(f)
                if isinstance(data, dict):
                    return data
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Credential file %s unreadable: %s", self._file_path, e)
        return {}

    def _write_data(self, data: Dict[str, str]) -> None:
        directory = self._file_path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(directory), prefix=".credentials-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(data, f)
            # Owner read/write only
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, self._file_path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            value = self._read_data().get(key)
            return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        self.update({key: value})

    def remove(self, key: str) -> None:
        self.update({key: None})

    def update(self, values: Mapping[str, Optional[str]]) -> None:
        """Apply all values with a single file replace. Raises OSError if the file cannot be written."""
        with self._lock:
            data = self._read_data()
            if _apply(data, values):
                self._write_data(data)

    def clear(self) -> None:
        """Delete the credentials file."""
        with self._lock:
            try:
                if self._file_path.exists():
                    self._file_path.unlink()
            except OSError as e:
                logger.warning("Credential file %s not removable: %s", self._file_path, e)


class EnvironmentStorage:
    """Environment variable based storage (for serverless/containers).

    Keys map to upper-cased variables, e.g. ``apiToken`` -> ``IXR_APITOKEN``.
    """

    def __init__(self, prefix: str = "IXR_") -> None:
        self._prefix = prefix
        self._lock = threading.Lock()

    def _var(self, key: str) -> str:
        return f"{self._prefix}{key.upper()}"

    def get(self, key: str) -> Optional[str]:
        return os.environ.get(self._var(key))

    def set(self, key: str, value: str) -> None:
        with self._lock:
            os.environ[self._var(key)] = value

    def remove(self, key: str) -> None:
        with self._lock:
            os.environ.pop(self._var(key), None)

    def update(self, values: Mapping[str, Optional[str]]) -> None:
        with self._lock:
            for key, value in values.items():
                if value is None:
                    os.environ.pop(self._var(key), None)
                else:
                    os.environ[self._var(key)] = value


def _apply(data: Dict[str, str], values: Mapping[str, Optional[str]]) -> bool:
    """Apply values to data in place; returns whether anything changed."""
    changed = False
    for key, value in values.items():
        if value is None:
            changed = data.pop(key, None) is not None or changed
        elif data.get(key) != value:
            data[key] = value
            changed = True
    return changed

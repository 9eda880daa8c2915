"""Local durable key-value store.

Values are JSON-serialized strings keyed by name. The file-backed store keeps
one file per key and replaces it atomically, so a reader never observes a
half-written value.
"""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

_SAFE_KEY = re.compile(r"[^A-Za-z0-9_.-]")


class StoreError(Exception):
    """Raised when the durable store cannot be read or written."""


@runtime_checkable
class KeyValueStore(Protocol):
    """Minimal async key-value persistence surviving process restarts."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def remove(self, key: str) -> None: ...


class JsonFileStore:
    """KeyValueStore backed by files in a directory."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not key:
            raise ValueError("Store key cannot be empty")
        return self.directory / f"{_SAFE_KEY.sub('_', key)}.json"

    async def get(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StoreError(f"Failed to read {key}: {e}") from e

    async def set(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=".tmp-")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
            path.chmod(0o600)
        except OSError as e:
            raise StoreError(f"Failed to write {key}: {e}") from e

    async def remove(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise StoreError(f"Failed to remove {key}: {e}") from e


class MemoryStore:
    """In-process KeyValueStore, used for tests and ephemeral runs."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def remove(self, key: str) -> None:
        self.data.pop(key, None)

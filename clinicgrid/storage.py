# clinicgrid/storage.py
from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Protocol

from .schema import LATEST_RECORD_VERSION, RECORD_KEYS, empty_data, record_version, upgrade_record, wrap_record
from .util.console import warn
from .validate import RecordValidationError

DATA_DIR_ENV = "CLINICGRID_DATA"
_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class KeyValueStore(Protocol):
    """String blobs under string keys (the shape of browser localStorage)."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...

    def keys(self) -> Iterator[str]:
        ...


class MemoryStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = str(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> Iterator[str]:
        return iter(sorted(self._data))


class JsonDirStore:
    """One `<key>.json` file per key under `root`.

    Writes go to a sibling temp file and are renamed into place, so a crash
    never leaves a half-written record behind.
    """

    def __init__(self, root: "str | Path") -> None:
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        if not _KEY_RE.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.root / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        p = self._path(key)
        try:
            return p.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set(self, key: str, value: str) -> None:
        p = self._path(key)
        p.parent.mkdir(parents=True, exist_ok=True)
        tmp = p.with_name(p.name + ".tmp")
        tmp.write_text(str(value), encoding="utf-8")
        os.replace(tmp, p)

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass

    def keys(self) -> Iterator[str]:
        if not self.root.is_dir():
            return iter(())
        return iter(sorted(p.stem for p in self.root.glob("*.json")))


def default_data_dir() -> Path:
    env = (os.getenv(DATA_DIR_ENV, "") or "").strip()
    if env:
        return Path(env)
    return Path.home() / ".clinicgrid"


def load_json(store: KeyValueStore, key: str, fallback: Any) -> Any:
    """Parsed JSON under `key`, or `fallback` when absent or unparsable."""
    try:
        raw = store.get(key)
    except UnicodeDecodeError as ex:
        warn("storage", f"undecodable blob under {key!r} treated as absent ({ex})")
        return fallback
    if raw is None or not raw.strip():
        return fallback
    try:
        obj = json.loads(raw)
    except ValueError as ex:
        warn("storage", f"unparsable blob under {key!r} treated as absent ({ex})")
        return fallback
    return fallback if obj is None else obj


def save_json(store: KeyValueStore, key: str, value: Any) -> None:
    store.set(key, json.dumps(value, ensure_ascii=False, sort_keys=True))


def read_record(store: KeyValueStore, kind: str) -> Any:
    """Read and upgrade one record kind; corrupt or unsupported records read as empty."""
    key = RECORD_KEYS[kind]
    raw = load_json(store, key, None)
    if raw is None:
        return empty_data(kind)
    try:
        return upgrade_record(kind, raw)
    except RecordValidationError as ex:
        warn("storage", f"record {key!r} treated as absent ({ex})")
        return empty_data(kind)


def write_record(store: KeyValueStore, kind: str, data: Any) -> None:
    """Write one record kind as the latest envelope.

    Raises RecordValidationError instead of overwriting a record written by a
    newer version; it reads as empty here, so a write would drop its contents.
    """
    key = RECORD_KEYS[kind]
    ver = record_version(load_json(store, key, None))
    if ver > LATEST_RECORD_VERSION:
        raise RecordValidationError(
            f"Refusing to overwrite {key!r}: record version {ver} is newer than {LATEST_RECORD_VERSION}"
        )
    save_json(store, key, wrap_record(kind, data))


__all__ = [
    "DATA_DIR_ENV",
    "JsonDirStore",
    "KeyValueStore",
    "MemoryStore",
    "default_data_dir",
    "load_json",
    "read_record",
    "save_json",
    "write_record",
]

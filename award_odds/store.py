"""
Nominee Storage

The nominee lists live in a key-path-addressable document store
(Firebase Realtime Database in production). Paths are slash-separated,
e.g. `oscars/picture/nominees/0/odds/polymarket`.

Stores:
    - FirebaseStore: firebase_admin Realtime Database references
    - MemoryStore: nested dicts/lists with the same path semantics
    - DryRunStore: reads through to another store, logs writes only
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import firebase_admin
from firebase_admin import credentials, db

from award_odds.config import ConfigError

logger = logging.getLogger(__name__)


def split_path(path: str) -> List[str]:
    """Split a slash-separated path, ignoring empty segments."""
    return [part for part in path.split("/") if part]


class NomineeStore(ABC):
    """Storage capability injected into the category updater."""

    @abstractmethod
    def get(self, path: str) -> Any:
        """Return the value at `path`, or None if absent."""

    @abstractmethod
    def update(self, path: str, fields: Dict[str, Any]) -> None:
        """
        Write several children of `path` at once.

        Keys may be nested relative paths ("0/odds/kalshi"); only the
        addressed children change.
        """

    @abstractmethod
    def set(self, path: str, value: Any) -> None:
        """Replace the value at `path`."""


class FirebaseStore(NomineeStore):
    """
    Firebase Realtime Database store.

    Example:
        store = FirebaseStore(load_firebase_credentials(), database_url())
        nominees = store.get("oscars/picture/nominees")
    """

    APP_NAME = "award-odds"

    def __init__(
        self,
        service_account: Dict[str, Any],
        database_url: str,
        app_name: str = APP_NAME,
    ):
        """
        Initialize the Firebase app (or reuse one with the same name).

        Args:
            service_account: Parsed service-account JSON
            database_url: Realtime Database URL
            app_name: firebase_admin app name

        Raises:
            ConfigError: If the service account is not a valid certificate
        """
        try:
            self.app = firebase_admin.get_app(app_name)
        except ValueError:
            try:
                cred = credentials.Certificate(service_account)
            except ValueError as e:
                raise ConfigError(f"Invalid Firebase service account: {e}") from e

            self.app = firebase_admin.initialize_app(
                cred,
                {"databaseURL": database_url},
                name=app_name,
            )

    def _ref(self, path: str) -> "db.Reference":
        return db.reference(path, app=self.app)

    def get(self, path: str) -> Any:
        return self._ref(path).get()

    def update(self, path: str, fields: Dict[str, Any]) -> None:
        self._ref(path).update(fields)

    def set(self, path: str, value: Any) -> None:
        self._ref(path).set(value)


class MemoryStore(NomineeStore):
    """
    In-process store over nested dicts and lists.

    Integer path segments index into lists, mirroring how the Realtime
    Database returns arrays.
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self.data: Dict[str, Any] = data if data is not None else {}

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "MemoryStore":
        """Load a database export (JSON) into a new store."""
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ConfigError(f"Snapshot {path} must contain a JSON object")
        return cls(data)

    @staticmethod
    def _child(node: Any, key: str) -> Any:
        if isinstance(node, dict):
            return node.get(key)
        if isinstance(node, list) and key.isdigit():
            index = int(key)
            return node[index] if index < len(node) else None
        return None

    def get(self, path: str) -> Any:
        node: Any = self.data
        for key in split_path(path):
            node = self._child(node, key)
            if node is None:
                return None
        return node

    def _assign(self, parts: List[str], value: Any) -> None:
        if not parts:
            if not isinstance(value, dict):
                raise ValueError("Root value must be an object")
            self.data = value
            return

        node: Any = self.data
        for key in parts[:-1]:
            child = self._child(node, key)
            if not isinstance(child, (dict, list)):
                child = {}
                self._put(node, key, child)
            node = child
        self._put(node, parts[-1], value)

    @staticmethod
    def _put(node: Any, key: str, value: Any) -> None:
        if isinstance(node, list) and key.isdigit():
            index = int(key)
            if index >= len(node):
                node.extend([None] * (index + 1 - len(node)))
            node[index] = value
        elif isinstance(node, dict):
            node[key] = value
        else:
            raise ValueError(f"Cannot write child {key!r} of {type(node).__name__}")

    def update(self, path: str, fields: Dict[str, Any]) -> None:
        base = split_path(path)
        for key, value in fields.items():
            self._assign(base + split_path(key), value)

    def set(self, path: str, value: Any) -> None:
        self._assign(split_path(path), value)


class DryRunStore(NomineeStore):
    """Read from another store; log writes instead of applying them."""

    def __init__(self, inner: NomineeStore):
        self.inner = inner
        self.writes: List[tuple] = []

    def get(self, path: str) -> Any:
        return self.inner.get(path)

    def update(self, path: str, fields: Dict[str, Any]) -> None:
        self.writes.append(("update", path, dict(fields)))
        for key, value in fields.items():
            logger.info(f"[dry-run] {path}/{key} = {value!r}")

    def set(self, path: str, value: Any) -> None:
        self.writes.append(("set", path, value))
        logger.info(f"[dry-run] replace {path}")

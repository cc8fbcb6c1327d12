import logging
import threading
from collections.abc import Iterable, Mapping

from pinvault.storage.base import CredentialStore

logger = logging.getLogger(__name__)


class MemoryCredentialStore(CredentialStore):
    def __init__(self) -> None:
        self._data: dict[tuple[str, str], str] = {}
        self._lock = threading.Lock()

    def get(self, context: str, key: str) -> str | None:
        with self._lock:
            return self._data.get((context, key))

    def put(self, context: str, key: str, value: str) -> None:
        with self._lock:
            self._data[(context, key)] = value

    def delete(self, context: str, key: str) -> None:
        with self._lock:
            self._data.pop((context, key), None)

    def put_many(self, context: str, items: Mapping[str, str], *, remove: Iterable[str] = ()) -> None:
        with self._lock:
            for key in remove:
                self._data.pop((context, key), None)
            for key, value in items.items():
                self._data[(context, key)] = value
        logger.debug("Stored %d keys for context=%s", len(items), context)

    def delete_many(self, context: str, keys: Iterable[str]) -> None:
        with self._lock:
            for key in keys:
                self._data.pop((context, key), None)

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping


class CredentialStore(ABC):
    """Scoped string key/value persistence for PIN credentials and attempt state.

    Every key lives under a ``context`` (the user id on this device).  Backends
    raise ``StorageError`` when the underlying store fails.
    """

    @abstractmethod
    def get(self, context: str, key: str) -> str | None: ...

    @abstractmethod
    def put(self, context: str, key: str, value: str) -> None: ...

    @abstractmethod
    def delete(self, context: str, key: str) -> None: ...

    @abstractmethod
    def put_many(self, context: str, items: Mapping[str, str], *, remove: Iterable[str] = ()) -> None:
        """Write all items and delete the ``remove`` keys, or do none of it."""
        ...

    @abstractmethod
    def delete_many(self, context: str, keys: Iterable[str]) -> None:
        """Delete all keys or none of them. Missing keys are ignored."""
        ...

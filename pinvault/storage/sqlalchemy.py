from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone

from sqlalchemy import Connection, text
from sqlalchemy.exc import SQLAlchemyError

from pinvault.errors import StorageError
from pinvault.storage.base import CredentialStore

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SQLAlchemyCredentialStore(CredentialStore):
    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def get(self, context: str, key: str) -> str | None:
        try:
            row = (
                self.conn.execute(
                    text("SELECT value FROM credential_entries WHERE context = :context AND name = :key"),
                    {"context": context, "key": key},
                )
                .mappings()
                .fetchone()
            )
        except SQLAlchemyError as exc:
            self.conn.rollback()
            raise StorageError("Credential store is unavailable") from exc
        if row is None:
            return None
        return row["value"]

    def put(self, context: str, key: str, value: str) -> None:
        self.put_many(context, {key: value})

    def delete(self, context: str, key: str) -> None:
        self.delete_many(context, [key])

    def put_many(self, context: str, items: Mapping[str, str], *, remove: Iterable[str] = ()) -> None:
        now = _now()
        try:
            for key in remove:
                self._delete_entry(context, key)
            for key, value in items.items():
                self._delete_entry(context, key)
                self.conn.execute(
                    text(
                        "INSERT INTO credential_entries (context, name, value, updated_at) "
                        "VALUES (:context, :key, :value, :updated_at)"
                    ),
                    {"context": context, "key": key, "value": value, "updated_at": now},
                )
            self.conn.commit()
        except SQLAlchemyError as exc:
            self.conn.rollback()
            raise StorageError("Failed to write to credential store") from exc
        logger.debug("Stored %d keys for context=%s", len(items), context)

    def delete_many(self, context: str, keys: Iterable[str]) -> None:
        try:
            for key in keys:
                self._delete_entry(context, key)
            self.conn.commit()
        except SQLAlchemyError as exc:
            self.conn.rollback()
            raise StorageError("Failed to delete from credential store") from exc

    def _delete_entry(self, context: str, key: str) -> None:
        self.conn.execute(
            text("DELETE FROM credential_entries WHERE context = :context AND name = :key"),
            {"context": context, "key": key},
        )

import logging

from pinvault.settings import settings
from pinvault.storage.base import CredentialStore

logger = logging.getLogger(__name__)


def get_credential_store() -> CredentialStore:
    backend = settings.store_backend

    if backend == "sqlalchemy":
        from pinvault.db import get_connection
        from pinvault.storage.sqlalchemy import SQLAlchemyCredentialStore

        logger.info("Using credential store: sqlalchemy")
        return SQLAlchemyCredentialStore(get_connection())

    if backend == "memory":
        from pinvault.storage.memory import MemoryCredentialStore

        logger.info("Using credential store: memory")
        return MemoryCredentialStore()

    raise ValueError(f"Unsupported credential store backend: {backend}")

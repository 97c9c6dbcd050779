"""Process persistence adapters."""

from prime_crm.config import CrmConfig
from prime_crm.store.base import ProcessRepository, visible_to
from prime_crm.store.json_file import JsonFileProcessStore
from prime_crm.store.memory import InMemoryProcessStore
from prime_crm.store.postgres import PostgresProcessStore


def create_store(config: CrmConfig) -> ProcessRepository:
    """Build the persistence backend selected by ``config.store.backend``."""
    backend = config.store.backend
    if backend == "postgres":
        store = PostgresProcessStore(config.postgres.connection_string)
        store.ensure_schema()
        return store
    if backend == "json":
        return JsonFileProcessStore(config.store.data_dir)
    return InMemoryProcessStore()


__all__ = [
    "InMemoryProcessStore",
    "JsonFileProcessStore",
    "PostgresProcessStore",
    "ProcessRepository",
    "create_store",
    "visible_to",
]

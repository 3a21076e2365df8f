"""Record stores the pagination engine can read from."""

from pagekit.core.pagination.store import FetchResult, RecordStore, StoreQuery
from pagekit.infra.stores.memory import InMemoryStore
from pagekit.infra.stores.sql import SQLAlchemyStore

__all__ = [
    "FetchResult",
    "InMemoryStore",
    "RecordStore",
    "SQLAlchemyStore",
    "StoreQuery",
]

from chatcommerce.storage.repository import InMemoryRepository, Repository
from chatcommerce.storage.sql_repository import SQLRecordStore, SQLRepository
from chatcommerce.storage.store import CommerceStore

__all__ = [
    "Repository", "InMemoryRepository",
    "SQLRecordStore", "SQLRepository",
    "CommerceStore",
]

# backend/focus_challenge/store/factory.py
# Sélection du backend de stockage selon STORE_BACKEND (mongo | memory), instance partagée par process.

from typing import Optional

from focus_challenge.core.settings import Settings, get_settings
from focus_challenge.store.base import DocumentStore

_store: Optional[DocumentStore] = None


def build_store(settings: Settings) -> DocumentStore:
    """Construit le store correspondant à `settings.store_backend`."""
    if settings.store_backend == "memory":
        from focus_challenge.store.memory_store import MemoryDocumentStore

        return MemoryDocumentStore()

    from focus_challenge.db.mongodb import get_client
    from focus_challenge.store.mongo_store import MongoDocumentStore

    return MongoDocumentStore(get_client(), settings.mongodb_db)


def get_store() -> DocumentStore:
    """Retourne le store partagé (créé au premier appel)."""
    global _store
    if _store is None:
        _store = build_store(get_settings())
    return _store


def reset_store() -> None:
    """Oublie l'instance partagée (shutdown, tests)."""
    global _store
    _store = None

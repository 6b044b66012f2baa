"""Pluggable ledger storage: pick a backend with STORAGE_BACKEND."""
from carbon_market.config import Settings
from carbon_market.storage.base import Store, StoreSession
from carbon_market.storage.memory import MemoryStore
from carbon_market.storage.sql import SQLStore


def build_store(settings: Settings) -> Store:
    backend = settings.STORAGE_BACKEND.lower()
    if backend == "memory":
        return MemoryStore()
    if backend == "sqlite":
        return SQLStore(settings.DATABASE_URL, echo=settings.DEBUG)
    raise ValueError(f"Unknown STORAGE_BACKEND: {settings.STORAGE_BACKEND!r}")

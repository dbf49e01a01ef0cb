"""Persistence adapters: the local store (source of truth) and remote mirrors

Remote implementations live in privacy_progress.storage.remote and
privacy_progress.storage.supabase_store and are imported from there.
"""

from privacy_progress.storage.local_store import JsonFileBackend, LocalStore, MemoryBackend, StorageBackend

__all__ = ["JsonFileBackend", "LocalStore", "MemoryBackend", "StorageBackend"]

# jobfiller/storage/__init__.py
from .backends import (
    JsonFileBackend,
    MemoryBackend,
    StorageBackend,
    create_storage_backend,
)
from .resume_storage import ResumeStorage, SettingsStore

__all__ = [
    "JsonFileBackend",
    "MemoryBackend",
    "StorageBackend",
    "create_storage_backend",
    "ResumeStorage",
    "SettingsStore",
]

"""Storage adapters for Clinic Records.

This module contains storage adapters that implement the StoragePort interface
for persisting validated patient collections.
"""

from src.adapters.storage.json_storage import JsonStorageAdapter

__all__ = ["JsonStorageAdapter"]

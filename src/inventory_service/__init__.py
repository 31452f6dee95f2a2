"""
Inventory Service - register inventory items and their photos

Features:
- In-memory inventory store with strictly increasing item ids
- Photo files kept in a cache directory, always in step with the items
- FastAPI server with HTML forms for registering and searching items
- CLI to start the server
"""

__version__ = "1.0.0"

from .errors import InventoryError, InvalidInput, NotFound, StorageError
from .ids import IdAllocator
from .photos import PhotoHandle, PhotoRepository
from .store import InventoryRecord, InventoryStore
from .views import photo_url

__all__ = [
    "InventoryError",
    "InvalidInput",
    "NotFound",
    "StorageError",
    "IdAllocator",
    "PhotoHandle",
    "PhotoRepository",
    "InventoryRecord",
    "InventoryStore",
    "photo_url",
]

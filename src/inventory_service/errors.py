"""
Inventory Service errors

The core raises these; the HTTP layer maps each kind to a status code.
"""


class InventoryError(Exception):
    """Base exception for all inventory service errors."""


class InvalidInput(InventoryError):
    """Raised when a required field is missing or malformed."""


class NotFound(InventoryError):
    """Raised for an unknown record id, or a photo that is absent or missing on disk."""


class StorageError(InventoryError):
    """Raised when a photo blob cannot be written, read or deleted."""

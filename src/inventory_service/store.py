#!/usr/bin/env python3
"""
Inventory Store

Owns the id -> record mapping and keeps it consistent with the photo blobs
the records point at. Records are immutable snapshots; every change swaps in
a new snapshot under the store lock.

Blob I/O follows two rules:
- new photo bytes are written before the lock is taken, since a fresh
  handle is invisible to readers until a record points at it
- deleting a blob and changing the record that points at it happen together
  under the lock
"""
import sys
import threading
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from .errors import InvalidInput, InventoryError, NotFound, StorageError
from .ids import IdAllocator
from .photos import PhotoHandle, PhotoRepository


class InventoryRecord(BaseModel):
    """One inventory entry."""
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    description: str = ''
    photo: Optional[PhotoHandle] = None


class InventoryStore:
    """In-memory inventory with photos kept in a PhotoRepository."""

    def __init__(self, photos: PhotoRepository, allocator: Optional[IdAllocator] = None):
        self._photos = photos
        self._ids = allocator if allocator is not None else IdAllocator()
        self._records: Dict[int, InventoryRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, record_id: object) -> bool:
        with self._lock:
            return record_id in self._records

    def _require(self, record_id: int) -> InventoryRecord:
        """Look up a record. Caller must hold the lock."""
        record = self._records.get(record_id)
        if record is None:
            raise NotFound(f"Item {record_id} not found")
        return record

    def create(self, name: Optional[str], description: Optional[str] = None,
               photo: Optional[bytes] = None, photo_name: Optional[str] = None) -> InventoryRecord:
        """
        Register a new item.

        Validation and the photo write both happen before an id is allocated,
        so a failed create never consumes an id.

        Raises:
            InvalidInput: if name is empty or missing
            StorageError: if the photo cannot be stored
        """
        if not name:
            raise InvalidInput("Inventory name is required")

        handle = self._photos.store(photo, photo_name) if photo is not None else None

        with self._lock:
            record = InventoryRecord(
                id=self._ids.next(),
                name=name,
                description=description or '',
                photo=handle,
            )
            self._records[record.id] = record
        return record

    def get(self, record_id: int) -> InventoryRecord:
        with self._lock:
            return self._require(record_id)

    def list(self) -> List[InventoryRecord]:
        """Return all records in creation order."""
        with self._lock:
            return list(self._records.values())

    def update_metadata(self, record_id: int, name: Optional[str] = None,
                        description: Optional[str] = None) -> InventoryRecord:
        """
        Replace name and/or description. None leaves a field untouched.

        An empty name is accepted here, as it always has been for updates.
        """
        changes = {}
        if name is not None:
            changes['name'] = name
        if description is not None:
            changes['description'] = description

        with self._lock:
            record = self._require(record_id).model_copy(update=changes)
            self._records[record_id] = record
            return record

    def replace_photo(self, record_id: int, photo: Optional[bytes] = None,
                      photo_name: Optional[str] = None) -> InventoryRecord:
        """
        Swap the item's photo for new bytes, or remove it when photo is None.

        Raises:
            NotFound: if the item does not exist
            StorageError: if the new photo cannot be stored or the old one
                cannot be removed; the item keeps its previous photo
        """
        self.get(record_id)

        new_handle = self._photos.store(photo, photo_name) if photo is not None else None
        try:
            with self._lock:
                current = self._require(record_id)
                if current.photo is not None:
                    self._photos.delete(current.photo)
                record = current.model_copy(update={'photo': new_handle})
                self._records[record_id] = record
                return record
        except InventoryError:
            # the item vanished or the old photo is stuck; drop the unattached upload
            if new_handle is not None:
                try:
                    self._photos.delete(new_handle)
                except StorageError as cleanup_error:
                    print(f"⚠️  Could not remove unattached photo {new_handle.name}: {cleanup_error}", file=sys.stderr)
            raise

    def delete(self, record_id: int) -> InventoryRecord:
        """
        Remove an item together with its photo.

        The photo goes first: if it cannot be removed the item stays listed
        with a photo that still exists.
        """
        with self._lock:
            record = self._require(record_id)
            if record.photo is not None:
                self._photos.delete(record.photo)
            del self._records[record_id]
            return record

    def read_photo(self, record_id: int) -> bytes:
        """
        Return the bytes of the item's photo.

        Raises:
            NotFound: if the item has no photo, or its file has gone missing
        """
        with self._lock:
            record = self._require(record_id)
            if record.photo is None:
                raise NotFound(f"Photo not found for item {record_id}")
            return self._photos.read(record.photo)

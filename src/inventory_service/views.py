"""
Wire representations of inventory records.
"""
from typing import Optional

from pydantic import BaseModel

from .store import InventoryRecord


class ItemView(BaseModel):
    """An inventory record as returned to clients."""
    id: int
    inventory_name: str
    description: str
    photo: Optional[str] = None
    photo_url: Optional[str] = None


def photo_url(host: str, port: int, record_id: int) -> str:
    """URL under which the photo of a record is served."""
    return f"http://{host}:{port}/inventory/{record_id}/photo"


def item_view(record: InventoryRecord, host: str, port: int) -> ItemView:
    return ItemView(
        id=record.id,
        inventory_name=record.name,
        description=record.description,
        photo=record.photo.name if record.photo else None,
        photo_url=photo_url(host, port, record.id) if record.photo else None,
    )


def search_view(record: InventoryRecord, host: str, port: int, include_photo: bool = False) -> ItemView:
    """Like item_view, optionally appending the photo link to the description."""
    view = item_view(record, host, port)
    if include_photo and view.photo_url:
        view.description = f"{view.description} [Photo: {view.photo_url}]"
    return view

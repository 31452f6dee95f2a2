#!/usr/bin/env python3
"""
FastAPI server for the inventory service.

Maps HTTP requests onto InventoryStore operations. Each request does one
store call and turns the store's exceptions into status codes.
"""
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.responses import FileResponse, JSONResponse, Response
from pydantic import BaseModel

from .config import Settings
from .errors import InvalidInput, NotFound, StorageError
from .photos import PhotoRepository, guess_media_type
from .store import InventoryStore
from .views import ItemView, item_view, search_view

TEMPLATES_DIR = Path(__file__).parent / 'templates'
ALLOWED_METHODS = {'GET', 'POST', 'PUT', 'DELETE'}


class ItemUpdate(BaseModel):
    """Fields accepted by PUT /inventory/{id}. Omitted fields are left as they are."""
    inventory_name: Optional[str] = None
    description: Optional[str] = None


class ItemMessage(BaseModel):
    message: str
    item: ItemView


class DeleteMessage(BaseModel):
    message: str
    id: int


def get_store(request: Request) -> InventoryStore:
    return request.app.state.store


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _upload_bytes(photo: Optional[UploadFile]) -> tuple[Optional[bytes], Optional[str]]:
    """Read an optional upload. A file field left empty in a form counts as no photo."""
    if photo is None or not photo.filename:
        return None, None
    return photo.file.read(), photo.filename


def _parse_item_id(value: Optional[str]) -> int:
    """Turn a form-supplied id into an int. Anything unparseable matches no item."""
    try:
        return int(value)
    except (TypeError, ValueError):
        raise NotFound(f"Item {value} not found") from None


router = APIRouter()


@router.post("/register", status_code=201, response_model=ItemMessage)
def register_item(
    inventory_name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    store: InventoryStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> ItemMessage:
    """Register a new item, optionally with a photo."""
    data, filename = _upload_bytes(photo)
    record = store.create(inventory_name, description, data, filename)
    return ItemMessage(
        message="Item registered successfully",
        item=item_view(record, settings.host, settings.port),
    )


@router.get("/inventory", response_model=List[ItemView])
def list_items(
    store: InventoryStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> List[ItemView]:
    """List all items in registration order, with links to their photos."""
    return [item_view(record, settings.host, settings.port) for record in store.list()]


@router.get("/inventory/{item_id}", response_model=ItemView)
def get_item(
    item_id: int,
    store: InventoryStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> ItemView:
    return item_view(store.get(item_id), settings.host, settings.port)


@router.put("/inventory/{item_id}", response_model=ItemMessage)
def update_item(
    item_id: int,
    update: Optional[ItemUpdate] = Body(None),
    store: InventoryStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> ItemMessage:
    """Update the name and/or description of an item. An empty body changes nothing."""
    if update is None:
        update = ItemUpdate()
    record = store.update_metadata(item_id, name=update.inventory_name, description=update.description)
    return ItemMessage(
        message="Item updated successfully",
        item=item_view(record, settings.host, settings.port),
    )


@router.get("/inventory/{item_id}/photo")
def get_item_photo(item_id: int, store: InventoryStore = Depends(get_store)) -> Response:
    data = store.read_photo(item_id)
    return Response(content=data, media_type=guess_media_type(data))


@router.put("/inventory/{item_id}/photo", response_model=ItemMessage)
def replace_item_photo(
    item_id: int,
    photo: Optional[UploadFile] = File(None),
    store: InventoryStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> ItemMessage:
    """Replace the photo of an item. Sending no photo removes it."""
    data, filename = _upload_bytes(photo)
    record = store.replace_photo(item_id, data, filename)
    return ItemMessage(
        message="Photo updated successfully",
        item=item_view(record, settings.host, settings.port),
    )


@router.delete("/inventory/{item_id}", response_model=DeleteMessage)
def delete_item(item_id: int, store: InventoryStore = Depends(get_store)) -> DeleteMessage:
    record = store.delete(item_id)
    return DeleteMessage(message="Item deleted successfully", id=record.id)


@router.post("/search", response_model=ItemView)
def search_item(
    item_id: Optional[str] = Form(None, alias='id'),
    has_photo: str = Form('false'),
    store: InventoryStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> ItemView:
    """Find an item by id. With has_photo=true the photo link is appended to the description."""
    record = store.get(_parse_item_id(item_id))
    return search_view(record, settings.host, settings.port, include_photo=has_photo == 'true')


@router.get("/RegisterForm.html", include_in_schema=False)
def register_form() -> FileResponse:
    return FileResponse(TEMPLATES_DIR / 'RegisterForm.html', media_type='text/html')


@router.get("/SearchForm.html", include_in_schema=False)
def search_form() -> FileResponse:
    return FileResponse(TEMPLATES_DIR / 'SearchForm.html', media_type='text/html')


@router.get("/health")
def health(store: InventoryStore = Depends(get_store)) -> dict:
    """Health check endpoint."""
    return {
        "status": "ok",
        "item_count": len(store),
    }


def _error_handler(status_code: int):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})
    return handler


def create_app(settings: Settings, store: Optional[InventoryStore] = None) -> FastAPI:
    """
    Build the application.

    The photo directory must already exist; the CLI creates it at startup.
    """
    if store is None:
        store = InventoryStore(PhotoRepository(settings.cache_dir))

    app = FastAPI(
        title="Inventory Service API",
        version="1.0.0",
        description="API for managing inventory items and their photos",
        servers=[{"url": f"http://{settings.host}:{settings.port}", "description": "Development server"}],
    )
    app.state.settings = settings
    app.state.store = store

    @app.middleware("http")
    async def reject_unsupported_methods(request: Request, call_next):
        if request.method not in ALLOWED_METHODS:
            return JSONResponse(status_code=405, content={"detail": "Method not allowed"})
        return await call_next(request)

    app.add_exception_handler(InvalidInput, _error_handler(400))
    app.add_exception_handler(NotFound, _error_handler(404))
    app.add_exception_handler(StorageError, _error_handler(500))

    app.include_router(router)
    return app

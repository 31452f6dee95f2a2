"""Tests for the FastAPI server."""
import io
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from inventory_service.config import Settings
from inventory_service.errors import StorageError
from inventory_service.server import create_app


@pytest.fixture
def cache_dir():
    """Create a temporary photo cache directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def app(cache_dir):
    return create_app(Settings(host="localhost", port=8080, cache_dir=cache_dir))


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def png_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new('RGB', (4, 4), (0, 128, 255)).save(buffer, format='PNG')
    return buffer.getvalue()


def register(client, name="Laptop Asus", description="Gaming laptop", photo=None):
    files = {'photo': ('laptop.png', photo, 'image/png')} if photo is not None else None
    return client.post('/register', data={'inventory_name': name, 'description': description}, files=files)


class TestRegister:
    """Tests for POST /register."""

    def test_register_without_photo(self, client):
        response = register(client)
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Item registered successfully"
        assert body["item"] == {
            "id": 1,
            "inventory_name": "Laptop Asus",
            "description": "Gaming laptop",
            "photo": None,
            "photo_url": None,
        }

    def test_register_with_photo(self, client, cache_dir):
        response = register(client, photo=png_bytes())
        assert response.status_code == 201
        item = response.json()["item"]
        assert item["photo"].endswith("-laptop.png")
        assert item["photo_url"] == "http://localhost:8080/inventory/1/photo"
        assert (cache_dir / item["photo"]).read_bytes() == png_bytes()

    def test_missing_name_is_rejected(self, client):
        response = client.post('/register', data={'description': 'no name'})
        assert response.status_code == 400
        assert response.json()["detail"] == "Inventory name is required"

    def test_storage_failure_returns_500(self, client, app):
        with patch.object(app.state.store._photos, 'store', side_effect=StorageError("disk full")):
            response = register(client, photo=b"data")
        assert response.status_code == 500
        assert client.get('/inventory').json() == []


class TestInventoryEndpoints:
    """Tests for the /inventory endpoints."""

    def test_list_in_registration_order(self, client):
        register(client, name="A")
        register(client, name="B", photo=png_bytes())
        register(client, name="C")

        response = client.get('/inventory')
        assert response.status_code == 200
        items = response.json()
        assert [i["inventory_name"] for i in items] == ["A", "B", "C"]
        assert items[0]["photo_url"] is None
        assert items[1]["photo_url"] == "http://localhost:8080/inventory/2/photo"

    def test_get_item(self, client):
        register(client)
        response = client.get('/inventory/1')
        assert response.status_code == 200
        assert response.json()["inventory_name"] == "Laptop Asus"

    def test_get_unknown_item(self, client):
        response = client.get('/inventory/99')
        assert response.status_code == 404

    def test_non_integer_id_is_rejected(self, client):
        assert client.get('/inventory/abc').status_code == 422

    def test_update_description_only(self, client):
        register(client)
        response = client.put('/inventory/1', json={'description': 'Updated description'})
        assert response.status_code == 200
        item = response.json()["item"]
        assert item["inventory_name"] == "Laptop Asus"
        assert item["description"] == "Updated description"

    def test_update_without_body_changes_nothing(self, client):
        register(client)
        response = client.put('/inventory/1')
        assert response.status_code == 200
        item = response.json()["item"]
        assert item["inventory_name"] == "Laptop Asus"
        assert item["description"] == "Gaming laptop"

    def test_update_unknown_item(self, client):
        response = client.put('/inventory/5', json={'inventory_name': 'x'})
        assert response.status_code == 404

    def test_delete_item(self, client, cache_dir):
        register(client, photo=png_bytes())
        response = client.delete('/inventory/1')
        assert response.status_code == 200
        assert response.json() == {"message": "Item deleted successfully", "id": 1}
        assert client.get('/inventory/1').status_code == 404
        assert list(cache_dir.iterdir()) == []

    def test_delete_unknown_item(self, client):
        assert client.delete('/inventory/1').status_code == 404

    def test_unsupported_method(self, client):
        response = client.request('PATCH', '/inventory/1')
        assert response.status_code == 405
        assert response.json() == {"detail": "Method not allowed"}


class TestPhotoEndpoints:
    """Tests for /inventory/{id}/photo."""

    def test_get_photo(self, client):
        data = png_bytes()
        register(client, photo=data)
        response = client.get('/inventory/1/photo')
        assert response.status_code == 200
        assert response.content == data
        assert response.headers["content-type"] == "image/png"

    def test_get_photo_when_none(self, client):
        register(client)
        assert client.get('/inventory/1/photo').status_code == 404

    def test_get_photo_unknown_item(self, client):
        assert client.get('/inventory/1/photo').status_code == 404

    def test_replace_photo(self, client, cache_dir):
        first = register(client, photo=b"old").json()["item"]["photo"]

        response = client.put('/inventory/1/photo', files={'photo': ('new.jpg', b"new", 'image/jpeg')})
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Photo updated successfully"
        second = body["item"]["photo"]

        assert second != first
        assert [p.name for p in cache_dir.iterdir()] == [second]
        assert client.get('/inventory/1/photo').content == b"new"

    def test_replace_without_file_clears_photo(self, client, cache_dir):
        register(client, photo=b"old")

        response = client.put('/inventory/1/photo')
        assert response.status_code == 200
        item = response.json()["item"]
        assert item["photo"] is None
        assert item["photo_url"] is None
        assert list(cache_dir.iterdir()) == []
        assert client.get('/inventory/1/photo').status_code == 404

    def test_replace_photo_unknown_item(self, client, cache_dir):
        response = client.put('/inventory/3/photo', files={'photo': ('new.jpg', b"new", 'image/jpeg')})
        assert response.status_code == 404
        assert list(cache_dir.iterdir()) == []


class TestSearch:
    """Tests for POST /search."""

    def test_search_with_photo_link(self, client):
        register(client, photo=png_bytes())
        response = client.post('/search', data={'id': '1', 'has_photo': 'true'})
        assert response.status_code == 200
        body = response.json()
        assert body["description"] == "Gaming laptop [Photo: http://localhost:8080/inventory/1/photo]"
        assert body["photo_url"] == "http://localhost:8080/inventory/1/photo"

    def test_search_without_flag(self, client):
        register(client, photo=png_bytes())
        response = client.post('/search', data={'id': '1'})
        assert response.json()["description"] == "Gaming laptop"

    def test_search_flag_must_be_literal_true(self, client):
        register(client, photo=png_bytes())
        response = client.post('/search', data={'id': '1', 'has_photo': 'yes'})
        assert response.json()["description"] == "Gaming laptop"

    @pytest.mark.parametrize("form", [{'id': 'abc'}, {'id': ''}, {}])
    def test_search_unparseable_or_missing_id(self, client, form):
        """An id that is not a number matches no item."""
        register(client)
        response = client.post('/search', data=form)
        assert response.status_code == 404

    def test_search_unknown_item(self, client):
        response = client.post('/search', data={'id': '42'})
        assert response.status_code == 404


class TestStaticPages:
    """Tests for the HTML forms and health check."""

    @pytest.mark.parametrize("page", ["/RegisterForm.html", "/SearchForm.html"])
    def test_forms_are_served(self, client, page):
        response = client.get(page)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "<form" in response.text

    def test_health(self, client):
        register(client)
        assert client.get('/health').json() == {"status": "ok", "item_count": 1}

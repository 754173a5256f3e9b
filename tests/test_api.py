import importlib
import pytest
from fastapi.testclient import TestClient
from config import settings

HEADERS = {"X-API-Key": settings.api_key}


@pytest.fixture
def client(isolated_db):
    import api as api_module
    # Reload so the module-level store opens this test's database
    importlib.reload(api_module)
    return TestClient(api_module.app)


def _create(client, title="Tahunan", complete=False, year="1990"):
    response = client.post("/books", headers=HEADERS,
                           json={"title": title, "author": "Author", "year": year, "isComplete": complete})
    assert response.status_code == 201
    return response.json()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"

def test_get_books_empty(client):
    response = client.get("/books")
    assert response.status_code == 200
    assert response.json() == {"incomplete": [], "complete": []}

def test_add_book(client):
    book = _create(client)
    assert book["title"] == "Tahunan"
    assert book["year"] == 1990
    assert book["isComplete"] is False
    assert client.get(f"/books/{book['id']}").json() == book

def test_add_book_invalid(client):
    response = client.post("/books", headers=HEADERS, json={"title": "", "author": "A", "year": 2000})
    assert response.status_code == 400
    assert client.get("/stats").json()["total_books"] == 0

def test_add_book_invalid_api_key(client):
    response = client.post("/books", headers={"X-API-Key": "invalid-key"},
                           json={"title": "T", "author": "A", "year": 2000})
    assert response.status_code == 403

def test_update_book(client):
    book = _create(client)
    response = client.put(f"/books/{book['id']}", headers=HEADERS,
                          json={"title": "Tahunan 2", "author": "Author", "year": 1991, "isComplete": True})
    assert response.status_code == 200
    assert response.json()["title"] == "Tahunan 2"
    assert response.json()["id"] == book["id"]

def test_update_missing(client):
    response = client.put("/books/1", headers=HEADERS, json={"title": "T", "author": "A", "year": 1})
    assert response.status_code == 404

def test_toggle_book(client):
    book = _create(client)
    first = client.patch(f"/books/{book['id']}/toggle", headers=HEADERS).json()
    second = client.patch(f"/books/{book['id']}/toggle", headers=HEADERS).json()
    assert first["isComplete"] is True
    assert second["isComplete"] is False
    assert client.patch("/books/1/toggle", headers=HEADERS).status_code == 404

def test_delete_book(client):
    keep = _create(client, title="Keep")
    gone = _create(client, title="Gone")
    response = client.delete(f"/books/{gone['id']}", headers=HEADERS)
    assert response.status_code == 200
    assert client.get(f"/books/{gone['id']}").status_code == 404
    assert client.get(f"/books/{keep['id']}").status_code == 200
    assert client.delete(f"/books/{gone['id']}", headers=HEADERS).status_code == 404

def test_search(client):
    _create(client, title="Tahunan")
    _create(client, title="Kisah Tahun Lalu", complete=True)
    _create(client, title="Other")

    data = client.get("/books", params={"q": "tahun"}).json()
    assert [b["title"] for b in data["incomplete"]] == ["Tahunan"]
    assert [b["title"] for b in data["complete"]] == ["Kisah Tahun Lalu"]

def test_export_import(client):
    _create(client)
    exported = client.get("/export/json").json()
    assert len(exported) == 1

    response = client.post("/import/json", headers=HEADERS, json=exported)
    assert response.status_code == 200
    assert response.json() == {"imported": 1, "total_books": 2}

    bad = client.post("/import/json", headers=HEADERS, json=[{"title": "", "author": "A", "year": 1}])
    assert bad.status_code == 400

def test_add_book_oversized_year(client):
    response = client.post("/books", headers=HEADERS, json={"title": "T", "author": "A", "year": "9" * 5000})
    assert response.status_code == 400
    assert client.get("/stats").json()["total_books"] == 0

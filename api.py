import logging
from datetime import datetime, timezone
from typing import List, Optional, Dict, Any, Union

from fastapi import FastAPI, HTTPException, Query, Depends, Security
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import APIKeyHeader
from pydantic import BaseModel

from library import BookStore, create_store
from config import settings
from utils.validators import InvalidBookInput

logger = logging.getLogger(__name__)

store = create_store()

app = FastAPI(title=f"{settings.app_name} API", version=settings.app_version, debug=settings.debug)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Security ---
api_key_header = APIKeyHeader(name="X-API-Key")

def get_api_key(api_key: str = Security(api_key_header)):
    """Dependency that checks the API key."""
    if api_key == settings.api_key:
        return api_key
    raise HTTPException(status_code=403, detail="Could not validate credentials")

def get_store() -> BookStore:
    return store


# --- Models ---
class BookModel(BaseModel):
    id: int
    title: str
    author: str
    year: int
    isComplete: bool

class BookPayloadModel(BaseModel):
    title: Optional[str] = None
    author: Optional[str] = None
    # Validated by the store so "2021" and 2021 behave the same
    year: Optional[Union[int, str]] = None
    isComplete: bool = False

class ShelvesModel(BaseModel):
    incomplete: List[BookModel]
    complete: List[BookModel]

class StatsModel(BaseModel):
    total_books: int
    complete_books: int
    incomplete_books: int
    unique_authors: int

class ImportResultModel(BaseModel):
    imported: int
    total_books: int


def _book_or_404(book) -> BookModel:
    if not book:
        raise HTTPException(status_code=404, detail="Book not found.")
    return BookModel(**book.to_dict())


# --- Health ---
@app.get("/health")
def health(store: BookStore = Depends(get_store)):
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "total_books": len(store.list_books()),
    }

# --- Books ---
@app.get("/books", response_model=ShelvesModel)
def get_books(
    q: Optional[str] = Query(None, description="Case-insensitive title search"),
    store: BookStore = Depends(get_store),
):
    """Both shelves, optionally filtered by title."""
    shelves = store.query(q or "")
    return ShelvesModel(
        incomplete=[BookModel(**b.to_dict()) for b in shelves.incomplete],
        complete=[BookModel(**b.to_dict()) for b in shelves.complete],
    )

@app.get("/books/{book_id}", response_model=BookModel)
def get_book(book_id: int, store: BookStore = Depends(get_store)):
    return _book_or_404(store.find_book(book_id))

@app.post("/books", response_model=BookModel, status_code=201, dependencies=[Depends(get_api_key)])
def add_book(payload: BookPayloadModel, store: BookStore = Depends(get_store)):
    """Add a book to the shelf."""
    try:
        book = store.add_book(payload.model_dump())
    except InvalidBookInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    return BookModel(**book.to_dict())

@app.put("/books/{book_id}", response_model=BookModel, dependencies=[Depends(get_api_key)])
def update_book(book_id: int, payload: BookPayloadModel, store: BookStore = Depends(get_store)):
    """Replace title, author, year and completion of a book."""
    try:
        book = store.update_book(book_id, payload.model_dump())
    except InvalidBookInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _book_or_404(book)

@app.patch("/books/{book_id}/toggle", response_model=BookModel, dependencies=[Depends(get_api_key)])
def toggle_book(book_id: int, store: BookStore = Depends(get_store)):
    return _book_or_404(store.toggle_complete(book_id))

@app.delete("/books/{book_id}", dependencies=[Depends(get_api_key)])
def delete_book(book_id: int, store: BookStore = Depends(get_store)):
    if not store.delete_book(book_id):
        raise HTTPException(status_code=404, detail="Book not found.")
    return {"message": "Book removed."}

# --- Stats / transfer ---
@app.get("/stats", response_model=StatsModel)
def get_stats(store: BookStore = Depends(get_store)):
    return StatsModel(**store.get_statistics())

@app.get("/export/json")
def export_books_json(store: BookStore = Depends(get_store)) -> List[Dict[str, Any]]:
    return store.export_books()

@app.post("/import/json", response_model=ImportResultModel, dependencies=[Depends(get_api_key)])
def import_books_json(
    records: List[Dict[str, Any]],
    replace: bool = Query(False, description="Replace the shelf instead of appending"),
    store: BookStore = Depends(get_store),
):
    try:
        imported = store.import_books(records, replace=replace)
    except InvalidBookInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    logger.info(f"Imported {len(imported)} books over HTTP")
    return ImportResultModel(imported=len(imported), total_books=len(store.list_books()))

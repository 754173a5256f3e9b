import json
import logging
import os
import time
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional

from book import Book
from config import settings
from database import KeyValueStorage, migrate_from_json
from utils.validators import BookInputValidator

logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
logger = logging.getLogger(__name__)


class Shelves(NamedTuple):
    """Books split by reading state, each in insertion order."""
    incomplete: List[Book]
    complete: List[Book]


class MonotonicIdGenerator:
    """Millisecond-clock ids that never repeat and never go backwards."""

    def __init__(self, start: int = 0, clock: Callable[[], float] = time.time) -> None:
        self._last = start
        self._clock = clock

    def seed(self, value: int) -> None:
        self._last = max(self._last, value)

    def next_id(self) -> int:
        self._last = max(int(self._clock() * 1000), self._last + 1)
        return self._last


class BookStore:
    """Holds the shelf in memory and keeps it in sync with a key-value storage."""

    def __init__(self, storage, storage_key: Optional[str] = None,
                 id_generator: Optional[MonotonicIdGenerator] = None) -> None:
        self.storage = storage
        self.storage_key = storage_key or settings.storage_key
        self.ids = id_generator or MonotonicIdGenerator()
        self.books: List[Book] = []
        self.search_keyword: str = ""
        self._listeners: List[Callable[["BookStore"], None]] = []
        self.load()

    # ------------------------- Persistence ------------------------- #
    def load(self) -> None:
        """Read the shelf from storage. Missing or corrupt data yields an empty shelf."""
        raw = self.storage.get_item(self.storage_key)
        try:
            parsed = json.loads(raw) if raw else []
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning(f"Stored shelf under {self.storage_key!r} is not valid JSON, starting empty: {e}")
            parsed = []
        if not isinstance(parsed, list):
            logger.warning(f"Stored shelf under {self.storage_key!r} is not an array, starting empty")
            parsed = []

        books: List[Book] = []
        for item in parsed:
            try:
                books.append(Book.from_dict(item))
            except (ValueError, TypeError, OverflowError) as e:
                logger.warning(f"Skipping unreadable book record {item!r}: {e}")
        self.books = books
        for book in books:
            self.ids.seed(book.id)
        logger.info(f"Loaded {len(books)} books from storage")

    def save(self) -> None:
        self.storage.set_item(self.storage_key, json.dumps(self.export_books(), ensure_ascii=False))

    # ------------------------- View refresh ------------------------- #
    def subscribe(self, listener: Callable[["BookStore"], None]) -> None:
        """Register a callback run after every change to the shelf or the search keyword."""
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in self._listeners:
            listener(self)

    def _commit(self) -> None:
        self.save()
        self._notify()

    # ------------------------- Core operations ------------------------- #
    def add_book(self, payload: Dict[str, Any]) -> Book:
        """Validate the payload and put a new book on the shelf."""
        clean = BookInputValidator.sanitize(payload)
        book = Book(
            id=self.ids.next_id(),
            title=clean["title"],
            author=clean["author"],
            year=clean["year"],
            is_complete=clean["isComplete"],
        )
        self.books.append(book)
        self._commit()
        logger.info(f"Added book {book.id}: {book.title}")
        return book

    def update_book(self, book_id: int, payload: Dict[str, Any]) -> Optional[Book]:
        """Replace a book's fields. Returns None when the id is unknown."""
        book = self.find_book(book_id)
        if not book:
            return None
        clean = BookInputValidator.sanitize(payload)
        book.update(clean)
        self._commit()
        logger.info(f"Updated book {book.id}")
        return book

    def toggle_complete(self, book_id: int) -> Optional[Book]:
        book = self.find_book(book_id)
        if not book:
            return None
        book.is_complete = not book.is_complete
        self._commit()
        logger.info(f"Book {book.id} marked {'complete' if book.is_complete else 'incomplete'}")
        return book

    def delete_book(self, book_id: int) -> bool:
        remaining = [b for b in self.books if b.id != book_id]
        if len(remaining) == len(self.books):
            return False
        self.books = remaining
        self._commit()
        logger.info(f"Deleted book {book_id}")
        return True

    def find_book(self, book_id: int) -> Optional[Book]:
        for book in self.books:
            if book.id == book_id:
                return book
        return None

    def list_books(self) -> List[Book]:
        return list(self.books)

    # ------------------------- Search ------------------------- #
    def set_search_keyword(self, keyword: Optional[str]) -> None:
        self.search_keyword = (keyword or "").strip()
        self._notify()

    def query(self, keyword: Optional[str] = None) -> Shelves:
        """Case-insensitive title search split into unfinished and finished shelves.

        A blank keyword matches every book; None falls back to the current search keyword.
        """
        if keyword is None:
            keyword = self.search_keyword
        needle = keyword.strip().lower()
        matches = [b for b in self.books if needle in b.title.lower()] if needle else list(self.books)
        return Shelves(
            incomplete=[b for b in matches if not b.is_complete],
            complete=[b for b in matches if b.is_complete],
        )

    # ------------------------- Statistics / transfer ------------------------- #
    def get_statistics(self) -> Dict[str, int]:
        complete = sum(1 for b in self.books if b.is_complete)
        return {
            "total_books": len(self.books),
            "complete_books": complete,
            "incomplete_books": len(self.books) - complete,
            "unique_authors": len({b.author for b in self.books}),
        }

    def export_books(self) -> List[Dict[str, Any]]:
        return [b.to_dict() for b in self.books]

    def import_books(self, records: Iterable[Dict[str, Any]], replace: bool = False) -> List[Book]:
        """Validate and add exported records in one write.

        Records keep their id unless it is missing or already taken. Any invalid
        record aborts the import and leaves the shelf unchanged.
        """
        cleaned = [(r, BookInputValidator.sanitize(r)) for r in records]

        existing = [] if replace else list(self.books)
        taken = {b.id for b in existing}
        for record, _ in cleaned:
            rid = record.get("id")
            if isinstance(rid, int) and not isinstance(rid, bool):
                self.ids.seed(rid)

        imported: List[Book] = []
        for record, clean in cleaned:
            rid = record.get("id")
            if isinstance(rid, bool) or not isinstance(rid, int) or rid in taken:
                rid = self.ids.next_id()
            taken.add(rid)
            imported.append(Book(
                id=rid,
                title=clean["title"],
                author=clean["author"],
                year=clean["year"],
                is_complete=clean["isComplete"],
            ))

        self.books = existing + imported
        self._commit()
        logger.info(f"Imported {len(imported)} books (replace={replace})")
        return imported


def create_store(db_file: Optional[str] = None) -> BookStore:
    """Build a store on the configured SQLite file, migrating a legacy export if one is set."""
    db_file = db_file or os.environ.get("BOOKSHELF_DB_FILE") or settings.db_file
    storage = KeyValueStorage(db_file)
    migrate_from_json(storage, settings.storage_key, settings.legacy_json_file)
    return BookStore(storage)

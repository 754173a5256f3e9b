import os
import pytest

from database import KeyValueStorage, MemoryStorage
from library import BookStore


@pytest.fixture(autouse=True)
def isolated_db(tmp_path, monkeypatch):
    # Every test gets its own database file, also for code that reads the environment
    db_file = str(tmp_path / "bookshelf_test.db")
    monkeypatch.setenv("BOOKSHELF_DB_FILE", db_file)
    monkeypatch.delenv("BOOKSHELF_CLI_OUTPUT", raising=False)
    yield db_file
    if os.path.exists(db_file):
        os.remove(db_file)


@pytest.fixture
def storage(isolated_db):
    return KeyValueStorage(isolated_db)


@pytest.fixture
def store(storage):
    return BookStore(storage)


@pytest.fixture
def memory_store():
    return BookStore(MemoryStorage())

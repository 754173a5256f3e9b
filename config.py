import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

@dataclass
class Settings:
    # API settings
    api_host: str = os.getenv("API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_key: str = os.getenv("API_KEY", "super-secret-key")

    # Storage settings
    db_file: str = os.getenv("BOOKSHELF_DB_FILE", "bookshelf.db")
    storage_key: str = os.getenv("BOOKSHELF_STORAGE_KEY", "BOOKSHELF_APPS_books")
    legacy_json_file: Optional[str] = os.getenv("BOOKSHELF_LEGACY_JSON")

    # Application settings
    app_name: str = os.getenv("APP_NAME", "Bookshelf")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "False").lower() in ("true", "1", "yes")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()

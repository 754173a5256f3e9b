import subprocess
import sys
import webbrowser
import json
import os
from typing import Optional

from rich.console import Console
from rich.prompt import Confirm, Prompt, IntPrompt
from rich.markup import escape
import typer

from library import BookStore, create_store
from config import settings
from utils.ui_helpers import set_output_mode, render_shelves, print_book, print_stats_result
from utils.validators import InvalidBookInput

APP_NAME = "Bookshelf CLI"

console = Console()


# Store singleton, rebuilt when the configured database file changes
class StoreManager:
    _instance: Optional[BookStore] = None
    _db_file_snapshot: Optional[str] = None

    @classmethod
    def current_db_file(cls) -> str:
        return os.environ.get("BOOKSHELF_DB_FILE") or settings.db_file

    @classmethod
    def get_instance(cls) -> BookStore:
        """Return the shared BookStore, creating it on first use."""
        current_db = cls.current_db_file()
        if cls._instance is None or current_db != cls._db_file_snapshot:
            cls._instance = create_store(current_db)
            cls._db_file_snapshot = current_db
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        cls._instance = None
        cls._db_file_snapshot = None


def _fail_invalid(exc: InvalidBookInput) -> None:
    print(f"Error: {exc}")
    raise typer.Exit(code=1)


def _not_found(book_id: int) -> None:
    print(f"Book with id {book_id} not found.")


# --- Typer CLI app ---
app = typer.Typer(help=APP_NAME)

@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    )
):
    """Global CLI options (e.g. output mode)."""
    if output:
        set_output_mode(output)

@app.command("list")
def cli_list(search: Optional[str] = typer.Option(None, "--search", "-s", help="Only titles containing this text")):
    """Show both shelves."""
    store = StoreManager.get_instance()
    if search is not None:
        store.set_search_keyword(search)
    render_shelves(store.query())

@app.command("add")
def cli_add(
    title: str,
    author: str,
    year: str,
    complete: bool = typer.Option(False, "--complete", "-c", help="Put the book on the finished shelf"),
):
    """Add a book to the shelf."""
    store = StoreManager.get_instance()
    try:
        book = store.add_book({"title": title, "author": author, "year": year, "isComplete": complete})
    except InvalidBookInput as e:
        _fail_invalid(e)
        return
    print(f"Added: {book.title} by {book.author} (id {book.id})")

@app.command("edit")
def cli_edit(
    book_id: int,
    title: Optional[str] = typer.Option(None, "--title", "-t"),
    author: Optional[str] = typer.Option(None, "--author", "-a"),
    year: Optional[str] = typer.Option(None, "--year", "-y"),
    complete: Optional[bool] = typer.Option(None, "--complete/--incomplete"),
):
    """Edit a book. Options left out keep their current value."""
    store = StoreManager.get_instance()
    book = store.find_book(book_id)
    if not book:
        _not_found(book_id)
        return
    payload = {
        "title": book.title if title is None else title,
        "author": book.author if author is None else author,
        "year": book.year if year is None else year,
        "isComplete": book.is_complete if complete is None else complete,
    }
    try:
        updated = store.update_book(book_id, payload)
    except InvalidBookInput as e:
        _fail_invalid(e)
        return
    print(f"Updated: {updated.title} by {updated.author}")

@app.command("toggle")
def cli_toggle(book_id: int):
    """Move a book between the finished and unfinished shelves."""
    store = StoreManager.get_instance()
    book = store.toggle_complete(book_id)
    if not book:
        _not_found(book_id)
        return
    state = "finished" if book.is_complete else "not finished yet"
    print(f"{book.title} is now {state}.")

@app.command("remove")
def cli_remove(book_id: int, yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt")):
    """Delete a book from the shelf."""
    store = StoreManager.get_instance()
    book = store.find_book(book_id)
    if not book:
        _not_found(book_id)
        return
    if not yes and not typer.confirm(f'Delete "{book.title}"?', default=False):
        print("Cancelled.")
        return
    store.delete_book(book_id)
    print(f"Book with id {book_id} has been removed.")

@app.command("find")
def cli_find(book_id: int):
    """Show a single book."""
    store = StoreManager.get_instance()
    book = store.find_book(book_id)
    if not book:
        _not_found(book_id)
        return
    print_book(book)

@app.command("search")
def cli_search(keyword: str = typer.Argument(..., help="Text to look for in titles")):
    """Search titles (case-insensitive) and show matches per shelf."""
    store = StoreManager.get_instance()
    render_shelves(store.query(keyword))

@app.command("stats")
def cli_stats():
    """Show shelf statistics."""
    print_stats_result(StoreManager.get_instance().get_statistics())

@app.command("export")
def cli_export(file: Optional[str] = typer.Option(None, "--file", "-f", help="Write to this file instead of stdout")):
    """Export the shelf as a JSON array."""
    data = StoreManager.get_instance().export_books()
    if file is None:
        print(json.dumps(data, indent=2, ensure_ascii=False))
        return
    with open(file, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    print(f"Exported {len(data)} books to {file}")

@app.command("import")
def cli_import(
    file: str,
    replace: bool = typer.Option(False, "--replace", help="Replace the shelf instead of appending"),
):
    """Import books from a JSON export."""
    if not os.path.exists(file):
        print(f"File not found: {file}")
        raise typer.Exit(code=1)
    try:
        with open(file, "r", encoding="utf-8") as f:
            records = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        print(f"Could not parse {file}: {e}")
        raise typer.Exit(code=1)
    except OSError as e:
        print(f"Could not read {file}: {e}")
        raise typer.Exit(code=1)
    if not isinstance(records, list):
        print(f"{file} must contain a JSON array.")
        raise typer.Exit(code=1)
    try:
        imported = StoreManager.get_instance().import_books(records, replace=replace)
    except InvalidBookInput as e:
        _fail_invalid(e)
        return
    print(f"Imported {len(imported)} books.")

@app.command("serve")
def cli_serve():
    """Start the HTTP API with uvicorn."""
    host = settings.api_host
    port = int(settings.api_port)
    url = f"http://{host}:{port}/docs"
    print(f"Starting API on {url}")
    try:
        webbrowser.open(url)
    except webbrowser.Error:
        pass
    args = [
        sys.executable,
        "-m", "uvicorn",
        "api:app",
        "--host", host,
        "--port", str(port),
    ]
    subprocess.run(args)


# --- Interactive menu (no arguments) ---
def _prompt_book(defaults: Optional[dict] = None) -> dict:
    defaults = defaults or {}
    return {
        "title": Prompt.ask("Title", default=defaults.get("title")),
        "author": Prompt.ask("Author", default=defaults.get("author")),
        "year": Prompt.ask("Year", default=str(defaults["year"]) if "year" in defaults else None),
        "isComplete": Confirm.ask("Finished reading?", default=defaults.get("isComplete", False)),
    }

def interactive_menu() -> None:
    store = StoreManager.get_instance()
    store.subscribe(lambda s: render_shelves(s.query()))
    render_shelves(store.query())

    while True:
        console.print(
            "\n[bold cyan]1[/] Add  [bold cyan]2[/] Edit  [bold cyan]3[/] Toggle  "
            "[bold cyan]4[/] Delete  [bold cyan]5[/] Search  [bold cyan]0[/] Quit"
        )
        choice = Prompt.ask("Choice", choices=["1", "2", "3", "4", "5", "0"], default="0")
        try:
            if choice == "1":
                store.add_book(_prompt_book())
            elif choice == "2":
                book = store.find_book(IntPrompt.ask("Book id"))
                if not book:
                    console.print("[yellow]No book with that id.[/]")
                    continue
                store.update_book(book.id, _prompt_book(book.to_dict()))
            elif choice == "3":
                if not store.toggle_complete(IntPrompt.ask("Book id")):
                    console.print("[yellow]No book with that id.[/]")
            elif choice == "4":
                book = store.find_book(IntPrompt.ask("Book id"))
                if not book:
                    console.print("[yellow]No book with that id.[/]")
                elif Confirm.ask(f'Delete "{escape(book.title)}"?', default=False):
                    store.delete_book(book.id)
            elif choice == "5":
                store.set_search_keyword(Prompt.ask("Title contains", default=""))
            else:
                console.print("[green]Goodbye![/]")
                break
        except InvalidBookInput as e:
            console.print(f"[bold red]{escape(str(e))}[/]")


if __name__ == "__main__":
    if len(sys.argv) > 1:
        app()
    else:
        interactive_menu()

import os
import json
from typing import Any, Dict, List
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "BOOKSHELF_CLI_OUTPUT"

_console = Console()

def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode

def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()

def _book_line(book: Any) -> str:
    return f"[{book.id}] {book.title} - {book.author} ({book.year})"

def _book_table(title: str, books: List[Any]) -> Table:
    table = Table(title=title, show_lines=True, header_style="bold cyan")
    table.add_column("ID", style="magenta", no_wrap=True)
    table.add_column("Title", style="white")
    table.add_column("Author", style="white")
    table.add_column("Year", justify="right")
    for b in books:
        table.add_row(str(b.id), b.title, b.author, str(b.year))
    return table

def render_shelves(shelves: Any) -> None:
    """Print both shelves in the current output mode.
    - plain: one section per shelf, '[id] Title - Author (year)' lines
    - json: {"incomplete": [...], "complete": [...]}
    - rich: one Rich table per shelf
    """
    mode = get_output_mode()

    if mode == "json":
        payload = {
            "incomplete": [b.to_dict() for b in shelves.incomplete],
            "complete": [b.to_dict() for b in shelves.complete],
        }
        print(json.dumps(payload, ensure_ascii=False))
    elif mode == "rich":
        _console.print(_book_table("📖 Not finished yet", shelves.incomplete))
        _console.print(_book_table("✅ Finished", shelves.complete))
    else:
        for heading, books in (("Not finished yet", shelves.incomplete), ("Finished", shelves.complete)):
            print(f"{heading}:")
            if not books:
                print("  (empty)")
            for b in books:
                print(f"  {_book_line(b)}")

def print_book(book: Any) -> None:
    mode = get_output_mode()
    if mode == "json":
        print(json.dumps(book.to_dict(), ensure_ascii=False))
    elif mode == "rich":
        state = "Finished" if book.is_complete else "Not finished yet"
        content = (
            f"[bold]Title:[/] {book.title}\n[bold]Author:[/] {book.author}\n"
            f"[bold]Year:[/] {book.year}\n[bold]Status:[/] {state}"
        )
        _console.print(Panel.fit(content, title=f"📚 Book {book.id}", border_style="blue"))
    else:
        print(f"ID: {book.id}")
        print(f"Title: {book.title}")
        print(f"Author: {book.author}")
        print(f"Year: {book.year}")
        print(f"Complete: {'yes' if book.is_complete else 'no'}")

def print_stats_result(stats: Dict[str, Any]) -> None:
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps(stats, ensure_ascii=False))
    elif mode == "rich":
        content = (
            f"[bold]Total Books:[/] {stats.get('total_books', 0)}\n"
            f"[bold]Finished:[/] {stats.get('complete_books', 0)}\n"
            f"[bold]Not Finished:[/] {stats.get('incomplete_books', 0)}\n"
            f"[bold]Unique Authors:[/] {stats.get('unique_authors', 0)}"
        )
        _console.print(Panel.fit(content, title="📊 Stats", border_style="blue"))
    else:
        print(f"Total Books: {stats.get('total_books', 0)}")
        print(f"Finished: {stats.get('complete_books', 0)}")
        print(f"Not Finished: {stats.get('incomplete_books', 0)}")
        print(f"Unique Authors: {stats.get('unique_authors', 0)}")

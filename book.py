from __future__ import annotations


class Book:
    """A single book on the shelf."""

    def __init__(self, id: int, title: str, author: str, year: int, is_complete: bool = False) -> None:
        self.id = id
        self.title = title.strip()
        self.author = author.strip()
        self.year = year
        self.is_complete = is_complete

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author} ({self.year})"

    def __repr__(self) -> str:  # pragma: no cover
        return f"Book(id={self.id!r}, title={self.title!r}, complete={self.is_complete!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Book):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def to_dict(self) -> dict:
        # "isComplete" keeps the stored array readable by the browser shelf
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "year": self.year,
            "isComplete": self.is_complete,
        }

    def update(self, fields: dict) -> None:
        """Merge already validated fields into this record."""
        self.title = fields["title"]
        self.author = fields["author"]
        self.year = fields["year"]
        self.is_complete = fields["isComplete"]

    @staticmethod
    def from_dict(data: dict) -> "Book":
        if not isinstance(data, dict):
            raise ValueError("Book record must be an object.")
        missing = [k for k in ("id", "title", "author", "year") if k not in data]
        if missing:
            raise ValueError(f"Book record is missing: {', '.join(missing)}")
        if isinstance(data["id"], bool) or not isinstance(data["id"], int):
            raise ValueError(f"Book id must be an integer, got {data['id']!r}")

        # Older exports may carry the snake_case flag
        flag = data.get("isComplete", data.get("is_complete", False))
        return Book(
            id=data["id"],
            title=str(data["title"]),
            author=str(data["author"]),
            year=int(data["year"]),
            is_complete=bool(flag),
        )

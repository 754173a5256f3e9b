import re
from typing import Any, Optional

_LEADING_INT = re.compile(r"^[+-]?\d+")

INVALID_INPUT_MESSAGE = "Please fill in title, author and year correctly."


class InvalidBookInput(ValueError):
    """Raised when a book payload fails validation."""

    def __init__(self, message: str = INVALID_INPUT_MESSAGE) -> None:
        super().__init__(message)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def parse_year(raw: Any) -> Optional[int]:
    """Parse a year like the browser form did: leading digits win, junk after them is ignored.

    "2021" -> 2021, " 1999abc" -> 1999, "12.5" -> 12, "abc" -> None, "" -> None
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    match = _LEADING_INT.match(_as_text(raw))
    if not match:
        return None
    try:
        return int(match.group(0))
    except ValueError:
        # Longer than the interpreter will convert
        return None


class BookInputValidator:
    """Validation and normalization of add/edit payloads."""

    @staticmethod
    def sanitize(payload: dict) -> dict:
        if not isinstance(payload, dict):
            raise InvalidBookInput()
        title = _as_text(payload.get("title"))
        author = _as_text(payload.get("author"))
        year = parse_year(payload.get("year"))
        flag = payload.get("isComplete", payload.get("is_complete", False))

        if not title or not author or year is None:
            raise InvalidBookInput()
        return {"title": title, "author": author, "year": year, "isComplete": bool(flag)}

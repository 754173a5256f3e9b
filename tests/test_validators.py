import pytest

from utils.validators import BookInputValidator, InvalidBookInput, INVALID_INPUT_MESSAGE, parse_year


@pytest.mark.parametrize("raw, expected", [
    ("2021", 2021),
    (" 1999 ", 1999),
    ("1999abc", 1999),
    ("12.5", 12),
    ("-44", -44),
    (2020, 2020),
    ("abc", None),
    ("", None),
    (None, None),
    (True, None),
    ("1" * 5000, None),
])
def test_parse_year(raw, expected):
    assert parse_year(raw) == expected

def test_sanitize_normalizes():
    clean = BookInputValidator.sanitize({"title": " Bumi ", "author": " Tere Liye", "year": "2014", "is_complete": "yes"})
    assert clean == {"title": "Bumi", "author": "Tere Liye", "year": 2014, "isComplete": True}

def test_sanitize_defaults_flag_to_false():
    assert BookInputValidator.sanitize({"title": "T", "author": "A", "year": 1})["isComplete"] is False

@pytest.mark.parametrize("payload", [
    {"title": None, "author": "A", "year": 1},
    {"title": "T", "author": "  ", "year": 1},
    {"title": "T", "author": "A", "year": "year"},
    {},
    None,
    ["T", "A", 1],
])
def test_sanitize_rejects(payload):
    with pytest.raises(InvalidBookInput, match=INVALID_INPUT_MESSAGE):
        BookInputValidator.sanitize(payload)

def test_invalid_input_is_value_error():
    assert issubclass(InvalidBookInput, ValueError)

def test_sanitize_rejects_oversized_year():
    with pytest.raises(InvalidBookInput, match=INVALID_INPUT_MESSAGE):
        BookInputValidator.sanitize({"title": "T", "author": "A", "year": "9" * 5000})

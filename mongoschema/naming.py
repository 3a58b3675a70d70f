"""Field-name to identifier conversion."""

from __future__ import annotations

import re

FORCED_UPPERCASE = frozenset({"id", "url", "api"})
INVALID_FIELD_CHARACTERS = frozenset("!*")

_SEPARATOR_TABLE = str.maketrans({"-": " ", "_": " "})
_CAPS_REGEX = re.compile(r"([A-Z])")
_WORD_REGEX = re.compile(r"[^\W_]+")


def is_valid_field_name(name: str) -> bool:
    """Return True when ``name`` can be turned into a declaration identifier."""

    if not name or INVALID_FIELD_CHARACTERS.intersection(name):
        return False
    return bool(split_words(name))


def split_words(name: str) -> list[str]:
    """Split a field name on dashes, underscores and upper-case letters."""

    spaced = name.translate(_SEPARATOR_TABLE)
    spaced = _CAPS_REGEX.sub(r" \1", spaced)
    return _WORD_REGEX.findall(spaced)


def make_field_name(name: str) -> str:
    """Convert a source field name into an exported identifier.

    >>> make_field_name("user_id")
    'UserID'
    >>> make_field_name("first-name")
    'FirstName'
    """

    parts = []
    for word in split_words(name):
        if word.lower() in FORCED_UPPERCASE:
            parts.append(word.upper())
        else:
            parts.append(word[:1].upper() + word[1:].lower())
    camel = "".join(parts)

    characters = []
    for index, char in enumerate(camel):
        valid = char.isalpha() if index == 0 else char.isalpha() or char.isdigit()
        characters.append(char if valid else "_")
    return "".join(characters)

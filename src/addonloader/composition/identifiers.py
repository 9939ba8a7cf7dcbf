"""Turn package and export names into Python identifiers for generated code."""

from __future__ import annotations

import keyword
import re
import secrets

FALLBACK_LENGTH = 10
FALLBACK_ALPHABET = "abcdefghijk"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def random_identifier(length: int = FALLBACK_LENGTH, alphabet: str = FALLBACK_ALPHABET) -> str:
    return "".join(secrets.choice(alphabet) for _ in range(length))


def _title_case(word: str) -> str:
    return word[:1].upper() + word[1:]


def name_from_package(
    name: str,
    *,
    fallback_length: int = FALLBACK_LENGTH,
    fallback_alphabet: str = FALLBACK_ALPHABET,
) -> str:
    """Return a camel-cased identifier for ``name``.

    ``@acme/volto-slate`` becomes ``acmevoltoSlate``. Names that are empty once
    scope markers, separators and punctuation are stripped get a random
    identifier, so the result is never reproducible for them.
    """
    stripped = _UNSAFE_CHARS.sub("", name) or random_identifier(fallback_length, fallback_alphabet)
    identifier = "".join(
        _title_case(word) if index > 0 else word for index, word in enumerate(stripped.split("-"))
    )
    if not identifier:
        # only hyphens survived stripping
        identifier = random_identifier(fallback_length, fallback_alphabet)
    if identifier[0].isdigit():
        identifier = f"_{identifier}"
    if keyword.iskeyword(identifier):
        identifier = f"{identifier}_"
    return identifier


__all__ = ["FALLBACK_ALPHABET", "FALLBACK_LENGTH", "name_from_package", "random_identifier"]

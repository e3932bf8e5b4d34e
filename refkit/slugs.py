"""Slug derivation for record identifiers."""

import re
import unicodedata
from typing import Optional

# Symbols that carry meaning in names and are spelled out rather than dropped
SYMBOL_WORDS = {
    "&": " and ",
    "@": " at ",
    "%": " percent ",
    "+": " plus ",
}

# Anything but letters, digits, whitespace and hyphens is deleted outright:
# "U.S. Army Corps" -> "us-army-corps", "Site_01/B" -> "site01b"
_DROPPED = re.compile(r"[^a-z0-9\s-]")
_SEPARATORS = re.compile(r"[\s-]+")


def slugify(text: Optional[str]) -> str:
    """Convert text to a URL-safe slug.

    Lower-cases, transliterates accented letters to ASCII, spells out a few
    symbols and deletes all other punctuation. Runs of whitespace and hyphens
    become a single hyphen; leading and trailing hyphens are trimmed.
    ``None`` and blank input give an empty string.

    The result only contains ``[a-z0-9-]`` with no repeated or edge hyphens,
    so ``slugify(slugify(x)) == slugify(x)``.
    """
    if not text:
        return ""

    text = unicodedata.normalize("NFKD", str(text))
    text = text.encode("ascii", "ignore").decode("ascii")

    for symbol, word in SYMBOL_WORDS.items():
        text = text.replace(symbol, word)

    text = _DROPPED.sub("", text.lower())
    text = _SEPARATORS.sub("-", text)
    return text.strip("-")

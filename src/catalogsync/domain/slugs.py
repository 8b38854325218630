"""URL slug helpers."""

from __future__ import annotations

import re
import secrets
import string
import unicodedata

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits

# letters NFKD does not decompose
_SPECIAL_FOLDS = str.maketrans({"đ": "d", "Đ": "d", "ø": "o", "ł": "l", "ß": "ss"})


def fold_text(value: str) -> str:
    """Lower-case ``value`` and strip diacritics."""

    translated = value.translate(_SPECIAL_FOLDS)
    decomposed = unicodedata.normalize("NFKD", translated)
    stripped = "".join(char for char in decomposed if not unicodedata.combining(char))
    return stripped.lower()


def slugify(value: str | None, *, separator: str = "-") -> str:
    """Fold, replace every run of non-alphanumerics with ``separator`` and trim it."""

    if not value:
        return ""
    return _NON_ALNUM.sub(separator, fold_text(value)).strip(separator)


def random_suffix(length: int = 6) -> str:
    return "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(length))


def join_slug(*parts: str | None) -> str:
    """Join the non-empty slug parts with hyphens."""

    return "-".join(part for part in (slugify(part) for part in parts) if part)

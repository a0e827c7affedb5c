import re
import unicodedata

_COMBINING_MARKS = re.compile("[\u0300-\u036f]")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_SLUG = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def generate_slug(text: str) -> str:
    """
    Build a URL-safe slug from a title.

    Diacritics are removed after NFD decomposition, so "Việt Nam" becomes
    "viet-nam". Returns "" when nothing alphanumeric survives.
    """
    if not text or not text.strip():
        return ""

    slug = unicodedata.normalize("NFD", text.lower())
    slug = _COMBINING_MARKS.sub("", slug)
    slug = _NON_ALNUM.sub("-", slug)
    return slug.strip("-")


def is_valid_slug(slug: str) -> bool:
    """Check if slug is valid (lowercase alphanumeric + hyphens)."""
    return bool(_SLUG.fullmatch(slug))

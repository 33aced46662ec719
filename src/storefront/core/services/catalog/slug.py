import re
import unicodedata

_INVALID = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_DASHES = re.compile(r"-+")


def slugify(text: str) -> str:
    """Turn a display name into a URL slug: ``"Calças & Saias"`` -> ``"calcas-saias"``."""
    value = unicodedata.normalize("NFD", text.lower())
    value = "".join(ch for ch in value if not unicodedata.combining(ch))
    value = _INVALID.sub("", value)
    value = _WHITESPACE.sub("-", value.strip())
    value = _DASHES.sub("-", value)
    return value.strip("-")

import re
import string

# Administrative-unit words users tack onto a city name
ADMIN_SUFFIXES = ("city", "district", "tehsil", "division", "div", "town")

_SUFFIX_RE = re.compile(r"\s+(?:%s)$" % "|".join(ADMIN_SUFFIXES), re.IGNORECASE)
_SPACES_RE = re.compile(r"\s+")


def normalize(raw: str) -> str:
    """Reduce a user-entered city to its lookup key.

    "  Lahore City " -> "lahore", "Rahim  Yar Khan District" -> "rahim yar khan".
    Stacked suffixes ("Sukkur City District") are all removed; a bare
    suffix ("City") has nothing in front of it and is kept.
    """
    if not raw:
        return ""
    key = _SPACES_RE.sub(" ", raw.strip().lower())
    while True:
        stripped = _SUFFIX_RE.sub("", key)
        if stripped == key:
            return key
        key = stripped


def guess_carrier_format(key: str) -> str:
    """Best-effort PostEx spelling for a key the store has never seen."""
    return string.capwords(key)

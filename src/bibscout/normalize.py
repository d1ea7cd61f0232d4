"""
Field normalization shared by every source.

Converts the author, venue, title and date shapes the services return
into the canonical strings stored on CanonicalRecord. Nothing here
touches the network.
"""

import re
from typing import Any, Optional

from .models import UNKNOWN_YEAR

STOPWORDS = frozenset({"a", "an", "the"})
FALLBACK_WORD = "paper"
ANONYMOUS = "anon"

# Some sources (DBLP) append "0001"-style counters to disambiguate
# identically named authors and venues.
_NUMERIC_SUFFIX = re.compile(r"\s+\d{1,4}$")
_NON_KEY_CHARS = re.compile(r"[^a-z0-9]+")
_EDGE_PUNCTUATION = re.compile(r"^[^A-Za-z0-9]+|[^A-Za-z0-9]+$")
_YEAR = re.compile(r"\d{4}")


def clean_for_key(value: str) -> str:
    """Lowercase and drop everything outside [a-z0-9]."""
    return _NON_KEY_CHARS.sub("", str(value).lower())


def strip_numeric_suffix(value: str) -> str:
    """Remove a trailing disambiguation counter ("Jianxin Wang 0003")."""
    return _NUMERIC_SUFFIX.sub("", str(value).strip())


def collapse_whitespace(value: str) -> str:
    """Collapse newlines and runs of spaces into single spaces."""
    return " ".join(str(value).split())


def author_name(raw: Any) -> str:
    """
    Render one raw author as a display name.

    Accepts a plain string or a mapping. Mappings are probed in order:
    "text" (DBLP), "#text" (XML-to-JSON converters), "name" (Crossref
    organisations, arXiv), then "family"/"given" (Crossref persons),
    which is rendered "Family, Given".

    Args:
        raw: Author as delivered by a source

    Returns:
        Display name with any numeric disambiguation suffix removed
    """
    if isinstance(raw, dict):
        for field_name in ("text", "#text", "name"):
            if raw.get(field_name):
                return strip_numeric_suffix(collapse_whitespace(raw[field_name]))
        family = collapse_whitespace(raw.get("family") or "")
        given = collapse_whitespace(raw.get("given") or "")
        if family and given:
            return f"{family}, {given}"
        return family or given
    if raw is None:
        return ""
    return strip_numeric_suffix(collapse_whitespace(raw))


def extract_surname(raw: Any) -> str:
    """
    Surname of one author.

    "Wang, Jianxin" -> "Wang" (text before the first comma);
    "Jianxin Wang" -> "Wang" (last whitespace token).

    Returns:
        The surname, never empty for non-empty input; "anon" when
        nothing usable is left
    """
    name = author_name(raw)
    if "," in name:
        surname = name.split(",", 1)[0].strip()
    else:
        tokens = name.split()
        surname = tokens[-1] if tokens else ""
    return surname or name or ANONYMOUS


def canonical_author(raw: Any) -> str:
    """
    Canonical "Surname" or "Surname, Given" form of one author.

    Uses the same surname rule as extract_surname(), so the canonical
    string always leads with the surname the citation key is built from.
    Organisation names (a mapping with only "name") are kept as given.
    """
    name = author_name(raw)
    if _is_organisation(raw):
        return name
    if "," in name:
        surname, given = (part.strip() for part in name.split(",", 1))
        return f"{surname}, {given}" if given else surname
    tokens = name.split()
    if len(tokens) < 2:
        return name
    return f"{tokens[-1]}, {' '.join(tokens[:-1])}"


def _is_organisation(raw: Any) -> bool:
    return (
        isinstance(raw, dict)
        and bool(raw.get("name"))
        and not any(raw.get(k) for k in ("text", "#text", "family", "given"))
    )


def first_significant_word(title: str) -> str:
    """
    First title word that is not "a", "an" or "the".

    Tokens are stripped of leading and trailing punctuation first.
    Returns "paper" when the title is empty or made of stopwords only.
    """
    for token in str(title or "").split():
        word = _EDGE_PUNCTUATION.sub("", token)
        if word and word.lower() not in STOPWORDS:
            return word
    return FALLBACK_WORD


def normalize_venue(raw: Any) -> Optional[str]:
    """Venue string with whitespace collapsed and numeric suffix stripped."""
    if isinstance(raw, (list, tuple)):
        raw = raw[0] if raw else None
    if raw is None:
        return None
    venue = strip_numeric_suffix(collapse_whitespace(raw))
    return venue or None


def normalize_year(raw: Any) -> str:
    """First four-digit run of raw, or "????"."""
    if raw is None:
        return UNKNOWN_YEAR
    match = _YEAR.search(str(raw))
    return match.group(0) if match else UNKNOWN_YEAR

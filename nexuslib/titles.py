"""
Title normalization and matching helpers shared by the aggregator, the merger
and the metadata resolver.
"""
import re

from rapidfuzz.distance import Levenshtein

from nexuslib.constants import EDITION_SUFFIXES, SIMILARITY_THRESHOLD

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_SPACES = re.compile(r"\s+")
_SEARCH_SUFFIX = re.compile(
    r"\s*[:\-–]\s*(Standard|Deluxe|Ultimate|Game of the Year|GOTY|Edition|Remastered|Definitive).*$",
    re.IGNORECASE,
)
_TRADEMARKS = re.compile("[™®©]")


def _ascii_lower(value):
    # str.lower() folds non-ASCII letters too; matching must stay ASCII-only
    return value.translate(_ASCII_LOWER_TABLE)


_ASCII_LOWER_TABLE = str.maketrans(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ", "abcdefghijklmnopqrstuvwxyz"
)


def sanitize_identifier(value):
    """Lowercase ASCII letters and digits only"""
    if not value:
        return ""
    return _NON_ALNUM.sub("", _ascii_lower(str(value)))


def normalize_title(title):
    """
    Reduce a display title to the key used for cross-source matching.

    Lowercases (ASCII only), drops every non-alphanumeric character and strips
    trailing edition suffixes until none remain, so the result is stable when
    fed back in.
    """
    key = sanitize_identifier(title)
    stripped = True
    while stripped and key:
        stripped = False
        for suffix in EDITION_SUFFIXES:
            if key.endswith(suffix) and len(key) > len(suffix):
                key = key[: -len(suffix)]
                stripped = True
    return key


def canonical_key(mechanism, identifier=None, title=None):
    """`<mechanism>_<sanitized identifier or title>`"""
    mechanism_name = getattr(mechanism, "value", mechanism) or "manual"
    base = sanitize_identifier(identifier) or sanitize_identifier(title)
    return f"{_ascii_lower(str(mechanism_name))}_{base}"


def clean_display_title(title):
    """Strip trademark symbols and collapse whitespace from folder-derived titles"""
    if not title:
        return ""
    return _SPACES.sub(" ", _TRADEMARKS.sub("", title)).strip()


def clean_search_title(title):
    """Drop `: Deluxe Edition` style clauses before submitting a search query"""
    if not title:
        return ""
    cleaned = _SEARCH_SUFFIX.sub("", title)
    return _SPACES.sub(" ", cleaned).strip().replace('"', "")


def title_similarity(a, b):
    """1 - levenshtein(a, b) / max(len(a), len(b)) on sanitized strings"""
    a = sanitize_identifier(a)
    b = sanitize_identifier(b)
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    return Levenshtein.normalized_similarity(a, b)


def is_confident_match(query, found, threshold=SIMILARITY_THRESHOLD):
    """Accept a search hit only on containment or similarity above threshold"""
    q = sanitize_identifier(query)
    f = sanitize_identifier(found)
    if not q or not f:
        return False
    if q in f or f in q:
        return True
    return title_similarity(q, f) > threshold


def lookup_by_title(table, title):
    """Exact key match, then containment in either direction"""
    if not title:
        return None
    key = _ascii_lower(title).strip()
    if not key:
        return None
    if key in table:
        return table[key]
    for name, value in table.items():
        if name in key or key in name:
            return value
    return None

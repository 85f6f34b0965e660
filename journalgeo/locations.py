"""Parsing and classification of journal location strings."""
from __future__ import annotations

import re
from typing import Iterable, List

from .models import ClassifiedLocation, JournalEntry, ParsedLocation

_SEPARATORS = re.compile(r"[,;]")
_LEADING_ARTICLE = re.compile(r"^(à|en|de|du|des|le|la|les)\s+", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")
_REGION = re.compile(
    r"^(région|secteur|zone|périphérie|alentours)\s+(de\s+)?(.+)$",
    re.IGNORECASE,
)
_COMPOSITE_MARKER = " et environ"


def _clean_token(token: str) -> str:
    cleaned = _LEADING_ARTICLE.sub("", token)
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()
    if _COMPOSITE_MARKER in cleaned:
        return cleaned
    match = _REGION.match(cleaned)
    if match:
        return f"région de {match.group(3)}"
    return cleaned


def parse_location_string(raw: str) -> List[str]:
    """Split a raw location string into ordered place names.

    Tokens are separated by commas or semicolons. A leading French article or
    preposition is removed and vague regional phrasing ("secteur Amman",
    "alentours de Madaba") is rewritten to "région de <place>".
    """
    tokens = (token.strip() for token in _SEPARATORS.split(raw or ""))
    cleaned = (_clean_token(token) for token in tokens if token)
    return [token for token in cleaned if token]


def parse_journal_entries(entries: Iterable[JournalEntry]) -> List[ParsedLocation]:
    return [
        ParsedLocation(
            original=entry.location,
            parsed=parse_location_string(entry.location),
            day=entry.day,
            journal_entry=entry,
        )
        for entry in entries
    ]


def classify_locations(tokens: List[str], day: int, entry: JournalEntry) -> List[ClassifiedLocation]:
    """Mark the last place of a day as principal and the others as secondaire."""
    last = len(tokens) - 1
    return [
        ClassifiedLocation(
            name=token,
            type="principal" if index == last else "secondaire",
            day=day,
            journal_entry=entry,
        )
        for index, token in enumerate(tokens)
    ]

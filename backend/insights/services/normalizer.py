"""
Status Normalizer - Canonical vocabulary for free-text statuses

Job statuses and interview outcomes arrive as whatever the user typed or
whatever an importer wrote ("Offer Received", "phone screen", "Ghosted").
Every metric in this package reads them through this module instead of
comparing strings ad hoc.

Canonical buckets:
    applied, responded, interviewing, offered, accepted, declined, other

Matching Rules:
    1. Case-insensitive, surrounding whitespace ignored
    2. Exact synonym match wins
    3. Otherwise word-boundary phrase match, buckets checked in table order
    4. Empty input -> caller's default, unrecognised input -> other

Usage:
    classify_status("Offer Received")   # CanonicalStatus.OFFERED
    classify_status(None)               # CanonicalStatus.APPLIED
    classify_outcome(None)              # CanonicalStatus.OTHER
"""

import re
from enum import Enum
from functools import lru_cache
from typing import Dict, Iterable, List, Optional, Pattern, Tuple

from insights.config import StatusSynonyms, get_settings, synonym_table


class CanonicalStatus(str, Enum):
    APPLIED = "applied"
    RESPONDED = "responded"
    INTERVIEWING = "interviewing"
    OFFERED = "offered"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    OTHER = "other"


OFFER_STATUSES = frozenset({CanonicalStatus.OFFERED, CanonicalStatus.ACCEPTED})


class StatusClassifier:
    """
    Compiled synonym table.

    Attributes:
        exact: Lower-cased synonym -> bucket, for the fast path
        patterns: (bucket, compiled word-boundary regex) in priority order
    """

    def __init__(self, synonyms: Optional[StatusSynonyms] = None):
        table = synonym_table(synonyms or StatusSynonyms())
        self.exact: Dict[str, CanonicalStatus] = {}
        self.patterns: List[Tuple[CanonicalStatus, Pattern]] = []

        for bucket_name, phrases in table.items():
            bucket = CanonicalStatus(bucket_name)
            cleaned = [p.strip().lower() for p in phrases if p and p.strip()]
            for phrase in cleaned:
                # First bucket to claim a phrase keeps it
                self.exact.setdefault(phrase, bucket)
            if cleaned:
                # Longest phrases first so "offer received" beats "offer"
                alternation = "|".join(
                    re.escape(p) for p in sorted(cleaned, key=len, reverse=True)
                )
                self.patterns.append((bucket, re.compile(rf"\b(?:{alternation})\b")))

    def classify(
        self,
        raw: Optional[str],
        default: CanonicalStatus = CanonicalStatus.OTHER,
    ) -> CanonicalStatus:
        if raw is None:
            return default
        # Importers write snake_case ("phone_screen", "no_response")
        text = str(raw).strip().lower().replace("_", " ")
        if not text:
            return default

        # Canonical values themselves are always recognised
        if text in CanonicalStatus._value2member_map_:
            return CanonicalStatus(text)

        exact = self.exact.get(text)
        if exact is not None:
            return exact

        for bucket, pattern in self.patterns:
            if pattern.search(text):
                return bucket

        return CanonicalStatus.OTHER


@lru_cache
def get_default_classifier() -> StatusClassifier:
    """Classifier built from the configured synonym table."""
    return StatusClassifier(get_settings().synonyms)


def _classifier(synonyms: Optional[StatusSynonyms]) -> StatusClassifier:
    if synonyms is None:
        return get_default_classifier()
    return StatusClassifier(synonyms)


def classify(
    raw: Optional[str],
    default: CanonicalStatus = CanonicalStatus.OTHER,
    synonyms: Optional[StatusSynonyms] = None,
) -> CanonicalStatus:
    """
    Map a free-text status or outcome onto the canonical vocabulary.

    Total over its input: never raises, never returns None.

    Args:
        raw: Status text as stored upstream (may be None or empty)
        default: Bucket for missing/empty input
        synonyms: Optional override of the configured synonym table

    Returns:
        CanonicalStatus bucket
    """
    return _classifier(synonyms).classify(raw, default)


def classify_status(
    raw: Optional[str], synonyms: Optional[StatusSynonyms] = None
) -> CanonicalStatus:
    """Job application status; a missing status means the job was just applied to."""
    return classify(raw, CanonicalStatus.APPLIED, synonyms)


def classify_outcome(
    raw: Optional[str], synonyms: Optional[StatusSynonyms] = None
) -> CanonicalStatus:
    """Interview outcome; a missing outcome is unknown, not a rejection."""
    return classify(raw, CanonicalStatus.OTHER, synonyms)


def is_offer(raw_status: Optional[str]) -> bool:
    return classify_status(raw_status) in OFFER_STATUSES


def positive_outcomes(values: Optional[Iterable[str]] = None) -> frozenset:
    """Resolve the configured positive-outcome bucket names."""
    names = values if values is not None else get_settings().positive_outcomes
    return frozenset(CanonicalStatus(name) for name in names)


def is_positive_outcome(
    raw_outcome: Optional[str], positive: Optional[frozenset] = None
) -> bool:
    """True when an interview outcome counts as a success (offer or advanced)."""
    buckets = positive if positive is not None else positive_outcomes()
    return classify_outcome(raw_outcome) in buckets

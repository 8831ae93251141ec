"""Merging of generative and deterministic findings."""

import logging
from typing import Iterable, Iterator, List, Optional

from mediguard.exceptions import MalformedCandidate
from mediguard.models import Violation, ViolationSet

logger = logging.getLogger(__name__)


def check_candidate(candidate: Violation, source_text: Optional[str]) -> None:
    """Validate a candidate against the text it was derived from.

    Raises:
        MalformedCandidate: If the flagged text is empty or absent from source_text
    """
    if not candidate.original_text or not candidate.original_text.strip():
        raise MalformedCandidate(candidate.original_text, "Empty flagged text")
    if source_text is not None and candidate.original_text not in source_text:
        raise MalformedCandidate(candidate.original_text)


def _valid(candidates: Iterable[Violation], source_text: Optional[str]) -> Iterator[Violation]:
    for candidate in candidates:
        try:
            check_candidate(candidate, source_text)
        except MalformedCandidate as e:
            logger.debug(f"Dropping {candidate.source} candidate: {e}")
            continue
        yield candidate


def _covered(candidate: Violation, merged: List[Violation]) -> bool:
    """True if an already merged finding contains the candidate's text."""
    needle = candidate.original_text.lower()
    return any(needle in existing.original_text.lower() for existing in merged)


def merge_violations(
    generative: Iterable[Violation],
    deterministic: Iterable[Violation],
    source_text: Optional[str] = None,
) -> ViolationSet:
    """Merge two candidate lists into one de-duplicated ViolationSet.

    Generative candidates are kept as reported. A deterministic candidate is
    appended only when no finding already in the result contains its text
    (case-insensitive). Merging a result with itself changes nothing.

    Args:
        generative: Candidates from the LLM
        deterministic: Candidates from the rule catalog
        source_text: Text both lists were derived from; candidates whose
            text does not occur in it are dropped

    Returns:
        ViolationSet with generative findings first
    """
    merged: List[Violation] = list(_valid(generative, source_text))

    for candidate in _valid(deterministic, source_text):
        if _covered(candidate, merged):
            continue
        merged.append(candidate)

    return ViolationSet(tuple(merged))

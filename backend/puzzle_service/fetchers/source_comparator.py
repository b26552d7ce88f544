"""
Source Comparator

Offline cross-source check: scores already-fetched candidates by
structural completeness and reports where sources disagree.
Not used on the fetch path; the orchestrator always returns the first
successful source.
"""
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union
from loguru import logger

from puzzle_service.fetchers.models import PuzzleRecord, GROUP_COUNT, WORDS_PER_GROUP
from puzzle_service.utils.exceptions import ExhaustedError


# Score weights
COMPLETE_GROUPS_POINTS = 20
COMPLETE_WORDS_POINTS = 20
MULTI_WORD_ENTRY_POINTS = 5
REASONABLE_NAME_POINTS = 5
FULL_GROUP_POINTS = 5
HINTS_POINTS = 10

MAX_REASONABLE_NAME_LENGTH = 100
SIGNIFICANT_SCORE_GAP = 20

Candidate = Union[PuzzleRecord, Mapping[str, Any]]


@dataclass
class SourceScore:
    """Structural quality score for one source's candidate."""
    source: str
    score: int = 0
    issues: list[str] = field(default_factory=list)


@dataclass
class Discrepancy:
    source: str
    issue: str
    details: Any = None


@dataclass
class ComparisonResult:
    """Outcome of comparing candidates from several sources."""
    best_source: str
    best_record: Candidate
    scores: dict[str, SourceScore]
    discrepancies: list[Discrepancy] = field(default_factory=list)
    confidence: str = "single_source"

    def to_dict(self) -> dict[str, Any]:
        best = self.best_record
        return {
            "best_source": self.best_source,
            "best_record": best.to_dict() if isinstance(best, PuzzleRecord) else dict(best),
            "scores": {
                source: {"score": s.score, "issues": s.issues}
                for source, s in self.scores.items()
            },
            "discrepancies": [
                {"source": d.source, "issue": d.issue, "details": d.details}
                for d in self.discrepancies
            ],
            "confidence": self.confidence,
        }


def _as_mapping(candidate: Candidate) -> Mapping[str, Any]:
    if isinstance(candidate, PuzzleRecord):
        return candidate.to_dict()
    return candidate


def _flat_words(data: Mapping[str, Any]) -> list[str]:
    words = data.get("words")
    if isinstance(words, (list, tuple)):
        return list(words)
    return [
        word
        for group in data.get("groups") or []
        if isinstance(group, Mapping)
        for word in group.get("words") or []
    ]


def score_record(candidate: Candidate, source: str = "") -> SourceScore:
    """Score a candidate by completeness, name sanity and hint presence."""
    data = _as_mapping(candidate)
    result = SourceScore(source=source or str(data.get("source") or "unknown"))
    groups = [g for g in data.get("groups") or [] if isinstance(g, Mapping)]

    if len(groups) == GROUP_COUNT:
        result.score += COMPLETE_GROUPS_POINTS
    if len(_flat_words(data)) == GROUP_COUNT * WORDS_PER_GROUP:
        result.score += COMPLETE_WORDS_POINTS

    for index, group in enumerate(groups, start=1):
        words = group.get("words") or []

        # Multi-word entries usually mean the page was parsed cleanly
        if any(isinstance(word, str) and " " in word for word in words):
            result.score += MULTI_WORD_ENTRY_POINTS

        name = group.get("name")
        if name and len(name) < MAX_REASONABLE_NAME_LENGTH:
            result.score += REASONABLE_NAME_POINTS
        else:
            result.issues.append(f"Group {index}: {'name too long' if name else 'missing name'}")

        if len(words) == WORDS_PER_GROUP:
            result.score += FULL_GROUP_POINTS
        else:
            result.issues.append(f"Group {index}: expected {WORDS_PER_GROUP} words, got {len(words)}")

    if any(g.get("hint") and g.get("hint") != g.get("name") for g in groups):
        result.score += HINTS_POINTS

    return result


def compare_records(candidates: Mapping[str, Candidate]) -> ComparisonResult:
    """
    Pick the best-scoring candidate and list disagreements.

    Args:
        candidates: Source name -> candidate, in preference order (ties keep the first)

    Raises:
        ExhaustedError: If there are no candidates
    """
    if not candidates:
        raise ExhaustedError("No source data available for comparison")

    scores = {source: score_record(record, source) for source, record in candidates.items()}

    best_source: Optional[str] = None
    for source, source_score in scores.items():
        if best_source is None or source_score.score > scores[best_source].score:
            best_source = source

    best_score = scores[best_source].score
    best_words = sorted(w.lower() for w in _flat_words(_as_mapping(candidates[best_source])))
    discrepancies: list[Discrepancy] = []

    for source, record in candidates.items():
        if source == best_source:
            continue

        source_score = scores[source]
        if best_score - source_score.score > SIGNIFICANT_SCORE_GAP:
            discrepancies.append(Discrepancy(
                source=source,
                issue=(
                    "Data quality significantly lower "
                    f"(score: {source_score.score} vs {best_score})"
                ),
                details=source_score.issues,
            ))

        words = sorted(w.lower() for w in _flat_words(_as_mapping(record)))
        if words != best_words:
            discrepancies.append(Discrepancy(
                source=source,
                issue="Word list differs from best source",
                details={"best_words": best_words, "current_words": words},
            ))

    confidence = "cross_validated" if len(candidates) > 1 else "single_source"
    logger.info(
        f"Best source: {best_source} (score {best_score}), "
        f"{len(discrepancies)} discrepancies, confidence {confidence}"
    )

    return ComparisonResult(
        best_source=best_source,
        best_record=candidates[best_source],
        scores=scores,
        discrepancies=discrepancies,
        confidence=confidence,
    )

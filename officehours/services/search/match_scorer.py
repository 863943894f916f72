# officehours/services/search/match_scorer.py
"""
Deterministic mentor match scoring.

Scoring Formula (default weights, configurable via ``MatchWeights``):
    total = (
        0.4 × expertise +
        0.3 × industry +
        0.2 × stage +
        0.1 × availability
    )

Design notes:
- An unconstrained factor scores 0.5 (neutral) so it neither helps nor hurts
- Availability has a 0.3 floor: mentors without open slots still rank
- Ranking is a stable descending sort, so ties keep candidate-set order
- Explanations are descriptive only and never affect ranking
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from ...core.config import MatchWeights
from ...core.constants import (
    AVAILABILITY_FLOOR_SCORE,
    EXPLANATION_AVAILABILITY_THRESHOLD,
    EXPLANATION_FACTOR_THRESHOLD,
    GENERIC_MATCH_EXPLANATION,
    HIGHLY_RATED_THRESHOLD,
    NEUTRAL_SCORE,
    PARTIAL_MATCH_SCORE,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchCandidate:
    """Immutable projection of a mentor used only for scoring."""

    id: str
    expertise_tags: Tuple[str, ...] = ()
    industry: Optional[str] = None
    stage: Optional[str] = None
    has_open_availability: bool = False
    rating: Optional[float] = None


@dataclass(frozen=True)
class MatchQuery:
    """Structured filters plus the free-text query that produced them."""

    query_text: str = ""
    expertise: Tuple[str, ...] = ()
    industry: Optional[str] = None
    stage: Optional[str] = None


@dataclass(frozen=True)
class MatchScores:
    """Per-factor sub-scores and the weighted total, all in [0, 1]."""

    expertise: float
    industry: float
    stage: float
    availability: float
    total: float


@dataclass
class RankedMatch:
    """A ranked candidate with its scores and explanation."""

    candidate: MatchCandidate
    scores: MatchScores
    rank: int  # 1-based position
    explanation: List[str] = field(default_factory=list)

    @property
    def candidate_id(self) -> str:
        return self.candidate.id

    @property
    def score(self) -> float:
        return self.scores.total


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def _score_attribute(candidate_value: Optional[str], query_value: Optional[str]) -> float:
    """Shared rule for single-valued attributes (industry, stage)."""
    if not query_value:
        return NEUTRAL_SCORE
    if not candidate_value:
        return 0.0

    candidate_lower = candidate_value.lower()
    query_lower = query_value.lower()
    if candidate_lower == query_lower:
        return 1.0
    if query_lower in candidate_lower or candidate_lower in query_lower:
        return PARTIAL_MATCH_SCORE
    return 0.0


class MatchScorer:
    """
    Pure scoring over immutable candidate snapshots.

    Safe to share across threads: no mutable state beyond the frozen weights.
    """

    def __init__(self, weights: Optional[MatchWeights] = None) -> None:
        self.weights = weights or MatchWeights()

    @staticmethod
    def score_expertise(candidate_tags: Sequence[str], query_terms: Sequence[str]) -> float:
        """
        Fraction of query terms matched by the candidate's tags.

        A term matches when it is a case-insensitive substring of a tag or a
        tag is a substring of it.
        """
        if not query_terms:
            return NEUTRAL_SCORE
        if not candidate_tags:
            return 0.0

        tags_lower = [tag.lower() for tag in candidate_tags]
        terms_lower = [term.lower() for term in query_terms]
        matched = sum(
            1 for term in terms_lower if any(term in tag or tag in term for tag in tags_lower)
        )
        return matched / len(terms_lower)

    @staticmethod
    def score_industry(candidate_industry: Optional[str], query_industry: Optional[str]) -> float:
        return _score_attribute(candidate_industry, query_industry)

    @staticmethod
    def score_stage(candidate_stage: Optional[str], query_stage: Optional[str]) -> float:
        return _score_attribute(candidate_stage, query_stage)

    @staticmethod
    def score_availability(has_open_availability: bool) -> float:
        return 1.0 if has_open_availability else AVAILABILITY_FLOOR_SCORE

    def score(self, candidate: MatchCandidate, query: MatchQuery) -> MatchScores:
        """Score one candidate against ``query``."""
        expertise = _clamp(self.score_expertise(candidate.expertise_tags, query.expertise))
        industry = _clamp(self.score_industry(candidate.industry, query.industry))
        stage = _clamp(self.score_stage(candidate.stage, query.stage))
        availability = _clamp(self.score_availability(candidate.has_open_availability))

        weights = self.weights
        total = (
            weights.expertise * expertise
            + weights.industry * industry
            + weights.stage * stage
            + weights.availability * availability
        )
        return MatchScores(
            expertise=expertise,
            industry=industry,
            stage=stage,
            availability=availability,
            total=_clamp(total),
        )

    def explain(self, candidate: MatchCandidate, scores: MatchScores) -> List[str]:
        """Human-readable reasons for a match; a generic line when no factor stands out."""
        factors: List[str] = []

        if scores.expertise >= EXPLANATION_FACTOR_THRESHOLD and candidate.expertise_tags:
            factors.append(f"Expert in {', '.join(candidate.expertise_tags[:2])}")

        if scores.industry >= EXPLANATION_FACTOR_THRESHOLD and candidate.industry:
            factors.append(f"{candidate.industry} industry experience")

        if scores.stage >= EXPLANATION_FACTOR_THRESHOLD and candidate.stage:
            factors.append(f"Experience with {candidate.stage} stage")

        if scores.availability >= EXPLANATION_AVAILABILITY_THRESHOLD:
            factors.append("Available this week")

        if candidate.rating is not None and candidate.rating >= HIGHLY_RATED_THRESHOLD:
            factors.append(f"Highly rated ({candidate.rating:.1f} stars)")

        return factors or [GENERIC_MATCH_EXPLANATION]

    def rank(self, candidates: Iterable[MatchCandidate], query: MatchQuery) -> List[RankedMatch]:
        """
        Score every candidate, then sort by total descending.

        ``sorted`` is stable, so equal totals keep their input order.
        """
        scored = [(candidate, self.score(candidate, query)) for candidate in candidates]
        ordered = sorted(scored, key=lambda item: item[1].total, reverse=True)
        return [
            RankedMatch(
                candidate=candidate,
                scores=scores,
                rank=position,
                explanation=self.explain(candidate, scores),
            )
            for position, (candidate, scores) in enumerate(ordered, start=1)
        ]

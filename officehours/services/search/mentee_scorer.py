# officehours/services/search/mentee_scorer.py
"""
Mentee match scoring for mentors.

Scoring:
    score = goals the mentor's expertise covers
            + 0.5 when industries match (case-insensitive)
            + 0.5 when stages match (case-insensitive)

A goal is covered when it and an expertise area contain one another,
ignoring case. Mentees scoring zero are dropped from the ranking.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from ...core.constants import (
    GENERIC_MENTEE_EXPLANATION,
    MENTEE_GOAL_MATCH_POINTS,
    MENTEE_PROFILE_MATCH_BONUS,
)


@dataclass(frozen=True)
class MenteeCandidate:
    """Immutable projection of a mentee used only for scoring."""

    id: str
    name: str = ""
    goals: Tuple[str, ...] = ()
    industry: Optional[str] = None
    stage: Optional[str] = None


@dataclass(frozen=True)
class MentorFocus:
    """What the searching mentor offers."""

    expertise: Tuple[str, ...] = ()
    industry: Optional[str] = None
    stage: Optional[str] = None


@dataclass
class RankedMentee:
    candidate: MenteeCandidate
    score: float
    rank: int  # 1-based position
    matched_goals: List[str] = field(default_factory=list)
    explanation: List[str] = field(default_factory=list)

    @property
    def candidate_id(self) -> str:
        return self.candidate.id


def split_goals(goals: Optional[str]) -> Tuple[str, ...]:
    """Comma-separated goals text as trimmed, non-empty entries."""
    if not goals:
        return ()
    return tuple(part.strip() for part in goals.split(",") if part.strip())


def _same_text(left: Optional[str], right: Optional[str]) -> bool:
    return bool(left and right) and left.lower() == right.lower()


class MenteeScorer:
    """Pure scoring over immutable mentee snapshots."""

    @staticmethod
    def matched_goals(goals: Sequence[str], expertise: Sequence[str]) -> List[str]:
        areas = [area.lower() for area in expertise if area]
        matched = []
        for goal in goals:
            goal_lower = goal.lower()
            if any(goal_lower in area or area in goal_lower for area in areas):
                matched.append(goal)
        return matched

    def score(self, candidate: MenteeCandidate, focus: MentorFocus) -> float:
        matched = self.matched_goals(candidate.goals, focus.expertise)
        total = MENTEE_GOAL_MATCH_POINTS * len(matched)
        if _same_text(candidate.industry, focus.industry):
            total += MENTEE_PROFILE_MATCH_BONUS
        if _same_text(candidate.stage, focus.stage):
            total += MENTEE_PROFILE_MATCH_BONUS
        return total

    @staticmethod
    def explain(candidate: MenteeCandidate, matched_goals: Sequence[str]) -> List[str]:
        """Reasons shown to the mentor; a generic line when there are none."""
        reasons: List[str] = []
        if matched_goals:
            reasons.append(f"Looking for help with {matched_goals[0]}")
        if candidate.stage:
            reasons.append(f"At {candidate.stage} stage")
        if candidate.industry:
            reasons.append(f"In {candidate.industry} industry")
        return reasons or [GENERIC_MENTEE_EXPLANATION]

    def rank(
        self, candidates: Iterable[MenteeCandidate], focus: MentorFocus
    ) -> List[RankedMentee]:
        """Score, drop zero scores, then stable-sort by score descending."""
        scored = [(candidate, self.score(candidate, focus)) for candidate in candidates]
        ordered = sorted(
            (item for item in scored if item[1] > 0), key=lambda item: item[1], reverse=True
        )
        ranked = []
        for position, (candidate, score) in enumerate(ordered, start=1):
            matched = self.matched_goals(candidate.goals, focus.expertise)
            ranked.append(
                RankedMentee(
                    candidate=candidate,
                    score=score,
                    rank=position,
                    matched_goals=matched,
                    explanation=self.explain(candidate, matched),
                )
            )
        return ranked

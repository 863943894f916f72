"""Mentor and mentee matching: deterministic scoring and ranking."""

from .match_scorer import MatchCandidate, MatchQuery, MatchScorer, MatchScores, RankedMatch
from .match_service import MatchService
from .mentee_match_service import MenteeMatchService
from .mentee_scorer import MenteeCandidate, MenteeScorer, MentorFocus, RankedMentee

__all__ = [
    "MatchCandidate",
    "MatchQuery",
    "MatchScorer",
    "MatchScores",
    "MatchService",
    "MenteeCandidate",
    "MenteeMatchService",
    "MenteeScorer",
    "MentorFocus",
    "RankedMatch",
    "RankedMentee",
]

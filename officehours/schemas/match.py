# officehours/schemas/match.py
"""Schemas for mentor and mentee matching."""

from typing import List, Optional

from pydantic import Field, field_validator

from ..core.enums import MenteeInteractionFilter, PastInteractionFilter
from ._strict_base import StrictModel, StrictRequestModel


class MatchFilters(StrictRequestModel):
    """Structured filters that drive scoring."""

    expertise: List[str] = Field(default_factory=list)
    industry: Optional[str] = None
    stage: Optional[str] = None

    @field_validator("expertise")
    @classmethod
    def drop_blank_terms(cls, v: List[str]) -> List[str]:
        return [term.strip() for term in v if term and term.strip()]

    @field_validator("industry", "stage")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return v.strip() or None


class MatchRequest(StrictRequestModel):
    """
    Find mentors for a mentee.

    ``query_text`` is recorded for analytics; ranking uses ``filters``.
    ``past_interaction`` requires ``mentee_id``.
    """

    query_text: str = Field("", max_length=500)
    filters: MatchFilters = Field(default_factory=MatchFilters)
    mentee_id: Optional[str] = None
    past_interaction: Optional[PastInteractionFilter] = None
    limit: Optional[int] = Field(None, ge=1, le=500)


class MatchScoresResponse(StrictModel):
    expertise: float
    industry: float
    stage: float
    availability: float
    total: float


class MatchResultResponse(StrictModel):
    candidate_id: str
    score: float
    scores: MatchScoresResponse
    explanation: List[str]


class MatchResponse(StrictModel):
    results: List[MatchResultResponse]
    total_candidates: int


class MenteeMatchRequest(StrictRequestModel):
    """Find mentees whose goals a mentor can help with."""

    mentor_id: str = Field(..., description="Mentor searching for mentees")
    query_text: str = Field("", max_length=500)
    past_interaction: MenteeInteractionFilter = MenteeInteractionFilter.ALL
    limit: Optional[int] = Field(None, ge=1, le=500)


class MenteeMatchResultResponse(StrictModel):
    candidate_id: str
    name: str
    score: float
    matched_goals: List[str]
    explanation: List[str]


class MenteeMatchResponse(StrictModel):
    results: List[MenteeMatchResultResponse]
    total_candidates: int

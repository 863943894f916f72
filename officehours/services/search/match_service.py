# officehours/services/search/match_service.py
"""
Match service: builds candidate snapshots from the database and ranks them.
"""

from datetime import datetime, timezone
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ...core.config import settings
from ...core.enums import PastInteractionFilter
from ...core.exceptions import NotFoundException, ValidationException
from ...repositories import RepositoryFactory
from ...schemas.match import MatchRequest
from ..base import BaseService
from .match_scorer import MatchCandidate, MatchQuery, MatchScorer, RankedMatch

logger = logging.getLogger(__name__)


class MatchService(BaseService):
    """Rank active mentors for a mentee's query."""

    def __init__(self, db: Session, scorer: Optional[MatchScorer] = None):
        super().__init__(db)
        self.scorer = scorer or MatchScorer(settings.match_weights)
        self.mentor_repository = RepositoryFactory.create_mentor_repository(db)
        self.availability_repository = RepositoryFactory.create_availability_repository(db)
        self.session_repository = RepositoryFactory.create_office_session_repository(db)

    def load_candidates(self, now: Optional[datetime] = None) -> List[MatchCandidate]:
        """Snapshot every active mentor, in stable creation order."""
        mentors = self.mentor_repository.list_active_mentors()
        open_ids = self.availability_repository.get_mentor_ids_with_upcoming_availability(
            [mentor.id for mentor in mentors], now or datetime.now(timezone.utc)
        )
        return [
            MatchCandidate(
                id=mentor.id,
                expertise_tags=tuple(mentor.expertise_tags),
                industry=mentor.industry,
                stage=mentor.stage,
                has_open_availability=mentor.id in open_ids,
                rating=mentor.rating,
            )
            for mentor in mentors
        ]

    def _apply_past_interactions(
        self,
        candidates: List[MatchCandidate],
        mentee_id: Optional[str],
        past_interaction: Optional[PastInteractionFilter],
    ) -> List[MatchCandidate]:
        if past_interaction is None:
            return candidates
        if not mentee_id:
            raise ValidationException(
                "mentee_id is required when filtering by past interactions",
                code="MENTEE_REQUIRED",
            )
        if self.mentor_repository.get_mentee(mentee_id) is None:
            raise NotFoundException("Mentee not found", code="MENTEE_NOT_FOUND")

        booked = self.session_repository.get_mentor_ids_booked_by_mentee(mentee_id)
        if past_interaction == PastInteractionFilter.PREVIOUSLY_BOOKED:
            return [candidate for candidate in candidates if candidate.id in booked]
        return [candidate for candidate in candidates if candidate.id not in booked]

    @BaseService.measure_operation("find_matches")
    def find_matches(self, request: MatchRequest) -> Dict[str, Any]:
        """
        Rank active mentors for ``request``.

        Returns:
            ``{"results": [...], "total_candidates": n}``. Each result is a
            ``{candidate_id, score, scores, explanation}`` dict, best first,
            capped at ``request.limit`` (or ``match_result_limit``).
        """
        query = MatchQuery(
            query_text=request.query_text,
            expertise=tuple(request.filters.expertise),
            industry=request.filters.industry,
            stage=request.filters.stage,
        )
        candidates = self._apply_past_interactions(
            self.load_candidates(), request.mentee_id, request.past_interaction
        )
        ranked = self.scorer.rank(candidates, query)
        limit = request.limit or settings.match_result_limit

        self.log_operation(
            "find_matches",
            query_text=request.query_text,
            candidate_count=len(candidates),
            returned=min(limit, len(ranked)),
        )
        return {
            "results": [self._to_result(match) for match in ranked[:limit]],
            "total_candidates": len(candidates),
        }

    @staticmethod
    def _to_result(match: RankedMatch) -> Dict[str, Any]:
        scores = match.scores
        return {
            "candidate_id": match.candidate_id,
            "score": scores.total,
            "scores": {
                "expertise": scores.expertise,
                "industry": scores.industry,
                "stage": scores.stage,
                "availability": scores.availability,
                "total": scores.total,
            },
            "explanation": match.explanation,
        }

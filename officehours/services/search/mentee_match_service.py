# officehours/services/search/mentee_match_service.py
"""
Mentee match service: ranks mentees whose goals a mentor can help with.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ...core.config import settings
from ...core.enums import MenteeInteractionFilter
from ...core.exceptions import NotFoundException
from ...models.mentor import MentorProfile
from ...repositories import RepositoryFactory
from ...schemas.match import MenteeMatchRequest
from ..base import BaseService
from .mentee_scorer import MenteeCandidate, MenteeScorer, MentorFocus, RankedMentee, split_goals

logger = logging.getLogger(__name__)


class MenteeMatchService(BaseService):
    """Rank mentees for a mentor."""

    def __init__(self, db: Session, scorer: Optional[MenteeScorer] = None):
        super().__init__(db)
        self.scorer = scorer or MenteeScorer()
        self.mentor_repository = RepositoryFactory.create_mentor_repository(db)
        self.session_repository = RepositoryFactory.create_office_session_repository(db)

    def load_candidates(
        self, mentor_id: str, past_interaction: MenteeInteractionFilter
    ) -> List[MenteeCandidate]:
        """Snapshot mentees in creation order, narrowed by booking history with the mentor."""
        mentees = self.mentor_repository.list_mentees()
        if past_interaction != MenteeInteractionFilter.ALL:
            booked = self.session_repository.get_mentee_ids_booked_with_mentor(mentor_id)
            keep_booked = past_interaction == MenteeInteractionFilter.PREVIOUSLY_BOOKED
            mentees = [mentee for mentee in mentees if (mentee.id in booked) == keep_booked]
        return [
            MenteeCandidate(
                id=mentee.id,
                name=mentee.display_name,
                goals=split_goals(mentee.goals),
                industry=mentee.industry,
                stage=mentee.stage,
            )
            for mentee in mentees
        ]

    @staticmethod
    def _focus(mentor: MentorProfile) -> MentorFocus:
        return MentorFocus(
            expertise=tuple(mentor.expertise_tags),
            industry=mentor.industry,
            stage=mentor.stage,
        )

    @BaseService.measure_operation("find_mentees")
    def find_mentees(self, request: MenteeMatchRequest) -> Dict[str, Any]:
        """
        Rank mentees for ``request.mentor_id``.

        Raises:
            NotFoundException: unknown or inactive mentor
        """
        mentor = self.mentor_repository.get_active_mentor(request.mentor_id)
        if mentor is None:
            raise NotFoundException("Mentor not found", code="MENTOR_NOT_FOUND")

        candidates = self.load_candidates(mentor.id, request.past_interaction)
        ranked = self.scorer.rank(candidates, self._focus(mentor))
        limit = request.limit or settings.match_result_limit

        self.log_operation(
            "find_mentees",
            mentor_id=mentor.id,
            query_text=request.query_text,
            candidate_count=len(candidates),
            returned=min(limit, len(ranked)),
        )
        return {
            "results": [self._to_result(match) for match in ranked[:limit]],
            "total_candidates": len(candidates),
        }

    @staticmethod
    def _to_result(match: RankedMentee) -> Dict[str, Any]:
        return {
            "candidate_id": match.candidate_id,
            "name": match.candidate.name,
            "score": match.score,
            "matched_goals": match.matched_goals,
            "explanation": match.explanation,
        }

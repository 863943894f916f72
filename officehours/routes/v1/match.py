# officehours/routes/v1/match.py
"""
Matching routes - API v1

Endpoints:
    POST /         - Rank mentors for a query and structured filters
    POST /mentees  - Rank mentees whose goals a mentor can help with
"""

import asyncio
import logging

from fastapi import APIRouter, Body, Depends

from ...api.dependencies import get_match_service, get_mentee_match_service
from ...core.exceptions import DomainException
from ...errors import handle_domain_exception
from ...schemas.match import (
    MatchRequest,
    MatchResponse,
    MenteeMatchRequest,
    MenteeMatchResponse,
)
from ...services.search.match_service import MatchService
from ...services.search.mentee_match_service import MenteeMatchService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["match-v1"])


@router.post("", response_model=MatchResponse)
async def find_matches(
    request: MatchRequest = Body(...),
    match_service: MatchService = Depends(get_match_service),
) -> MatchResponse:
    """Return mentors ranked by match score, best first, with explanations."""
    try:
        result = await asyncio.to_thread(match_service.find_matches, request)
        return MatchResponse.model_validate(result)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/mentees", response_model=MenteeMatchResponse)
async def find_mentees(
    request: MenteeMatchRequest = Body(...),
    mentee_match_service: MenteeMatchService = Depends(get_mentee_match_service),
) -> MenteeMatchResponse:
    """Return mentees with at least one matching goal, industry or stage, best first."""
    try:
        result = await asyncio.to_thread(mentee_match_service.find_mentees, request)
        return MenteeMatchResponse.model_validate(result)
    except DomainException as e:
        handle_domain_exception(e)

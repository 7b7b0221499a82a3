"""
Match runtime: status + score updates.
When a match becomes completed, MatchCompleted is published and knockout
progression may create the next round; those matches are returned with the update.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlmodel import Session

from draw_engine.database import get_session
from draw_engine.routes.draw import MatchResponse
from draw_engine.services.result_recorder import (
    InvalidScore,
    InvalidStatusTransition,
    InvalidWinner,
    MatchNotFound,
    MatchResultError,
    ResultLocked,
    get_match,
    update_match_result,
)

router = APIRouter()

_STATUS_BY_ERROR = {
    MatchNotFound: 404,
    InvalidStatusTransition: 422,
    InvalidScore: 422,
    InvalidWinner: 422,
    ResultLocked: 409,
}


def _raise_result_http_error(exc: MatchResultError) -> None:
    status_code = _STATUS_BY_ERROR.get(type(exc), 400)
    raise HTTPException(status_code=status_code, detail={"code": exc.code, "message": str(exc)})


class MatchResultUpdate(BaseModel):
    score_a: Optional[int] = Field(default=None, ge=0)
    score_b: Optional[int] = Field(default=None, ge=0)
    status: Optional[str] = None
    winner_team_id: Optional[int] = None  # manual override; only valid on completed matches


class MatchResultUpdateResponse(BaseModel):
    match: MatchResponse
    completed_now: bool = False
    next_round: List[MatchResponse] = []


@router.get("/matches/{match_id}", response_model=MatchResponse)
def read_match(match_id: int, session: Session = Depends(get_session)):
    """Get a single match"""
    try:
        return get_match(session, match_id)
    except MatchResultError as e:
        _raise_result_http_error(e)


@router.patch("/matches/{match_id}/result", response_model=MatchResultUpdateResponse)
def update_result(
    match_id: int,
    payload: MatchResultUpdate,
    session: Session = Depends(get_session),
) -> MatchResultUpdateResponse:
    """Update score/status/winner. Completing the last match of a knockout round creates the next round."""
    try:
        outcome = update_match_result(
            session,
            match_id,
            score_a=payload.score_a,
            score_b=payload.score_b,
            status=payload.status,
            winner_team_id=payload.winner_team_id,
        )
    except MatchResultError as e:
        _raise_result_http_error(e)

    return MatchResultUpdateResponse(
        match=MatchResponse.model_validate(outcome.match),
        completed_now=outcome.completed_now,
        next_round=[MatchResponse.model_validate(m) for m in outcome.next_round],
    )

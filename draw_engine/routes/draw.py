"""
Draw API: generate / clear / list the draw and drive knockout progression manually.
Draw generation is one-time; clearing is the only way to regenerate.
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlmodel import Session

from draw_engine.database import get_session
from draw_engine.services.bracket_progression import advance_round, get_bracket_status
from draw_engine.services.draw_service import (
    DrawAlreadyExists,
    DrawError,
    InsufficientTeams,
    NotAnEliminationDraw,
    TournamentNotFound,
    clear_draw,
    generate_draw,
    get_draw,
    list_matches,
)

router = APIRouter()

_STATUS_BY_ERROR = {
    TournamentNotFound: 404,
    InsufficientTeams: 422,
    NotAnEliminationDraw: 422,
    DrawAlreadyExists: 409,
}


def raise_draw_http_error(exc: DrawError) -> None:
    status_code = _STATUS_BY_ERROR.get(type(exc), 400)
    raise HTTPException(status_code=status_code, detail={"code": exc.code, "message": str(exc)})


# ============================================================================
# Request/Response Models
# ============================================================================


class GenerateDrawRequest(BaseModel):
    format: Optional[str] = None  # falls back to the tournament's declared format
    pool_count: Optional[int] = Field(default=None, ge=1)
    match_duration_minutes: Optional[int] = Field(default=None, gt=0)


class MatchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tournament_id: int
    team_a_id: int
    team_b_id: int
    round_number: int
    round_name: str
    pool: Optional[int] = None
    bracket_position: Optional[int] = None
    match_number: int
    start_time: datetime
    end_time: datetime
    field_name: str
    status: str
    score_a: int
    score_b: int
    winner_team_id: Optional[int] = None
    parent_match_a_id: Optional[int] = None
    parent_match_b_id: Optional[int] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class GenerateDrawResponse(BaseModel):
    tournament_id: int
    format: str
    match_count: int
    matches: List[MatchResponse]


class ClearDrawResponse(BaseModel):
    tournament_id: int
    deleted_count: int


class RoundStatus(BaseModel):
    round_number: int
    round_name: str
    match_count: int
    completed_count: int
    complete: bool


class BracketStatusResponse(BaseModel):
    tournament_id: int
    format: Optional[str] = None
    rounds: List[RoundStatus]
    champion_team_id: Optional[int] = None
    stalled: bool = False


class AdvanceRoundResponse(BaseModel):
    tournament_id: int
    completed_round: int
    next_round: List[MatchResponse]


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/tournaments/{tournament_id}/draw", response_model=GenerateDrawResponse, status_code=201)
def create_draw(
    tournament_id: int,
    request: Optional[GenerateDrawRequest] = None,
    session: Session = Depends(get_session),
) -> GenerateDrawResponse:
    """Generate the tournament's draw. 409 if a draw already exists."""
    request = request or GenerateDrawRequest()
    try:
        matches = generate_draw(
            session,
            tournament_id,
            fmt=request.format,
            pool_count=request.pool_count,
            match_duration_minutes=request.match_duration_minutes,
        )
    except DrawError as e:
        raise_draw_http_error(e)

    draw = get_draw(session, tournament_id)
    return GenerateDrawResponse(
        tournament_id=tournament_id,
        format=draw.format,
        match_count=len(matches),
        matches=[MatchResponse.model_validate(m) for m in matches],
    )


@router.delete("/tournaments/{tournament_id}/draw", response_model=ClearDrawResponse)
def delete_draw(tournament_id: int, session: Session = Depends(get_session)) -> ClearDrawResponse:
    """Delete all matches for the tournament so the draw can be regenerated."""
    try:
        deleted = clear_draw(session, tournament_id)
    except DrawError as e:
        raise_draw_http_error(e)
    return ClearDrawResponse(tournament_id=tournament_id, deleted_count=deleted)


@router.get("/tournaments/{tournament_id}/matches", response_model=List[MatchResponse])
def get_matches(tournament_id: int, session: Session = Depends(get_session)):
    """List matches. Stable order: round, bracket_position, start_time."""
    try:
        return list_matches(session, tournament_id)
    except DrawError as e:
        raise_draw_http_error(e)


@router.get("/tournaments/{tournament_id}/bracket", response_model=BracketStatusResponse)
def get_bracket(tournament_id: int, session: Session = Depends(get_session)) -> BracketStatusResponse:
    """Per-round progress, champion (if decided) and stalled flag."""
    try:
        status = get_bracket_status(session, tournament_id)
    except DrawError as e:
        raise_draw_http_error(e)
    return BracketStatusResponse(tournament_id=tournament_id, **status)


@router.post(
    "/tournaments/{tournament_id}/rounds/{round_number}/advance",
    response_model=AdvanceRoundResponse,
)
def advance_bracket_round(
    tournament_id: int,
    round_number: int,
    session: Session = Depends(get_session),
) -> AdvanceRoundResponse:
    """Manually run progression for a completed knockout round (repair path). Idempotent."""
    try:
        next_round = advance_round(session, tournament_id, round_number)
    except DrawError as e:
        raise_draw_http_error(e)
    return AdvanceRoundResponse(
        tournament_id=tournament_id,
        completed_round=round_number,
        next_round=[MatchResponse.model_validate(m) for m in next_round],
    )

"""
Team registration API Routes
Teams are the roster the draw is generated from; membership freezes once a draw exists.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from draw_engine.database import get_session
from draw_engine.models.team import Team
from draw_engine.models.tournament import Tournament
from draw_engine.services.draw_service import draw_exists, get_registered_teams

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class TeamCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    seed: Optional[int] = Field(default=None, ge=1)


class TeamResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tournament_id: int
    name: str
    seed: Optional[int] = None
    created_at: datetime


def _get_tournament_or_404(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return tournament


def _ensure_roster_open(session: Session, tournament_id: int) -> None:
    if draw_exists(session, tournament_id):
        raise HTTPException(
            status_code=409,
            detail="Draw already generated for this tournament; clear the draw before changing teams",
        )


# ============================================================================
# Team Endpoints
# ============================================================================


@router.get("/tournaments/{tournament_id}/teams", response_model=List[TeamResponse])
def get_teams(tournament_id: int, session: Session = Depends(get_session)):
    """
    Get all teams registered for a tournament, in draw order:
    1. seed ascending (nulls last)
    2. registration order
    """
    _get_tournament_or_404(session, tournament_id)
    return get_registered_teams(session, tournament_id)


@router.post("/tournaments/{tournament_id}/teams", response_model=TeamResponse, status_code=201)
def register_team(tournament_id: int, request: TeamCreateRequest, session: Session = Depends(get_session)):
    """
    Register a team for a tournament.

    Constraints:
    - (tournament_id, name) must be unique
    - rejected once a draw exists
    """
    _get_tournament_or_404(session, tournament_id)
    _ensure_roster_open(session, tournament_id)

    team = Team(tournament_id=tournament_id, name=request.name.strip(), seed=request.seed)
    try:
        session.add(team)
        session.commit()
        session.refresh(team)
        return team
    except IntegrityError:
        session.rollback()
        raise HTTPException(
            status_code=409, detail=f"Team with name '{request.name}' already exists for this tournament"
        )


@router.delete("/tournaments/{tournament_id}/teams/{team_id}", status_code=204)
def delete_team(tournament_id: int, team_id: int, session: Session = Depends(get_session)):
    """Withdraw a team. Rejected once a draw exists."""
    team = session.get(Team, team_id)
    if not team or team.tournament_id != tournament_id:
        raise HTTPException(status_code=404, detail="Team not found")
    _ensure_roster_open(session, tournament_id)

    session.delete(team)
    session.commit()
    return None

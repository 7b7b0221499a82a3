"""
Draw bookkeeping rows.

TournamentDraw marks that a draw exists (unique per tournament) and owns the
per-tournament match_number sequence. BracketRound marks that a round's matches
were created (unique per tournament + round), so concurrent writers of the same
round collide on the constraint instead of inserting twice.
"""
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from draw_engine.models.tournament import Tournament


class TournamentDraw(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("tournament_id", name="uq_tournament_draw"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id")
    format: str
    pool_count: Optional[int] = Field(default=None)
    team_count: int
    match_duration_minutes: int
    next_match_number: int = Field(default=1)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    tournament: "Tournament" = Relationship(back_populates="draw")


class BracketRound(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("tournament_id", "round_number", name="uq_tournament_round"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    round_number: int
    round_name: str
    match_count: int
    created_at: datetime = Field(default_factory=datetime.utcnow)

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from draw_engine.models.team import Team
    from draw_engine.models.tournament import Tournament

STATUS_SCHEDULED = "scheduled"
STATUS_ONGOING = "ongoing"
STATUS_COMPLETED = "completed"

MATCH_STATUSES = (STATUS_SCHEDULED, STATUS_ONGOING, STATUS_COMPLETED)


class Match(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("tournament_id", "match_number", name="uq_tournament_match_number"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)

    # Side order is arbitrary, not a seeding rank
    team_a_id: int = Field(foreign_key="team.id")
    team_b_id: int = Field(foreign_key="team.id")

    round_number: int = Field(index=True)
    round_name: str
    pool: Optional[int] = Field(default=None)
    bracket_position: Optional[int] = Field(default=None)  # 1-based, left to right within the round
    match_number: int

    start_time: datetime
    end_time: datetime
    field_name: str

    status: str = Field(default=STATUS_SCHEDULED)  # "scheduled" | "ongoing" | "completed"
    score_a: int = Field(default=0)
    score_b: int = Field(default=0)
    winner_team_id: Optional[int] = Field(default=None, foreign_key="team.id")  # null = tie or undecided

    # Elimination rounds >= 2: the two matches whose winners fill team_a / team_b
    parent_match_a_id: Optional[int] = Field(default=None, foreign_key="match.id")
    parent_match_b_id: Optional[int] = Field(default=None, foreign_key="match.id")

    started_at: Optional[datetime] = Field(default=None)
    completed_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="matches")
    team_a: "Team" = Relationship(
        back_populates="matches_as_team_a", sa_relationship_kwargs={"foreign_keys": "Match.team_a_id"}
    )
    team_b: "Team" = Relationship(
        back_populates="matches_as_team_b", sa_relationship_kwargs={"foreign_keys": "Match.team_b_id"}
    )

from datetime import date, datetime
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from draw_engine.models.draw import TournamentDraw
    from draw_engine.models.match import Match
    from draw_engine.models.team import Team

FORMAT_ROUND_ROBIN = "round-robin"
FORMAT_POOL_PLAY = "pool-play"
FORMAT_SINGLE_ELIMINATION = "single-elimination"


class Tournament(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    location: Optional[str] = None
    start_date: date
    end_date: date
    format: str = Field(default=FORMAT_ROUND_ROBIN)  # "round-robin" | "pool-play" | "single-elimination"
    pool_count: Optional[int] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationships
    teams: List["Team"] = Relationship(back_populates="tournament")
    matches: List["Match"] = Relationship(back_populates="tournament")
    draw: Optional["TournamentDraw"] = Relationship(
        back_populates="tournament", sa_relationship_kwargs={"uselist": False}
    )

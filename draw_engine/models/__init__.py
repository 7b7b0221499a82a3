from draw_engine.models.draw import BracketRound, TournamentDraw
from draw_engine.models.match import Match
from draw_engine.models.team import Team
from draw_engine.models.tournament import Tournament

__all__ = [
    "Tournament",
    "Team",
    "Match",
    "TournamentDraw",
    "BracketRound",
]

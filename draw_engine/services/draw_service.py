"""
Draw Service — one-time draw generation for a tournament.

generate_draw() reads the registered teams, runs the pairing generator and the
slot allocator, and writes the draw marker, one BracketRound marker per round
and every match in a single commit. The unique draw marker is what serializes
concurrent generation requests: the loser of the race hits IntegrityError and
is reported as DrawAlreadyExists with nothing written.

clear_draw() is the only way back to an empty tournament.
"""
import logging
import random
from datetime import datetime, time, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, func, select

from draw_engine.config import DEFAULT_MATCH_DURATION_MINUTES
from draw_engine.models.draw import BracketRound, TournamentDraw
from draw_engine.models.match import STATUS_SCHEDULED, Match
from draw_engine.models.team import Team
from draw_engine.models.tournament import FORMAT_POOL_PLAY, Tournament
from draw_engine.services.pairing_generator import generate_pairings, normalize_format
from draw_engine.services.slot_allocator import ScheduledPairing, schedule_pairings

logger = logging.getLogger(__name__)

MIN_TEAMS = 2


class DrawError(Exception):
    """Precondition failure for a draw operation. Nothing was written."""

    code = "DRAW_ERROR"


class TournamentNotFound(DrawError):
    code = "TOURNAMENT_NOT_FOUND"

    def __init__(self, tournament_id: int):
        super().__init__(f"Tournament {tournament_id} not found")
        self.tournament_id = tournament_id


class InsufficientTeams(DrawError):
    code = "INSUFFICIENT_TEAMS"

    def __init__(self, tournament_id: int, team_count: int):
        super().__init__(
            f"At least {MIN_TEAMS} teams are required to generate a draw "
            f"(tournament {tournament_id} has {team_count})"
        )
        self.tournament_id = tournament_id
        self.team_count = team_count


class DrawAlreadyExists(DrawError):
    code = "DRAW_ALREADY_EXISTS"

    def __init__(self, tournament_id: int, existing_match_count: int = 0):
        super().__init__(
            f"A draw already exists for tournament {tournament_id}; clear it before generating again"
        )
        self.tournament_id = tournament_id
        self.existing_match_count = existing_match_count


class NotAnEliminationDraw(DrawError):
    code = "NOT_ELIMINATION_DRAW"

    def __init__(self, tournament_id: int):
        super().__init__(f"Tournament {tournament_id} has no single-elimination draw to advance")
        self.tournament_id = tournament_id


# ============================================================================
# Collaborator contracts
# ============================================================================


def get_tournament(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise TournamentNotFound(tournament_id)
    return tournament


def get_registered_teams(session: Session, tournament_id: int) -> List[Team]:
    """
    Teams in stable draw order:
    1. seed ascending (nulls last)
    2. id ascending (registration order)
    """
    teams = session.exec(select(Team).where(Team.tournament_id == tournament_id)).all()

    def sort_key(team: Team):
        return ((team.seed is None, team.seed if team.seed is not None else 0), team.id)

    return sorted(teams, key=sort_key)


def get_registered_team_ids(session: Session, tournament_id: int) -> List[int]:
    return [team.id for team in get_registered_teams(session, tournament_id)]


def get_tournament_window(tournament: Tournament) -> Tuple[datetime, datetime]:
    """[start_date 00:00, day after end_date 00:00); every calendar day of the event is usable."""
    return (
        datetime.combine(tournament.start_date, time.min),
        datetime.combine(tournament.end_date + timedelta(days=1), time.min),
    )


def count_matches(session: Session, tournament_id: int) -> int:
    return session.exec(
        select(func.count()).select_from(Match).where(Match.tournament_id == tournament_id)
    ).one()


def get_draw(session: Session, tournament_id: int) -> Optional[TournamentDraw]:
    return session.exec(select(TournamentDraw).where(TournamentDraw.tournament_id == tournament_id)).first()


def draw_exists(session: Session, tournament_id: int) -> bool:
    return get_draw(session, tournament_id) is not None or count_matches(session, tournament_id) > 0


# ============================================================================
# Match construction (shared with bracket progression)
# ============================================================================


def build_match(
    tournament_id: int,
    scheduled: ScheduledPairing,
    parent_match_a_id: Optional[int] = None,
    parent_match_b_id: Optional[int] = None,
) -> Match:
    pairing = scheduled.pairing
    return Match(
        tournament_id=tournament_id,
        team_a_id=pairing.team_a,
        team_b_id=pairing.team_b,
        round_number=pairing.round_number,
        round_name=pairing.round_name,
        pool=pairing.pool,
        bracket_position=pairing.bracket_position,
        match_number=pairing.match_number,
        start_time=scheduled.start_time,
        end_time=scheduled.end_time,
        field_name=scheduled.field_name,
        status=STATUS_SCHEDULED,
        parent_match_a_id=parent_match_a_id,
        parent_match_b_id=parent_match_b_id,
    )


def build_round_markers(tournament_id: int, matches: List[Match]) -> List[BracketRound]:
    """One marker per distinct round in *matches*."""
    by_round = {}
    for match in matches:
        marker = by_round.get(match.round_number)
        if marker is None:
            by_round[match.round_number] = BracketRound(
                tournament_id=tournament_id,
                round_number=match.round_number,
                round_name=match.round_name,
                match_count=1,
            )
        else:
            marker.match_count += 1
    return [by_round[r] for r in sorted(by_round)]


# ============================================================================
# Operations
# ============================================================================


def generate_draw(
    session: Session,
    tournament_id: int,
    fmt: Optional[str] = None,
    pool_count: Optional[int] = None,
    match_duration_minutes: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> List[Match]:
    """
    Generate and persist the full initial draw.

    Raises:
        TournamentNotFound, InsufficientTeams, DrawAlreadyExists (no side effects)
        ValueError: match_duration_minutes is not positive
    """
    tournament = get_tournament(session, tournament_id)

    team_ids = get_registered_team_ids(session, tournament_id)
    if len(team_ids) < MIN_TEAMS:
        raise InsufficientTeams(tournament_id, len(team_ids))

    existing = count_matches(session, tournament_id)
    if existing > 0 or get_draw(session, tournament_id) is not None:
        raise DrawAlreadyExists(tournament_id, existing)

    draw_format = normalize_format(fmt or tournament.format)
    pools = (pool_count or tournament.pool_count) if draw_format == FORMAT_POOL_PLAY else None
    duration = match_duration_minutes or DEFAULT_MATCH_DURATION_MINUTES

    pairings = generate_pairings(team_ids, draw_format, pool_count=pools, rng=rng)
    window_start, window_end = get_tournament_window(tournament)
    scheduled = schedule_pairings(pairings, window_start, window_end, duration)

    matches = [build_match(tournament_id, sp) for sp in scheduled]
    draw = TournamentDraw(
        tournament_id=tournament_id,
        format=draw_format,
        pool_count=pools,
        team_count=len(team_ids),
        match_duration_minutes=duration,
        next_match_number=len(matches) + 1,
    )

    session.add(draw)
    session.add_all(build_round_markers(tournament_id, matches))
    session.add_all(matches)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        logger.info("Concurrent draw generation lost the race for tournament %d", tournament_id)
        raise DrawAlreadyExists(tournament_id, count_matches(session, tournament_id))

    for match in matches:
        session.refresh(match)

    logger.info(
        "Generated %s draw for tournament %d: %d teams, %d matches",
        draw_format,
        tournament_id,
        len(team_ids),
        len(matches),
    )
    return matches


def clear_draw(session: Session, tournament_id: int) -> int:
    """Delete every match and the draw bookkeeping for a tournament. Returns deleted match count."""
    get_tournament(session, tournament_id)

    deleted = count_matches(session, tournament_id)
    # Single statement so parent_match references never dangle mid-delete
    session.execute(delete(Match).where(Match.tournament_id == tournament_id))
    session.execute(delete(BracketRound).where(BracketRound.tournament_id == tournament_id))
    session.execute(delete(TournamentDraw).where(TournamentDraw.tournament_id == tournament_id))
    session.commit()

    logger.info("Cleared draw for tournament %d: %d matches deleted", tournament_id, deleted)
    return deleted


def list_matches(session: Session, tournament_id: int) -> List[Match]:
    """All matches of a tournament ordered by (round, bracket position, start time)."""
    get_tournament(session, tournament_id)
    return list(
        session.exec(
            select(Match)
            .where(Match.tournament_id == tournament_id)
            .order_by(Match.round_number, Match.bracket_position, Match.start_time, Match.match_number)
        ).all()
    )

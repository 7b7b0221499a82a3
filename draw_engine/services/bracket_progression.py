"""
Bracket Progression Engine — builds knockout round N+1 once round N is done.

Rounds after the first do not exist until their predecessor is fully resolved,
so the bracket always follows real results. A round is written together with
its BracketRound marker; when two completions of the same round race, the
second writer collides on the marker, rolls back and returns the round the
first writer created. Re-running advance_round for a round that already has a
successor is a read.

Degenerate brackets (ties, dropped odd teams, a single surviving winner) do not
raise: no next round appears and get_bracket_status() reports the bracket as
stalled so it can be handled by an administrator.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from draw_engine.models.draw import BracketRound
from draw_engine.models.match import STATUS_COMPLETED, Match
from draw_engine.models.tournament import FORMAT_SINGLE_ELIMINATION
from draw_engine.services.draw_service import NotAnEliminationDraw, build_match, get_draw, get_tournament
from draw_engine.services.match_events import MatchCompleted, match_events
from draw_engine.services.pairing_generator import (
    UnscheduledPairing,
    elimination_round_count,
    elimination_round_name,
    normalize_format,
)
from draw_engine.services.slot_allocator import ONE_DAY, schedule_pairings

logger = logging.getLogger(__name__)

FINAL_ROUND_NAME = elimination_round_name(1, 1)


def get_round_matches(session: Session, tournament_id: int, round_number: int) -> List[Match]:
    """Matches of one round in bracket order."""
    return list(
        session.exec(
            select(Match)
            .where(Match.tournament_id == tournament_id, Match.round_number == round_number)
            .order_by(Match.bracket_position, Match.match_number)
        ).all()
    )


def is_round_complete(session: Session, tournament_id: int, round_number: int) -> bool:
    matches = get_round_matches(session, tournament_id, round_number)
    return bool(matches) and all(m.status == STATUS_COMPLETED for m in matches)


def advance_round(
    session: Session,
    tournament_id: int,
    completed_round: int,
) -> List[Match]:
    """
    Create the knockout round after *completed_round* from its winners.

    Returns the next round's matches: freshly created, or the existing ones if
    the round was already synthesized. Returns [] when the round is not
    complete yet or has fewer than two winners.

    Raises:
        TournamentNotFound
        NotAnEliminationDraw: no draw, or the draw is not single-elimination
    """
    get_tournament(session, tournament_id)
    draw = get_draw(session, tournament_id)
    if draw is None or normalize_format(draw.format) != FORMAT_SINGLE_ELIMINATION:
        raise NotAnEliminationDraw(tournament_id)
    next_round = completed_round + 1

    existing = get_round_matches(session, tournament_id, next_round)
    if existing:
        logger.info(
            "Round %d of tournament %d already exists (%d matches); returning it",
            next_round,
            tournament_id,
            len(existing),
        )
        return existing

    round_matches = get_round_matches(session, tournament_id, completed_round)
    if not round_matches or any(m.status != STATUS_COMPLETED for m in round_matches):
        logger.warning(
            "Round %d of tournament %d is not complete; nothing to advance", completed_round, tournament_id
        )
        return []

    # Ties leave winner_team_id null and drop out of advancement
    winners = [(m.winner_team_id, m) for m in round_matches if m.winner_team_id is not None]
    if len(winners) < 2:
        logger.warning(
            "Bracket stalled for tournament %d after round %d: %d winner(s), no next round",
            tournament_id,
            completed_round,
            len(winners),
        )
        return []

    total_rounds = completed_round + elimination_round_count(len(winners))
    round_name = elimination_round_name(next_round, total_rounds)

    pairings: List[UnscheduledPairing] = []
    parents = []
    for position, i in enumerate(range(0, len(winners) - 1, 2), start=1):
        (winner_a, source_a), (winner_b, source_b) = winners[i], winners[i + 1]
        pairings.append(
            UnscheduledPairing(
                team_a=winner_a,
                team_b=winner_b,
                round_number=next_round,
                round_name=round_name,
                match_number=draw.next_match_number + position - 1,
                bracket_position=position,
            )
        )
        parents.append((source_a.id, source_b.id))

    # Provisional slot: the calendar day after the completed round's last match
    last_end = max(m.end_time for m in round_matches)
    day = last_end.replace(hour=0, minute=0, second=0, microsecond=0) + ONE_DAY
    scheduled = schedule_pairings(pairings, day, day + ONE_DAY, draw.match_duration_minutes)

    new_matches = [
        build_match(tournament_id, sp, parent_match_a_id=parent_a, parent_match_b_id=parent_b)
        for sp, (parent_a, parent_b) in zip(scheduled, parents)
    ]
    draw.next_match_number += len(new_matches)

    session.add(draw)
    session.add(
        BracketRound(
            tournament_id=tournament_id,
            round_number=next_round,
            round_name=round_name,
            match_count=len(new_matches),
        )
    )
    session.add_all(new_matches)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        logger.info(
            "Round %d of tournament %d was created concurrently; returning existing round",
            next_round,
            tournament_id,
        )
        return get_round_matches(session, tournament_id, next_round)

    for match in new_matches:
        session.refresh(match)

    logger.info(
        "Advanced tournament %d to round %d (%s): %d matches",
        tournament_id,
        next_round,
        round_name,
        len(new_matches),
    )
    return new_matches


@match_events.subscribe
def handle_match_completed(session: Session, event: MatchCompleted) -> List[Match]:
    """Advance the bracket when the completed match closed out a knockout round."""
    draw = get_draw(session, event.tournament_id)
    if draw is None:
        return []
    if normalize_format(draw.format) != FORMAT_SINGLE_ELIMINATION:
        return []
    if not is_round_complete(session, event.tournament_id, event.round_number):
        return []
    return advance_round(session, event.tournament_id, event.round_number)


def get_bracket_status(session: Session, tournament_id: int) -> Dict[str, Any]:
    """
    Per-round progress for a tournament.

    Returns:
        Dict with:
        - format: generated draw format (None if no draw)
        - rounds: [{round_number, round_name, match_count, completed_count, complete}]
        - champion_team_id: winner of a completed Finals match, else None
        - stalled: knockout bracket whose last round is complete but produced
          neither a champion nor a next round
    """
    get_tournament(session, tournament_id)
    draw = get_draw(session, tournament_id)

    matches = session.exec(
        select(Match).where(Match.tournament_id == tournament_id).order_by(Match.round_number, Match.bracket_position)
    ).all()

    rounds: Dict[int, Dict[str, Any]] = {}
    for m in matches:
        entry = rounds.setdefault(
            m.round_number,
            {
                "round_number": m.round_number,
                "round_name": m.round_name,
                "match_count": 0,
                "completed_count": 0,
                "complete": False,
            },
        )
        entry["match_count"] += 1
        if m.status == STATUS_COMPLETED:
            entry["completed_count"] += 1
    for entry in rounds.values():
        entry["complete"] = entry["completed_count"] == entry["match_count"]

    champion_team_id: Optional[int] = None
    stalled = False
    is_knockout = draw is not None and normalize_format(draw.format) == FORMAT_SINGLE_ELIMINATION
    if is_knockout and rounds:
        last = rounds[max(rounds)]
        if last["complete"]:
            final_matches = [m for m in matches if m.round_number == last["round_number"]]
            if last["round_name"] == FINAL_ROUND_NAME and final_matches[0].winner_team_id is not None:
                champion_team_id = final_matches[0].winner_team_id
            else:
                stalled = True

    return {
        "format": draw.format if draw else None,
        "rounds": [rounds[r] for r in sorted(rounds)],
        "champion_team_id": champion_team_id,
        "stalled": stalled,
    }

"""
Match Result Recorder — score/status updates for a single match.

Status moves forward only: scheduled -> ongoing -> completed, with
scheduled -> completed allowed for administrative correction. On the
transition into completed the winner is the higher score (null on a tie)
unless an explicit winner is supplied. The update is committed first and
MatchCompleted is published afterwards, so progression can never undo a
recorded result.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from sqlmodel import Session

from draw_engine.models.match import (
    MATCH_STATUSES,
    STATUS_COMPLETED,
    STATUS_ONGOING,
    STATUS_SCHEDULED,
    Match,
)
from draw_engine.models.tournament import FORMAT_SINGLE_ELIMINATION
from draw_engine.services.bracket_progression import get_round_matches
from draw_engine.services.draw_service import get_draw
from draw_engine.services.match_events import MatchCompleted, match_events
from draw_engine.services.pairing_generator import normalize_format

logger = logging.getLogger(__name__)

_ALLOWED_TRANSITIONS = {
    STATUS_SCHEDULED: {STATUS_SCHEDULED, STATUS_ONGOING, STATUS_COMPLETED},
    STATUS_ONGOING: {STATUS_ONGOING, STATUS_COMPLETED},
    STATUS_COMPLETED: {STATUS_COMPLETED},
}


class MatchResultError(Exception):
    """Raised when a result update is rejected. Nothing was written."""

    code = "MATCH_RESULT_ERROR"


class MatchNotFound(MatchResultError):
    code = "MATCH_NOT_FOUND"


class InvalidStatusTransition(MatchResultError):
    code = "INVALID_STATUS_TRANSITION"


class InvalidScore(MatchResultError):
    code = "INVALID_SCORE"


class InvalidWinner(MatchResultError):
    code = "INVALID_WINNER"


class ResultLocked(MatchResultError):
    """The winner already feeds a later knockout round."""

    code = "RESULT_LOCKED"


@dataclass
class MatchResultOutcome:
    match: Match
    completed_now: bool = False
    next_round: List[Match] = field(default_factory=list)


def get_match(session: Session, match_id: int) -> Match:
    match = session.get(Match, match_id)
    if not match:
        raise MatchNotFound(f"Match {match_id} not found")
    return match


def decide_winner(match: Match) -> Optional[int]:
    """Higher score wins; a tie has no winner."""
    if match.score_a > match.score_b:
        return match.team_a_id
    if match.score_b > match.score_a:
        return match.team_b_id
    return None


def _validate_status_transition(current: str, new: str) -> None:
    if new not in MATCH_STATUSES:
        raise InvalidStatusTransition(f"Invalid status: {new}")
    if new not in _ALLOWED_TRANSITIONS.get(current, set()):
        raise InvalidStatusTransition(f"Cannot change status from {current} to {new}")


def _feeds_next_round(session: Session, match: Match) -> bool:
    draw = get_draw(session, match.tournament_id)
    if draw is None or normalize_format(draw.format) != FORMAT_SINGLE_ELIMINATION:
        return False
    return bool(get_round_matches(session, match.tournament_id, match.round_number + 1))


def update_match_result(
    session: Session,
    match_id: int,
    score_a: Optional[int] = None,
    score_b: Optional[int] = None,
    status: Optional[str] = None,
    winner_team_id: Optional[int] = None,
) -> MatchResultOutcome:
    """
    Apply a score/status/winner update and fire MatchCompleted when the match
    becomes completed.

    winner_team_id is an override for manual correction and is only accepted
    when the match is (or becomes) completed. Updating scores on an already
    completed match re-derives the winner but does not re-run progression;
    a correction that would change the winner of a knockout match whose next
    round already exists raises ResultLocked.
    """
    match = get_match(session, match_id)
    current = match.status or STATUS_SCHEDULED
    previous_winner = match.winner_team_id

    if status is not None:
        _validate_status_transition(current, status)
    for label, value in (("score_a", score_a), ("score_b", score_b)):
        if value is not None and value < 0:
            raise InvalidScore(f"{label} must be non-negative, got {value}")

    final_status = status if status is not None else current
    if winner_team_id is not None:
        if final_status != STATUS_COMPLETED:
            raise InvalidWinner("winner_team_id can only be set on a completed match")
        if winner_team_id not in (match.team_a_id, match.team_b_id):
            raise InvalidWinner(f"Team {winner_team_id} is not playing in match {match_id}")

    if score_a is not None:
        match.score_a = score_a
    if score_b is not None:
        match.score_b = score_b

    completed_now = final_status == STATUS_COMPLETED and current != STATUS_COMPLETED
    match.status = final_status

    now = datetime.utcnow()
    if final_status == STATUS_ONGOING and match.started_at is None:
        match.started_at = now
    if completed_now:
        match.completed_at = now

    if final_status == STATUS_COMPLETED:
        if winner_team_id is not None:
            match.winner_team_id = winner_team_id
        elif completed_now or score_a is not None or score_b is not None:
            match.winner_team_id = decide_winner(match)

    if current == STATUS_COMPLETED and match.winner_team_id != previous_winner:
        with session.no_autoflush:
            locked = _feeds_next_round(session, match)
        if locked:
            next_round = match.round_number + 1
            session.rollback()
            raise ResultLocked(
                f"Match {match_id} already feeds round {next_round}; the winner can no longer change"
            )

    session.add(match)
    session.commit()
    session.refresh(match)

    outcome = MatchResultOutcome(match=match, completed_now=completed_now)
    if completed_now:
        logger.info(
            "Match %d of tournament %d completed %d-%d (winner: %s)",
            match.id,
            match.tournament_id,
            match.score_a,
            match.score_b,
            match.winner_team_id,
        )
        event = MatchCompleted(
            tournament_id=match.tournament_id,
            match_id=match.id,
            round_number=match.round_number,
        )
        for result in match_events.publish(session, event):
            if result:
                outcome.next_round.extend(result)
        session.refresh(match)

    return outcome

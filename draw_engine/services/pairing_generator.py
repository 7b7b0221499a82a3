"""
Pairing Generator — team order in, unscheduled pairings out.

Three formats:
  round-robin         circle method; a bye sentinel balances odd counts and
                      pairings against it are dropped.
  pool-play           contiguous pools of ceil(n/p) teams, every pair inside a
                      pool plays once (pairwise enumeration).
  single-elimination  first round only: uniform shuffle, then (0,1), (2,3), ...
                      Later rounds are built by the progression engine.

No dates, no persistence. Team order is significant input (registration or
seed order) for round-robin and pool-play.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence

from draw_engine.models.tournament import (
    FORMAT_POOL_PLAY,
    FORMAT_ROUND_ROBIN,
    FORMAT_SINGLE_ELIMINATION,
)

POOL_PLAY_ROUND_NAME = "Pool Play"
DEFAULT_POOL_COUNT = 2

# Aliases the registration front end has historically sent
_FORMAT_ALIASES = {
    "round-robin": FORMAT_ROUND_ROBIN,
    "pool-play": FORMAT_POOL_PLAY,
    "pool-play-bracket": FORMAT_POOL_PLAY,
    "pools": FORMAT_POOL_PLAY,
    "single-elimination": FORMAT_SINGLE_ELIMINATION,
}

# Rounds remaining after this one -> display name
_ELIMINATION_ROUND_NAMES = {
    0: "Finals",
    1: "Semifinals",
    2: "Quarterfinals",
    3: "Round of 16",
    4: "Round of 32",
}

_BYE = None


@dataclass
class UnscheduledPairing:
    team_a: int
    team_b: int
    round_number: int
    round_name: str
    match_number: int
    pool: Optional[int] = None
    bracket_position: Optional[int] = None


def normalize_format(fmt: Optional[str]) -> str:
    """Map a requested format onto a supported one. Unknown formats fall back to round-robin."""
    if not fmt:
        return FORMAT_ROUND_ROBIN
    return _FORMAT_ALIASES.get(fmt.strip().lower(), FORMAT_ROUND_ROBIN)


def elimination_round_count(team_count: int) -> int:
    """Rounds needed to reduce *team_count* entrants to one: ceil(log2(n))."""
    if team_count < 2:
        return 0
    return math.ceil(math.log2(team_count))


def elimination_round_name(round_number: int, total_rounds: int) -> str:
    """Name a knockout round by how many rounds are left until the final."""
    remaining = total_rounds - round_number
    return _ELIMINATION_ROUND_NAMES.get(remaining, f"Round {round_number}")


def round_robin_pairings(team_ids: Sequence[int], start_match_number: int = 1) -> List[UnscheduledPairing]:
    """
    Circle method. Position 0 stays fixed; after each round the last entry
    moves to position 1. An odd field gets a bye sentinel, so each round one
    team sits out.

    4 teams -> 3 rounds x 2 matches; 5 teams -> 5 rounds x 2 matches.
    """
    slots: List[Optional[int]] = list(team_ids)
    if len(slots) % 2 != 0:
        slots.append(_BYE)

    m = len(slots)
    pairings: List[UnscheduledPairing] = []
    match_number = start_match_number

    for round_idx in range(m - 1):
        round_number = round_idx + 1
        for i in range(m // 2):
            team_a = slots[i]
            team_b = slots[m - 1 - i]
            if team_a is _BYE or team_b is _BYE:
                continue
            pairings.append(
                UnscheduledPairing(
                    team_a=team_a,
                    team_b=team_b,
                    round_number=round_number,
                    round_name=f"Round {round_number}",
                    match_number=match_number,
                )
            )
            match_number += 1

        slots.insert(1, slots.pop())

    return pairings


def partition_pools(team_ids: Sequence[int], pool_count: int) -> List[List[int]]:
    """Split teams into contiguous pools of ceil(n/p); trailing pools may be short or empty."""
    per_pool = math.ceil(len(team_ids) / pool_count)
    return [list(team_ids[p * per_pool:(p + 1) * per_pool]) for p in range(pool_count)]


def pool_play_pairings(
    team_ids: Sequence[int],
    pool_count: Optional[int] = None,
    start_match_number: int = 1,
) -> List[UnscheduledPairing]:
    """Every pair inside each pool meets once. All pool matches are round 1."""
    if not team_ids:
        return []
    # A single-team pool simply has no matches
    pools = max(1, min(pool_count or DEFAULT_POOL_COUNT, len(team_ids)))

    pairings: List[UnscheduledPairing] = []
    match_number = start_match_number

    for pool_idx, pool_teams in enumerate(partition_pools(team_ids, pools), start=1):
        for i in range(len(pool_teams)):
            for j in range(i + 1, len(pool_teams)):
                pairings.append(
                    UnscheduledPairing(
                        team_a=pool_teams[i],
                        team_b=pool_teams[j],
                        round_number=1,
                        round_name=POOL_PLAY_ROUND_NAME,
                        match_number=match_number,
                        pool=pool_idx,
                    )
                )
                match_number += 1

    return pairings


def single_elimination_pairings(
    team_ids: Sequence[int],
    rng: Optional[random.Random] = None,
    start_match_number: int = 1,
) -> List[UnscheduledPairing]:
    """
    First knockout round. Seeding is a uniform shuffle drawn from *rng*
    (pass a seeded random.Random for reproducible brackets).

    An odd field leaves the last shuffled team without a match; it does not
    get an automatic bye into round 2.
    """
    rng = rng or random.Random()
    seeded = list(team_ids)
    rng.shuffle(seeded)

    total_rounds = elimination_round_count(len(seeded))
    round_name = elimination_round_name(1, total_rounds)

    pairings: List[UnscheduledPairing] = []
    for position, i in enumerate(range(0, len(seeded) - 1, 2), start=1):
        pairings.append(
            UnscheduledPairing(
                team_a=seeded[i],
                team_b=seeded[i + 1],
                round_number=1,
                round_name=round_name,
                match_number=start_match_number + position - 1,
                bracket_position=position,
            )
        )
    return pairings


def generate_pairings(
    team_ids: Sequence[int],
    fmt: Optional[str],
    pool_count: Optional[int] = None,
    rng: Optional[random.Random] = None,
    start_match_number: int = 1,
) -> List[UnscheduledPairing]:
    """Dispatch on format (after normalize_format)."""
    fmt = normalize_format(fmt)
    if fmt == FORMAT_POOL_PLAY:
        return pool_play_pairings(team_ids, pool_count, start_match_number)
    if fmt == FORMAT_SINGLE_ELIMINATION:
        return single_elimination_pairings(team_ids, rng, start_match_number)
    return round_robin_pairings(team_ids, start_match_number)

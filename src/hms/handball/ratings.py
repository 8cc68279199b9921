from __future__ import annotations

from typing import Sequence

from hms.contracts import Lineup, PlayerSnapshot, Position, RatingMultipliers, StaffContext, TeamRating
from hms.core import clamp, mean

LINEUP_SIZE = 7
BENCH_SIZE = 7
START_WEIGHT = 0.86
BENCH_WEIGHT = 0.14

NEUTRAL_RATING = 10.0
NEUTRAL_FITNESS = 70.0
NEUTRAL_MORALE = 13.0

WINGS = frozenset({Position.LW, Position.RW})
NON_BACKS = frozenset({Position.GK, Position.PIV, Position.LW, Position.RW})


def is_back(player: PlayerSnapshot) -> bool:
    return player.position not in NON_BACKS


def _by_rating(players: Sequence[PlayerSnapshot]) -> list[PlayerSnapshot]:
    return sorted(players, key=lambda p: p.overall, reverse=True)


def select_lineup(players: Sequence[PlayerSnapshot]) -> Lineup:
    """Pick a starting seven with positional preference and a seven-man bench.

    One goalkeeper, one pivot and two wings are taken first, then the back line
    is filled with the best remaining backs. Any slot still open is filled with
    the best remaining player regardless of position.
    """
    ranked = _by_rating(players)
    taken: set[int] = set()
    start: list[PlayerSnapshot] = []

    def take(predicate, limit: int) -> None:
        for idx, player in enumerate(ranked):
            if limit <= 0 or len(start) >= LINEUP_SIZE:
                return
            if idx not in taken and predicate(player):
                taken.add(idx)
                start.append(player)
                limit -= 1

    take(lambda p: p.position is Position.GK, 1)
    take(lambda p: p.position is Position.PIV, 1)
    take(lambda p: p.position in WINGS, 2)
    take(is_back, LINEUP_SIZE)
    take(lambda p: True, LINEUP_SIZE)

    bench = [p for idx, p in enumerate(ranked) if idx not in taken][:BENCH_SIZE]
    return Lineup(start=tuple(start), bench=tuple(bench))


def fitness_factor(fitness: float) -> float:
    return clamp(0.92 + (fitness / 100) * 0.16, 0.90, 1.08)


def morale_factor(morale: float) -> float:
    return clamp(0.94 + ((morale - 13) / 12) * 0.08, 0.88, 1.08)


def compute_team_rating(players: Sequence[PlayerSnapshot], staff: StaffContext | None = None) -> TeamRating:
    lineup = select_lineup(players)
    start_rating = mean([float(p.overall) for p in lineup.start], NEUTRAL_RATING)
    bench_rating = mean([float(p.overall) for p in lineup.bench], NEUTRAL_RATING)
    fitness = mean([p.fitness for p in lineup.start], NEUTRAL_FITNESS)
    morale = mean([p.morale for p in lineup.start], NEUTRAL_MORALE)

    staff = staff or StaffContext()
    multipliers = RatingMultipliers(
        staff=clamp(staff.match, 0.90, 1.10),
        mental=clamp(staff.mental, 0.90, 1.10),
        fitness=fitness_factor(fitness),
        morale=morale_factor(morale),
    )
    base = start_rating * START_WEIGHT + bench_rating * BENCH_WEIGHT
    power = base * multipliers.staff * multipliers.mental * multipliers.fitness * multipliers.morale
    return TeamRating(
        lineup=lineup,
        start_rating=start_rating,
        bench_rating=bench_rating,
        fitness=fitness,
        morale=morale,
        multipliers=multipliers,
        team_power=clamp(power, 1.0, 20.0),
    )


def goalkeeper_of(rating: TeamRating) -> PlayerSnapshot | None:
    for player in rating.lineup.start:
        if player.position is Position.GK:
            return player
    return rating.lineup.start[0] if rating.lineup.start else None

"""Post-match shot reporting.

The possession model produces fewer missed shots than a real box score shows,
so the reported attempts are reshaped toward a realistic conversion rate and
saves/blocks are rebuilt from the resulting misses. Goals and therefore the
score are never touched.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from hms.contracts import MatchStats, RandomSource, ShotType, SideStats
from hms.core import clamp, derive_seed, round_half_up, seeded_random

logger = logging.getLogger(__name__)

NORMALIZER_SALT = 0xA5A5A5A5
TARGET_CONVERSION = 0.605
CONVERSION_JITTER = 0.04
ACCEPTED_CONVERSION = (0.54, 0.72)
ACCEPTED_SHOT_GAP = 6
MIN_EXTRA_SHOTS = 6
MAX_EXTRA_SHOTS = 28
BLOCK_SHARE_BOUNDS = (0.05, 0.35)


def normalize_shots(stats: MatchStats) -> MatchStats:
    """Return a copy of ``stats`` with reshaped shots and reconciled saves/blocks."""
    random_source = seeded_random(derive_seed(stats.meta.seed, NORMALIZER_SALT))
    side_a = _copy_side(stats.side_a)
    side_b = _copy_side(stats.side_b)
    _reshape_side(side_a, random_source)
    _reshape_side(side_b, random_source)

    # A defends B's shots and vice versa
    _reconcile_defense(side_a, side_b)
    _reconcile_defense(side_b, side_a)

    logger.debug(
        "normalized shots seed=%d A=%d B=%d",
        stats.meta.seed,
        side_a.total_shots,
        side_b.total_shots,
    )
    return replace(
        stats,
        meta=replace(stats.meta, shots_normalized=True),
        side_a=side_a,
        side_b=side_b,
        timeline=list(stats.timeline),
    )


def desired_shot_total(goals: int, conversion: float) -> int:
    return int(clamp(round_half_up(goals / conversion), goals + MIN_EXTRA_SHOTS, goals + MAX_EXTRA_SHOTS))


def _copy_side(side: SideStats) -> SideStats:
    return replace(
        side,
        shots=dict(side.shots),
        goals=dict(side.goals),
        turnovers_by_kind=dict(side.turnovers_by_kind),
    )


def _reshape_side(side: SideStats, random_source: RandomSource) -> None:
    goals = side.total_goals
    shots = side.total_shots
    if goals <= 0 or shots <= 0:
        return

    conversion = clamp(TARGET_CONVERSION + (random_source.rand() - 0.5) * CONVERSION_JITTER, 0.56, 0.68)
    desired = desired_shot_total(goals, conversion)
    current = goals / shots
    low, high = ACCEPTED_CONVERSION
    if low <= current <= high and abs(shots - desired) <= ACCEPTED_SHOT_GAP:
        return

    scale = desired / shots
    reshaped = {
        shot_type: max(side.goals[shot_type], round_half_up(count * scale))
        for shot_type, count in side.shots.items()
    }

    most_used = sorted(
        (t for t in ShotType if t is not ShotType.SEVEN_M), key=lambda t: side.shots[t], reverse=True
    )[0]
    while sum(reshaped.values()) < desired:
        reshaped[most_used] += 1
    while sum(reshaped.values()) > desired:
        surplus_type, surplus = None, 0
        for shot_type in ShotType:
            extra = reshaped[shot_type] - side.goals[shot_type]
            if extra > surplus:
                surplus_type, surplus = shot_type, extra
        if surplus_type is None:
            break
        reshaped[surplus_type] -= 1

    side.shots = reshaped


def _reconcile_defense(defender: SideStats, attacker: SideStats) -> None:
    misses = max(0, attacker.total_shots - attacker.total_goals)
    share = clamp(defender.blocks / max(1, defender.saves + defender.blocks), *BLOCK_SHARE_BOUNDS)
    defender.blocks = round_half_up(misses * share)
    defender.saves = misses - defender.blocks

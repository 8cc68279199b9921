from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from hms.contracts import (
    OPEN_PLAY_SHOT_TYPES,
    AttackPlan,
    DefenseProfile,
    DefenseShape,
    Foul,
    OffenseMods,
    PlayerSnapshot,
    Position,
    PossessionOutcome,
    RandomSource,
    RefereeConfig,
    Shot,
    ShotType,
    TacticMods,
    TeamRating,
    Turnover,
    TurnoverKind,
)
from hms.core import clamp, pick_weighted
from hms.handball.ratings import WINGS, goalkeeper_of, is_back
from hms.handball.referee import contact_adjustment, penalty_shot_probability, suspension_probability

BASE_TURNOVER = 0.12
SHOT_WEIGHT_BLEND = 0.35
PENALTY_SHOT_BONUS = 0.02
MISSING_GOALKEEPER_RATING = 12.0
ATTRIBUTE_FALLBACK = 12.0

SHOT_BASE_QUALITY: dict[ShotType, float] = {
    ShotType.NINE_M: 0.48,
    ShotType.SIX_M: 0.66,
    ShotType.WING: 0.54,
    ShotType.FASTBREAK: 0.74,
    ShotType.SEVEN_M: 0.76,
}

_SHAPE_SHOT_SHIFT: dict[DefenseShape, dict[ShotType, float]] = {
    DefenseShape.SIX_ZERO: {ShotType.NINE_M: 0.08, ShotType.SIX_M: -0.06},
    DefenseShape.THREE_TWO_ONE: {ShotType.FASTBREAK: 0.06, ShotType.NINE_M: -0.04, ShotType.SIX_M: 0.02},
    DefenseShape.FIVE_ONE: {ShotType.NINE_M: -0.02, ShotType.SIX_M: 0.02, ShotType.WING: 0.02},
}
_PLAN_SHOT_SHIFT: dict[AttackPlan, dict[ShotType, float]] = {
    AttackPlan.PIVOT_SCREEN_9M: {ShotType.NINE_M: 0.08, ShotType.SIX_M: -0.03},
    AttackPlan.FOUR_BACKS: {ShotType.NINE_M: 0.04, ShotType.WING: 0.03, ShotType.SIX_M: -0.03},
    AttackPlan.FAST_SWITCH: {ShotType.WING: 0.06, ShotType.NINE_M: 0.02, ShotType.SIX_M: -0.03},
    AttackPlan.BEHIND_FRONT: {ShotType.SIX_M: 0.04, ShotType.NINE_M: 0.02, ShotType.WING: 0.02},
}
_PLAN_SHOT_BONUS: dict[AttackPlan, dict[ShotType, float]] = {
    AttackPlan.PIVOT_SCREEN_9M: {ShotType.NINE_M: 0.05},
    AttackPlan.FOUR_BACKS: {ShotType.NINE_M: 0.03, ShotType.WING: 0.03},
    AttackPlan.FAST_SWITCH: {ShotType.WING: 0.06},
    AttackPlan.BEHIND_FRONT: {ShotType.SIX_M: 0.04, ShotType.NINE_M: 0.04},
}


@dataclass(slots=True)
class PossessionContext:
    referee: RefereeConfig
    attack: TeamRating
    defense: TeamRating
    defense_profile: DefenseProfile
    defense_shape: DefenseShape
    plan: AttackPlan
    defense_mods: TacticMods
    offense_mods: OffenseMods | None = None
    defense_short_handed: bool = False
    goal_scale: float = 1.0


@dataclass(frozen=True, slots=True)
class OutcomeProbabilities:
    turnover: float
    foul: float
    shot: float


def outcome_probabilities(ctx: PossessionContext) -> OutcomeProbabilities:
    profile = ctx.defense_profile
    turnover = BASE_TURNOVER
    foul = profile.foul_rate
    shot = 1 - turnover - foul

    turnover += profile.pressure * 0.06
    foul += profile.pressure * 0.04

    gap = clamp((ctx.attack.team_power - ctx.defense.team_power) / 8, -0.25, 0.25)
    turnover -= gap * 0.10
    shot += gap * 0.08

    if ctx.offense_mods is not None:
        turnover += ctx.offense_mods.turnover_delta

    if ctx.defense_short_handed:
        turnover -= 0.03
        shot += 0.04
        foul += 0.01

    foul += (ctx.referee.strictness / 100) * 0.03
    turnover += ((ctx.referee.passive_strictness - 50) / 100) * 0.02
    turnover *= ctx.defense_mods.turnover

    total = turnover + foul + shot
    turnover = clamp(turnover / total, 0.06, 0.26)
    foul = clamp(foul / total, 0.10, 0.28)
    shot = clamp(1 - turnover - foul, 0.50, 0.82)
    return OutcomeProbabilities(turnover=turnover, foul=foul, shot=shot)


def shot_type_weights(ctx: PossessionContext) -> dict[ShotType, float]:
    weights = {
        ShotType.NINE_M: 0.45,
        ShotType.SIX_M: 0.22,
        ShotType.WING: 0.18,
        ShotType.FASTBREAK: 0.15,
    }
    for shift in (_SHAPE_SHOT_SHIFT.get(ctx.defense_shape, {}), _PLAN_SHOT_SHIFT.get(ctx.plan, {})):
        for shot_type, delta in shift.items():
            weights[shot_type] += delta

    if ctx.offense_mods is not None:
        preferred = ctx.offense_mods.shot_weights
        overrides = {
            ShotType.NINE_M: preferred.backcourt,
            ShotType.SIX_M: preferred.pivot,
            ShotType.WING: preferred.wings,
            ShotType.FASTBREAK: preferred.breakthrough,
        }
        total = sum(weights.values())
        weights = {
            shot_type: (weights[shot_type] / total) * (1 - SHOT_WEIGHT_BLEND) + overrides[shot_type] * SHOT_WEIGHT_BLEND
            for shot_type in OPEN_PLAY_SHOT_TYPES
        }

    floored = {shot_type: max(0.05, weights[shot_type]) for shot_type in OPEN_PLAY_SHOT_TYPES}
    total = sum(floored.values())
    return {shot_type: weight / total for shot_type, weight in floored.items()}


def _shooting(player: PlayerSnapshot) -> float:
    return player.attributes.attr("offense", "shooting", ATTRIBUTE_FALLBACK)


def _penalty_taker_score(player: PlayerSnapshot) -> float:
    return (player.attributes.attr("mental", "decisions", ATTRIBUTE_FALLBACK) + _shooting(player)) / 2


def choose_shooter(
    start: Sequence[PlayerSnapshot], shot_type: ShotType, random_source: RandomSource
) -> PlayerSnapshot | None:
    if not start:
        return None
    outfield = [p for p in start if p.position is not Position.GK]
    backs = [p for p in start if is_back(p)]

    if shot_type is ShotType.SEVEN_M:
        candidates = backs or outfield
        if not candidates:
            return start[0]
        return sorted(candidates, key=_penalty_taker_score, reverse=True)[0]
    if shot_type is ShotType.WING:
        wings = [p for p in start if p.position in WINGS]
        if wings:
            return random_source.choice(wings)
    if shot_type is ShotType.SIX_M:
        pivot = next((p for p in start if p.position is Position.PIV), None)
        if pivot is not None:
            return pivot

    if backs:
        return pick_weighted(random_source, [(p, p.overall * 0.7 + _shooting(p) * 0.3) for p in backs])
    if outfield:
        return random_source.choice(outfield)
    return start[0]


def plan_bonus(plan: AttackPlan, shot_type: ShotType) -> float:
    return _PLAN_SHOT_BONUS.get(plan, {}).get(shot_type, 0.0)


def goal_probability(
    shooter: PlayerSnapshot | None,
    goalkeeper: PlayerSnapshot | None,
    shot_type: ShotType,
    attack_bonus: float,
    profile: DefenseProfile,
    referee: RefereeConfig,
    goal_scale: float = 1.0,
) -> float:
    overall = float(shooter.overall) if shooter is not None else 10.0
    fitness = shooter.fitness if shooter is not None else 70.0
    morale = shooter.morale if shooter is not None else 13.0
    keeper_overall = float(goalkeeper.overall) if goalkeeper is not None else MISSING_GOALKEEPER_RATING

    shot_skill = clamp((overall - 8) / 12, 0.0, 1.0)
    fitness_mult = clamp(0.85 + (fitness / 100) * 0.25, 0.80, 1.05)
    morale_mult = clamp(0.92 + ((morale - 13) / 12) * 0.12, 0.80, 1.08)
    shooter_quality = SHOT_BASE_QUALITY[shot_type] * (0.72 + 0.40 * shot_skill) * fitness_mult * morale_mult

    block_penalty = 0.0
    if shot_type is ShotType.NINE_M:
        block_penalty = profile.block * 0.18
    elif shot_type is ShotType.WING:
        block_penalty = -profile.wing_opening * 0.10
    pressure_penalty = profile.pressure * 0.10

    keeper_skill = clamp((keeper_overall - 8) / 12, 0.0, 1.0)
    keeper_penalty = 0.10 + 0.18 * keeper_skill

    probability = (
        shooter_quality
        + attack_bonus
        - pressure_penalty
        - block_penalty
        - contact_adjustment(referee)
        - keeper_penalty
    )
    probability *= clamp(goal_scale, 0.80, 1.25)
    return clamp(probability, 0.06, 0.90)


def block_probability(profile: DefenseProfile) -> float:
    return clamp(profile.block * 0.55, 0.02, 0.18)


class PossessionResolver:
    """Resolves one possession into exactly one terminal outcome."""

    def resolve(self, ctx: PossessionContext, random_source: RandomSource) -> PossessionOutcome:
        probs = outcome_probabilities(ctx)
        kind = pick_weighted(random_source, [("turnover", probs.turnover), ("foul", probs.foul), ("shot", probs.shot)])
        if kind == "turnover":
            return self._turnover(ctx, random_source)
        if kind == "foul":
            return self._foul(ctx, random_source)
        return self._open_play_shot(ctx, random_source)

    def resolve_penalty_shot(self, ctx: PossessionContext, random_source: RandomSource) -> Shot:
        shooter = choose_shooter(ctx.attack.lineup.start, ShotType.SEVEN_M, random_source)
        return self._shot(ctx, random_source, ShotType.SEVEN_M, shooter, PENALTY_SHOT_BONUS)

    def _turnover(self, ctx: PossessionContext, random_source: RandomSource) -> Turnover:
        base = clamp(ctx.defense_profile.interception + ctx.defense.team_power / 50, 0.07, 0.26)
        steal = clamp(base * ctx.defense_mods.steal, 0.05, 0.40)
        kind = TurnoverKind.STEAL if random_source.rand() < steal else TurnoverKind.TECHNICAL
        return Turnover(kind=kind)

    def _foul(self, ctx: PossessionContext, random_source: RandomSource) -> Foul:
        clear_p = clamp(0.22 + ctx.attack.team_power / 40 - ctx.defense.team_power / 60, 0.12, 0.34)
        clear_chance = random_source.rand() < clear_p
        severity = clamp(
            0.35 + ctx.defense_profile.pressure * 0.35 + (random_source.rand() - 0.5) * 0.15, 0.10, 0.95
        )
        penalty_p = clamp(penalty_shot_probability(ctx.referee, clear_chance) * ctx.defense_mods.penalty_shot, 0.0, 0.95)
        to_penalty_shot = random_source.rand() < penalty_p
        suspension_p = clamp(
            suspension_probability(ctx.referee, severity, clear_chance) * ctx.defense_mods.suspension, 0.0, 0.95
        )
        to_suspension = random_source.rand() < suspension_p
        return Foul(
            clear_chance=clear_chance,
            to_penalty_shot=to_penalty_shot,
            to_suspension=to_suspension,
            severity=severity,
        )

    def _open_play_shot(self, ctx: PossessionContext, random_source: RandomSource) -> Shot:
        weights = shot_type_weights(ctx)
        shot_type = pick_weighted(random_source, list(weights.items())) or ShotType.NINE_M
        bonus = plan_bonus(ctx.plan, shot_type)
        bonus += clamp((ctx.attack.team_power - 10) / 200, -0.03, 0.05)
        if ctx.defense_short_handed:
            bonus += 0.03
        shooter = choose_shooter(ctx.attack.lineup.start, shot_type, random_source)
        return self._shot(ctx, random_source, shot_type, shooter, bonus)

    def _shot(
        self,
        ctx: PossessionContext,
        random_source: RandomSource,
        shot_type: ShotType,
        shooter: PlayerSnapshot | None,
        bonus: float,
    ) -> Shot:
        keeper = goalkeeper_of(ctx.defense)
        probability = goal_probability(
            shooter, keeper, shot_type, bonus, ctx.defense_profile, ctx.referee, ctx.goal_scale
        )
        is_goal = random_source.rand() < probability
        is_block = (
            not is_goal
            and shot_type is ShotType.NINE_M
            and random_source.rand() < block_probability(ctx.defense_profile)
        )
        return Shot(
            shot_type=shot_type,
            shooter=shooter,
            goalkeeper=keeper,
            is_goal=is_goal,
            is_block=is_block,
            goal_probability=probability,
        )

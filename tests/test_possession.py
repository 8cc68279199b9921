from __future__ import annotations

import random

import pytest

from hms.contracts import (
    OPEN_PLAY_SHOT_TYPES,
    AttackStyle,
    DefenseMode,
    DefenseShape,
    Foul,
    OffenseFocus,
    OffensiveInstructions,
    Position,
    RefereeConfig,
    Shot,
    ShotType,
    TacticalConfig,
    Turnover,
)
from hms.core import seeded_random
from hms.handball.possession import (
    PossessionContext,
    PossessionResolver,
    block_probability,
    choose_shooter,
    goal_probability,
    outcome_probabilities,
    shot_type_weights,
)
from hms.handball.ratings import compute_team_rating
from hms.handball.referee import resolve_referee
from hms.handball.tactics import attack_plan_against, build_offense_mods, build_tactic_mods, defense_profile
from tests.helpers import make_player, make_team


def _context(
    rs,
    attack_overall: int = 12,
    defense_overall: int = 12,
    shape: DefenseShape = DefenseShape.SIX_ZERO,
    mode: DefenseMode = DefenseMode.STANDARD,
    style: AttackStyle = AttackStyle.BALANCED,
    aggression: int = 3,
    referee: dict | None = None,
    offense: OffensiveInstructions | None = None,
    short_handed: bool = False,
    goal_scale: float = 1.0,
) -> PossessionContext:
    tactics = TacticalConfig(defense_shape=shape, defense_mode=mode, aggression=aggression)
    return PossessionContext(
        referee=resolve_referee(referee, rs),
        attack=compute_team_rating(make_team("Att", overall=attack_overall).players),
        defense=compute_team_rating(make_team("Def", overall=defense_overall).players),
        defense_profile=defense_profile(shape, mode),
        defense_shape=shape,
        plan=attack_plan_against(shape, style),
        defense_mods=build_tactic_mods(tactics),
        offense_mods=build_offense_mods(offense),
        defense_short_handed=short_handed,
        goal_scale=goal_scale,
    )


def test_probabilities_stay_in_unit_interval_across_random_inputs() -> None:
    rs = seeded_random(2024)
    gen = random.Random(2024)
    shapes = list(DefenseShape)
    modes = list(DefenseMode)
    styles = list(AttackStyle)
    focuses = list(OffenseFocus)
    for _ in range(300):
        offense = None
        if gen.random() < 0.5:
            offense = OffensiveInstructions(
                tempo=gen.randint(1, 10),
                pass_risk=gen.randint(1, 10),
                focus=gen.choice(focuses),
                width=gen.randint(1, 10),
                press_after_goal=gen.random() < 0.5,
            )
        ctx = _context(
            rs,
            attack_overall=gen.randint(1, 20),
            defense_overall=gen.randint(1, 20),
            shape=gen.choice(shapes),
            mode=gen.choice(modes),
            style=gen.choice(styles),
            aggression=gen.randint(1, 5),
            referee={"strictness": gen.random() * 100, "passive_strictness": gen.random() * 100},
            offense=offense,
            short_handed=gen.random() < 0.3,
            goal_scale=0.7 + gen.random() * 0.7,
        )
        probs = outcome_probabilities(ctx)
        for value in (probs.turnover, probs.foul, probs.shot):
            assert 0.0 <= value <= 1.0
        weights = shot_type_weights(ctx)
        assert set(weights) == set(OPEN_PLAY_SHOT_TYPES)
        assert abs(sum(weights.values()) - 1.0) < 1e-9
        assert all(0.0 <= w <= 1.0 for w in weights.values())
        assert 0.0 <= block_probability(ctx.defense_profile) <= 1.0
        shooter = gen.choice(ctx.attack.lineup.start)
        for shot_type in ShotType:
            bonus = gen.random() * 0.1
            p = goal_probability(shooter, None, shot_type, bonus, ctx.defense_profile, ctx.referee, ctx.goal_scale)
            assert 0.06 <= p <= 0.90


def test_resolve_produces_exactly_one_outcome() -> None:
    rs = seeded_random(11)
    ctx = _context(rs)
    resolver = PossessionResolver()
    seen = set()
    for _ in range(500):
        outcome = resolver.resolve(ctx, rs)
        assert isinstance(outcome, (Turnover, Foul, Shot))
        seen.add(type(outcome))
        if isinstance(outcome, Shot):
            assert outcome.shot_type in OPEN_PLAY_SHOT_TYPES
            assert not (outcome.is_goal and outcome.is_block)
            if outcome.is_block:
                assert outcome.shot_type is ShotType.NINE_M
    assert seen == {Turnover, Foul, Shot}


def test_penalty_shot_uses_seven_meter_type() -> None:
    rs = seeded_random(12)
    shot = PossessionResolver().resolve_penalty_shot(_context(rs), rs)
    assert shot.shot_type is ShotType.SEVEN_M
    assert not shot.is_block
    assert shot.goalkeeper is not None and shot.goalkeeper.position is Position.GK


def test_short_handed_defense_concedes_more_shots() -> None:
    rs = seeded_random(13)
    full = outcome_probabilities(_context(rs))
    down = outcome_probabilities(_context(rs, short_handed=True))
    assert down.shot > full.shot
    assert down.turnover < full.turnover


def test_choose_shooter_by_shot_type() -> None:
    rs = seeded_random(14)
    start = (
        make_player("gk", Position.GK, 12),
        make_player("lw", Position.LW, 11),
        make_player("rw", Position.RW, 11),
        make_player("piv", Position.PIV, 10),
        make_player("lb", Position.LB, 13, shooting=18),
        make_player("cb", Position.CB, 12, shooting=9),
        make_player("rb", Position.RB, 12, shooting=12),
    )
    assert choose_shooter(start, ShotType.SIX_M, rs).player_id == "piv"
    assert choose_shooter(start, ShotType.WING, rs).player_id in {"lw", "rw"}
    assert choose_shooter(start, ShotType.SEVEN_M, rs).player_id == "lb"
    backs = {Position.LB, Position.CB, Position.RB}
    assert all(choose_shooter(start, ShotType.NINE_M, rs).position in backs for _ in range(50))
    assert choose_shooter((), ShotType.NINE_M, rs) is None
    keeper_only = (make_player("gk", Position.GK, 12),)
    assert choose_shooter(keeper_only, ShotType.WING, rs).player_id == "gk"


def test_goal_probability_reacts_to_quality() -> None:
    profile = defense_profile(DefenseShape.SIX_ZERO)
    referee = resolve_referee(None, seeded_random(1))
    star = make_player("star", Position.LB, 19)
    rookie = make_player("rookie", Position.LB, 6)
    keeper = make_player("gk", Position.GK, 12)
    wall = make_player("wall", Position.GK, 20)
    assert goal_probability(star, keeper, ShotType.NINE_M, 0.0, profile, referee) > goal_probability(
        rookie, keeper, ShotType.NINE_M, 0.0, profile, referee
    )
    assert goal_probability(star, keeper, ShotType.NINE_M, 0.0, profile, referee) > goal_probability(
        star, wall, ShotType.NINE_M, 0.0, profile, referee
    )
    assert goal_probability(rookie, keeper, ShotType.SIX_M, 0.0, profile, referee, 1.2) > goal_probability(
        rookie, keeper, ShotType.SIX_M, 0.0, profile, referee, 1.0
    )


def test_goal_probability_matches_shot_formula() -> None:
    profile = defense_profile(DefenseShape.SIX_ZERO)
    referee = RefereeConfig(line_tolerance=50)
    shooter = make_player("lb", Position.LB, 14, fitness=80.0, morale=13.0)
    keeper = make_player("gk", Position.GK, 14)

    # base .48, skill .5 -> x.92, fitness x1.05, morale x.92
    quality = 0.48 * 0.92 * 1.05 * 0.92
    expected = quality - 0.46 * 0.10 - 0.14 * 0.18 - (0.10 + 0.18 * 0.5)
    assert goal_probability(shooter, keeper, ShotType.NINE_M, 0.0, profile, referee) == pytest.approx(expected)
    assert expected == pytest.approx(0.1653856)

    penalty = (0.76 * 0.92 * 1.05 * 0.92 + 0.02 - 0.046 - 0.19) * 1.1
    assert goal_probability(shooter, keeper, ShotType.SEVEN_M, 0.02, profile, referee, 1.1) == pytest.approx(penalty)

    no_keeper = 0.66 * 0.92 * 1.05 * 0.92 - 0.046 - (0.10 + 0.18 * (4 / 12))
    assert goal_probability(shooter, None, ShotType.SIX_M, 0.0, profile, referee) == pytest.approx(no_keeper)


def test_goal_probability_is_floored_for_hopeless_shots() -> None:
    profile = defense_profile(DefenseShape.THREE_TWO_ONE)
    referee = RefereeConfig(line_tolerance=0)
    rookie = make_player("lb", Position.LB, 1, fitness=0.0, morale=0.0)
    wall = make_player("gk", Position.GK, 20)
    assert goal_probability(rookie, wall, ShotType.NINE_M, 0.0, profile, referee) == 0.06

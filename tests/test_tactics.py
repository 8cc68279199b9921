from __future__ import annotations

import pytest

from hms.contracts import (
    AttackPlan,
    AttackStyle,
    DefenseMode,
    DefenseShape,
    OffenseFocus,
    OffensiveInstructions,
    TacticalConfig,
    Tempo,
)
from hms.handball.tactics import (
    attack_plan_against,
    build_offense_mods,
    build_tactic_mods,
    defense_profile,
    global_pace,
    normalize_attack_style,
    normalize_defense_shape,
    offensive_instructions_from_raw,
    tactical_config_from_raw,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("3-2-1", DefenseShape.THREE_TWO_ONE),
        ("321 aggressive", DefenseShape.THREE_TWO_ONE),
        ("5-1", DefenseShape.FIVE_ONE),
        ("5 1", DefenseShape.FIVE_ONE),
        ("6-0", DefenseShape.SIX_ZERO),
        ("zone", DefenseShape.SIX_ZERO),
        (None, DefenseShape.SIX_ZERO),
        (DefenseShape.FIVE_ONE, DefenseShape.FIVE_ONE),
    ],
)
def test_normalize_defense_shape(raw: object, expected: DefenseShape) -> None:
    assert normalize_defense_shape(raw) is expected


def test_unknown_tactics_fall_back_to_baseline() -> None:
    config = tactical_config_from_raw({"defense": "???", "attack": "chaos", "tempo": "warp", "aggression": "lots"})
    assert config == TacticalConfig()
    assert tactical_config_from_raw(None) == TacticalConfig()


def test_tactical_config_accepts_alternate_keys() -> None:
    config = tactical_config_from_raw(
        {"defense_formation": "5-1", "mode": "dutch", "attack_style": "Pivot Screen", "tempo": "FAST", "aggr": 9}
    )
    assert config.defense_shape is DefenseShape.FIVE_ONE
    assert config.defense_mode is DefenseMode.DUTCH
    assert config.attack_style is AttackStyle.PIVOT_SCREEN
    assert config.tempo is Tempo.FAST
    assert config.aggression == 5
    assert normalize_attack_style("4 backs") is AttackStyle.FOUR_BACKS


def test_six_zero_mode_variants() -> None:
    standard = defense_profile(DefenseShape.SIX_ZERO)
    offensive = defense_profile(DefenseShape.SIX_ZERO, DefenseMode.OFFENSIVE)
    assert offensive.pressure > standard.pressure
    assert defense_profile(DefenseShape.FIVE_ONE, DefenseMode.DUTCH) == defense_profile(DefenseShape.FIVE_ONE)


@pytest.mark.parametrize(
    ("shape", "style", "plan"),
    [
        (DefenseShape.FIVE_ONE, AttackStyle.FAST_SWITCH, AttackPlan.FAST_SWITCH),
        (DefenseShape.FIVE_ONE, AttackStyle.BALANCED, AttackPlan.BEHIND_FRONT),
        (DefenseShape.SIX_ZERO, AttackStyle.PIVOT_SCREEN, AttackPlan.PIVOT_SCREEN_9M),
        (DefenseShape.SIX_ZERO, AttackStyle.BALANCED, AttackPlan.FOUR_BACKS),
        (DefenseShape.THREE_TWO_ONE, AttackStyle.FAST_SWITCH, AttackPlan.FAST_SWITCH),
        (DefenseShape.THREE_TWO_ONE, AttackStyle.PIVOT_SCREEN, AttackPlan.SAFE_CIRCULATION),
    ],
)
def test_attack_plan_against(shape: DefenseShape, style: AttackStyle, plan: AttackPlan) -> None:
    assert attack_plan_against(shape, style) is plan


def test_aggression_raises_steal_and_suspension_mods() -> None:
    calm = build_tactic_mods(TacticalConfig(defense_shape=DefenseShape.FIVE_ONE, aggression=1))
    wild = build_tactic_mods(TacticalConfig(defense_shape=DefenseShape.FIVE_ONE, aggression=5))
    assert wild.steal > calm.steal
    assert wild.suspension > calm.suspension
    assert wild.penalty_shot > calm.penalty_shot
    for mods in (calm, wild):
        for value in (mods.tempo, mods.steal, mods.turnover, mods.suspension, mods.penalty_shot):
            assert 0.7 <= value <= 1.4


def test_offense_mods_normalize_shot_weights() -> None:
    assert build_offense_mods(None) is None
    mods = build_offense_mods(OffensiveInstructions(tempo=10, pass_risk=1, focus=OffenseFocus.WINGS, width=10))
    weights = mods.shot_weights
    assert abs(weights.backcourt + weights.pivot + weights.wings + weights.breakthrough - 1.0) < 1e-9
    assert weights.wings > weights.pivot
    assert mods.pace == pytest.approx(1.30)
    assert mods.turnover_delta == pytest.approx(-0.04)


def test_offensive_instructions_from_raw_clamps() -> None:
    parsed = offensive_instructions_from_raw({"tempo": 40, "pass_risk": "x", "focus": "Pivot", "width": -3})
    assert parsed == OffensiveInstructions(tempo=10, pass_risk=5, focus=OffenseFocus.PIVOT, width=1)
    assert offensive_instructions_from_raw(None) is None


def test_global_pace_bounds() -> None:
    fast = TacticalConfig(defense_shape=DefenseShape.THREE_TWO_ONE, tempo=Tempo.FAST)
    slow = TacticalConfig(tempo=Tempo.SLOW)
    assert global_pace(fast, fast) == pytest.approx(1.06 * 1.05)
    assert global_pace(slow, slow) == pytest.approx(0.92)
    assert global_pace(TacticalConfig(), TacticalConfig()) == 1.0
    assert 0.90 <= global_pace(slow, fast) <= 1.15

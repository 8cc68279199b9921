from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Mapping

from hms.contracts import (
    AttackPlan,
    AttackStyle,
    DefenseMode,
    DefenseProfile,
    DefenseShape,
    OffenseFocus,
    OffenseMods,
    OffensiveInstructions,
    ShotWeights,
    TacticalConfig,
    TacticMods,
    Tempo,
)
from hms.core import clamp, clamped_number, round_half_up, to_number

logger = logging.getLogger(__name__)

MOD_FLOOR = 0.7
MOD_CEILING = 1.4

_DEFENSE_PROFILES: dict[DefenseShape, DefenseProfile] = {
    DefenseShape.THREE_TWO_ONE: DefenseProfile(
        pressure=0.78, interception=0.18, gap_risk=0.22, block=0.07, wing_opening=0.12, fast_break=0.18, foul_rate=0.19
    ),
    DefenseShape.FIVE_ONE: DefenseProfile(
        pressure=0.62, interception=0.14, gap_risk=0.16, block=0.09, wing_opening=0.10, fast_break=0.14, foul_rate=0.17
    ),
    DefenseShape.SIX_ZERO: DefenseProfile(
        pressure=0.46, interception=0.08, gap_risk=0.10, block=0.14, wing_opening=0.09, fast_break=0.09, foul_rate=0.16
    ),
}
_SIX_ZERO_MODE_PROFILES: dict[DefenseMode, DefenseProfile] = {
    DefenseMode.OFFENSIVE: DefenseProfile(
        pressure=0.58, interception=0.15, gap_risk=0.17, block=0.12, wing_opening=0.12, fast_break=0.15, foul_rate=0.18
    ),
    DefenseMode.DUTCH: DefenseProfile(
        pressure=0.62, interception=0.13, gap_risk=0.12, block=0.13, wing_opening=0.10, fast_break=0.12, foul_rate=0.16
    ),
}

# tempo, steal, turnover, suspension, penalty shot
_SHAPE_MODS: dict[DefenseShape, tuple[float, float, float, float, float]] = {
    DefenseShape.SIX_ZERO: (0.95, 0.85, 0.95, 0.95, 0.95),
    DefenseShape.FIVE_ONE: (1.05, 1.20, 1.10, 1.15, 1.05),
    DefenseShape.THREE_TWO_ONE: (1.10, 1.25, 1.15, 1.10, 1.10),
}

_TEMPO_PACE = {Tempo.SLOW: 0.92, Tempo.NORMAL: 1.00, Tempo.FAST: 1.06}


def normalize_defense_shape(raw: object) -> DefenseShape:
    text = _text(raw, "6-0").replace(" ", "")
    if "321" in text or "3-2-1" in text:
        return DefenseShape.THREE_TWO_ONE
    if "51" in text or "5-1" in text:
        return DefenseShape.FIVE_ONE
    return DefenseShape.SIX_ZERO


def normalize_defense_mode(raw: object) -> DefenseMode:
    text = _text(raw, "standard")
    if "dutch" in text:
        return DefenseMode.DUTCH
    if "offen" in text or "ball" in text:
        return DefenseMode.OFFENSIVE
    return DefenseMode.STANDARD


def normalize_attack_style(raw: object) -> AttackStyle:
    text = _text(raw, "balanced")
    if "4" in text or "four" in text:
        return AttackStyle.FOUR_BACKS
    if "pivot" in text:
        return AttackStyle.PIVOT_SCREEN
    if "switch" in text:
        return AttackStyle.FAST_SWITCH
    if "behind" in text:
        return AttackStyle.BEHIND_FRONT
    return AttackStyle.BALANCED


def normalize_tempo(raw: object) -> Tempo:
    text = _text(raw, "normal")
    if "slow" in text:
        return Tempo.SLOW
    if "fast" in text:
        return Tempo.FAST
    return Tempo.NORMAL


def normalize_aggression(raw: object) -> int:
    return int(clamp(round_half_up(to_number(raw, 3)), 1, 5))


def tactical_config_from_raw(raw: TacticalConfig | Mapping[str, Any] | None) -> TacticalConfig:
    """Normalize loose tactic input; unknown values fall back to the 6-0 / balanced baseline."""
    if isinstance(raw, TacticalConfig):
        return raw
    data: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}
    config = TacticalConfig(
        defense_shape=normalize_defense_shape(_first(data, "defense", "defense_shape", "defense_formation")),
        defense_mode=normalize_defense_mode(_first(data, "defense_mode", "mode")),
        attack_style=normalize_attack_style(_first(data, "attack", "attack_style")),
        tempo=normalize_tempo(_first(data, "tempo")),
        aggression=normalize_aggression(_first(data, "aggression", "aggr")),
    )
    logger.debug("normalized tactics %s -> %s", dict(data), config)
    return config


def offensive_instructions_from_raw(
    raw: OffensiveInstructions | Mapping[str, Any] | None,
) -> OffensiveInstructions | None:
    if raw is None or isinstance(raw, OffensiveInstructions):
        return raw
    focus_raw = _text(raw.get("focus"), "balanced")
    try:
        focus = OffenseFocus(focus_raw)
    except ValueError:
        focus = OffenseFocus.BALANCED
    return OffensiveInstructions(
        tempo=int(clamped_number(raw.get("tempo"), 5, 1, 10)),
        pass_risk=int(clamped_number(raw.get("pass_risk"), 5, 1, 10)),
        focus=focus,
        width=int(clamped_number(raw.get("width"), 5, 1, 10)),
        press_after_goal=bool(raw.get("press_after_goal", False)),
    )


def defense_profile(shape: DefenseShape, mode: DefenseMode = DefenseMode.STANDARD) -> DefenseProfile:
    if shape is DefenseShape.SIX_ZERO and mode in _SIX_ZERO_MODE_PROFILES:
        return _SIX_ZERO_MODE_PROFILES[mode]
    return _DEFENSE_PROFILES[shape]


def attack_plan_against(defense_shape: DefenseShape, attack_style: AttackStyle) -> AttackPlan:
    if defense_shape is DefenseShape.FIVE_ONE:
        if attack_style is AttackStyle.FAST_SWITCH:
            return AttackPlan.FAST_SWITCH
        return AttackPlan.BEHIND_FRONT
    if defense_shape is DefenseShape.SIX_ZERO:
        if attack_style is AttackStyle.PIVOT_SCREEN:
            return AttackPlan.PIVOT_SCREEN_9M
        if attack_style is AttackStyle.FAST_SWITCH:
            return AttackPlan.FAST_SWITCH
        return AttackPlan.FOUR_BACKS
    if attack_style is AttackStyle.FAST_SWITCH:
        return AttackPlan.FAST_SWITCH
    return AttackPlan.SAFE_CIRCULATION


def build_tactic_mods(tactics: TacticalConfig) -> TacticMods:
    tempo, steal, turnover, suspension, penalty_shot = _SHAPE_MODS[tactics.defense_shape]
    steps = tactics.aggression - 3
    steal *= 1 + steps * 0.08
    suspension *= 1 + steps * 0.10
    penalty_shot *= 1 + steps * 0.05
    return TacticMods(
        defense_shape=tactics.defense_shape,
        aggression=tactics.aggression,
        tempo=clamp(tempo, MOD_FLOOR, MOD_CEILING),
        steal=clamp(steal, MOD_FLOOR, MOD_CEILING),
        turnover=clamp(turnover, MOD_FLOOR, MOD_CEILING),
        suspension=clamp(suspension, MOD_FLOOR, MOD_CEILING),
        penalty_shot=clamp(penalty_shot, MOD_FLOOR, MOD_CEILING),
    )


def build_offense_mods(instructions: OffensiveInstructions | None) -> OffenseMods | None:
    if instructions is None:
        return None
    pace = clamp(1 + (instructions.tempo - 5) * 0.06, 0.75, 1.35)
    turnover_delta = clamp((instructions.pass_risk - 5) * 0.010, -0.06, 0.10)

    pivot, wings, backcourt, breakthrough = 0.22, 0.18, 0.45, 0.15
    if instructions.focus is OffenseFocus.PIVOT:
        pivot += 0.16
        backcourt -= 0.08
        wings -= 0.05
    elif instructions.focus is OffenseFocus.WINGS:
        wings += 0.16
        backcourt -= 0.08
        pivot -= 0.05
    elif instructions.focus is OffenseFocus.BACKCOURT:
        backcourt += 0.14
        pivot -= 0.06
        wings -= 0.04

    width = (instructions.width - 5) / 5
    wings += 0.05 * width
    breakthrough += 0.03 * width
    if instructions.press_after_goal:
        breakthrough += 0.03

    pivot, wings, backcourt, breakthrough = (max(0.05, w) for w in (pivot, wings, backcourt, breakthrough))
    total = pivot + wings + backcourt + breakthrough
    return OffenseMods(
        pace=pace,
        turnover_delta=turnover_delta,
        shot_weights=ShotWeights(
            backcourt=backcourt / total,
            pivot=pivot / total,
            wings=wings / total,
            breakthrough=breakthrough / total,
        ),
    )


def tempo_multiplier(tempo: Tempo) -> float:
    return _TEMPO_PACE[tempo]


def global_pace(tactics_a: TacticalConfig, tactics_b: TacticalConfig) -> float:
    """Match-wide pace factor; faster pace means shorter possessions."""
    pace = (tempo_multiplier(tactics_a.tempo) + tempo_multiplier(tactics_b.tempo)) / 2
    shape_a = 1.05 if tactics_a.defense_shape is DefenseShape.THREE_TWO_ONE else 1.0
    shape_b = 1.05 if tactics_b.defense_shape is DefenseShape.THREE_TWO_ONE else 1.0
    return clamp(pace * (shape_a + shape_b) / 2, 0.90, 1.15)


def _first(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def _text(raw: object, default: str) -> str:
    if raw is None:
        return default
    if isinstance(raw, Enum):
        raw = raw.value
    return str(raw).lower()

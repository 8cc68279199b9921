"""Referee behavior model.

Turns configured strictness and tolerance into the probability that a foul
escalates to a two-minute suspension or a 7m penalty shot. A small per-match
jitter is drawn once from the match stream so two referees with identical
settings still call games slightly differently.
"""

from __future__ import annotations

from typing import Any, Mapping

from hms.contracts import RandomSource, RefereeConfig
from hms.core import clamp, clamped_number

JITTER_SPAN = 0.08


def resolve_referee(
    settings: Mapping[str, Any] | None,
    random_source: RandomSource,
    defaults: Mapping[str, float] | None = None,
) -> RefereeConfig:
    settings = settings or {}
    defaults = defaults or {}
    strictness = clamped_number(settings.get("strictness"), defaults.get("strictness", 50.0), 0, 100)
    advantage_bias = clamped_number(settings.get("advantage_bias"), defaults.get("advantage_bias", 55.0), 0, 100)
    passive = clamped_number(settings.get("passive_strictness"), defaults.get("passive_strictness", 55.0), 0, 100)
    line_tolerance = clamped_number(
        settings.get("line_tolerance"), defaults.get("line_tolerance", 100.0 - strictness), 0, 100
    )
    return RefereeConfig(
        strictness=strictness,
        advantage_bias=advantage_bias,
        passive_strictness=passive,
        line_tolerance=line_tolerance,
        jitter=(random_source.rand() - 0.5) * JITTER_SPAN,
    )


def suspension_probability(referee: RefereeConfig, severity: float, clear_chance: bool) -> float:
    base = 0.08 + clamp(severity, 0.0, 1.0) * 0.28
    strict_boost = (referee.strictness / 100) * 0.18
    clear_boost = 0.10 if clear_chance else 0.0
    return clamp(base + strict_boost + clear_boost + referee.jitter, 0.05, 0.65)


def penalty_shot_probability(referee: RefereeConfig, clear_chance: bool) -> float:
    if not clear_chance:
        return 0.0
    strict_boost = (referee.strictness / 100) * 0.12
    return clamp(0.74 + strict_boost + referee.jitter, 0.55, 0.92)


def contact_adjustment(referee: RefereeConfig) -> float:
    """Shot-quality penalty from how much contact the referee lets go on the 6m line."""
    return (50 - referee.line_tolerance) / 500

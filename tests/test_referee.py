from __future__ import annotations

from hms.contracts import RefereeConfig
from hms.core import seeded_random
from hms.handball.referee import contact_adjustment, penalty_shot_probability, resolve_referee, suspension_probability


def test_resolve_referee_defaults_and_tolerance() -> None:
    referee = resolve_referee(None, seeded_random(1))
    assert referee.strictness == 50.0
    assert referee.advantage_bias == 55.0
    assert referee.passive_strictness == 55.0
    assert referee.line_tolerance == 50.0
    assert -0.04 <= referee.jitter < 0.04


def test_line_tolerance_follows_strictness_unless_given() -> None:
    strict = resolve_referee({"strictness": 80}, seeded_random(2))
    assert strict.line_tolerance == 20.0
    explicit = resolve_referee({"strictness": 80, "line_tolerance": 65}, seeded_random(2))
    assert explicit.line_tolerance == 65.0


def test_resolve_referee_clamps_and_ignores_junk() -> None:
    referee = resolve_referee({"strictness": 250, "advantage_bias": "loud", "passive_strictness": -4}, seeded_random(3))
    assert referee.strictness == 100.0
    assert referee.advantage_bias == 55.0
    assert referee.passive_strictness == 0.0


def test_jitter_is_deterministic_per_stream() -> None:
    assert resolve_referee({}, seeded_random(9)).jitter == resolve_referee({}, seeded_random(9)).jitter


def test_escalation_probabilities_are_bounded() -> None:
    for strictness in (0, 25, 50, 75, 100):
        for jitter in (-0.04, 0.0, 0.04):
            referee = RefereeConfig(strictness=strictness, jitter=jitter)
            for severity in (0.0, 0.5, 1.0, 3.0):
                for clear in (True, False):
                    assert 0.05 <= suspension_probability(referee, severity, clear) <= 0.65
                    assert 0.0 <= penalty_shot_probability(referee, clear) <= 0.92


def test_strict_referee_escalates_more() -> None:
    lenient = RefereeConfig(strictness=0)
    strict = RefereeConfig(strictness=100)
    assert suspension_probability(strict, 0.5, False) > suspension_probability(lenient, 0.5, False)
    assert penalty_shot_probability(strict, True) > penalty_shot_probability(lenient, True)
    assert penalty_shot_probability(strict, False) == 0.0


def test_contact_adjustment_sign() -> None:
    assert contact_adjustment(RefereeConfig(line_tolerance=50)) == 0.0
    assert contact_adjustment(RefereeConfig(line_tolerance=0)) > 0
    assert contact_adjustment(RefereeConfig(line_tolerance=100)) < 0

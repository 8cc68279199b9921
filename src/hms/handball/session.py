from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Mapping

from hms.contracts import (
    CalibrationConfig,
    EventCode,
    Foul,
    MatchMeta,
    MatchStats,
    OffenseMods,
    RandomSource,
    RefereeConfig,
    Shot,
    ShotType,
    Side,
    TacticalConfig,
    TacticMods,
    TeamRating,
    TimelineEvent,
    Turnover,
    TurnoverKind,
)
from hms.core import clamp, round_half_up, seeded_random
from hms.handball.possession import PossessionContext, PossessionResolver
from hms.handball.referee import resolve_referee
from hms.handball.tactics import attack_plan_against, defense_profile, global_pace

logger = logging.getLogger(__name__)

MATCH_SECONDS = 60 * 60
MAX_POSSESSIONS = 420
TIMELINE_CAP = 140
SUSPENSION_POSSESSIONS = 2
MIN_ACTION_SECONDS = 6
MAX_ACTION_SECONDS = 35

# base seconds, random spread
_ACTION_DURATION: dict[str, tuple[int, int]] = {
    "fastbreak": (8, 6),
    "shot": (18, 14),
    "foul": (16, 12),
    "turnover": (14, 12),
}


@dataclass(slots=True)
class TeamPlan:
    """Everything about one side that stays fixed for the whole match."""

    name: str
    rating: TeamRating
    tactics: TacticalConfig
    mods: TacticMods
    offense: OffenseMods | None = None


@dataclass(slots=True)
class _ClockState:
    seconds: int = 0
    short_handed: dict[Side, int] = field(default_factory=lambda: {Side.A: 0, Side.B: 0})

    @property
    def stamp(self) -> str:
        return f"{self.seconds // 60:02d}:{self.seconds % 60:02d}"


class MatchSession:
    """Runs the possession loop for one pass of a match.

    A session is built once per call and can be run more than once; each run
    draws from its own stream, so passes never share random state.
    """

    def __init__(
        self,
        team_a: TeamPlan,
        team_b: TeamPlan,
        *,
        referee_settings: Mapping[str, Any] | None = None,
        referee_defaults: Mapping[str, float] | None = None,
        calibration: CalibrationConfig | None = None,
        match_seconds: int = MATCH_SECONDS,
        max_possessions: int = MAX_POSSESSIONS,
        timeline_cap: int = TIMELINE_CAP,
        resolver: PossessionResolver | None = None,
    ) -> None:
        self._teams = {Side.A: team_a, Side.B: team_b}
        self._referee_settings = referee_settings
        self._referee_defaults = referee_defaults
        self._calibration = calibration or CalibrationConfig()
        self._match_seconds = match_seconds
        self._max_possessions = max_possessions
        self._timeline_cap = timeline_cap
        self._resolver = resolver or PossessionResolver()
        self._pace = global_pace(team_a.tactics, team_b.tactics)

    def team(self, side: Side) -> TeamPlan:
        return self._teams[side]

    def run(self, seed: int, goal_scale: float = 1.0, pass_index: int = 1) -> MatchStats:
        random_source = seeded_random(seed)
        referee = resolve_referee(self._referee_settings, random_source, self._referee_defaults)
        stats = MatchStats(
            meta=MatchMeta(
                seed=seed,
                goal_scale=goal_scale,
                passes=pass_index,
                calibration=self._calibration,
                referee=referee,
                teams=(self._teams[Side.A].name, self._teams[Side.B].name),
                tactics_a=self._teams[Side.A].tactics,
                tactics_b=self._teams[Side.B].tactics,
            )
        )
        clock = _ClockState()
        attacking = Side.A if random_source.rand() < 0.5 else Side.B

        possessions = 0
        while possessions < self._max_possessions and clock.seconds < self._match_seconds:
            self._play_possession(attacking, clock, stats, referee, random_source, goal_scale)
            for side, remaining in clock.short_handed.items():
                if remaining > 0:
                    clock.short_handed[side] = remaining - 1
            attacking = attacking.other
            possessions += 1

        logger.debug(
            "pass %d seed=%d scale=%.3f possessions=%d score=%s",
            pass_index,
            seed,
            goal_scale,
            possessions,
            stats.score,
        )
        return stats

    def _play_possession(
        self,
        attacking: Side,
        clock: _ClockState,
        stats: MatchStats,
        referee: RefereeConfig,
        random_source: RandomSource,
        goal_scale: float,
    ) -> None:
        defending = attacking.other
        att = self._teams[attacking]
        dfn = self._teams[defending]
        ctx = PossessionContext(
            referee=referee,
            attack=att.rating,
            defense=dfn.rating,
            defense_profile=defense_profile(dfn.tactics.defense_shape, dfn.tactics.defense_mode),
            defense_shape=dfn.tactics.defense_shape,
            plan=attack_plan_against(dfn.tactics.defense_shape, att.tactics.attack_style),
            defense_mods=dfn.mods,
            offense_mods=att.offense,
            defense_short_handed=clock.short_handed[defending] > 0,
            goal_scale=goal_scale,
        )
        tempo = clamp((att.mods.tempo + dfn.mods.tempo) / 2, 0.7, 1.4)
        if att.offense is not None:
            tempo = clamp(tempo * att.offense.pace, 0.55, 1.7)

        outcome = self._resolver.resolve(ctx, random_source)
        attack_stats = stats.side(attacking)
        defense_stats = stats.side(defending)
        stamp = clock.stamp

        if isinstance(outcome, Turnover):
            attack_stats.turnovers += 1
            attack_stats.turnovers_by_kind[outcome.kind] += 1
            if outcome.kind is TurnoverKind.STEAL:
                attack_stats.steals += 1
            self._log(stats, TimelineEvent(stamp, attacking, EventCode.TURNOVER, outcome.kind.value))
            self._advance(clock, "turnover", tempo, random_source)
        elif isinstance(outcome, Foul):
            defense_stats.fouls += 1
            self._log(stats, TimelineEvent(stamp, defending, EventCode.FOUL, "clear" if outcome.clear_chance else None))
            if outcome.to_suspension:
                defense_stats.suspensions += 1
                clock.short_handed[defending] = max(clock.short_handed[defending], SUSPENSION_POSSESSIONS)
                self._log(stats, TimelineEvent(stamp, defending, EventCode.SUSPENSION))
            if outcome.to_penalty_shot:
                attack_stats.penalty_shots += 1
                shot = self._resolver.resolve_penalty_shot(ctx, random_source)
                attack_stats.shots[ShotType.SEVEN_M] += 1
                if shot.is_goal:
                    attack_stats.goals[ShotType.SEVEN_M] += 1
                    self._log(stats, TimelineEvent(stamp, attacking, EventCode.PENALTY_GOAL))
                else:
                    defense_stats.saves += 1
                    self._log(stats, TimelineEvent(stamp, attacking, EventCode.PENALTY_SAVE))
                self._advance(clock, "shot", tempo, random_source)
            else:
                self._advance(clock, "foul", tempo, random_source)
        elif isinstance(outcome, Shot):
            attack_stats.shots[outcome.shot_type] += 1
            if outcome.is_goal:
                attack_stats.goals[outcome.shot_type] += 1
                self._log(stats, TimelineEvent(stamp, attacking, EventCode.GOAL, outcome.shot_type.value))
            elif outcome.is_block:
                defense_stats.blocks += 1
                self._log(stats, TimelineEvent(stamp, defending, EventCode.BLOCK, outcome.shot_type.value))
            else:
                defense_stats.saves += 1
                self._log(stats, TimelineEvent(stamp, defending, EventCode.SAVE, outcome.shot_type.value))
            action = "fastbreak" if outcome.shot_type is ShotType.FASTBREAK else "shot"
            self._advance(clock, action, tempo, random_source)

    def _advance(self, clock: _ClockState, action: str, tempo: float, random_source: RandomSource) -> None:
        base, spread = _ACTION_DURATION[action]
        seconds = base + int(random_source.rand() * spread)
        seconds += math.floor((random_source.rand() - 0.5) * 6)
        scaled = seconds / self._pace / tempo
        step = int(clamp(round_half_up(scaled), MIN_ACTION_SECONDS, MAX_ACTION_SECONDS))
        clock.seconds = min(clock.seconds + step, self._match_seconds)

    def _log(self, stats: MatchStats, event: TimelineEvent) -> None:
        if len(stats.timeline) < self._timeline_cap:
            stats.timeline.append(event)

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Mapping

from hms.contracts import (
    MatchOptions,
    MatchResult,
    OffensiveInstructions,
    StaffContext,
    TacticalConfig,
    TeamSnapshot,
)
from hms.core import EmptyRosterError, build_forensic_artifact, match_seed
from hms.handball.calibration import calibration_config_from_raw, run_calibrated
from hms.handball.context import compute_staff_impact, resolve_active_team, staff_context_from_impact, staff_of
from hms.handball.intake import match_options_from_raw, team_from_mapping
from hms.handball.normalizer import normalize_shots
from hms.handball.possession import PossessionResolver
from hms.handball.ratings import compute_team_rating
from hms.handball.resources import EngineResources
from hms.handball.session import MatchSession, TeamPlan
from hms.handball.tactics import (
    build_offense_mods,
    build_tactic_mods,
    offensive_instructions_from_raw,
    tactical_config_from_raw,
)

logger = logging.getLogger(__name__)

TeamInput = TeamSnapshot | Mapping[str, Any] | None
OptionsInput = MatchOptions | Mapping[str, Any] | None


class MatchEngine:
    """Entry point for simulating full matches.

    The engine holds only configuration; every call builds its own random
    stream and session, and caller snapshots are never modified.
    """

    def __init__(
        self,
        resources: EngineResources | None = None,
        resolver: PossessionResolver | None = None,
    ) -> None:
        self._resources = resources or EngineResources()
        self._resolver = resolver or PossessionResolver()

    def simulate_match(self, team_a: TeamInput, team_b: TeamInput, options: OptionsInput = None) -> MatchResult:
        opts = match_options_from_raw(options)
        defaults = self._resources.default_tactics
        snapshot_a = team_from_mapping(team_a, defaults)
        snapshot_b = team_from_mapping(team_b, defaults)
        self._require_players(snapshot_a, snapshot_b)

        seed = match_seed(snapshot_a.name, snapshot_b.name, opts.seed)
        calibration = calibration_config_from_raw(opts.calibration, self._resources.calibration)
        plan_a = self._team_plan(snapshot_a, opts.tactics_a, opts.staff_a, opts.offense_a)
        plan_b = self._team_plan(snapshot_b, opts.tactics_b, opts.staff_b, opts.offense_b)

        session = MatchSession(
            plan_a,
            plan_b,
            referee_settings=opts.referee,
            referee_defaults=self._resources.referee_defaults,
            calibration=calibration,
            match_seconds=self._resources.match_seconds,
            max_possessions=self._resources.max_possessions,
            timeline_cap=self._resources.timeline_cap,
            resolver=self._resolver,
        )
        stats = run_calibrated(session, seed, calibration)
        if opts.normalize_shots:
            stats = normalize_shots(stats)
        report = stats.freeze()

        score = report.score
        if score[0] == score[1]:
            winner = "draw"
        else:
            winner = "A" if score[0] > score[1] else "B"
        logger.debug(
            "%s %d-%d %s (seed=%d passes=%d)", plan_a.name, score[0], score[1], plan_b.name, seed, report.meta.passes
        )
        return MatchResult(
            score=score,
            winner=winner,
            teams=(plan_a.name, plan_b.name),
            rating_a=plan_a.rating,
            rating_b=plan_b.rating,
            stats=report,
        )

    def simulate_from_state(
        self, state: Mapping[str, Any] | None, opponent_team: TeamInput, options: OptionsInput = None
    ) -> MatchResult:
        """Simulate the career's active team (side A) against ``opponent_team``."""
        active = resolve_active_team(state)
        opts = match_options_from_raw(options)
        staff = staff_context_from_impact(compute_staff_impact(staff_of(active.team)))
        logger.debug("simulating from state: %s %s", active.kind, active.key)
        return self.simulate_match(active.team or {}, opponent_team, replace(opts, staff_a=staff))

    def _team_plan(
        self,
        team: TeamSnapshot,
        tactics_override: TacticalConfig | Mapping[str, Any] | None,
        staff_override: StaffContext | None,
        offense_override: OffensiveInstructions | Mapping[str, Any] | None,
    ) -> TeamPlan:
        tactics = tactical_config_from_raw(tactics_override) if tactics_override is not None else team.active_tactics
        offense = offensive_instructions_from_raw(offense_override) if offense_override is not None else team.offense
        return TeamPlan(
            name=team.name,
            rating=compute_team_rating(team.players, staff_override or team.staff),
            tactics=tactics,
            mods=build_tactic_mods(tactics),
            offense=build_offense_mods(offense),
        )

    def _require_players(self, team_a: TeamSnapshot, team_b: TeamSnapshot) -> None:
        empty = [label for label, team in (("A", team_a), ("B", team_b)) if not team.players]
        if not empty:
            return
        raise EmptyRosterError(
            build_forensic_artifact(
                engine_scope="handball",
                error_code="EMPTY_ROSTER",
                message=f"cannot simulate with an empty roster on side(s) {', '.join(empty)}",
                state_snapshot={"players_a": len(team_a.players), "players_b": len(team_b.players)},
                context={"empty_sides": empty},
                identifiers={"team_a": team_a.name, "team_b": team_b.name},
                causal_fragment=["roster_gate"],
            ),
            empty_teams=empty,
        )


def simulate_match(team_a: TeamInput, team_b: TeamInput, options: OptionsInput = None) -> MatchResult:
    return MatchEngine().simulate_match(team_a, team_b, options)


def simulate_from_state(
    state: Mapping[str, Any] | None, opponent_team: TeamInput, options: OptionsInput = None
) -> MatchResult:
    return MatchEngine().simulate_from_state(state, opponent_team, options)

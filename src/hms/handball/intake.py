"""Conversion of loosely shaped team data into engine snapshots.

Career saves and JSON fixtures carry teams under several historical key names;
everything here tolerates missing or junk fields and substitutes neutral values.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from hms.contracts import (
    MatchOptions,
    PlayerAttributes,
    PlayerSnapshot,
    Position,
    StaffContext,
    TacticalConfig,
    TeamSnapshot,
)
from hms.core import clamped_number, round_half_up
from hms.handball.tactics import offensive_instructions_from_raw, tactical_config_from_raw

logger = logging.getLogger(__name__)

_ATTRIBUTE_GROUPS = ("offense", "defense", "physical", "mental", "goalkeeping")
_POSITION_ALIASES = {"P": Position.PIV, "PV": Position.PIV, "PIVOT": Position.PIV, "GOALKEEPER": Position.GK}


def _first(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return default


def position_from_raw(raw: object) -> Position | None:
    if isinstance(raw, Position):
        return raw
    text = str(raw or "").strip().upper()
    if not text:
        return None
    try:
        return Position(text)
    except ValueError:
        return _POSITION_ALIASES.get(text)


def _attributes_from_raw(raw: object) -> PlayerAttributes:
    if not isinstance(raw, Mapping):
        return PlayerAttributes()
    groups = {
        group: dict(raw[group]) if isinstance(raw.get(group), Mapping) else {} for group in _ATTRIBUTE_GROUPS
    }
    return PlayerAttributes(**groups)


def player_from_mapping(raw: PlayerSnapshot | Mapping[str, Any], index: int = 0) -> PlayerSnapshot:
    if isinstance(raw, PlayerSnapshot):
        return raw
    player_id = str(_first(raw, "player_id", "id", default=f"P{index:03d}"))
    return PlayerSnapshot(
        player_id=player_id,
        name=str(_first(raw, "name", default=player_id)),
        position=position_from_raw(_first(raw, "position", "pos")),
        overall=round_half_up(clamped_number(_first(raw, "overall", "ovr", "rating", "avg_rating"), 10, 1, 20)),
        fitness=clamped_number(_first(raw, "fitness", "condition"), 70.0, 0, 100),
        morale=clamped_number(_first(raw, "morale"), 13.0, 0, 25),
        attributes=_attributes_from_raw(raw.get("attributes")),
    )


def staff_context_from_raw(raw: StaffContext | Mapping[str, Any] | None) -> StaffContext | None:
    if raw is None or isinstance(raw, StaffContext):
        return raw
    return StaffContext(
        match=clamped_number(raw.get("match"), 1.0, 0.90, 1.10),
        mental=clamped_number(raw.get("mental"), 1.0, 0.90, 1.10),
    )


def team_from_mapping(
    raw: TeamSnapshot | Mapping[str, Any] | None, default_tactics: TacticalConfig | None = None
) -> TeamSnapshot:
    """Build a ``TeamSnapshot`` from a club, national team or fixture record.

    Stored tactics fall back to ``default_tactics`` when the record has none.
    """
    if isinstance(raw, TeamSnapshot):
        return raw
    if not isinstance(raw, Mapping):
        raw = {}
    roster: Sequence[Any] = _first(raw, "players", "squad", default=())
    if not isinstance(roster, (list, tuple)):
        roster = ()
    players = tuple(
        player_from_mapping(p, idx) for idx, p in enumerate(roster) if isinstance(p, (Mapping, PlayerSnapshot))
    )
    next_raw = _first(raw, "next_tactics", "tactics_next")
    team = TeamSnapshot(
        name=str(_first(raw, "name", "club_name", "title", default="Team")),
        players=players,
        tactics=tactical_config_from_raw(raw.get("tactics") or default_tactics),
        next_tactics=tactical_config_from_raw(next_raw) if next_raw is not None else None,
        staff=staff_context_from_raw(raw.get("staff_context")),
        offense=offensive_instructions_from_raw(raw.get("offense")),
    )
    logger.debug("team %s built from mapping with %d players", team.name, len(players))
    return team


def match_options_from_raw(raw: MatchOptions | Mapping[str, Any] | None) -> MatchOptions:
    if isinstance(raw, MatchOptions):
        return raw
    if raw is None:
        return MatchOptions()
    seed = raw.get("seed")
    return MatchOptions(
        seed=None if seed is None else str(seed),
        referee=raw.get("referee"),
        tactics_a=raw.get("tactics_a"),
        tactics_b=raw.get("tactics_b"),
        calibration=raw.get("calibration"),
        staff_a=staff_context_from_raw(raw.get("staff_a")),
        staff_b=staff_context_from_raw(raw.get("staff_b")),
        offense_a=raw.get("offense_a"),
        offense_b=raw.get("offense_b"),
        normalize_shots=bool(raw.get("normalize_shots", True)),
    )

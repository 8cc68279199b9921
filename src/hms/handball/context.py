from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from hms.contracts import StaffContext
from hms.core import clamp, to_number

logger = logging.getLogger(__name__)

NEUTRAL_STAFF_RATING = 10.0
STAFF_POOLS = ("tactical", "training", "mental", "strategic", "impact")

ROLE_WEIGHTS: dict[str, float] = {
    "assistant": 1.00,
    "analyst": 0.75,
    "fitness": 0.75,
    "physio": 0.55,
    "gk": 0.50,
    "scout": 0.35,
    "other": 0.40,
}

# role key, substrings that identify it in free-text staff titles
_ROLE_MARKERS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("assistant", ("assist", "pomo")),
    ("fitness", ("fitness", "condition", "kondic")),
    ("physio", ("physio", "fizio")),
    ("gk", ("goalkeep", "golman")),
    ("analyst", ("analy", "analit")),
    ("scout", ("scout", "skaut")),
)


@dataclass(slots=True)
class StaffImpact:
    ratings: dict[str, float] = field(default_factory=dict)
    multipliers: dict[str, float] = field(default_factory=dict)


@dataclass(slots=True)
class ActiveTeam:
    """The team a career is currently managing."""

    kind: str
    key: str | None
    team: Mapping[str, Any] | None


def role_key(role: object) -> str:
    text = str(role or "").lower()
    for key, markers in _ROLE_MARKERS:
        if any(marker in text for marker in markers):
            return key
    return "other"


def multiplier_from_rating(rating: float) -> float:
    value = clamp(to_number(rating, NEUTRAL_STAFF_RATING), 1, 20)
    return clamp(1 + (value - 10) / 125, 0.90, 1.10)


def _group_average(attributes: Mapping[str, Any], group: str) -> float:
    bundle = attributes.get(group)
    if not isinstance(bundle, Mapping):
        return 0.0
    values = [float(v) for v in bundle.values() if not isinstance(v, bool) and isinstance(v, (int, float))]
    values = [v for v in values if math.isfinite(v)]
    return sum(values) / len(values) if values else 0.0


def compute_staff_impact(staff: Sequence[Mapping[str, Any]] | None) -> StaffImpact:
    """Role-weighted staff ratings per pool, mapped to small multipliers around 1.0.

    Staff with no attributes in a pool do not count toward it; an empty pool
    rates a neutral 10.
    """
    totals = {pool: 0.0 for pool in STAFF_POOLS}
    weights = {pool: 0.0 for pool in STAFF_POOLS}
    for member in staff or ():
        if not isinstance(member, Mapping):
            continue
        attributes = member.get("attributes")
        if not isinstance(attributes, Mapping):
            attributes = {}
        weight = ROLE_WEIGHTS[role_key(member.get("role"))]
        for pool in STAFF_POOLS:
            value = _group_average(attributes, pool)
            if value:
                totals[pool] += value * weight
                weights[pool] += weight

    ratings = {
        pool: totals[pool] / weights[pool] if weights[pool] > 0 else NEUTRAL_STAFF_RATING for pool in STAFF_POOLS
    }
    impact = StaffImpact(
        ratings=ratings,
        multipliers={
            "tactic": multiplier_from_rating(ratings["tactical"]),
            "training": multiplier_from_rating(ratings["training"]),
            "mental": multiplier_from_rating(ratings["mental"]),
            "strategy": multiplier_from_rating(ratings["strategic"]),
            "match": multiplier_from_rating(ratings["impact"]),
        },
    )
    logger.debug("staff impact from %d members: %s", len(staff or ()), impact.multipliers)
    return impact


def staff_context_from_impact(impact: StaffImpact) -> StaffContext:
    return StaffContext(match=impact.multipliers["match"], mental=impact.multipliers["mental"])


def _lookup(db: Mapping[str, Any], table: str, key: str | None) -> Mapping[str, Any] | None:
    if not key:
        return None
    rows = db.get(table)
    if not isinstance(rows, Mapping):
        return None
    team = rows.get(key)
    return team if isinstance(team, Mapping) else None


def resolve_active_team(state: Mapping[str, Any] | None) -> ActiveTeam:
    """Find the club or national team the career is managing.

    ``career.active`` ("CLUB" or "NT") decides which one is tried first, with
    ``career.mode`` as a fallback; when that team is missing the other kind is
    tried. Saves without a database fall back to a legacy ``club_data`` record.
    """
    state = state or {}
    career = state.get("career")
    if not isinstance(career, Mapping):
        career = {}
    club_key = career.get("club_key") or career.get("club_id")
    nt_key = career.get("nt_key") or career.get("nt_id")
    active = career.get("active")
    if active not in ("CLUB", "NT"):
        active = "NT" if career.get("mode") == "NT" else "CLUB"

    db = state.get("db")
    if isinstance(db, Mapping):
        order = [("NT", "nts", nt_key), ("CLUB", "clubs", club_key)]
        if active == "CLUB":
            order.reverse()
        for kind, table, key in order:
            team = _lookup(db, table, key)
            if team is not None:
                if kind != active:
                    logger.debug("active %s team missing, falling back to %s %s", active, kind, key)
                return ActiveTeam(kind=kind, key=key, team=team)

    legacy = state.get("club_data") or career.get("club_data")
    if isinstance(legacy, Mapping):
        return ActiveTeam(kind="CLUB", key=club_key, team=legacy)
    return ActiveTeam(kind=active, key=nt_key if active == "NT" else club_key, team=None)


def staff_of(team: Mapping[str, Any] | None) -> list[Mapping[str, Any]]:
    staff = (team or {}).get("staff")
    return list(staff) if isinstance(staff, (list, tuple)) else []

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Protocol, Sequence


class Position(str, Enum):
    GK = "GK"
    LW = "LW"
    LB = "LB"
    CB = "CB"
    RB = "RB"
    RW = "RW"
    PIV = "PIV"


class DefenseShape(str, Enum):
    SIX_ZERO = "6-0"
    FIVE_ONE = "5-1"
    THREE_TWO_ONE = "3-2-1"


class DefenseMode(str, Enum):
    STANDARD = "standard"
    OFFENSIVE = "offensive"
    DUTCH = "dutch"


class AttackStyle(str, Enum):
    BALANCED = "balanced"
    FOUR_BACKS = "four-backs"
    PIVOT_SCREEN = "pivot-screen"
    FAST_SWITCH = "fast-switch"
    BEHIND_FRONT = "behind-front"


class Tempo(str, Enum):
    SLOW = "slow"
    NORMAL = "normal"
    FAST = "fast"


class AttackPlan(str, Enum):
    FOUR_BACKS = "FOUR_BACKS"
    PIVOT_SCREEN_9M = "PIVOT_SCREEN_9M"
    FAST_SWITCH = "FAST_SWITCH"
    BEHIND_FRONT = "BEHIND_FRONT"
    SAFE_CIRCULATION = "SAFE_CIRCULATION"


class OffenseFocus(str, Enum):
    BALANCED = "balanced"
    PIVOT = "pivot"
    WINGS = "wings"
    BACKCOURT = "backcourt"


class ShotType(str, Enum):
    NINE_M = "9m"
    SIX_M = "6m"
    WING = "wing"
    FASTBREAK = "fastbreak"
    SEVEN_M = "7m"


OPEN_PLAY_SHOT_TYPES: tuple[ShotType, ...] = (
    ShotType.NINE_M,
    ShotType.SIX_M,
    ShotType.WING,
    ShotType.FASTBREAK,
)


class TurnoverKind(str, Enum):
    STEAL = "steal"
    TECHNICAL = "technical"


class Side(str, Enum):
    A = "A"
    B = "B"

    @property
    def other(self) -> Side:
        return Side.B if self is Side.A else Side.A


class EventCode(str, Enum):
    TURNOVER = "TO"
    FOUL = "FOUL"
    SUSPENSION = "2MIN"
    PENALTY_GOAL = "7M_GOAL"
    PENALTY_SAVE = "7M_SAVE"
    GOAL = "GOAL"
    BLOCK = "BLOCK"
    SAVE = "SAVE"


class RandomSource(Protocol):
    def rand(self) -> float: ...

    def choice(self, items: Sequence[Any]) -> Any: ...

    @property
    def seed(self) -> int: ...


@dataclass(frozen=True, slots=True)
class PlayerAttributes:
    offense: Mapping[str, float] = field(default_factory=dict)
    defense: Mapping[str, float] = field(default_factory=dict)
    physical: Mapping[str, float] = field(default_factory=dict)
    mental: Mapping[str, float] = field(default_factory=dict)
    goalkeeping: Mapping[str, float] = field(default_factory=dict)

    def attr(self, group: str, key: str, fallback: float) -> float:
        bundle = getattr(self, group, None) or {}
        raw = bundle.get(key, fallback)
        try:
            value = float(raw)
        except (TypeError, ValueError):
            value = fallback
        if value != value:
            value = fallback
        return max(1.0, min(20.0, value))


@dataclass(frozen=True, slots=True)
class PlayerSnapshot:
    player_id: str
    name: str
    position: Position | None
    overall: int = 10
    fitness: float = 70.0
    morale: float = 13.0
    attributes: PlayerAttributes = field(default_factory=PlayerAttributes)


@dataclass(frozen=True, slots=True)
class TacticalConfig:
    defense_shape: DefenseShape = DefenseShape.SIX_ZERO
    defense_mode: DefenseMode = DefenseMode.STANDARD
    attack_style: AttackStyle = AttackStyle.BALANCED
    tempo: Tempo = Tempo.NORMAL
    aggression: int = 3


@dataclass(frozen=True, slots=True)
class OffensiveInstructions:
    """Offense panel settings layered on top of the tactical configuration."""

    tempo: int = 5
    pass_risk: int = 5
    focus: OffenseFocus = OffenseFocus.BALANCED
    width: int = 5
    press_after_goal: bool = False


@dataclass(frozen=True, slots=True)
class StaffContext:
    match: float = 1.0
    mental: float = 1.0


@dataclass(frozen=True, slots=True)
class TeamSnapshot:
    name: str
    players: tuple[PlayerSnapshot, ...] = ()
    tactics: TacticalConfig = field(default_factory=TacticalConfig)
    next_tactics: TacticalConfig | None = None
    staff: StaffContext | None = None
    offense: OffensiveInstructions | None = None

    @property
    def active_tactics(self) -> TacticalConfig:
        return self.next_tactics or self.tactics


@dataclass(frozen=True, slots=True)
class Lineup:
    start: tuple[PlayerSnapshot, ...]
    bench: tuple[PlayerSnapshot, ...]


@dataclass(frozen=True, slots=True)
class RatingMultipliers:
    staff: float
    mental: float
    fitness: float
    morale: float


@dataclass(frozen=True, slots=True)
class TeamRating:
    lineup: Lineup
    start_rating: float
    bench_rating: float
    fitness: float
    morale: float
    multipliers: RatingMultipliers
    team_power: float


@dataclass(frozen=True, slots=True)
class RefereeConfig:
    strictness: float = 50.0
    advantage_bias: float = 55.0
    passive_strictness: float = 55.0
    line_tolerance: float = 50.0
    jitter: float = 0.0


@dataclass(frozen=True, slots=True)
class DefenseProfile:
    pressure: float
    interception: float
    gap_risk: float
    block: float
    wing_opening: float
    fast_break: float
    foul_rate: float


@dataclass(frozen=True, slots=True)
class TacticMods:
    defense_shape: DefenseShape
    aggression: int
    tempo: float = 1.0
    steal: float = 1.0
    turnover: float = 1.0
    suspension: float = 1.0
    penalty_shot: float = 1.0


@dataclass(frozen=True, slots=True)
class ShotWeights:
    backcourt: float
    pivot: float
    wings: float
    breakthrough: float


@dataclass(frozen=True, slots=True)
class OffenseMods:
    pace: float
    turnover_delta: float
    shot_weights: ShotWeights


@dataclass(frozen=True, slots=True)
class CalibrationConfig:
    target_total_goals: float = 58.0
    min_total_goals: float = 50.0
    max_total_goals: float = 66.0


@dataclass(slots=True)
class MatchOptions:
    seed: str | None = None
    referee: Mapping[str, Any] | None = None
    tactics_a: TacticalConfig | Mapping[str, Any] | None = None
    tactics_b: TacticalConfig | Mapping[str, Any] | None = None
    calibration: CalibrationConfig | Mapping[str, Any] | None = None
    staff_a: StaffContext | None = None
    staff_b: StaffContext | None = None
    offense_a: OffensiveInstructions | Mapping[str, Any] | None = None
    offense_b: OffensiveInstructions | Mapping[str, Any] | None = None
    normalize_shots: bool = True


@dataclass(frozen=True, slots=True)
class Turnover:
    kind: TurnoverKind


@dataclass(frozen=True, slots=True)
class Foul:
    clear_chance: bool
    to_penalty_shot: bool
    to_suspension: bool
    severity: float


@dataclass(frozen=True, slots=True)
class Shot:
    shot_type: ShotType
    shooter: PlayerSnapshot | None
    goalkeeper: PlayerSnapshot | None
    is_goal: bool
    is_block: bool
    goal_probability: float


PossessionOutcome = Turnover | Foul | Shot


@dataclass(frozen=True, slots=True)
class TimelineEvent:
    stamp: str
    team: Side
    code: EventCode
    detail: str | None = None


def _shot_counter() -> dict[ShotType, int]:
    return {shot_type: 0 for shot_type in ShotType}


@dataclass(slots=True)
class SideStats:
    shots: dict[ShotType, int] = field(default_factory=_shot_counter)
    goals: dict[ShotType, int] = field(default_factory=_shot_counter)
    saves: int = 0
    blocks: int = 0
    turnovers: int = 0
    turnovers_by_kind: dict[TurnoverKind, int] = field(
        default_factory=lambda: {kind: 0 for kind in TurnoverKind}
    )
    steals: int = 0
    fouls: int = 0
    suspensions: int = 0
    penalty_shots: int = 0

    @property
    def total_goals(self) -> int:
        return sum(self.goals.values())

    @property
    def total_shots(self) -> int:
        return sum(self.shots.values())

    def freeze(self) -> SideReport:
        return SideReport(
            shots=MappingProxyType(dict(self.shots)),
            goals=MappingProxyType(dict(self.goals)),
            saves=self.saves,
            blocks=self.blocks,
            turnovers=self.turnovers,
            turnovers_by_kind=MappingProxyType(dict(self.turnovers_by_kind)),
            steals=self.steals,
            fouls=self.fouls,
            suspensions=self.suspensions,
            penalty_shots=self.penalty_shots,
        )


@dataclass(frozen=True, slots=True)
class SideReport:
    """Read-only per-side counters as returned to callers."""

    shots: Mapping[ShotType, int]
    goals: Mapping[ShotType, int]
    saves: int
    blocks: int
    turnovers: int
    turnovers_by_kind: Mapping[TurnoverKind, int]
    steals: int
    fouls: int
    suspensions: int
    penalty_shots: int

    @property
    def total_goals(self) -> int:
        return sum(self.goals.values())

    @property
    def total_shots(self) -> int:
        return sum(self.shots.values())


@dataclass(frozen=True, slots=True)
class MatchMeta:
    seed: int
    goal_scale: float
    passes: int
    calibration: CalibrationConfig
    referee: RefereeConfig
    teams: tuple[str, str]
    tactics_a: TacticalConfig
    tactics_b: TacticalConfig
    shots_normalized: bool = False


@dataclass(slots=True)
class MatchStats:
    meta: MatchMeta
    side_a: SideStats = field(default_factory=SideStats)
    side_b: SideStats = field(default_factory=SideStats)
    timeline: list[TimelineEvent] = field(default_factory=list)

    def side(self, side: Side) -> SideStats:
        return self.side_a if side is Side.A else self.side_b

    @property
    def score(self) -> tuple[int, int]:
        return self.side_a.total_goals, self.side_b.total_goals

    @property
    def total_goals(self) -> int:
        return self.side_a.total_goals + self.side_b.total_goals

    def freeze(self) -> MatchReport:
        return MatchReport(
            meta=self.meta,
            side_a=self.side_a.freeze(),
            side_b=self.side_b.freeze(),
            timeline=tuple(self.timeline),
        )


@dataclass(frozen=True, slots=True)
class MatchReport:
    meta: MatchMeta
    side_a: SideReport
    side_b: SideReport
    timeline: tuple[TimelineEvent, ...]

    def side(self, side: Side) -> SideReport:
        return self.side_a if side is Side.A else self.side_b

    @property
    def score(self) -> tuple[int, int]:
        return self.side_a.total_goals, self.side_b.total_goals

    @property
    def total_goals(self) -> int:
        return self.side_a.total_goals + self.side_b.total_goals


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Final, read-only outcome of one simulation call."""

    score: tuple[int, int]
    winner: str
    teams: tuple[str, str]
    rating_a: TeamRating
    rating_b: TeamRating
    stats: MatchReport

    @property
    def total_goals(self) -> int:
        return self.score[0] + self.score[1]


@dataclass(slots=True)
class CalibrationBatchRequest:
    sample_count: int
    team_a: TeamSnapshot
    team_b: TeamSnapshot
    seed_prefix: str = "calibration"
    options: MatchOptions | None = None


@dataclass(slots=True)
class CalibrationBatchResult:
    run_id: str
    sample_count: int
    seed_prefix: str
    teams: tuple[str, str]
    calibration: CalibrationConfig
    mean_total_goals: float
    band_hit_rate: float
    second_pass_rate: float
    home_win_rate: float
    draw_rate: float
    total_goal_distribution: dict[int, int]
    completed_at: datetime


@dataclass(slots=True)
class ValidationIssue:
    code: str
    severity: str
    field_path: str
    entity_id: str
    message: str


class ValidationError(ValueError):
    def __init__(self, issues: list[ValidationIssue]) -> None:
        message = "; ".join(f"{i.code}:{i.entity_id}:{i.message}" for i in issues)
        super().__init__(message)
        self.issues = issues


@dataclass(slots=True)
class ResourceManifest:
    resource_type: str
    schema_version: str
    resource_version: str
    generated_at: str


@dataclass(slots=True)
class ForensicArtifact:
    artifact_id: str
    timestamp: datetime
    engine_scope: str
    error_code: str
    message: str
    state_snapshot: Mapping[str, Any]
    context: Mapping[str, Any]
    identifiers: Mapping[str, str]
    causal_fragment: Sequence[str]

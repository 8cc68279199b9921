from .types import (
    OPEN_PLAY_SHOT_TYPES,
    AttackPlan,
    AttackStyle,
    CalibrationBatchRequest,
    CalibrationBatchResult,
    CalibrationConfig,
    DefenseMode,
    DefenseProfile,
    DefenseShape,
    EventCode,
    ForensicArtifact,
    Foul,
    Lineup,
    MatchMeta,
    MatchOptions,
    MatchReport,
    MatchResult,
    MatchStats,
    OffenseFocus,
    OffenseMods,
    OffensiveInstructions,
    PlayerAttributes,
    PlayerSnapshot,
    Position,
    PossessionOutcome,
    RandomSource,
    RatingMultipliers,
    RefereeConfig,
    ResourceManifest,
    Shot,
    ShotType,
    ShotWeights,
    Side,
    SideReport,
    SideStats,
    StaffContext,
    TacticalConfig,
    TacticMods,
    TeamRating,
    TeamSnapshot,
    Tempo,
    TimelineEvent,
    Turnover,
    TurnoverKind,
    ValidationError,
    ValidationIssue,
)

__all__ = [
    "OPEN_PLAY_SHOT_TYPES",
    "AttackPlan",
    "AttackStyle",
    "CalibrationBatchRequest",
    "CalibrationBatchResult",
    "CalibrationConfig",
    "DefenseMode",
    "DefenseProfile",
    "DefenseShape",
    "EventCode",
    "ForensicArtifact",
    "Foul",
    "Lineup",
    "MatchMeta",
    "MatchOptions",
    "MatchReport",
    "MatchResult",
    "MatchStats",
    "OffenseFocus",
    "OffenseMods",
    "OffensiveInstructions",
    "PlayerAttributes",
    "PlayerSnapshot",
    "Position",
    "PossessionOutcome",
    "RandomSource",
    "RatingMultipliers",
    "RefereeConfig",
    "ResourceManifest",
    "Shot",
    "ShotType",
    "ShotWeights",
    "Side",
    "SideReport",
    "SideStats",
    "StaffContext",
    "TacticalConfig",
    "TacticMods",
    "TeamRating",
    "TeamSnapshot",
    "Tempo",
    "TimelineEvent",
    "Turnover",
    "TurnoverKind",
    "ValidationError",
    "ValidationIssue",
]

from .calibration import CalibrationService, run_calibrated
from .context import compute_staff_impact, resolve_active_team
from .engine import MatchEngine, simulate_from_state, simulate_match
from .intake import team_from_mapping
from .normalizer import normalize_shots
from .possession import PossessionResolver
from .ratings import compute_team_rating, select_lineup
from .resources import EngineResources
from .session import MatchSession, TeamPlan

__all__ = [
    "CalibrationService",
    "EngineResources",
    "MatchEngine",
    "MatchSession",
    "PossessionResolver",
    "TeamPlan",
    "compute_staff_impact",
    "compute_team_rating",
    "normalize_shots",
    "resolve_active_team",
    "run_calibrated",
    "select_lineup",
    "simulate_from_state",
    "simulate_match",
    "team_from_mapping",
]

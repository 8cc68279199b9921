from .errors import EmptyRosterError, EngineIntegrityError, build_forensic_artifact, persist_forensic_artifact
from .ids import now_utc, run_id
from .numbers import clamp, clamped_number, mean, round_half_up, to_number
from .randomness import (
    Mulberry32RandomSource,
    derive_seed,
    match_seed,
    pick_weighted,
    seed_from_string,
    seeded_random,
)

__all__ = [
    "EmptyRosterError",
    "EngineIntegrityError",
    "Mulberry32RandomSource",
    "build_forensic_artifact",
    "clamp",
    "clamped_number",
    "derive_seed",
    "match_seed",
    "mean",
    "now_utc",
    "persist_forensic_artifact",
    "pick_weighted",
    "round_half_up",
    "run_id",
    "seed_from_string",
    "seeded_random",
    "to_number",
]

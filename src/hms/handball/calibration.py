from __future__ import annotations

import json
import logging
from dataclasses import asdict, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping, Protocol

from hms.contracts import (
    CalibrationBatchRequest,
    CalibrationBatchResult,
    CalibrationConfig,
    MatchOptions,
    MatchStats,
)
from hms.core import clamp, derive_seed, now_utc, run_id, to_number

if TYPE_CHECKING:
    from hms.handball.engine import MatchEngine

logger = logging.getLogger(__name__)

MAX_PASSES = 2
REROUTE_SALT = 0x9E3779B9
SCALE_TOLERANCE = 0.06
SCALE_FLOOR = 0.85
SCALE_CEILING = 1.20


class MatchRunner(Protocol):
    def run(self, seed: int, goal_scale: float = 1.0, pass_index: int = 1) -> MatchStats: ...


def calibration_config_from_raw(
    raw: CalibrationConfig | Mapping[str, Any] | None,
    defaults: CalibrationConfig | None = None,
) -> CalibrationConfig:
    defaults = defaults or CalibrationConfig()
    if isinstance(raw, CalibrationConfig):
        return raw
    if not isinstance(raw, Mapping):
        return defaults
    return CalibrationConfig(
        target_total_goals=to_number(
            raw.get("target_total_goals", raw.get("targetTotalGoals")), defaults.target_total_goals
        ),
        min_total_goals=to_number(raw.get("min_total_goals", raw.get("minTotalGoals")), defaults.min_total_goals),
        max_total_goals=to_number(raw.get("max_total_goals", raw.get("maxTotalGoals")), defaults.max_total_goals),
    )


def corrective_scale(total_goals: int, config: CalibrationConfig) -> float:
    if total_goals <= 0:
        return 1.0
    return clamp(config.target_total_goals / total_goals, SCALE_FLOOR, SCALE_CEILING)


def within_band(total_goals: int, config: CalibrationConfig) -> bool:
    if total_goals < config.min_total_goals or total_goals > config.max_total_goals:
        return False
    return abs(1 - corrective_scale(total_goals, config)) <= SCALE_TOLERANCE


def run_calibrated(runner: MatchRunner, seed: int, config: CalibrationConfig) -> MatchStats:
    """Run at most ``MAX_PASSES`` passes and return the accepted one.

    The final pass is returned whatever its total.
    """
    goal_scale = 1.0
    stats = runner.run(seed, goal_scale, 1)
    for pass_index in range(2, MAX_PASSES + 1):
        total = stats.total_goals
        if within_band(total, config):
            break
        goal_scale = corrective_scale(total, config)
        seed = derive_seed(seed, REROUTE_SALT)
        logger.debug("calibration rerun: total=%d outside band, next scale=%.3f", total, goal_scale)
        stats = runner.run(seed, goal_scale, pass_index)
    logger.debug("calibration accepted pass %d total=%d", stats.meta.passes, stats.total_goals)
    return stats


class CalibrationService:
    """Dev-only batch runner measuring how often matches land in the goal band."""

    def __init__(self, *, engine: MatchEngine | None = None) -> None:
        if engine is None:
            from hms.handball.engine import MatchEngine

            engine = MatchEngine()
        self._engine = engine

    def run_batch(self, request: CalibrationBatchRequest) -> CalibrationBatchResult:
        if request.sample_count <= 0:
            raise ValueError("sample_count must be > 0")
        base_options = request.options or MatchOptions()

        total_goals = 0
        band_hits = 0
        second_passes = 0
        home_wins = 0
        draws = 0
        distribution: dict[int, int] = {}
        calibration = CalibrationConfig()

        for idx in range(request.sample_count):
            options = replace(base_options, seed=f"{request.seed_prefix}:{idx}")
            result = self._engine.simulate_match(request.team_a, request.team_b, options)
            calibration = result.stats.meta.calibration
            goals = result.total_goals
            total_goals += goals
            band_hits += int(calibration.min_total_goals <= goals <= calibration.max_total_goals)
            second_passes += int(result.stats.meta.passes > 1)
            home_wins += int(result.winner == "A")
            draws += int(result.winner == "draw")
            distribution[goals] = distribution.get(goals, 0) + 1

        count = request.sample_count
        completed_at = now_utc()
        result = CalibrationBatchResult(
            run_id=run_id("cal", completed_at),
            sample_count=count,
            seed_prefix=request.seed_prefix,
            teams=(request.team_a.name, request.team_b.name),
            calibration=calibration,
            mean_total_goals=total_goals / count,
            band_hit_rate=band_hits / count,
            second_pass_rate=second_passes / count,
            home_win_rate=home_wins / count,
            draw_rate=draws / count,
            total_goal_distribution=dict(sorted(distribution.items())),
            completed_at=completed_at,
        )
        logger.info(
            "calibration batch %s: %d matches, mean=%.2f band=%.3f second_pass=%.3f",
            result.run_id,
            count,
            result.mean_total_goals,
            result.band_hit_rate,
            result.second_pass_rate,
        )
        return result

    def persist_result(self, result: CalibrationBatchResult, duckdb_path: Path) -> None:
        try:
            import duckdb
        except ModuleNotFoundError as exc:  # pragma: no cover
            raise RuntimeError("duckdb is required for calibration persistence") from exc

        duckdb_path.parent.mkdir(parents=True, exist_ok=True)
        with duckdb.connect(str(duckdb_path)) as conn:
            _ensure_tables(conn)
            conn.execute(
                """
                INSERT OR REPLACE INTO dev_calibration_runs(
                    run_id, sample_count, seed_prefix, team_a, team_b,
                    target_total_goals, min_total_goals, max_total_goals,
                    mean_total_goals, band_hit_rate, second_pass_rate, home_win_rate, draw_rate,
                    goal_distribution_json
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    result.run_id,
                    result.sample_count,
                    result.seed_prefix,
                    result.teams[0],
                    result.teams[1],
                    result.calibration.target_total_goals,
                    result.calibration.min_total_goals,
                    result.calibration.max_total_goals,
                    result.mean_total_goals,
                    result.band_hit_rate,
                    result.second_pass_rate,
                    result.home_win_rate,
                    result.draw_rate,
                    json.dumps({str(k): v for k, v in result.total_goal_distribution.items()}),
                ],
            )
            conn.execute("DELETE FROM dev_calibration_goal_distribution WHERE run_id = ?", [result.run_id])
            rows = [
                (result.run_id, total, count, count / result.sample_count)
                for total, count in sorted(result.total_goal_distribution.items())
            ]
            if rows:
                conn.executemany(
                    """
                    INSERT INTO dev_calibration_goal_distribution(
                        run_id, total_goals, match_count, match_rate
                    ) VALUES (?, ?, ?, ?)
                    """,
                    rows,
                )
        logger.info("persisted calibration batch %s to %s", result.run_id, duckdb_path)

    def export_reports(self, duckdb_path: Path, output_dir: Path) -> tuple[list[Path], dict[str, int]]:
        try:
            import duckdb
        except ModuleNotFoundError as exc:  # pragma: no cover
            raise RuntimeError("duckdb is required for calibration export") from exc

        output_dir.mkdir(parents=True, exist_ok=True)
        outputs: list[Path] = []
        row_counts: dict[str, int] = {}
        with duckdb.connect(str(duckdb_path)) as conn:
            _ensure_tables(conn)
            for table in ("dev_calibration_runs", "dev_calibration_goal_distribution"):
                count_row = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()
                row_counts[table] = int(count_row[0]) if count_row is not None else 0
                stem = output_dir / table
                csv_path = stem.with_suffix(".csv")
                parquet_path = stem.with_suffix(".parquet")
                conn.execute(f"COPY (SELECT * FROM {table}) TO '{csv_path.as_posix()}' (HEADER, DELIMITER ',')")
                conn.execute(f"COPY (SELECT * FROM {table}) TO '{parquet_path.as_posix()}' (FORMAT PARQUET)")
                outputs.extend([csv_path, parquet_path])
        return outputs, row_counts


def _ensure_tables(conn: Any) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS dev_calibration_runs (
            run_id VARCHAR PRIMARY KEY,
            sample_count INTEGER,
            seed_prefix VARCHAR,
            team_a VARCHAR,
            team_b VARCHAR,
            target_total_goals DOUBLE,
            min_total_goals DOUBLE,
            max_total_goals DOUBLE,
            mean_total_goals DOUBLE,
            band_hit_rate DOUBLE,
            second_pass_rate DOUBLE,
            home_win_rate DOUBLE,
            draw_rate DOUBLE,
            goal_distribution_json VARCHAR,
            persisted_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS dev_calibration_goal_distribution (
            run_id VARCHAR NOT NULL,
            total_goals INTEGER NOT NULL,
            match_count INTEGER NOT NULL,
            match_rate DOUBLE NOT NULL,
            PRIMARY KEY (run_id, total_goals)
        )
        """
    )


def calibration_result_to_dict(result: CalibrationBatchResult) -> dict[str, Any]:
    data = asdict(result)
    data["teams"] = list(result.teams)
    data["total_goal_distribution"] = {str(k): v for k, v in result.total_goal_distribution.items()}
    data["completed_at"] = result.completed_at.isoformat()
    return data

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any

from hms.contracts import CalibrationBatchRequest, MatchOptions, ShotType
from hms.core import EngineIntegrityError, persist_forensic_artifact
from hms.handball import CalibrationService, MatchEngine, team_from_mapping
from hms.handball.calibration import calibration_result_to_dict


def _load_team(path: Path) -> dict[str, Any]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"{path}: team file must contain a JSON object")
    return payload


def _print_match(result) -> None:
    name_a, name_b = result.teams
    print(f"{name_a} {result.score[0]} - {result.score[1]} {name_b} (winner: {result.winner})")
    meta = result.stats.meta
    print(f"seed={meta.seed} passes={meta.passes} goal_scale={meta.goal_scale:.3f}")
    for label, side in (("A", result.stats.side_a), ("B", result.stats.side_b)):
        shots = ", ".join(f"{t.value}:{side.goals[t]}/{side.shots[t]}" for t in ShotType)
        print(
            f"- {label}: {shots} | saves={side.saves} blocks={side.blocks} turnovers={side.turnovers} "
            f"2min={side.suspensions} 7m={side.penalty_shots}"
        )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Handball match simulator")
    parser.add_argument("team_a", type=Path, help="JSON file for side A")
    parser.add_argument("team_b", type=Path, help="JSON file for side B")
    parser.add_argument("--seed", default=None, help="seed string for reproducible runs")
    parser.add_argument("--no-normalize", action="store_true", help="report raw shot counts")
    parser.add_argument("--calibrate", type=int, default=0, metavar="N", help="run a calibration batch of N matches")
    parser.add_argument("--duckdb", type=Path, default=None, help="persist calibration results to this duckdb file")
    parser.add_argument("--export-dir", type=Path, default=None, help="export calibration tables as csv/parquet")
    parser.add_argument("--forensic-dir", type=Path, default=Path("forensics"), help="where integrity failures are written")
    parser.add_argument("--log-level", default="WARNING", help="logging level (DEBUG, INFO, ...)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    engine = MatchEngine()
    team_a = _load_team(args.team_a)
    team_b = _load_team(args.team_b)
    options = MatchOptions(seed=args.seed, normalize_shots=not args.no_normalize)

    try:
        if args.calibrate > 0:
            service = CalibrationService(engine=engine)
            result = service.run_batch(
                CalibrationBatchRequest(
                    sample_count=args.calibrate,
                    team_a=team_from_mapping(team_a),
                    team_b=team_from_mapping(team_b),
                    seed_prefix=args.seed or "calibration",
                    options=options,
                )
            )
            print(json.dumps(calibration_result_to_dict(result), indent=2))
            if args.duckdb is not None:
                service.persist_result(result, args.duckdb)
                if args.export_dir is not None:
                    outputs, row_counts = service.export_reports(args.duckdb, args.export_dir)
                    print("Exported datasets:")
                    for path in outputs:
                        print(f"- {path}")
                    print(f"Row counts: {row_counts}")
            return 0

        _print_match(engine.simulate_match(team_a, team_b, options))
        return 0
    except EngineIntegrityError as exc:
        path = persist_forensic_artifact(exc.artifact, args.forensic_dir)
        print(f"Simulation failed: {exc} (forensic artifact: {path})")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Mapping, Sequence
from uuid import uuid4

from hms.contracts import ForensicArtifact
from hms.core.ids import now_utc


class EngineIntegrityError(RuntimeError):
    """A match cannot be simulated; ``artifact`` records the inputs that broke it."""

    def __init__(self, artifact: ForensicArtifact) -> None:
        super().__init__(artifact.message)
        self.artifact = artifact


class EmptyRosterError(EngineIntegrityError):
    def __init__(self, artifact: ForensicArtifact, empty_teams: list[str]) -> None:
        super().__init__(artifact)
        self.empty_teams = empty_teams


def build_forensic_artifact(
    engine_scope: str,
    error_code: str,
    message: str,
    state_snapshot: Mapping[str, Any],
    context: Mapping[str, Any] | None = None,
    identifiers: Mapping[str, str] | None = None,
    causal_fragment: Sequence[str] = (),
) -> ForensicArtifact:
    return ForensicArtifact(
        artifact_id=str(uuid4()),
        timestamp=now_utc(),
        engine_scope=engine_scope,
        error_code=error_code,
        message=message,
        state_snapshot=dict(state_snapshot),
        context=dict(context or {}),
        identifiers=dict(identifiers or {}),
        causal_fragment=list(causal_fragment),
    )


def persist_forensic_artifact(artifact: ForensicArtifact, output_dir: Path) -> Path:
    """Write the artifact as JSON under ``output_dir`` and return the file path."""
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / f"forensic_{artifact.error_code.lower()}_{artifact.artifact_id}.json"
    payload = asdict(artifact)
    payload["timestamp"] = artifact.timestamp.isoformat()
    path.write_text(json.dumps(payload, default=str, indent=2, sort_keys=True), encoding="utf-8")
    return path

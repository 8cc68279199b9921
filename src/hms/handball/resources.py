from __future__ import annotations

import json
from importlib import resources
from typing import Any

from hms.contracts import CalibrationConfig, ResourceManifest, TacticalConfig, ValidationError, ValidationIssue
from hms.handball.tactics import tactical_config_from_raw

EXPECTED_SCHEMA_VERSION = "1.0"
DEFAULTS_RESOURCE = "engine_defaults.json"

_REQUIRED_KEYS: dict[str, tuple[str, ...]] = {
    "referee": ("strictness", "advantage_bias", "passive_strictness"),
    "calibration": ("target_total_goals", "min_total_goals", "max_total_goals"),
    "tactics": ("defense", "defense_mode", "attack", "tempo", "aggression"),
    "clock": ("match_seconds", "max_possessions", "timeline_cap"),
}
_NUMERIC_SECTIONS = ("referee", "calibration", "clock")


class EngineResources:
    """Packaged engine defaults, with optional per-section overrides."""

    def __init__(self, overrides: dict[str, dict[str, Any]] | None = None) -> None:
        raw = self._load_payload()
        self.manifest = self._parse_manifest(raw)
        sections = raw.get("resources")
        if not isinstance(sections, dict):
            raise ValidationError([self._issue("MISSING_RESOURCES", "resources", "resources block must be an object")])
        merged: dict[str, dict[str, Any]] = {}
        for name, values in sections.items():
            merged[name] = dict(values) if isinstance(values, dict) else values
        for name, patch in (overrides or {}).items():
            merged[name] = {**merged.get(name, {}), **patch}
        self._validate(merged)
        self._sections = merged

    @property
    def referee_defaults(self) -> dict[str, float]:
        return {k: float(v) for k, v in self._sections["referee"].items()}

    @property
    def calibration(self) -> CalibrationConfig:
        section = self._sections["calibration"]
        return CalibrationConfig(
            target_total_goals=float(section["target_total_goals"]),
            min_total_goals=float(section["min_total_goals"]),
            max_total_goals=float(section["max_total_goals"]),
        )

    @property
    def default_tactics(self) -> TacticalConfig:
        return tactical_config_from_raw(self._sections["tactics"])

    @property
    def match_seconds(self) -> int:
        return int(self._sections["clock"]["match_seconds"])

    @property
    def max_possessions(self) -> int:
        return int(self._sections["clock"]["max_possessions"])

    @property
    def timeline_cap(self) -> int:
        return int(self._sections["clock"]["timeline_cap"])

    def _load_payload(self) -> dict[str, Any]:
        package = resources.files("hms.resources")
        raw = (package / DEFAULTS_RESOURCE).read_text(encoding="utf-8")
        payload = json.loads(raw)
        if not isinstance(payload, dict):
            raise ValidationError([self._issue("INVALID_RESOURCE", DEFAULTS_RESOURCE, "payload must be an object")])
        return payload

    def _parse_manifest(self, payload: dict[str, Any]) -> ResourceManifest:
        raw = payload.get("manifest")
        if not isinstance(raw, dict):
            raise ValidationError([self._issue("MISSING_MANIFEST", "manifest", "manifest block is required")])
        manifest = ResourceManifest(
            resource_type=str(raw.get("resource_type", "")),
            schema_version=str(raw.get("schema_version", "")),
            resource_version=str(raw.get("resource_version", "")),
            generated_at=str(raw.get("generated_at", "")),
        )
        if manifest.schema_version != EXPECTED_SCHEMA_VERSION:
            raise ValidationError(
                [
                    self._issue(
                        "UNSUPPORTED_SCHEMA_VERSION",
                        "manifest.schema_version",
                        f"expected {EXPECTED_SCHEMA_VERSION}, got '{manifest.schema_version}'",
                    )
                ]
            )
        return manifest

    def _validate(self, sections: dict[str, Any]) -> None:
        issues: list[ValidationIssue] = []
        for name, keys in _REQUIRED_KEYS.items():
            section = sections.get(name)
            if not isinstance(section, dict):
                issues.append(self._issue("MISSING_SECTION", name, "section must be an object"))
                continue
            missing = sorted(set(keys) - set(section.keys()))
            if missing:
                issues.append(self._issue("MISSING_REQUIRED_KEYS", name, f"missing keys: {missing}"))
            if name in _NUMERIC_SECTIONS:
                for key, value in section.items():
                    if isinstance(value, bool) or not isinstance(value, (int, float)):
                        issues.append(self._issue("NON_NUMERIC_VALUE", f"{name}.{key}", f"'{value}' is not numeric"))
        calibration = sections.get("calibration")
        if isinstance(calibration, dict) and not issues:
            low = float(calibration["min_total_goals"])
            high = float(calibration["max_total_goals"])
            target = float(calibration["target_total_goals"])
            if not low <= target <= high:
                issues.append(
                    self._issue("INVALID_CALIBRATION_BAND", "calibration", "target must lie inside [min, max]")
                )
        if issues:
            raise ValidationError(issues)

    @staticmethod
    def _issue(code: str, field_path: str, message: str) -> ValidationIssue:
        return ValidationIssue(
            code=code,
            severity="blocking",
            field_path=field_path,
            entity_id=DEFAULTS_RESOURCE,
            message=message,
        )

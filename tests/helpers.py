from __future__ import annotations

from typing import Any

from hms.contracts import PlayerAttributes, PlayerSnapshot, Position, TacticalConfig, TeamSnapshot

ROSTER_POSITIONS = (
    Position.GK,
    Position.LW,
    Position.LB,
    Position.CB,
    Position.RB,
    Position.RW,
    Position.PIV,
)


def make_player(
    player_id: str,
    position: Position | None,
    overall: int = 12,
    fitness: float = 80.0,
    morale: float = 14.0,
    shooting: float | None = None,
) -> PlayerSnapshot:
    offense = {"shooting": shooting} if shooting is not None else {}
    return PlayerSnapshot(
        player_id=player_id,
        name=f"Player {player_id}",
        position=position,
        overall=overall,
        fitness=fitness,
        morale=morale,
        attributes=PlayerAttributes(offense=offense),
    )


def make_team(
    name: str,
    overall: int = 12,
    bench_overall: int | None = None,
    fitness: float = 80.0,
    morale: float = 14.0,
    tactics: TacticalConfig | None = None,
) -> TeamSnapshot:
    """Fourteen players: a starting seven at ``overall`` and a full positional bench."""
    bench_overall = overall - 1 if bench_overall is None else bench_overall
    players = [
        make_player(f"{name}-S{idx}", pos, overall, fitness, morale) for idx, pos in enumerate(ROSTER_POSITIONS)
    ]
    players += [
        make_player(f"{name}-B{idx}", pos, bench_overall, fitness, morale) for idx, pos in enumerate(ROSTER_POSITIONS)
    ]
    return TeamSnapshot(name=name, players=tuple(players), tactics=tactics or TacticalConfig())


def make_team_payload(name: str, overall: int = 12) -> dict[str, Any]:
    """Loose JSON-style team record, as career saves and fixture files store it."""
    return {
        "name": name,
        "squad": [
            {
                "id": f"{name}-{idx}",
                "name": f"{name} {idx}",
                "pos": pos.value.lower(),
                "ovr": overall if idx < 7 else overall - 1,
                "condition": 80,
                "morale": 14,
                "attributes": {"offense": {"shooting": overall}, "mental": {"decisions": overall}},
            }
            for idx, pos in enumerate(ROSTER_POSITIONS * 2)
        ],
        "tactics": {"defense": "6-0", "attack": "balanced", "tempo": "normal", "aggression": 3},
    }

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from .game_types import Player
from .game_utils import team_name


@dataclass(frozen=True)
class PlayerStanding:
    place: int
    player_id: str
    name: str
    score: int
    team_number: int | None = None
    is_bot: bool = False


@dataclass(frozen=True)
class TeamStanding:
    place: int
    team_number: int
    name: str
    score: int
    members: tuple[PlayerStanding, ...] = field(default_factory=tuple)


def _places(scores: list[int]) -> list[int]:
    places: list[int] = []
    prev_score: int | None = None
    place = 0
    for index, score in enumerate(scores):
        if score != prev_score:
            place = index + 1
            prev_score = score
        places.append(place)
    return places


def rank_players(players: Iterable[Player]) -> list[PlayerStanding]:
    """Individual leaderboard, highest score first. Equal scores share a place."""
    ranked = sorted(
        (player for player in players if not player.is_spectator),
        key=lambda player: (-player.score, player.joined_at),
    )
    places = _places([player.score for player in ranked])
    return [
        PlayerStanding(
            place=place,
            player_id=player.id,
            name=player.name,
            score=player.score,
            team_number=player.team_number,
            is_bot=player.is_bot,
        )
        for place, player in zip(places, ranked)
    ]


def rank_teams(players: Iterable[Player]) -> list[TeamStanding]:
    """Team leaderboard: members' scores summed per team, highest first.

    Players without a team are left out, as are spectators.
    """
    members: dict[int, list[Player]] = {}
    for player in players:
        if player.is_spectator or player.team_number is None:
            continue
        members.setdefault(player.team_number, []).append(player)

    totals = sorted(
        ((team_number, sum(player.score for player in team)) for team_number, team in members.items()),
        key=lambda item: (-item[1], item[0]),
    )
    places = _places([score for _, score in totals])
    return [
        TeamStanding(
            place=place,
            team_number=team_number,
            name=team_name(team_number),
            score=score,
            members=tuple(rank_players(members[team_number])),
        )
        for place, (team_number, score) in zip(places, totals)
    ]


def team_rosters(players: Iterable[Player], team_count: int) -> dict[int | None, list[Player]]:
    """Lobby view: every team slot (possibly empty) plus ``None`` for the waiting area."""
    rosters: dict[int | None, list[Player]] = {number: [] for number in range(1, team_count + 1)}
    rosters[None] = []
    for player in players:
        if player.is_spectator:
            continue
        key = player.team_number if player.team_number in rosters else None
        rosters[key].append(player)
    return rosters

from __future__ import annotations

from typing import Protocol

from .errors import NotRoomHost
from .game_types import Room


class RoundAuthority(Protocol):
    """Decides which client may write round transitions for a room."""

    def can_advance(self, room: Room, player_id: str) -> bool: ...


class HostRoundAuthority:
    """The room's host client is the only sequencer. There is no failover."""

    def can_advance(self, room: Room, player_id: str) -> bool:
        return bool(player_id) and room.host_id == player_id


def ensure_round_authority(authority: RoundAuthority, room: Room, player_id: str) -> None:
    if not authority.can_advance(room, player_id):
        raise NotRoomHost()

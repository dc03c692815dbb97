from __future__ import annotations

import logging
import random
from typing import Callable

from .bot_names import generate_bot_name
from .chat import send_player_message, send_system_message
from .combo_picker import ComboPicker
from .config import settings
from .errors import (
    GameAlreadyStarted,
    InvalidPlayerName,
    NotEnoughPlayers,
    NotTeamMode,
    PlayerNotFound,
    PlayersWithoutTeam,
    RoomFull,
    RoomNotFound,
    TeamFull,
)
from .game_constants import MIN_PLAYERS_TO_START, TEAM_NAMES
from .game_types import ChatMessage, Difficulty, GameMode, Player, Room, RoomSettings, RoundState
from .game_utils import (
    clamp_int,
    normalize_difficulty,
    normalize_game_mode,
    now_ms,
    random_id,
    sanitize_player_name,
    team_count_for,
    team_name,
    team_size_for_mode,
)
from .host_controller import HostRoundController
from .round_authority import HostRoundAuthority, RoundAuthority, ensure_round_authority
from .scoring import PlayerStanding, TeamStanding, rank_players, rank_teams, team_rosters
from .store import RoomStore

logger = logging.getLogger(__name__)


class RoomService:
    """Lobby and room lifecycle on top of a ``RoomStore``."""

    def __init__(
        self,
        store: RoomStore,
        *,
        authority: RoundAuthority | None = None,
        clock: Callable[[], int] = now_ms,
        rng: random.Random | None = None,
    ) -> None:
        self.store = store
        self.authority = authority or HostRoundAuthority()
        self.clock = clock
        self.rng = rng or random.Random()

    async def create_room(
        self,
        host_name: str,
        game_mode: GameMode | str = "free_for_all",
        difficulty: Difficulty | str = "medium",
        max_rounds: int = 10,
        lives_per_player: int = 3,
        points_per_word: int = 50,
        is_spectator: bool = False,
    ) -> tuple[str, str]:
        name = sanitize_player_name(host_name)
        if not name:
            raise InvalidPlayerName()
        room_settings = RoomSettings(
            game_mode=normalize_game_mode(game_mode),
            difficulty=normalize_difficulty(difficulty),
            max_rounds=clamp_int(max_rounds, default=10, minimum=1, maximum=50),
            lives_per_player=clamp_int(lives_per_player, default=3, minimum=1, maximum=10),
            points_per_word=clamp_int(points_per_word, default=50, minimum=1, maximum=1000),
        )
        room_code, host_id = await self.store.create_room(room_settings, name, is_spectator=is_spectator)
        logger.info("Room %s created by %s (%s, %s)", room_code, name, room_settings.game_mode, room_settings.difficulty)
        return room_code, host_id

    async def join_room(self, room_code: str, name: str) -> tuple[str, GameMode]:
        player_id, game_mode = await self.store.join_room(room_code, name)
        logger.info("Player %s joined room %s", player_id, room_code.upper())
        return player_id, game_mode

    async def get_room(self, room_code: str) -> Room:
        room = await self.store.get_room(room_code)
        if room is None:
            raise RoomNotFound(room_code)
        return room

    async def get_player(self, player_id: str, room_code: str | None = None) -> Player:
        player = await self.store.get_player(player_id)
        if player is None or not player.is_active:
            raise PlayerNotFound(player_id)
        if room_code is not None and player.room_code != room_code.upper():
            raise PlayerNotFound(player_id)
        return player

    async def require_host(self, host_id: str, room_code: str | None = None) -> tuple[Room, Player]:
        host = await self.get_player(host_id, room_code)
        room = await self.get_room(host.room_code)
        ensure_round_authority(self.authority, room, host.id)
        return room, host

    async def list_players(self, room_code: str) -> list[Player]:
        await self.get_room(room_code)
        return await self.store.list_active_players(room_code)

    async def leaderboard(self, room_code: str) -> list[PlayerStanding]:
        return rank_players(await self.list_players(room_code))

    async def team_standings(self, room_code: str) -> list[TeamStanding]:
        return rank_teams(await self.list_players(room_code))

    async def lobby_teams(self, room_code: str) -> dict[int | None, list[Player]]:
        room = await self.get_room(room_code)
        players = await self.store.list_active_players(room.code)
        in_use = [
            player.team_number
            for player in players
            if player.team_number and player.team_number <= len(TEAM_NAMES)
        ]
        return team_rosters(players, max([team_count_for(room.game_mode, len(players)), *in_use]))

    async def select_team(self, player_id: str, team_number: int) -> Player:
        player = await self.get_player(player_id)
        room = await self.get_room(player.room_code)
        if room.status != "waiting":
            raise GameAlreadyStarted()
        team_size = team_size_for_mode(room.game_mode)
        if team_size is None:
            raise NotTeamMode()
        if not 1 <= int(team_number) <= len(TEAM_NAMES):
            raise ValueError(f"Unknown team {team_number}")
        if player.team_number == team_number:
            return player

        players = await self.store.list_active_players(room.code)
        members = [item for item in players if item.team_number == team_number and item.id != player.id]
        if len(members) >= team_size:
            raise TeamFull()
        updated = await self.store.update_player(player.id, team_number=int(team_number))
        await send_system_message(self.store, room.code, f"{player.name} joined Team {team_name(team_number)}")
        return updated

    async def leave_team(self, player_id: str) -> Player:
        player = await self.get_player(player_id)
        room = await self.get_room(player.room_code)
        if room.status != "waiting":
            raise GameAlreadyStarted()
        if player.team_number is None:
            return player
        return await self.store.update_player(player.id, team_number=None)

    async def assign_teams(self, host_id: str, shuffle: bool = True) -> list[Player]:
        room, _ = await self.require_host(host_id)
        if room.status != "waiting":
            raise GameAlreadyStarted()
        team_size = team_size_for_mode(room.game_mode)
        if team_size is None:
            raise NotTeamMode()
        players = [player for player in await self.store.list_active_players(room.code) if not player.is_spectator]
        if shuffle:
            self.rng.shuffle(players)
        assigned: list[Player] = []
        for index, player in enumerate(players):
            team_number = min(index // team_size + 1, len(TEAM_NAMES))
            assigned.append(await self.store.update_player(player.id, team_number=team_number))
        logger.info("Assigned %s players to teams of %s in room %s", len(assigned), team_size, room.code)
        return assigned

    async def start_game(self, host_id: str, picker: ComboPicker | None = None) -> RoundState:
        room, host = await self.require_host(host_id)
        if room.status != "waiting":
            raise GameAlreadyStarted()
        players = [player for player in await self.store.list_active_players(room.code) if not player.is_spectator]
        if len(players) < MIN_PLAYERS_TO_START:
            raise NotEnoughPlayers(MIN_PLAYERS_TO_START)
        if team_size_for_mode(room.game_mode) is not None:
            waiting = [player for player in players if player.team_number is None]
            if waiting:
                raise PlayersWithoutTeam(len(waiting))

        controller = HostRoundController(
            self.store,
            room.code,
            host.id,
            authority=self.authority,
            picker=picker,
            clock=self.clock,
        )
        state = await controller.start_first_round()
        await self.store.set_room_status(
            room.code,
            "playing",
            started_at=self.clock(),
            current_round=state.round_number,
            is_paused=False,
        )
        logger.info("Game started in room %s with %s players", room.code, len(players))
        return state

    async def add_bot(self, host_id: str, difficulty: Difficulty | str = "medium") -> Player:
        room, _ = await self.require_host(host_id)
        if room.status != "waiting":
            raise GameAlreadyStarted()
        players = await self.store.list_active_players(room.code)
        if len(players) >= self.store.max_players:
            raise RoomFull()
        bot_difficulty = normalize_difficulty(difficulty)
        bot = Player(
            id=random_id(),
            room_code=room.code,
            name=generate_bot_name([player.name for player in players], self.rng),
            is_bot=True,
            bot_difficulty=bot_difficulty,
            lives=room.lives_per_player,
        )
        stored = await self.store.add_player(bot)
        logger.info("Bot %s (%s) added to room %s", stored.name, bot_difficulty, room.code)
        return stored

    async def remove_all_bots(self, host_id: str) -> int:
        room, _ = await self.require_host(host_id)
        removed = 0
        for player in await self.store.list_active_players(room.code):
            if player.is_bot:
                await self.store.update_player(player.id, is_active=False)
                removed += 1
        return removed

    async def leave_room(self, player_id: str) -> None:
        player = await self.get_player(player_id)
        await self.store.update_player(player.id, is_active=False)
        logger.info("Player %s left room %s", player.id, player.room_code)
        await send_system_message(self.store, player.room_code, f"{player.name} left the room")

    async def kick_player(self, host_id: str, player_id: str) -> Player:
        room, host = await self.require_host(host_id)
        if player_id == host.id:
            raise ValueError("Host cannot kick themselves")
        target = await self.get_player(player_id, room.code)
        updated = await self.store.update_player(target.id, is_active=False)
        await send_system_message(self.store, room.code, f"{target.name} was removed from the game")
        return updated

    async def send_chat(self, player_id: str, message: str) -> ChatMessage:
        player = await self.get_player(player_id)
        return await send_player_message(self.store, player, message)

    async def chat_history(self, room_code: str, limit: int = settings.chat_history_limit) -> list[ChatMessage]:
        room = await self.get_room(room_code)
        return await self.store.list_chat_messages(room.code, limit=limit)

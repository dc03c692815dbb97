from __future__ import annotations


class WordBombError(RuntimeError):
    pass


class StoreUnavailable(WordBombError):
    pass


class StaleRoundAction(WordBombError):
    def __init__(self, expected_round: int, actual_round: int | None) -> None:
        super().__init__(f"Round {expected_round} is stale (current round is {actual_round})")
        self.expected_round = expected_round
        self.actual_round = actual_round


class RoomNotFound(WordBombError):
    def __init__(self, room_code: str = "") -> None:
        super().__init__("Room not found")
        self.room_code = room_code


class PlayerNotFound(WordBombError):
    def __init__(self, player_id: str = "") -> None:
        super().__init__("Player not found")
        self.player_id = player_id


class GameAlreadyStarted(WordBombError):
    def __init__(self) -> None:
        super().__init__("Game already started")


class NameTaken(WordBombError):
    def __init__(self) -> None:
        super().__init__("Name already taken")


class InvalidPlayerName(WordBombError):
    def __init__(self) -> None:
        super().__init__("Name is required")


class RoomFull(WordBombError):
    def __init__(self) -> None:
        super().__init__("Room is full")


class TeamFull(WordBombError):
    def __init__(self) -> None:
        super().__init__("Team is full")


class NotTeamMode(WordBombError):
    def __init__(self) -> None:
        super().__init__("This room does not use teams")


class NotEnoughPlayers(WordBombError):
    def __init__(self, minimum: int) -> None:
        super().__init__(f"Need at least {minimum} players to start")
        self.minimum = minimum


class PlayersWithoutTeam(WordBombError):
    def __init__(self, count: int) -> None:
        super().__init__(f"{count} player(s) still in waiting area")
        self.count = count


class NotRoomHost(WordBombError):
    def __init__(self) -> None:
        super().__init__("Only the host can do that")


class DuplicateAnswer(WordBombError):
    def __init__(self) -> None:
        super().__init__("Player already answered this round")


class InvalidChatMessage(WordBombError):
    def __init__(self) -> None:
        super().__init__("Message is empty")

import asyncio
import random

import pytest

from wordbomb.errors import (
    GameAlreadyStarted,
    InvalidChatMessage,
    InvalidPlayerName,
    NotEnoughPlayers,
    NotRoomHost,
    NotTeamMode,
    PlayerNotFound,
    PlayersWithoutTeam,
    RoomFull,
    TeamFull,
)
from wordbomb.rooms import RoomService
from wordbomb.store_memory import MemoryRoomStore

from conftest import START_MS, settle


@pytest.fixture()
def rooms(store, clock):
    return RoomService(store, clock=clock, rng=random.Random(4))


def test_create_room_clamps_settings(rooms, store):
    async def scenario():
        code, host_id = await rooms.create_room(
            '  Host  ',
            game_mode='vs_all',
            difficulty='impossible',
            max_rounds=500,
            lives_per_player=0,
            points_per_word=5000,
        )
        return await rooms.get_room(code), await rooms.get_player(host_id, code)

    room, host = asyncio.run(scenario())
    assert room.game_mode == 'free_for_all'
    assert room.difficulty == 'medium'
    assert (room.max_rounds, room.lives_per_player, room.points_per_word) == (50, 1, 1000)
    assert host.name == 'Host' and host.is_host


def test_blank_host_name_is_rejected(rooms):
    with pytest.raises(InvalidPlayerName):
        asyncio.run(rooms.create_room('   '))


def test_start_needs_two_players(rooms):
    async def scenario():
        _, host_id = await rooms.create_room('Host')
        with pytest.raises(NotEnoughPlayers):
            await rooms.start_game(host_id)

    asyncio.run(scenario())


def test_spectators_do_not_count_towards_start(rooms):
    async def scenario():
        code, host_id = await rooms.create_room('Host', is_spectator=True)
        await rooms.join_room(code, 'Alice')
        with pytest.raises(NotEnoughPlayers):
            await rooms.start_game(host_id)

    asyncio.run(scenario())


def test_only_host_starts_and_start_happens_once(rooms, store):
    async def scenario():
        code, host_id = await rooms.create_room('Host', max_rounds=4)
        guest_id, _ = await rooms.join_room(code, 'Alice')
        with pytest.raises(NotRoomHost):
            await rooms.start_game(guest_id)
        state = await rooms.start_game(host_id)
        with pytest.raises(GameAlreadyStarted):
            await rooms.start_game(host_id)
        with pytest.raises(GameAlreadyStarted):
            await rooms.join_room(code, 'Late')
        return state, await rooms.get_room(code)

    state, room = asyncio.run(scenario())
    assert state.round_number == 1
    assert state.round_start_time == START_MS
    assert room.status == 'playing'
    assert room.current_round == 1
    assert room.started_at == START_MS


def test_team_selection(rooms, store):
    async def scenario():
        code, host_id = await rooms.create_room('Host', game_mode='team_2')
        alice_id, game_mode = await rooms.join_room(code, 'Alice')
        bob_id, _ = await rooms.join_room(code, 'Bob')
        carol_id, _ = await rooms.join_room(code, 'Carol')
        assert game_mode == 'team_2'

        await rooms.select_team(host_id, 1)
        await rooms.select_team(alice_id, 1)
        with pytest.raises(TeamFull):
            await rooms.select_team(bob_id, 1)
        with pytest.raises(ValueError):
            await rooms.select_team(bob_id, 7)
        await rooms.select_team(bob_id, 2)

        with pytest.raises(PlayersWithoutTeam):
            await rooms.start_game(host_id)
        await rooms.select_team(carol_id, 2)
        rosters = await rooms.lobby_teams(code)

        await rooms.leave_team(carol_id)
        carol = await rooms.get_player(carol_id)
        await settle(store)
        messages = await rooms.chat_history(code)
        return rosters, carol, messages

    rosters, carol, messages = asyncio.run(scenario())
    assert [player.name for player in rosters[1]] == ['Host', 'Alice']
    assert [player.name for player in rosters[2]] == ['Bob', 'Carol']
    assert rosters[None] == []
    assert carol.team_number is None
    assert [message.message for message in messages] == [
        'Host joined Team Blue',
        'Alice joined Team Blue',
        'Bob joined Team Red',
        'Carol joined Team Red',
    ]


def test_team_calls_need_team_mode(rooms):
    async def scenario():
        code, host_id = await rooms.create_room('Host')
        await rooms.join_room(code, 'Alice')
        with pytest.raises(NotTeamMode):
            await rooms.select_team(host_id, 1)
        with pytest.raises(NotTeamMode):
            await rooms.assign_teams(host_id)

    asyncio.run(scenario())


def test_assign_teams_fills_every_player(rooms):
    async def scenario():
        code, host_id = await rooms.create_room('Host', game_mode='team_2')
        for name in ('Alice', 'Bob', 'Carol', 'Dave'):
            await rooms.join_room(code, name)
        assigned = await rooms.assign_teams(host_id, shuffle=False)
        state = await rooms.start_game(host_id)
        return assigned, state

    assigned, state = asyncio.run(scenario())
    assert [player.team_number for player in assigned] == [1, 1, 2, 2, 3]
    assert state.round_number == 1


def test_bots_join_and_leave(rooms, store):
    async def scenario():
        code, host_id = await rooms.create_room('Host')
        first = await rooms.add_bot(host_id, 'hard')
        second = await rooms.add_bot(host_id, 'nonsense')
        players = await rooms.list_players(code)
        removed = await rooms.remove_all_bots(host_id)
        remaining = await rooms.list_players(code)
        return first, second, players, removed, remaining

    first, second, players, removed, remaining = asyncio.run(scenario())
    assert first.is_bot and first.bot_difficulty == 'hard'
    assert second.bot_difficulty == 'medium'
    assert first.name != second.name
    assert len(players) == 3
    assert removed == 2
    assert [player.name for player in remaining] == ['Host']


def test_bots_respect_room_capacity(clock):
    rooms = RoomService(MemoryRoomStore(clock=clock, max_players=2), clock=clock)

    async def scenario():
        _, host_id = await rooms.create_room('Host')
        await rooms.add_bot(host_id)
        with pytest.raises(RoomFull):
            await rooms.add_bot(host_id)

    asyncio.run(scenario())


def test_kick_and_leave(rooms, store):
    async def scenario():
        code, host_id = await rooms.create_room('Host')
        alice_id, _ = await rooms.join_room(code, 'Alice')
        bob_id, _ = await rooms.join_room(code, 'Bob')
        with pytest.raises(ValueError):
            await rooms.kick_player(host_id, host_id)
        with pytest.raises(NotRoomHost):
            await rooms.kick_player(alice_id, bob_id)
        await rooms.kick_player(host_id, alice_id)
        await rooms.leave_room(bob_id)
        with pytest.raises(PlayerNotFound):
            await rooms.get_player(alice_id)
        players = await rooms.list_players(code)
        rejoined, _ = await rooms.join_room(code, 'Alice')
        await settle(store)
        return players, rejoined, await rooms.chat_history(code)

    players, rejoined, messages = asyncio.run(scenario())
    assert [player.name for player in players] == ['Host']
    assert rejoined
    assert [message.message for message in messages] == [
        'Alice was removed from the game',
        'Bob left the room',
    ]


def test_chat_messages(rooms):
    async def scenario():
        code, host_id = await rooms.create_room('Host')
        with pytest.raises(InvalidChatMessage):
            await rooms.send_chat(host_id, '   ')
        sent = await rooms.send_chat(host_id, '  hello ' + 'x' * 600)
        return sent

    sent = asyncio.run(scenario())
    assert sent.player_name == 'Host'
    assert not sent.is_system_message
    assert sent.message.startswith('hello ')
    assert len(sent.message) == 500

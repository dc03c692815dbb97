import asyncio
import random

import pytest

from wordbomb.combo_picker import ComboPicker
from wordbomb.errors import NotRoomHost
from wordbomb.game_types import RoomSettings
from wordbomb.host_controller import HostRoundController

from conftest import START_MS, settle


async def playing_room(store, clock, max_rounds=3):
    code, host_id = await store.create_room(RoomSettings(max_rounds=max_rounds), 'Host')
    guest_id, _ = await store.join_room(code, 'Alice')
    controller = HostRoundController(
        store,
        code,
        host_id,
        picker=ComboPicker(rng=random.Random(3)),
        clock=clock,
    )
    await store.set_room_status(code, 'playing', started_at=clock())
    await controller.start_first_round()
    return code, host_id, guest_id, controller


def test_last_round_timeout_finishes_without_results(store, clock):
    async def scenario():
        code, _, _, controller = await playing_room(store, clock, max_rounds=3)
        outcomes = []
        for round_number in (1, 2):
            outcomes.append(await controller.on_round_timeout(round_number))
            clock.advance(5)
            state = await controller.advance_round(round_number)
            assert state.round_number == round_number + 1
        outcomes.append(await controller.on_round_timeout(3))
        room = await store.get_room(code)
        state = await store.get_round_state(code)
        return outcomes, room, state

    outcomes, room, state = asyncio.run(scenario())
    assert outcomes == ['results', 'results', 'finished']
    assert room.status == 'finished'
    assert room.finished_at is not None
    assert state.round_number == 3


def test_first_round_starts_at_host_clock(store, clock):
    async def scenario():
        code, _, _, _ = await playing_room(store, clock)
        return await store.get_round_state(code), await store.get_room(code)

    state, room = asyncio.run(scenario())
    assert state.round_number == 1
    assert state.round_start_time == START_MS
    assert room.current_round == 1


def test_advance_is_idempotent_per_round(store, clock):
    async def scenario():
        code, _, _, controller = await playing_room(store, clock, max_rounds=5)
        first, second = await asyncio.gather(controller.advance_round(1), controller.advance_round(1))
        state = await store.get_round_state(code)
        return first, second, state

    first, second, state = asyncio.run(scenario())
    published = [item for item in (first, second) if item is not None]
    assert len(published) == 1
    assert state.round_number == 2


def test_stale_timeout_is_ignored(store, clock):
    async def scenario():
        _, _, _, controller = await playing_room(store, clock, max_rounds=5)
        await controller.advance_round(1)
        return await controller.on_round_timeout(1)

    assert asyncio.run(scenario()) == 'ignored'


def test_non_host_cannot_sequence_rounds(store, clock):
    async def scenario():
        code, _, guest_id, _ = await playing_room(store, clock)
        impostor = HostRoundController(store, code, guest_id, clock=clock)
        with pytest.raises(NotRoomHost):
            await impostor.advance_round(1)
        return await store.get_round_state(code)

    assert asyncio.run(scenario()).round_number == 1


def test_pause_and_resume_keep_remaining_time(store, clock):
    async def scenario():
        code, _, _, controller = await playing_room(store, clock)
        clock.advance(4)
        paused = await controller.pause(6.0)
        clock.advance(30)
        resumed = await controller.resume()
        state = await store.get_round_state(code)
        return paused, resumed, state

    paused, resumed, state = asyncio.run(scenario())
    assert paused.status == 'paused'
    assert paused.is_paused and paused.paused_time_remaining == 6.0
    assert resumed.status == 'playing' and not resumed.is_paused
    assert resumed.paused_time_remaining is None
    assert state.round_number == 1
    assert clock() - state.round_start_time == 4_000


def test_admin_actions_post_system_messages(store, clock):
    async def scenario():
        code, _, _, controller = await playing_room(store, clock, max_rounds=5)
        await controller.pause(5.0)
        await controller.resume()
        await controller.skip_round(1)
        await controller.end_game()
        await settle(store)
        messages = await store.list_chat_messages(code)
        return messages, await store.get_room(code), await store.get_round_state(code)

    messages, room, state = asyncio.run(scenario())
    assert [message.message for message in messages] == [
        'Game paused by host',
        'Game resumed by host',
        'Round 1 skipped by host',
        'Game ended by host',
    ]
    assert all(message.is_system_message and message.player_name == 'System' for message in messages)
    assert state.round_number == 2
    assert room.status == 'finished'


def test_system_message_failure_does_not_break_end_game(store, clock):
    async def scenario():
        code, _, _, controller = await playing_room(store, clock)
        working_send = store.send_chat_message

        async def broken(*args, **kwargs):
            raise RuntimeError('chat down')

        store.send_chat_message = broken
        await controller.end_game()
        store.send_chat_message = working_send
        return await store.get_room(code)

    assert asyncio.run(scenario()).status == 'finished'

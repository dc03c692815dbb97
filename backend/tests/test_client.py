import asyncio
import random

from wordbomb.client import GameClient
from wordbomb.combo_picker import ComboPicker
from wordbomb.game_types import RoomSettings
from wordbomb.word_validation import ValidationReason

from conftest import instant_sleep, settle


async def open_room(store, clock, max_rounds=3, combo='ER'):
    code, host_id = await store.create_room(RoomSettings(max_rounds=max_rounds), 'Host')
    guest_id, _ = await store.join_room(code, 'Alice')
    await store.set_room_status(code, 'playing', started_at=clock())
    await store.publish_round_state(code, combo, 1, round_start_time=clock())
    return code, host_id, guest_id


def make_client(store, dictionary, clock, code, player_id):
    return GameClient(
        store,
        dictionary,
        code,
        player_id,
        clock=clock,
        sleep=instant_sleep,
        picker=ComboPicker(rng=random.Random(9)),
        bot_rng=random.Random(9),
        results_countdown_ticks=2,
    )


def test_poll_recovers_rounds_when_notifications_are_lost(store, dictionary, clock):
    async def scenario():
        code, host_id, guest_id = await open_room(store, clock)
        host = make_client(store, dictionary, clock, code, host_id)
        guest = make_client(store, dictionary, clock, code, guest_id)
        await host.start(run_loops=False)
        await guest.start(run_loops=False)
        store.deliver_notifications = False

        clock.advance(10)
        await host.tick_once(10)
        assert host.sync.showing_results
        clock.advance(2)
        await host.tick_once(1.0)
        await host.tick_once(1.0)
        before_poll = guest.sync.round_number
        await guest.poll_once()
        await host.close()
        await guest.close()
        return host, guest, before_poll

    host, guest, before_poll = asyncio.run(scenario())
    assert before_poll == 1
    assert host.is_host and not guest.is_host
    assert host.sync.round_number == 2
    assert guest.sync.round_number == 2
    assert guest.sync.combo == host.sync.combo
    assert guest.sync.time_left == 10.0


def test_word_taken_by_another_player_is_rejected(store, dictionary, clock):
    async def scenario():
        code, host_id, guest_id = await open_room(store, clock)
        host = make_client(store, dictionary, clock, code, host_id)
        guest = make_client(store, dictionary, clock, code, guest_id)
        await host.start(run_loops=False)
        await guest.start(run_loops=False)
        store.deliver_notifications = False

        first = await host.submit_word('Water')
        taken = await guest.submit_word('water')
        retry = await guest.submit_word('bakery')
        again = await host.submit_word('weather')
        players = {player.name: player for player in await store.list_active_players(code)}
        return first, taken, retry, again, players

    first, taken, retry, again, players = asyncio.run(scenario())
    assert first.valid and first.points == 55
    assert not taken.valid
    assert taken.reason == ValidationReason.ALREADY_USED
    assert taken.message == 'Word already used!'
    assert retry.valid
    assert again.reason == ValidationReason.ALREADY_ANSWERED
    assert players['Host'].score == 55
    assert players['Alice'].score == 60


def test_host_sequences_game_and_followers_finish(store, dictionary, clock):
    async def scenario():
        code, host_id, guest_id = await open_room(store, clock, max_rounds=2)
        host = make_client(store, dictionary, clock, code, host_id)
        guest = make_client(store, dictionary, clock, code, guest_id)
        await host.start(run_loops=False)
        await guest.start(run_loops=False)

        clock.advance(10)
        await host.tick_once(10)
        await guest.tick_once(10)
        results_seen = guest.sync.showing_results
        clock.advance(2)
        await host.tick_once(1.0)
        await host.tick_once(1.0)
        await settle(store)
        second_round = guest.sync.round_number

        clock.advance(10)
        await host.tick_once(10)
        await settle(store)
        room = await store.get_room(code)
        return host, guest, results_seen, second_round, room

    host, guest, results_seen, second_round, room = asyncio.run(scenario())
    assert results_seen
    assert second_round == 2
    assert room.status == 'finished'
    assert room.current_round == 2
    assert host.finished.is_set()
    assert guest.finished.is_set()
    assert not host.sync.showing_results


def test_paused_room_freezes_countdown(store, dictionary, clock):
    async def scenario():
        code, host_id, _ = await open_room(store, clock)
        host = make_client(store, dictionary, clock, code, host_id)
        await host.start(run_loops=False)

        clock.advance(3)
        await host.tick_once(3)
        await host.pause()
        clock.advance(60)
        await host.tick_once(60)
        frozen = host.sync.time_left
        rejected = await host.submit_word('water')
        await host.resume()
        await settle(store)
        state = await store.get_round_state(code)
        return host, frozen, rejected, state

    host, frozen, rejected, state = asyncio.run(scenario())
    assert frozen == 7.0
    assert rejected.reason == ValidationReason.ROUND_CLOSED
    assert host.sync.round_number == 1
    assert host.sync.time_left == 7.0
    assert state.round_start_time == host.clock() - 3_000


def test_round_that_already_expired_goes_straight_to_results(store, dictionary, clock):
    async def scenario():
        code, _, guest_id = await open_room(store, clock)
        clock.advance(25)
        guest = make_client(store, dictionary, clock, code, guest_id)
        await guest.start(run_loops=False)
        return guest

    guest = asyncio.run(scenario())
    assert guest.sync.round_number == 1
    assert guest.sync.showing_results
    assert guest.sync.time_left == 0.0


def test_host_timeout_is_retried_after_store_outage(store, dictionary, clock):
    async def scenario():
        code, host_id, _ = await open_room(store, clock)
        host = make_client(store, dictionary, clock, code, host_id)
        await host.start(run_loops=False)

        store.available = False
        clock.advance(10)
        await host.tick_once(10)
        during_outage = host.sync.showing_results
        store.available = True
        await host.poll_once()
        return host, during_outage

    host, during_outage = asyncio.run(scenario())
    assert not during_outage
    assert host.sync.timed_out
    assert host.sync.showing_results


def test_host_client_loops_play_a_full_game(store, dictionary, clock):
    async def scenario():
        code, host_id, guest_id = await open_room(store, clock, max_rounds=2)

        async def ticking_sleep(delay):
            clock.advance(delay)
            await asyncio.sleep(0)

        host = GameClient(
            store,
            dictionary,
            code,
            host_id,
            clock=clock,
            sleep=ticking_sleep,
            picker=ComboPicker(rng=random.Random(1)),
            results_countdown_ticks=1,
        )
        guest = GameClient(store, dictionary, code, guest_id, clock=clock, sleep=ticking_sleep)
        await host.start()
        await guest.start()
        await asyncio.wait_for(asyncio.gather(host.finished.wait(), guest.finished.wait()), timeout=5)
        await host.close()
        await guest.close()
        return await store.get_room(code)

    room = asyncio.run(scenario())
    assert room.status == 'finished'
    assert room.current_round == 2


def test_client_joining_a_paused_room_uses_the_frozen_time(store, dictionary, clock):
    async def scenario():
        code, host_id, guest_id = await open_room(store, clock, max_rounds=5)
        host = make_client(store, dictionary, clock, code, host_id)
        await host.start(run_loops=False)
        clock.advance(3)
        await host.tick_once(3)
        await host.pause()
        clock.advance(60)

        guest = make_client(store, dictionary, clock, code, guest_id)
        await guest.start(run_loops=False)
        on_join = guest.sync
        await host.resume()
        await settle(store)
        await guest.poll_once()
        return host, guest, on_join

    host, guest, on_join = asyncio.run(scenario())
    assert on_join.round_number == 1
    assert on_join.time_left == 7.0
    assert not on_join.timed_out and not on_join.showing_results
    assert host.sync.time_left == 7.0
    assert guest.sync.time_left == 7.0
    assert not guest.sync.timed_out
    assert not guest.sync.showing_results


def test_follower_that_missed_the_pause_resyncs_on_resume(store, dictionary, clock):
    async def scenario():
        code, host_id, guest_id = await open_room(store, clock, max_rounds=5)
        host = make_client(store, dictionary, clock, code, host_id)
        guest = make_client(store, dictionary, clock, code, guest_id)
        await host.start(run_loops=False)
        await guest.start(run_loops=False)
        store.deliver_notifications = False

        clock.advance(3)
        await host.tick_once(3)
        await guest.tick_once(3)
        await host.pause()
        clock.advance(60)
        await guest.tick_once(7)
        in_results = guest.sync.showing_results
        await guest.poll_once()
        await host.resume()
        await guest.poll_once()
        return guest, in_results

    guest, in_results = asyncio.run(scenario())
    assert in_results
    assert guest.sync.round_number == 1
    assert guest.sync.time_left == 7.0
    assert not guest.sync.timed_out
    assert not guest.sync.showing_results


def test_answers_after_the_round_ran_out_are_rejected(store, dictionary, clock):
    async def scenario():
        code, _, guest_id = await open_room(store, clock)
        guest = make_client(store, dictionary, clock, code, guest_id)
        await guest.start(run_loops=False)
        clock.advance(12)
        result = await guest.submit_word('water')
        answers = await store.list_round_answers(code, 1)
        return result, answers

    result, answers = asyncio.run(scenario())
    assert result.reason == ValidationReason.ROUND_CLOSED
    assert answers == []

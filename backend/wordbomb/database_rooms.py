from __future__ import annotations

from dataclasses import astuple, fields
from typing import Any

import asyncpg

from .game_types import Answer, ChatMessage, Player, Room, RoundState, record_from_dict

ROOM_COLUMNS = tuple(item.name for item in fields(Room))
PLAYER_COLUMNS = tuple(item.name for item in fields(Player))
CHAT_COLUMNS = tuple(item.name for item in fields(ChatMessage))
ANSWER_COLUMNS = tuple(item.name for item in fields(Answer))
ROUND_COLUMNS = tuple(item.name for item in fields(RoundState))


def _placeholders(count: int) -> str:
    return ", ".join(f"${index}" for index in range(1, count + 1))


def _set_clause(changes: dict[str, Any], allowed: tuple[str, ...]) -> tuple[str, list[Any]]:
    unknown = set(changes) - set(allowed)
    if unknown:
        raise ValueError(f"Unknown columns: {sorted(unknown)}")
    columns = list(changes)
    clause = ", ".join(f"{column} = ${index}" for index, column in enumerate(columns, start=2))
    return clause, [changes[column] for column in columns]


async def insert_room(pool: asyncpg.Pool, room: Room, host: Player) -> bool:
    async with pool.acquire() as conn:
        async with conn.transaction():
            inserted = await conn.fetchval(
                f"""
                INSERT INTO game_rooms ({", ".join(ROOM_COLUMNS)})
                VALUES ({_placeholders(len(ROOM_COLUMNS))})
                ON CONFLICT (code) DO NOTHING
                RETURNING code
                """,
                *astuple(room),
            )
            if inserted is None:
                return False
            await conn.execute(
                f"""
                INSERT INTO players ({", ".join(PLAYER_COLUMNS)})
                VALUES ({_placeholders(len(PLAYER_COLUMNS))})
                """,
                *astuple(host),
            )
    return True


async def fetch_room(pool: asyncpg.Pool, code: str) -> Room | None:
    async with pool.acquire() as conn:
        row = await conn.fetchrow(
            f"SELECT {', '.join(ROOM_COLUMNS)} FROM game_rooms WHERE code = $1",
            code,
        )
    return record_from_dict(Room, dict(row)) if row is not None else None


async def update_room(pool: asyncpg.Pool, code: str, changes: dict[str, Any]) -> Room | None:
    if not changes:
        return await fetch_room(pool, code)
    clause, values = _set_clause(changes, ROOM_COLUMNS)
    async with pool.acquire() as conn:
        row = await conn.fetchrow(
            f"UPDATE game_rooms SET {clause} WHERE code = $1 RETURNING {', '.join(ROOM_COLUMNS)}",
            code,
            *values,
        )
    return record_from_dict(Room, dict(row)) if row is not None else None


async def insert_player(pool: asyncpg.Pool, player: Player) -> None:
    async with pool.acquire() as conn:
        await conn.execute(
            f"""
            INSERT INTO players ({", ".join(PLAYER_COLUMNS)})
            VALUES ({_placeholders(len(PLAYER_COLUMNS))})
            """,
            *astuple(player),
        )


async def fetch_player(pool: asyncpg.Pool, player_id: str) -> Player | None:
    async with pool.acquire() as conn:
        row = await conn.fetchrow(
            f"SELECT {', '.join(PLAYER_COLUMNS)} FROM players WHERE id = $1",
            player_id,
        )
    return record_from_dict(Player, dict(row)) if row is not None else None


async def fetch_active_players(pool: asyncpg.Pool, room_code: str) -> list[Player]:
    async with pool.acquire() as conn:
        rows = await conn.fetch(
            f"""
            SELECT {", ".join(PLAYER_COLUMNS)}
            FROM players
            WHERE room_code = $1 AND is_active
            ORDER BY joined_at ASC
            """,
            room_code,
        )
    return [record_from_dict(Player, dict(row)) for row in rows]


async def update_player(pool: asyncpg.Pool, player_id: str, changes: dict[str, Any]) -> Player | None:
    if not changes:
        return await fetch_player(pool, player_id)
    clause, values = _set_clause(changes, PLAYER_COLUMNS)
    async with pool.acquire() as conn:
        row = await conn.fetchrow(
            f"UPDATE players SET {clause} WHERE id = $1 RETURNING {', '.join(PLAYER_COLUMNS)}",
            player_id,
            *values,
        )
    return record_from_dict(Player, dict(row)) if row is not None else None


async def increment_player_score(pool: asyncpg.Pool, player_id: str, points: int) -> Player | None:
    async with pool.acquire() as conn:
        row = await conn.fetchrow(
            f"""
            UPDATE players SET score = score + $2
            WHERE id = $1
            RETURNING {", ".join(PLAYER_COLUMNS)}
            """,
            player_id,
            int(points),
        )
    return record_from_dict(Player, dict(row)) if row is not None else None


async def fetch_round_state(pool: asyncpg.Pool, room_code: str) -> RoundState | None:
    async with pool.acquire() as conn:
        row = await conn.fetchrow(
            f"SELECT {', '.join(ROUND_COLUMNS)} FROM game_state WHERE room_code = $1",
            room_code,
        )
    return record_from_dict(RoundState, dict(row)) if row is not None else None


async def upsert_round_state(pool: asyncpg.Pool, state: RoundState) -> bool:
    """Write the room's round row unless a later round, or the same round
    with another combo, is already stored."""
    async with pool.acquire() as conn:
        async with conn.transaction():
            written = await conn.fetchval(
                f"""
                INSERT INTO game_state ({", ".join(ROUND_COLUMNS)})
                VALUES ({_placeholders(len(ROUND_COLUMNS))})
                ON CONFLICT (room_code) DO UPDATE
                SET round_number = EXCLUDED.round_number,
                    current_combo = EXCLUDED.current_combo,
                    time_limit = EXCLUDED.time_limit,
                    round_start_time = EXCLUDED.round_start_time
                WHERE game_state.round_number < EXCLUDED.round_number
                   OR (game_state.round_number = EXCLUDED.round_number
                       AND game_state.current_combo = EXCLUDED.current_combo)
                RETURNING round_number
                """,
                *astuple(state),
            )
            if written is None:
                return False
            await conn.execute(
                "UPDATE game_rooms SET current_round = $2 WHERE code = $1",
                state.room_code,
                state.round_number,
            )
    return True


async def insert_answer(pool: asyncpg.Pool, answer: Answer) -> bool:
    async with pool.acquire() as conn:
        inserted = await conn.fetchval(
            f"""
            INSERT INTO answers ({", ".join(ANSWER_COLUMNS)})
            VALUES ({_placeholders(len(ANSWER_COLUMNS))})
            ON CONFLICT (room_code, player_id, round_number) DO NOTHING
            RETURNING id
            """,
            *astuple(answer),
        )
    return inserted is not None


async def fetch_round_answers(pool: asyncpg.Pool, room_code: str, round_number: int) -> list[Answer]:
    async with pool.acquire() as conn:
        rows = await conn.fetch(
            f"""
            SELECT {", ".join(ANSWER_COLUMNS)}
            FROM answers
            WHERE room_code = $1 AND round_number = $2
            ORDER BY submitted_at ASC, id ASC
            """,
            room_code,
            int(round_number),
        )
    return [record_from_dict(Answer, dict(row)) for row in rows]


async def insert_chat_message(pool: asyncpg.Pool, message: ChatMessage) -> None:
    async with pool.acquire() as conn:
        await conn.execute(
            f"""
            INSERT INTO chat_messages ({", ".join(CHAT_COLUMNS)})
            VALUES ({_placeholders(len(CHAT_COLUMNS))})
            """,
            *astuple(message),
        )


async def fetch_chat_messages(pool: asyncpg.Pool, room_code: str, limit: int) -> list[ChatMessage]:
    async with pool.acquire() as conn:
        rows = await conn.fetch(
            f"""
            SELECT {", ".join(CHAT_COLUMNS)}
            FROM chat_messages
            WHERE room_code = $1
            ORDER BY created_at DESC
            LIMIT $2
            """,
            room_code,
            max(1, int(limit)),
        )
    return [record_from_dict(ChatMessage, dict(row)) for row in reversed(rows)]

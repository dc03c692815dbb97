from __future__ import annotations

import logging

import asyncpg

from .config import settings

logger = logging.getLogger(__name__)

_pool: asyncpg.Pool | None = None


def _normalized_database_url() -> str:
    url = settings.database_url.strip()
    if url.startswith("postgresql+asyncpg://"):
        return "postgresql://" + url[len("postgresql+asyncpg://") :]
    return url


async def _get_pool() -> asyncpg.Pool:
    global _pool
    if _pool is None:
        _pool = await asyncpg.create_pool(dsn=_normalized_database_url(), min_size=1, max_size=10)
    return _pool


async def get_db_pool() -> asyncpg.Pool:
    return await _get_pool()


async def init_db() -> None:
    pool = await _get_pool()
    async with pool.acquire() as conn:
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS game_rooms (
              code VARCHAR(8) PRIMARY KEY,
              host_id VARCHAR(64) NOT NULL,
              game_mode VARCHAR(16) NOT NULL DEFAULT 'free_for_all',
              difficulty VARCHAR(8) NOT NULL DEFAULT 'medium',
              max_rounds INTEGER NOT NULL DEFAULT 10,
              lives_per_player INTEGER NOT NULL DEFAULT 3,
              points_per_word INTEGER NOT NULL DEFAULT 50,
              status VARCHAR(16) NOT NULL DEFAULT 'waiting',
              current_round INTEGER NOT NULL DEFAULT 0,
              started_at BIGINT,
              finished_at BIGINT,
              is_paused BOOLEAN NOT NULL DEFAULT FALSE,
              paused_time_remaining DOUBLE PRECISION,
              created_at BIGINT NOT NULL
            )
            """
        )
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS players (
              id VARCHAR(64) PRIMARY KEY,
              room_code VARCHAR(8) NOT NULL REFERENCES game_rooms(code) ON DELETE CASCADE,
              name VARCHAR(32) NOT NULL,
              is_host BOOLEAN NOT NULL DEFAULT FALSE,
              is_bot BOOLEAN NOT NULL DEFAULT FALSE,
              bot_difficulty VARCHAR(8),
              is_spectator BOOLEAN NOT NULL DEFAULT FALSE,
              team_number INTEGER,
              score INTEGER NOT NULL DEFAULT 0,
              lives INTEGER NOT NULL DEFAULT 3,
              is_active BOOLEAN NOT NULL DEFAULT TRUE,
              joined_at BIGINT NOT NULL
            )
            """
        )
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS game_state (
              room_code VARCHAR(8) PRIMARY KEY REFERENCES game_rooms(code) ON DELETE CASCADE,
              round_number INTEGER NOT NULL,
              current_combo VARCHAR(8) NOT NULL,
              time_limit DOUBLE PRECISION NOT NULL,
              round_start_time BIGINT NOT NULL
            )
            """
        )
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS answers (
              id BIGSERIAL PRIMARY KEY,
              room_code VARCHAR(8) NOT NULL REFERENCES game_rooms(code) ON DELETE CASCADE,
              player_id VARCHAR(64) NOT NULL,
              round_number INTEGER NOT NULL,
              word VARCHAR(64) NOT NULL,
              points INTEGER NOT NULL,
              time_taken DOUBLE PRECISION NOT NULL,
              submitted_at BIGINT NOT NULL
            )
            """
        )
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS chat_messages (
              id VARCHAR(64) PRIMARY KEY,
              room_code VARCHAR(8) NOT NULL REFERENCES game_rooms(code) ON DELETE CASCADE,
              player_id VARCHAR(64),
              player_name VARCHAR(32) NOT NULL,
              message TEXT NOT NULL,
              is_system_message BOOLEAN NOT NULL DEFAULT FALSE,
              created_at BIGINT NOT NULL
            )
            """
        )
        await conn.execute(
            "CREATE UNIQUE INDEX IF NOT EXISTS idx_answers_player_round "
            "ON answers(room_code, player_id, round_number)"
        )
        await conn.execute(
            "CREATE UNIQUE INDEX IF NOT EXISTS idx_players_active_name "
            "ON players(room_code, name) WHERE is_active"
        )
        await conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_players_room_code ON players(room_code)"
        )
        await conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_chat_messages_room_created ON chat_messages(room_code, created_at)"
        )


async def close_db() -> None:
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None


async def ping_db() -> bool:
    try:
        pool = await _get_pool()
        async with pool.acquire() as conn:
            await conn.fetchval("SELECT 1")
        return True
    except Exception:  # pragma: no cover
        logger.exception("Database ping failed")
        return False

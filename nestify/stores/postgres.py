"""
PostgreSQL user store (asyncpg).
"""

import json
import logging
import uuid
from typing import Optional

import asyncpg

from nestify.error_handling import ConflictError, StoreError
from nestify.models import User

logger = logging.getLogger(__name__)

_COLUMNS = """
    id, name, email, phone, password_hash, role, verified, preferences,
    coordinates, favorites, search_history, last_login, is_active,
    created_at, updated_at
"""


async def init_connection(conn: asyncpg.Connection) -> None:
    """Decode JSONB columns to Python objects on every pooled connection."""
    await conn.set_type_codec(
        "jsonb", encoder=json.dumps, decoder=json.loads, schema="pg_catalog"
    )


async def create_tables(pool: asyncpg.Pool) -> None:
    """Create the users table if it doesn't exist"""
    async with pool.acquire() as conn:
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS users (
                id UUID PRIMARY KEY,
                name VARCHAR(100) NOT NULL,
                email VARCHAR(255) NOT NULL UNIQUE,
                phone VARCHAR(20) NOT NULL UNIQUE,
                password_hash TEXT NOT NULL,
                role VARCHAR(10) NOT NULL DEFAULT 'user',
                verified BOOLEAN NOT NULL DEFAULT FALSE,
                preferences JSONB NOT NULL DEFAULT '{}',
                coordinates JSONB,
                favorites TEXT[] NOT NULL DEFAULT '{}',
                search_history JSONB NOT NULL DEFAULT '[]',
                last_login TIMESTAMPTZ,
                is_active BOOLEAN NOT NULL DEFAULT TRUE,
                created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
            )
        """)

        await conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_users_role ON users(role);
        """)

        logger.info("Database tables created/verified")


def _row_to_user(row) -> User:
    data = dict(row)
    data["id"] = str(data["id"])
    data["favorites"] = list(data["favorites"] or [])
    data["search_history"] = data["search_history"] or []
    data["preferences"] = data["preferences"] or {}
    return User.model_validate(data)


def _params(user: User) -> list:
    data = user.model_dump(mode="json")
    return [
        uuid.UUID(user.id),
        user.name,
        user.email,
        user.phone,
        user.password_hash,
        data["role"],
        user.verified,
        data["preferences"],
        data["coordinates"],
        list(user.favorites),
        data["search_history"],
        user.last_login,
        user.is_active,
        user.created_at,
        user.updated_at,
    ]


class PostgresUserStore:
    """User accounts in the ``users`` table"""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def _fetch_one(self, where: str, value) -> Optional[User]:
        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(f"SELECT {_COLUMNS} FROM users WHERE {where} = $1", value)
        except (asyncpg.PostgresError, asyncpg.InterfaceError) as e:
            logger.error(f"User lookup by {where} failed: {e}")
            raise StoreError(str(e)) from e
        return _row_to_user(row) if row else None

    async def find_by_id(self, user_id: str) -> Optional[User]:
        try:
            key = uuid.UUID(str(user_id))
        except ValueError:
            return None
        return await self._fetch_one("id", key)

    async def find_by_email(self, email: str) -> Optional[User]:
        return await self._fetch_one("email", email)

    async def find_by_phone(self, phone: str) -> Optional[User]:
        return await self._fetch_one("phone", phone)

    async def create(self, user: User) -> User:
        try:
            async with self.pool.acquire() as conn:
                await conn.execute(f"""
                    INSERT INTO users ({_COLUMNS})
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14, $15)
                """, *_params(user))
        except asyncpg.UniqueViolationError as e:
            raise ConflictError("Email or phone number already registered") from e
        except (asyncpg.PostgresError, asyncpg.InterfaceError) as e:
            logger.error(f"Failed to create user: {e}")
            raise StoreError(str(e)) from e
        return user

    async def save(self, user: User) -> User:
        try:
            async with self.pool.acquire() as conn:
                await conn.execute("""
                    UPDATE users SET
                        name = $2, email = $3, phone = $4, password_hash = $5,
                        role = $6, verified = $7, preferences = $8, coordinates = $9,
                        favorites = $10, search_history = $11, last_login = $12,
                        is_active = $13, created_at = $14, updated_at = $15
                    WHERE id = $1
                """, *_params(user))
        except asyncpg.UniqueViolationError as e:
            raise ConflictError("Email or phone number already registered") from e
        except (asyncpg.PostgresError, asyncpg.InterfaceError) as e:
            logger.error(f"Failed to save user {user.id}: {e}")
            raise StoreError(str(e)) from e
        return user

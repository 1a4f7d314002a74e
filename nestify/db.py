"""
Database connection and initialization.
"""

import asyncpg
import redis.asyncio as redis
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from typing import Optional
import logging

from nestify.config import AppSettings, get_settings
from nestify.stores import (
    MemoryListingStore,
    MemoryPromoterStore,
    MemoryUserStore,
    MongoListingStore,
    MongoPromoterStore,
    PostgresUserStore,
)
from nestify.stores.postgres import create_tables, init_connection

logger = logging.getLogger(__name__)

# Global connection pools
pg_pool: Optional[asyncpg.Pool] = None
mongo_client: Optional[AsyncIOMotorClient] = None
mongo_db: Optional[AsyncIOMotorDatabase] = None
redis_client: Optional[redis.Redis] = None

# In-process stores for STORE_BACKEND=memory
memory_listings: Optional[MemoryListingStore] = None
memory_promoters: Optional[MemoryPromoterStore] = None
memory_users: Optional[MemoryUserStore] = None


async def init_db(settings: Optional[AppSettings] = None):
    """Initialize database connections"""
    global pg_pool, mongo_client, mongo_db, memory_listings, memory_promoters, memory_users
    settings = settings or get_settings()

    if settings.store_backend == "memory":
        memory_listings = MemoryListingStore()
        memory_promoters = MemoryPromoterStore()
        memory_users = MemoryUserStore()
        logger.info("Using in-process stores")
    else:
        # PostgreSQL
        try:
            pg_pool = await asyncpg.create_pool(
                settings.postgres.url,
                min_size=settings.postgres.pool_min_size,
                max_size=settings.postgres.pool_max_size,
                command_timeout=settings.postgres.command_timeout,
                init=init_connection,
            )
            logger.info("PostgreSQL connection pool created")

            # Create tables
            await create_tables(pg_pool)
        except Exception as e:
            logger.error(f"Failed to connect to PostgreSQL: {e}")
            raise

        # MongoDB
        try:
            mongo_client = AsyncIOMotorClient(
                settings.mongo.uri,
                maxPoolSize=settings.mongo.max_pool_size,
                serverSelectionTimeoutMS=settings.mongo.server_selection_timeout_ms,
            )
            await mongo_client.admin.command("ping")
            mongo_db = mongo_client[settings.mongo.database]
            logger.info("MongoDB connection established")

            await MongoListingStore(mongo_db).create_indexes()
            await MongoPromoterStore(mongo_db).create_indexes()
        except Exception as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            raise

    await init_cache(settings)


async def init_cache(settings: AppSettings):
    """Connect the statistics cache; an empty or unreachable Redis disables it"""
    global redis_client

    if not settings.cache.redis_url:
        logger.info("Redis URL not set, statistics cache disabled")
        return

    try:
        client = redis.from_url(settings.cache.redis_url, decode_responses=True)
        await client.ping()
        redis_client = client
        logger.info("Redis connection established")
    except Exception as e:
        logger.warning(f"Failed to connect to Redis, statistics cache disabled: {e}")
        redis_client = None


async def close_db():
    """Close database connections"""
    global pg_pool, mongo_client, mongo_db, redis_client, memory_listings, memory_promoters, memory_users

    memory_listings = memory_promoters = memory_users = None

    if pg_pool:
        await pg_pool.close()
        pg_pool = None
        logger.info("PostgreSQL connection pool closed")

    if mongo_client:
        mongo_client.close()
        mongo_client = None
        mongo_db = None
        logger.info("MongoDB connection closed")

    if redis_client:
        await redis_client.aclose()
        redis_client = None
        logger.info("Redis connection closed")


def get_pg_pool() -> asyncpg.Pool:
    """Get PostgreSQL connection pool"""
    if pg_pool is None:
        raise RuntimeError("Database not initialized")
    return pg_pool


def get_mongo_db() -> AsyncIOMotorDatabase:
    """Get MongoDB database handle"""
    if mongo_db is None:
        raise RuntimeError("Database not initialized")
    return mongo_db


def get_redis() -> Optional[redis.Redis]:
    """Get Redis client, or None when caching is disabled"""
    return redis_client


def get_listing_store():
    if memory_listings is not None:
        return memory_listings
    return MongoListingStore(get_mongo_db())


def get_promoter_store():
    if memory_promoters is not None:
        return memory_promoters
    return MongoPromoterStore(get_mongo_db())


def get_user_store():
    if memory_users is not None:
        return memory_users
    return PostgresUserStore(get_pg_pool())

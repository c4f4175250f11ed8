"""
Core module - Configuration, database, Redis, email and rate limiting.
"""

from internship_portal.core.config import get_settings, settings
from internship_portal.core.database import Base, close_db, get_db, init_db, ping_db
from internship_portal.core.redis import close_redis, get_redis, init_redis

__all__ = [
    # Config
    "settings",
    "get_settings",
    # Database
    "Base",
    "get_db",
    "init_db",
    "ping_db",
    "close_db",
    # Redis
    "get_redis",
    "init_redis",
    "close_redis",
]

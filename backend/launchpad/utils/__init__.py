"""
Utility modules for LaunchPad
"""

from .database import (
    get_db,
    get_db_context,
    init_db,
    close_db,
)
from .security import (
    create_access_token,
    decode_token,
    verify_access_token,
    generate_query_hash,
    generate_prompt_hash,
)
from .cache import (
    CacheEntry,
    TTLCache,
    research_cache,
)

__all__ = [
    # Database
    "get_db",
    "get_db_context",
    "init_db",
    "close_db",
    # Security
    "create_access_token",
    "decode_token",
    "verify_access_token",
    "generate_query_hash",
    "generate_prompt_hash",
    # Cache
    "CacheEntry",
    "TTLCache",
    "research_cache",
]

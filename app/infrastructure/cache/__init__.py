from .memory_cache import CacheKeys, MemoryCache
from .cached_user_book_repository import CachedUserBookRepository
from .cached_book_search_provider import CachedBookSearchProvider

__all__ = [
    "CacheKeys",
    "MemoryCache",
    "CachedUserBookRepository",
    "CachedBookSearchProvider",
]

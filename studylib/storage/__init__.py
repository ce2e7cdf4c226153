# storage/__init__.py
from studylib.storage.cache import ContentCache
from studylib.storage.models import CacheEntry

__all__ = ["ContentCache", "CacheEntry"]

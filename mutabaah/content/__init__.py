"""
Server-side proxy for read-only third-party content (Quran text, prayer times).

Build a ``ContentProviders`` from settings once at startup; handlers call
``quran.get_surah()`` / ``prayer.get_schedule()`` and get back the data plus
whether it came from the cache.
"""

from .cache import TTLCache
from .client import UpstreamClient
from .providers import CachedResult, ContentProviders, PrayerScheduleProvider, QuranProvider, parse_surah_number

__all__ = [
    "TTLCache",
    "UpstreamClient",
    "CachedResult",
    "ContentProviders",
    "QuranProvider",
    "PrayerScheduleProvider",
    "parse_surah_number",
]

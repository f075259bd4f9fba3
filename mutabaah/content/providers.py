from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

from mutabaah.errors import UpstreamFailure, ValidationError
from mutabaah.settings import Settings

from .cache import TTLCache
from .client import UpstreamClient

logger = logging.getLogger(__name__)

SURAH_COUNT = 114

_LOCATION_RE = re.compile(r"^[A-Za-z0-9]{1,20}$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class CachedResult:
    data: Any
    hit: bool


class QuranProvider:
    """Surah text from equran.id, validated and cached per surah."""

    def __init__(self, client: UpstreamClient, cache: TTLCache, base_url: str) -> None:
        self._client = client
        self._cache = cache
        self._base_url = base_url.rstrip("/")

    def get_surah(self, surah: str | int) -> CachedResult:
        number = parse_surah_number(surah)
        key = f"surah-{number}"

        cached = self._cache.get(key)
        if cached is not None:
            return CachedResult(cached, hit=True)

        data = self._client.get_json(f"{self._base_url}/surat/{number}")
        if not isinstance(data, dict) or data.get("code") != 200 or not data.get("data"):
            logger.warning("Quran provider returned an unexpected body surah=%s", number)
            raise UpstreamFailure("Invalid API response", code="upstream_invalid")

        self._cache.set(key, data)
        return CachedResult(data, hit=False)


class PrayerScheduleProvider:
    """Daily prayer schedule from myquran.com for one location."""

    def __init__(self, client: UpstreamClient, cache: TTLCache, base_url: str) -> None:
        self._client = client
        self._cache = cache
        self._base_url = base_url.rstrip("/")

    def get_schedule(self, location_id: str, date: str) -> CachedResult:
        if not _LOCATION_RE.match(location_id):
            raise ValidationError("Invalid location id")
        if not _DATE_RE.match(date):
            raise ValidationError("Invalid date, expected YYYY-MM-DD")

        key = f"sholat-{location_id}-{date}"
        cached = self._cache.get(key)
        if cached is not None:
            return CachedResult(cached, hit=True)

        data = self._client.get_json(f"{self._base_url}/sholat/jadwal/{location_id}/{date}")
        if not isinstance(data, dict):
            raise UpstreamFailure("Invalid API response", code="upstream_invalid")

        self._cache.set(key, data)
        return CachedResult(data, hit=False)


def parse_surah_number(raw: str | int) -> int:
    try:
        number = int(str(raw), 10)
    except ValueError:
        number = 0
    if number < 1 or number > SURAH_COUNT:
        raise ValidationError(f"Invalid surah number. Must be between 1 and {SURAH_COUNT}.")
    return number


@dataclass(frozen=True)
class ContentProviders:
    quran: QuranProvider
    prayer: PrayerScheduleProvider
    cache: TTLCache

    @classmethod
    def from_settings(cls, settings: Settings) -> ContentProviders:
        client = UpstreamClient(
            timeout_seconds=settings.upstream_timeout_seconds,
            max_retries=settings.upstream_max_retries,
            backoff_seconds=settings.upstream_backoff_seconds,
        )
        # One cache per process, owned here; keys are namespaced per provider.
        cache = TTLCache(settings.content_cache_ttl_seconds)
        return cls(
            quran=QuranProvider(client, cache, settings.quran_api_base_url),
            prayer=PrayerScheduleProvider(client, cache, settings.prayer_api_base_url),
            cache=cache,
        )

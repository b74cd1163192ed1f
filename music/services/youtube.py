"""
YouTube Data API search for long classical recordings of a raga.

Each search runs several queries (spelling variations with and without
the artist, then a broad query), keeps only long videos that actually
mention the raga in a classical context, and caches new results as
tracks.  Quota is accounted in the Django cache: ``search.list`` costs
100 units and ``videos.list`` one unit per id.
"""
from __future__ import annotations

import logging
import re
from typing import Optional

import requests
from django.conf import settings
from django.core.cache import cache

from music.services import tracks

logger = logging.getLogger(__name__)

SEARCH_URL = 'https://www.googleapis.com/youtube/v3/search'
VIDEOS_URL = 'https://www.googleapis.com/youtube/v3/videos'
SEARCH_COST = 100
API_MAX_RESULTS = 50
RESULT_LIMIT = 10
DEFAULT_MIN_DURATION = 1200
DEFAULT_MAX_RESULTS = 100

QUOTA_KEY = 'music:youtube:quota_used'
QUOTA_WINDOW_SECONDS = 24 * 60 * 60

SPELLING_MAP = {
    'bageshri': ['bageshree'],
    'yaman': ['yaman kalyan'],
}

CLASSICAL_KEYWORDS = (
    'classical', 'raga', 'indian', 'hindustani', 'carnatic',
    'sitar', 'tabla', 'santoor', 'bansuri', 'violin', 'sarangi',
    'alap', 'gat', 'drut', 'vilambit', 'jhala', 'tala',
)
EXCLUDE_KEYWORDS = (
    'bollywood', 'film', 'movie', 'pop', 'rock', 'jazz',
    'western', 'fusion', 'remix', 'cover', 'karaoke',
)
COMMON_ARTISTS = (
    'Ravi Shankar', 'Zakir Hussain', 'Ali Akbar Khan', 'Hariprasad Chaurasia',
    'Bhimsen Joshi', 'Kumar Gandharva', 'Mallikarjun Mansur', 'Gangubai Hangal',
    'Pandit Jasraj', 'Ustad Amjad Ali Khan', 'Ustad Vilayat Khan', 'Ustad Bismillah Khan',
    'Pandit Shivkumar Sharma', 'Pandit Ram Narayan', 'Pandit Nikhil Banerjee',
    'Ustad Rashid Khan', 'Pandit Ajoy Chakrabarty', 'Pandit Rajan Sajan Mishra',
)

_DURATION_RE = re.compile(r'PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?')


class YouTubeError(Exception):
    pass


class YouTubeQuotaExceeded(YouTubeError):
    pass


# ---------------------------------------------------------------------
# Quota
# ---------------------------------------------------------------------
def quota_status() -> dict:
    used = cache.get(QUOTA_KEY, 0)
    limit = settings.YOUTUBE_SEARCH_QUOTA
    return {'used': used, 'limit': limit, 'remaining': limit - used}


def spend_quota(cost: int) -> None:
    cache.add(QUOTA_KEY, 0, timeout=QUOTA_WINDOW_SECONDS)
    if cache.get(QUOTA_KEY, 0) + cost > settings.YOUTUBE_SEARCH_QUOTA:
        raise YouTubeQuotaExceeded('YouTube API quota exceeded')
    cache.incr(QUOTA_KEY, cost)


# ---------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------
def spelling_variations(raga: str) -> list[str]:
    lower = raga.lower()
    variations = [lower, *SPELLING_MAP.get(lower, [])]
    if lower.endswith('ee'):
        variations.append(lower[:-2] + 'i')
    elif lower.endswith('i'):
        variations.append(lower[:-1] + 'ee')
    return list(dict.fromkeys(variations))


def parse_duration(value: str) -> int:
    """ISO-8601 ``PT#H#M#S`` to seconds; 0 when unparseable."""
    match = _DURATION_RE.match(value or '')
    if not match:
        return 0
    hours, minutes, seconds = (int(g or 0) for g in match.groups())
    return hours * 3600 + minutes * 60 + seconds


def format_duration(seconds: int) -> str:
    hours, rest = divmod(int(seconds), 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def is_raga_video(title: str, description: str, raga: str) -> bool:
    text = f"{title} {description}".lower()
    if not any(v in text for v in spelling_variations(raga)):
        return False
    if not any(k in text for k in CLASSICAL_KEYWORDS):
        return False
    return not any(k in text for k in EXCLUDE_KEYWORDS)


def extract_artist(title: str, channel_title: str, preferred: Optional[str] = None) -> str:
    lower = title.lower()
    if preferred and preferred.lower() in lower:
        return preferred
    for artist in COMMON_ARTISTS:
        if artist.lower() in lower:
            return artist
    return channel_title or 'Various Artists'


def dedupe_and_prioritize(videos: list[dict], artist: Optional[str] = None) -> list[dict]:
    """Drop repeated URLs, then order artist matches first and by likes."""
    seen = set()
    unique = []
    for video in videos:
        if video['url'] not in seen:
            seen.add(video['url'])
            unique.append(video)
    wanted = (artist or '').lower()

    def rank(video):
        matches = bool(wanted) and wanted in video['artist'].lower()
        return (not matches, -video['likes'])
    return sorted(unique, key=rank)


# ---------------------------------------------------------------------
# API calls
# ---------------------------------------------------------------------
def _get(url: str, params: dict) -> dict:
    try:
        r = requests.get(url, params={**params, 'key': settings.YOUTUBE_API_KEY},
                         timeout=settings.YOUTUBE_TIMEOUT)
    except requests.RequestException as e:
        raise YouTubeError(f"YouTube request failed: {e}") from e
    if r.status_code == 403 and 'quota' in r.text.lower():
        raise YouTubeQuotaExceeded('YouTube API quota exceeded')
    if r.status_code != 200:
        raise YouTubeError(f"YouTube API returned {r.status_code}")
    return r.json()


def _video(item: dict, raga: str, artist: Optional[str]) -> dict:
    snippet = item.get('snippet') or {}
    stats = item.get('statistics') or {}
    thumbnails = snippet.get('thumbnails') or {}
    seconds = parse_duration((item.get('contentDetails') or {}).get('duration'))
    return {
        'id': item['id'],
        'title': snippet.get('title', ''),
        'description': snippet.get('description', ''),
        'thumbnail': (thumbnails.get('high') or thumbnails.get('default') or {}).get('url', ''),
        'channelTitle': snippet.get('channelTitle', ''),
        'publishedAt': snippet.get('publishedAt', ''),
        'duration': format_duration(seconds),
        'durationSeconds': seconds,
        'viewCount': stats.get('viewCount', '0'),
        'likeCount': stats.get('likeCount', '0'),
        'commentCount': stats.get('commentCount', '0'),
        'likes': int(stats.get('likeCount') or 0),
        'url': f"https://www.youtube.com/watch?v={item['id']}",
        'raga': raga,
        'artist': extract_artist(snippet.get('title', ''), snippet.get('channelTitle', ''), artist),
    }


def focused_search(query: str, raga: str, artist: Optional[str], min_duration: int, max_results: int) -> list[dict]:
    spend_quota(SEARCH_COST)
    found = _get(SEARCH_URL, {
        'part': 'snippet',
        'q': query,
        'type': 'video',
        'maxResults': min(max_results, API_MAX_RESULTS),
        'order': 'relevance',
        'videoDuration': 'long',
        'videoDefinition': 'high',
        'relevanceLanguage': 'en',
        'regionCode': 'IN',
    }).get('items') or []
    ids = [i['id']['videoId'] for i in found if (i.get('id') or {}).get('videoId')]
    if not ids:
        return []

    spend_quota(len(ids))
    details = _get(VIDEOS_URL, {'part': 'snippet,contentDetails,statistics', 'id': ','.join(ids)}).get('items') or []
    videos = [_video(item, raga, artist) for item in details]
    videos = [v for v in videos
              if v['durationSeconds'] >= min_duration and is_raga_video(v['title'], v['description'], raga)]
    return sorted(videos, key=lambda v: -v['likes'])


def multi_strategy_search(raga: str, artist: Optional[str], min_duration: int) -> list[dict]:
    variations = spelling_variations(raga)
    results = []
    if artist and artist.strip():
        for variation in variations[:3]:
            results += focused_search(f"{variation} raga indian classical music {artist}",
                                      raga, artist, min_duration, 20)
    for variation in variations[:2]:
        results += focused_search(f"{variation} raga indian classical music", raga, artist, min_duration, 30)
    results += focused_search(f"{raga} indian classical music", raga, artist, min_duration, 25)
    return results


def search_videos(raga: str, artist: Optional[str] = None, *, min_duration: int = DEFAULT_MIN_DURATION,
                  max_results: int = DEFAULT_MAX_RESULTS) -> dict:
    """Search, cache new tracks and return the top results with quota usage.

    ``max_results`` is echoed in the search parameters; each query is
    capped by the API's own page size.
    """
    if not settings.YOUTUBE_API_KEY:
        raise YouTubeError('YouTube API key not configured')

    before = quota_status()['used']
    logger.info("YouTube search for raga=%s artist=%s (max %s)", raga, artist, max_results)
    videos = dedupe_and_prioritize(multi_strategy_search(raga, artist, min_duration), artist)
    tracks.cache_tracks(raga, artist or 'any', videos)
    status = quota_status()
    return {
        'tracks': videos[:RESULT_LIMIT],
        'quotaUsed': status['used'] - before,
        'quotaStatus': status,
    }

"""Tracks found on YouTube or uploaded as audio, with user ratings."""
from __future__ import annotations

import logging

from django.utils import timezone
from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError

from music import mongo

logger = logging.getLogger(__name__)

CURATED_LIMIT = 10


def _tracks():
    return mongo.collection(mongo.TRACKS)


def search_key(raga: str, artist: str, video_id: str) -> str:
    return f"{raga.lower()}_{artist.lower()}_{video_id}"


def cache_tracks(raga: str, artist: str, videos: list[dict]) -> int:
    """Store search results not seen before; returns how many were added."""
    added = 0
    now = timezone.now()
    for video in videos:
        if _tracks().find_one({'url': video['url']}, {'_id': 1}) is not None:
            continue
        try:
            _tracks().insert_one({
                'raga': video.get('raga') or raga,
                'artist': video.get('artist') or artist,
                'title': video['title'],
                'url': video['url'],
                'duration': video['duration'],
                'durationSeconds': video['durationSeconds'],
                'likes': video.get('likes', 0),
                'thumbnail': video.get('thumbnail', ''),
                'searchKey': search_key(raga, artist, video['id']),
                'isCurated': False,
                'ratings': [],
                'createdAt': now,
                'updatedAt': now,
            })
        except DuplicateKeyError:
            logger.debug("Track %s was cached concurrently", video['url'])
            continue
        added += 1
    if added:
        logger.info("Cached %s new tracks for %s / %s", added, raga, artist)
    return added


def curated_tracks() -> list[dict]:
    docs = _tracks().find({'isCurated': True}).sort('likes', DESCENDING).limit(CURATED_LIMIT)
    return [{
        'id': str(t['_id']),
        'title': t.get('title'),
        'url': t.get('url'),
        'duration': t.get('duration'),
        'thumbnail': t.get('thumbnail'),
        'likes': t.get('likes', 0),
        'raga': t.get('raga'),
        'artist': t.get('artist'),
        'ratings': t.get('ratings') or [],
    } for t in docs]


def rate_track(track_id, user_id: str, rating: int) -> bool:
    """Replace the user's previous rating; ``False`` when the track is unknown."""
    oid = mongo.object_id(track_id)
    if oid is None or _tracks().find_one({'_id': oid}, {'_id': 1}) is None:
        return False
    _tracks().update_one({'_id': oid}, {'$pull': {'ratings': {'userId': user_id}}})
    _tracks().update_one({'_id': oid}, {
        '$push': {'ratings': {'userId': user_id, 'rating': rating, 'createdAt': timezone.now()}},
        '$set': {'updatedAt': timezone.now()},
    })
    return True


def exists_with_key(key: str) -> bool:
    return _tracks().find_one({'searchKey': key}, {'_id': 1}) is not None


def insert_track(doc: dict) -> dict:
    now = timezone.now()
    doc = {'likes': 0, 'isCurated': False, 'ratings': [], 'thumbnail': '', **doc, 'createdAt': now, 'updatedAt': now}
    doc['_id'] = _tracks().insert_one(doc).inserted_id
    return doc


def delete_by_url(url: str) -> int:
    return _tracks().delete_many({'url': url}).deleted_count

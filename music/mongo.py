"""
MongoDB access for the music app.

One ``MongoClient`` is shared per process.  Collections are looked up by
name on ``settings.MONGODB_DB``; audio files live in the ``audiofiles``
GridFS bucket.  Documents keep the camelCase field names used by the
web client, so ``to_json`` only has to stringify ids and dates.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from functools import lru_cache
from typing import Optional

import gridfs
from bson import ObjectId
from bson.errors import InvalidId
from django.conf import settings
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

AUDIO_BUCKET = 'audiofiles'

USERS = 'users'
RAGAS = 'ragas'
ARTISTS = 'artists'
TRACKS = 'tracks'
TRANSACTIONS = 'transactions'
EVENTS = 'events'

# (collection, keys, unique)
INDEXES = [
    (USERS, [('phone', ASCENDING)], True),
    (RAGAS, [('name', ASCENDING)], True),
    (ARTISTS, [('name', ASCENDING)], True),
    (TRACKS, [('searchKey', ASCENDING)], True),
    (TRACKS, [('raga', ASCENDING), ('artist', ASCENDING)], False),
    (TRACKS, [('isCurated', ASCENDING)], False),
    (TRANSACTIONS, [('razorpayPaymentId', ASCENDING)], True),
    (TRANSACTIONS, [('phone', ASCENDING), ('transactionDate', DESCENDING)], False),
    (EVENTS, [('eventTag', ASCENDING)], True),
]


@lru_cache(maxsize=1)
def get_client() -> MongoClient:
    return MongoClient(
        settings.MONGODB_URI,
        serverSelectionTimeoutMS=settings.MONGODB_TIMEOUT_MS,
        tz_aware=True,
    )


def get_db():
    return get_client()[settings.MONGODB_DB]


def collection(name: str):
    return get_db()[name]


def get_bucket() -> gridfs.GridFSBucket:
    return gridfs.GridFSBucket(get_db(), bucket_name=AUDIO_BUCKET)


def ping() -> bool:
    """True when the server answers ``ping`` within the selection timeout."""
    try:
        get_client().admin.command('ping')
    except PyMongoError:
        logger.warning("MongoDB is not reachable", exc_info=True)
        return False
    return True


def ensure_indexes() -> int:
    created = 0
    for name, keys, unique in INDEXES:
        collection(name).create_index(keys, unique=unique)
        created += 1
    return created


def object_id(value) -> Optional[ObjectId]:
    """Parse a 24-hex id; ``None`` for anything else."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def _plain(value):
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def to_json(doc: Optional[dict]) -> Optional[dict]:
    if doc is None:
        return None
    return _plain(doc)

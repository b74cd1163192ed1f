"""Artist catalog."""
from __future__ import annotations

import logging
from typing import Optional

from django.utils import timezone
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError

from music import mongo

logger = logging.getLogger(__name__)

MIN_YEAR_BORN = 1800
MAX_BIO_WORDS = 20
MAX_BIO_CHARS = 200
REQUIRED_FIELDS = ('name', 'yearBorn', 'specialty', 'bio')


class DuplicateArtist(Exception):
    pass


def _artists():
    return mongo.collection(mongo.ARTISTS)


def bio_word_count(bio: str) -> int:
    return len((bio or '').split())


def missing_fields(data: dict) -> list[str]:
    return [f for f in REQUIRED_FIELDS if not str(data.get(f) or '').strip()]


def list_artists(raga: Optional[str] = None) -> list[dict]:
    query = {'knownRagas': raga} if raga else {}
    return list(_artists().find(query).sort([('rating', DESCENDING), ('name', ASCENDING)]))


def get_artist(artist_id) -> Optional[dict]:
    oid = mongo.object_id(artist_id)
    return None if oid is None else _artists().find_one({'_id': oid})


def find_by_name(name: str) -> Optional[dict]:
    return _artists().find_one({'name': name})


def artist_fields(data: dict) -> dict:
    return {
        'name': data['name'],
        'yearBorn': data['yearBorn'],
        'specialty': data['specialty'],
        'gharana': data.get('gharana') or None,
        'knownRagas': data.get('knownRagas') or [],
        'bio': data['bio'],
        'imgUrl': data.get('imgUrl') or '',
        'rating': data.get('rating') or 0,
        'isActive': data['isActive'] if data.get('isActive') is not None else True,
    }


def insert_artist(fields: dict) -> dict:
    now = timezone.now()
    doc = {**fields, 'createdAt': now, 'updatedAt': now}
    try:
        doc['_id'] = _artists().insert_one(doc).inserted_id
    except DuplicateKeyError as e:
        raise DuplicateArtist(fields['name']) from e
    return doc


def create_artist(data: dict) -> dict:
    if find_by_name(data['name']) is not None:
        raise DuplicateArtist(data['name'])
    artist = insert_artist(artist_fields(data))
    logger.info("Created artist %s", artist['name'])
    return artist


def update_artist(artist_id, data: dict) -> Optional[dict]:
    artist = get_artist(artist_id)
    if artist is None:
        return None
    if _artists().find_one({'name': data['name'], '_id': {'$ne': artist['_id']}}) is not None:
        raise DuplicateArtist(data['name'])
    fields = {**artist_fields(data), 'updatedAt': timezone.now()}
    _artists().update_one({'_id': artist['_id']}, {'$set': fields})
    return {**artist, **fields}


def delete_artist(artist_id) -> bool:
    oid = mongo.object_id(artist_id)
    return oid is not None and _artists().delete_one({'_id': oid}).deleted_count > 0


def delete_all() -> int:
    return _artists().delete_many({}).deleted_count


def ensure_artist(name: str, raga: str) -> dict:
    """Find the artist of an uploaded recording, recording the raga as known."""
    artist = find_by_name(name)
    if artist is None:
        logger.info("Creating artist %s for an audio upload", name)
        return insert_artist({
            'name': name,
            'yearBorn': 1900,
            'specialty': 'Classical Music',
            'gharana': None,
            'knownRagas': [raga],
            'bio': f"Artist: {name}",
            'imgUrl': '',
            'rating': 0,
            'isActive': True,
        })
    if raga not in (artist.get('knownRagas') or []):
        _artists().update_one(
            {'_id': artist['_id']},
            {'$addToSet': {'knownRagas': raga}, '$set': {'updatedAt': timezone.now()}},
        )
    return artist


def batch_import(rows: list, validate) -> dict:
    """Create artists row by row; errors are reported as ``Row N (name): reason``."""
    results = {'successful': 0, 'failed': 0, 'duplicates': [], 'errors': []}
    for index, row in enumerate(rows, start=1):
        row = row if isinstance(row, dict) else {}
        name = str(row.get('name') or '').strip()
        missing = missing_fields(row)
        if missing:
            results['failed'] += 1
            results['errors'].append(f"Row {index} ({name or 'No name'}): Missing required fields: {', '.join(missing)}")
            continue
        words = bio_word_count(row['bio'])
        if words > MAX_BIO_WORDS:
            results['failed'] += 1
            results['errors'].append(f"Row {index} ({name}): Bio exceeds {MAX_BIO_WORDS} words ({words} words)")
            continue
        if find_by_name(name) is not None:
            results['duplicates'].append(name)
            results['errors'].append(f"Row {index} ({name}): Duplicate name already exists")
            continue
        data, error = validate(row)
        if error:
            results['failed'] += 1
            results['errors'].append(f"Row {index} ({name}): {error}")
            continue
        try:
            insert_artist(artist_fields(data))
        except DuplicateArtist:
            results['duplicates'].append(name)
            results['errors'].append(f"Row {index} ({name}): Duplicate name already exists")
            continue
        results['successful'] += 1
    logger.info("Artist import: %s created, %s failed, %s duplicates",
                results['successful'], results['failed'], len(results['duplicates']))
    return results

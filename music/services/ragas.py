"""
Raga catalog.

A raga is recommended when one of its ideal hours lies within two hours
of the current local hour, measured around the clock so that 23:00 is
close to 01:00.
"""
from __future__ import annotations

import logging
from typing import Optional

from django.utils import timezone
from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError

from music import mongo

logger = logging.getLogger(__name__)

POPULARITY = ('highly listened', 'moderately listened', 'sparingly listened', 'rarely listened')
DEFAULT_POPULARITY = 'moderately listened'
SEASONS = ('Grishma', 'Varsha', 'Sharad', 'Hemant', 'Shishir', 'Vasant')
MARATHI_SEASONS = ('ग्रीष्म', 'वर्षा', 'शरद', 'हेमंत', 'शिशिर', 'वसंत')
RECOMMEND_WINDOW_HOURS = 2
MAX_BATCH = 1000


class DuplicateRaga(Exception):
    pass


def _ragas():
    return mongo.collection(mongo.RAGAS)


def is_recommended(ideal_hours, hour: int) -> bool:
    for ideal in ideal_hours or []:
        diff = abs(int(ideal) - hour) % 24
        if min(diff, 24 - diff) <= RECOMMEND_WINDOW_HOURS:
            return True
    return False


def with_recommendation(ragas: list[dict], hour: int) -> list[dict]:
    """Flag each raga and move the recommended ones to the front, keeping name order."""
    flagged = [{**r, 'isRecommended': is_recommended(r.get('idealHours'), hour)} for r in ragas]
    return sorted(flagged, key=lambda r: not r['isRecommended'])


def list_ragas(hour: Optional[int] = None) -> list[dict]:
    if hour is None:
        hour = timezone.localtime().hour
    return with_recommendation(list(_ragas().find().sort('name', ASCENDING)), hour)


def get_raga(raga_id) -> Optional[dict]:
    oid = mongo.object_id(raga_id)
    return None if oid is None else _ragas().find_one({'_id': oid})


def find_by_name(name: str) -> Optional[dict]:
    return _ragas().find_one({'name': name})


def raga_fields(data: dict) -> dict:
    fields = {
        'name': data['name'],
        'description': data.get('description') or '',
        'tags': data.get('tags') or [],
        'idealHours': data.get('idealHours') or [],
        'seasons': data.get('seasons') or [],
        'popularity': data.get('popularity') or DEFAULT_POPULARITY,
        'isActive': data['isActive'] if data.get('isActive') is not None else True,
    }
    if data.get('marathiSeasons'):
        fields['marathiSeasons'] = data['marathiSeasons']
    return fields


def insert_raga(fields: dict) -> dict:
    now = timezone.now()
    doc = {'isRecommended': False, 'marathiSeasons': [], **fields, 'createdAt': now, 'updatedAt': now}
    try:
        doc['_id'] = _ragas().insert_one(doc).inserted_id
    except DuplicateKeyError as e:
        raise DuplicateRaga(fields['name']) from e
    return doc


def create_raga(data: dict) -> dict:
    if find_by_name(data['name']) is not None:
        raise DuplicateRaga(data['name'])
    raga = insert_raga(raga_fields(data))
    logger.info("Created raga %s", raga['name'])
    return raga


def update_raga(raga_id, data: dict) -> Optional[dict]:
    """Replace the editable fields; ``None`` when the raga does not exist."""
    raga = get_raga(raga_id)
    if raga is None:
        return None
    if _ragas().find_one({'name': data['name'], '_id': {'$ne': raga['_id']}}) is not None:
        raise DuplicateRaga(data['name'])
    fields = {**raga_fields(data), 'updatedAt': timezone.now()}
    _ragas().update_one({'_id': raga['_id']}, {'$set': fields})
    return {**raga, **fields}


def delete_raga(raga_id) -> bool:
    oid = mongo.object_id(raga_id)
    return oid is not None and _ragas().delete_one({'_id': oid}).deleted_count > 0


def delete_all() -> int:
    return _ragas().delete_many({}).deleted_count


def ensure_raga(name: str) -> dict:
    """Find a raga by name or create a placeholder for an uploaded recording."""
    raga = find_by_name(name)
    if raga is not None:
        return raga
    logger.info("Creating raga %s for an audio upload", name)
    return insert_raga({
        'name': name,
        'tags': ['classical'],
        'idealHours': list(range(6, 23)),
        'description': f"Raga: {name}",
        'seasons': ['Vasant', 'Grishma', 'Varsha', 'Sharad', 'Hemant', 'Shishir'],
        'marathiSeasons': ['वसंत', 'ग्रीष्म', 'वर्षा', 'शरद', 'हेमंत', 'शिशिर'],
        'popularity': DEFAULT_POPULARITY,
        'isActive': True,
    })


def batch_import(rows: list, validate) -> dict:
    """Create ragas from ``rows``; ``validate(row)`` returns ``(data, error)``.

    Rows without a name or description fail, existing names are skipped
    as duplicates.
    """
    results = {'total': len(rows), 'successful': 0, 'failed': 0, 'errors': [], 'created': [], 'duplicates': []}
    for row in rows:
        name = row.get('name') if isinstance(row, dict) else None
        if not name or not row.get('description'):
            results['failed'] += 1
            results['errors'].append(f"Raga missing required fields: {name or 'Unknown'}")
            continue
        if find_by_name(name) is not None:
            results['duplicates'].append(name)
            continue
        data, error = validate(row)
        if error:
            results['failed'] += 1
            results['errors'].append(f"{name}: {error}")
            continue
        try:
            raga = insert_raga(raga_fields(data))
        except DuplicateRaga:
            results['duplicates'].append(name)
            continue
        results['successful'] += 1
        results['created'].append({'id': str(raga['_id']), 'name': raga['name']})
    logger.info("Raga import: %s created, %s failed, %s duplicates",
                results['successful'], results['failed'], len(results['duplicates']))
    return results

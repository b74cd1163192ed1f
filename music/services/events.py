"""Events group uploaded recordings (a concert, a festival day)."""
from __future__ import annotations

import logging

from django.utils import timezone
from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError

from music import mongo

logger = logging.getLogger(__name__)


def _events():
    return mongo.collection(mongo.EVENTS)


def event_tag(name: str) -> str:
    return '-'.join(name.lower().split())


def list_active() -> list[dict]:
    return list(_events().find({'isActive': True}).sort('name', ASCENDING))


def ensure_event(name: str) -> dict:
    event = _events().find_one({'name': name})
    if event is not None:
        return event
    now = timezone.now()
    event = {
        'name': name,
        'eventTag': event_tag(name),
        'description': f"Event: {name}",
        'trackUrls': [],
        'isActive': True,
        'createdAt': now,
        'updatedAt': now,
    }
    try:
        event['_id'] = _events().insert_one(event).inserted_id
    except DuplicateKeyError:
        # another name with the same tag
        return _events().find_one({'eventTag': event['eventTag']})
    logger.info("Created event %s", name)
    return event


def add_track_url(event: dict, url: str) -> None:
    _events().update_one(
        {'_id': event['_id']},
        {'$addToSet': {'trackUrls': url}, '$set': {'updatedAt': timezone.now()}},
    )

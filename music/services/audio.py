"""
Audio uploads stored in GridFS.

Uploaded files must be named ``event - Artist - raga - Title.ext``.  The
artist, raga and event are created on first sight, the file is stored in
the ``audiofiles`` bucket and a track pointing at the streaming URL is
added to the catalog.
"""
from __future__ import annotations

import logging
import os
import re
from typing import Optional

from bson import ObjectId
from django.conf import settings
from django.utils import timezone
from pymongo.errors import DuplicateKeyError

from music import mongo
from music.services import artists, events, ragas, tracks

logger = logging.getLogger(__name__)

FILENAME_PARTS = 4
FILENAME_FORMAT = 'Invalid filename format. Expected: "event - Artist - raga - Title.xxx"'
STREAM_URL = '/api/music/audio/stream/{file_id}'
CHUNK_SIZE = 256 * 1024

_RANGE_RE = re.compile(r'^bytes=(\d*)-(\d*)$')


class AudioValidationError(Exception):
    pass


class RangeNotSatisfiable(Exception):
    pass


def stream_url(file_id) -> str:
    return STREAM_URL.format(file_id=file_id)


def parse_filename(filename: str) -> Optional[dict]:
    """Split ``event - Artist - raga - Title.ext``; ``None`` when malformed."""
    stem, ext = os.path.splitext(filename or '')
    parts = [p.strip() for p in stem.split(' - ')]
    if len(parts) != FILENAME_PARTS or not all(parts):
        return None
    event, artist, raga, title = parts
    return {
        'event': event,
        'artist': artist,
        'raga': raga,
        'title': title,
        'originalFilename': filename,
        'fileExtension': ext.lstrip('.').lower(),
    }


def validate_upload(uploaded) -> dict:
    content_type = getattr(uploaded, 'content_type', None)
    allowed = settings.AUDIO_ALLOWED_TYPES
    if content_type not in allowed:
        raise AudioValidationError(f"Unsupported file type: {content_type}. Allowed types: {', '.join(allowed)}")
    max_bytes = settings.AUDIO_MAX_MB * 1024 * 1024
    if uploaded.size > max_bytes:
        raise AudioValidationError(
            f"File too large: {uploaded.size / 1024 / 1024:.2f}MB. Maximum size: {settings.AUDIO_MAX_MB}MB"
        )
    parsed = parse_filename(uploaded.name)
    if parsed is None:
        raise AudioValidationError(FILENAME_FORMAT)
    return parsed


def base_search_key(raga: str, artist: str, title: str) -> str:
    return re.sub(r'[^a-z0-9-]', '-', f"{raga}-{artist}-{title}".lower())


def unique_search_key(base: str) -> str:
    key, counter = base, 1
    while tracks.exists_with_key(key):
        key = f"{base}-{counter}"
        counter += 1
    return key


def store_file(uploaded, parsed: dict) -> str:
    metadata = {
        'filename': uploaded.name,
        'originalName': uploaded.name,
        'contentType': uploaded.content_type,
        'size': uploaded.size,
        'uploadDate': timezone.now(),
        'event': parsed['event'],
        'artist': parsed['artist'],
        'raga': parsed['raga'],
        'title': parsed['title'],
    }
    uploaded.seek(0)
    file_id = mongo.get_bucket().upload_from_stream(uploaded.name, uploaded, metadata=metadata)
    return str(file_id)


def upload(uploaded) -> dict:
    """Validate, store and catalog one upload; returns the new track summary."""
    parsed = validate_upload(uploaded)
    artists.ensure_artist(parsed['artist'], parsed['raga'])
    ragas.ensure_raga(parsed['raga'])
    event = events.ensure_event(parsed['event'])

    file_id = store_file(uploaded, parsed)
    try:
        track = tracks.insert_track({
            'raga': parsed['raga'],
            'artist': parsed['artist'],
            'title': parsed['title'],
            'url': stream_url(file_id),
            'duration': '0:00',
            'durationSeconds': 0,
            'searchKey': unique_search_key(base_search_key(parsed['raga'], parsed['artist'], parsed['title'])),
        })
    except DuplicateKeyError:
        mongo.get_bucket().delete(ObjectId(file_id))
        logger.info("Removed stored file %s after a duplicate track", file_id)
        raise
    events.add_track_url(event, track['url'])
    logger.info("Uploaded audio %s as %s", uploaded.name, file_id)
    return {
        'id': str(track['_id']),
        'title': track['title'],
        'artist': track['artist'],
        'raga': track['raga'],
        'event': parsed['event'],
        'url': track['url'],
        'fileId': file_id,
    }


def find_file(file_id: str) -> Optional[dict]:
    """Look a file up by stored filename first, then by ObjectId."""
    files = mongo.collection(f"{mongo.AUDIO_BUCKET}.files")
    doc = files.find_one({'filename': file_id})
    if doc is None:
        oid = mongo.object_id(file_id)
        doc = files.find_one({'_id': oid}) if oid is not None else None
    return doc


def file_info(doc: dict) -> dict:
    meta = doc.get('metadata') or {}
    return {
        '_id': str(doc['_id']),
        'filename': doc.get('filename'),
        'originalName': meta.get('originalName') or doc.get('filename'),
        'contentType': meta.get('contentType') or doc.get('contentType'),
        'size': meta.get('size') or doc.get('length'),
        'uploadDate': meta.get('uploadDate') or doc.get('uploadDate'),
        'event': meta.get('event'),
        'artist': meta.get('artist'),
        'raga': meta.get('raga'),
        'title': meta.get('title'),
        'duration': meta.get('duration'),
        'durationSeconds': meta.get('durationSeconds'),
    }


def list_files() -> list[dict]:
    files = mongo.collection(f"{mongo.AUDIO_BUCKET}.files").find().sort('uploadDate', -1)
    return [file_info(doc) for doc in files]


def parse_range(header: Optional[str], size: int) -> Optional[tuple[int, int]]:
    """``Range: bytes=a-b`` to an inclusive ``(start, end)``; ``None`` for the whole file."""
    if not header:
        return None
    match = _RANGE_RE.match(header.strip())
    if not match or not (match.group(1) or match.group(2)):
        return None
    first, last = match.groups()
    if first:
        start = int(first)
        end = min(int(last), size - 1) if last else size - 1
    else:
        # suffix range: the last N bytes
        start = max(size - int(last), 0)
        end = size - 1
    if start >= size or start > end:
        raise RangeNotSatisfiable(header)
    return start, end


def iter_bytes(doc: dict, start: int = 0, end: Optional[int] = None):
    """Yield the stored bytes ``start..end`` (inclusive) in chunks."""
    stream = mongo.get_bucket().open_download_stream(doc['_id'])
    try:
        stream.seek(start)
        remaining = (end if end is not None else doc['length'] - 1) - start + 1
        while remaining > 0:
            chunk = stream.read(min(CHUNK_SIZE, remaining))
            if not chunk:
                break
            remaining -= len(chunk)
            yield chunk
    finally:
        stream.close()


def delete_file(file_id: str) -> bool:
    doc = find_file(file_id)
    if doc is None:
        return False
    removed = tracks.delete_by_url(stream_url(doc['_id']))
    mongo.get_bucket().delete(doc['_id'])
    logger.info("Deleted audio file %s and %s tracks", file_id, removed)
    return True

from unittest.mock import MagicMock

import pytest
from bson import ObjectId
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse
from pymongo.errors import DuplicateKeyError
from rest_framework.test import APIClient

from music import mongo
from music.services import artists, audio, events, ragas, tracks

NAME = 'Sawai Gandharva 2024 - Kaushiki Chakraborty - Yaman - Vilambit Ektaal.mp3'


def mp3(name=NAME, content_type='audio/mpeg', data=b'ID3' + b'\x00' * 64):
    return SimpleUploadedFile(name, data, content_type=content_type)


def test_parse_filename():
    parsed = audio.parse_filename(NAME)
    assert parsed['event'] == 'Sawai Gandharva 2024'
    assert parsed['artist'] == 'Kaushiki Chakraborty'
    assert parsed['raga'] == 'Yaman'
    assert parsed['title'] == 'Vilambit Ektaal'
    assert parsed['fileExtension'] == 'mp3'
    assert audio.parse_filename('Yaman - Vilambit.mp3') is None
    assert audio.parse_filename('a -  - c - d.mp3') is None


@pytest.mark.parametrize('header, expected', [
    (None, None),
    ('items=0-1', None),
    ('bytes=-', None),
    ('bytes=0-99', (0, 99)),
    ('bytes=900-', (900, 999)),
    ('bytes=-100', (900, 999)),
    ('bytes=990-5000', (990, 999)),
])
def test_parse_range(header, expected):
    assert audio.parse_range(header, 1000) == expected


@pytest.mark.parametrize('header', ['bytes=1000-', 'bytes=50-10'])
def test_unsatisfiable_range(header):
    with pytest.raises(audio.RangeNotSatisfiable):
        audio.parse_range(header, 1000)


def test_validate_upload(settings):
    with pytest.raises(audio.AudioValidationError, match='Unsupported file type'):
        audio.validate_upload(mp3(content_type='text/plain'))
    with pytest.raises(audio.AudioValidationError, match='Invalid filename format'):
        audio.validate_upload(mp3(name='recording.mp3'))
    settings.AUDIO_MAX_MB = 0
    with pytest.raises(audio.AudioValidationError, match='File too large'):
        audio.validate_upload(mp3())


def test_unique_search_key(monkeypatch):
    taken = {'yaman-kaushiki-alap', 'yaman-kaushiki-alap-1'}
    monkeypatch.setattr(tracks, 'exists_with_key', lambda key: key in taken)
    base = audio.base_search_key('Yaman', 'Kaushiki', 'Alap')
    assert base == 'yaman-kaushiki-alap'
    assert audio.unique_search_key(base) == 'yaman-kaushiki-alap-2'


@pytest.fixture
def catalog(monkeypatch):
    calls = {}
    monkeypatch.setattr(artists, 'ensure_artist', lambda name, raga: calls.setdefault('artist', (name, raga)))
    monkeypatch.setattr(ragas, 'ensure_raga', lambda name: calls.setdefault('raga', name))
    monkeypatch.setattr(events, 'ensure_event', lambda name: {'_id': ObjectId(), 'name': name})
    monkeypatch.setattr(events, 'add_track_url', lambda event, url: calls.setdefault('event_url', url))
    monkeypatch.setattr(audio, 'store_file', lambda uploaded, parsed: 'abc123')
    monkeypatch.setattr(tracks, 'exists_with_key', lambda key: False)
    monkeypatch.setattr(tracks, 'insert_track', lambda doc: {**doc, '_id': ObjectId()})
    return calls


def test_upload_catalogs_the_recording(catalog):
    track = audio.upload(mp3())
    assert track['url'] == '/api/music/audio/stream/abc123'
    assert track['event'] == 'Sawai Gandharva 2024'
    assert catalog['artist'] == ('Kaushiki Chakraborty', 'Yaman')
    assert catalog['raga'] == 'Yaman'
    assert catalog['event_url'] == track['url']


def test_upload_view(catalog, music_client):
    client = music_client()
    r = client.post(reverse('music_audio_upload'), {}, format='multipart')
    assert r.status_code == 400
    assert r.data['message'] == 'No audio file provided'

    r = client.post(reverse('music_audio_upload'), {'audio': mp3(name='x.mp3')}, format='multipart')
    assert r.status_code == 400

    r = client.post(reverse('music_audio_upload'), {'audio': mp3()}, format='multipart')
    assert r.status_code == 201
    assert r.data['track']['fileId'] == 'abc123'


def test_upload_requires_login():
    r = APIClient().post(reverse('music_audio_upload'), {'audio': mp3()}, format='multipart')
    assert r.status_code == 401


@pytest.fixture
def stored(monkeypatch):
    data = bytes(range(256)) * 4
    doc = {'_id': ObjectId(), 'filename': 'abc123', 'length': len(data), 'metadata': {'contentType': 'audio/mpeg'}}
    monkeypatch.setattr(audio, 'find_file', lambda file_id: doc if file_id == 'abc123' else None)
    monkeypatch.setattr(audio, 'iter_bytes',
                        lambda d, start=0, end=None: iter([data[start:(len(data) if end is None else end + 1)]]))
    return data


def test_stream_whole_file(stored):
    r = APIClient().get(reverse('music_audio_stream', args=['abc123']))
    assert r.status_code == 200
    assert r['Accept-Ranges'] == 'bytes'
    assert b''.join(r.streaming_content) == stored


def test_stream_partial_content(stored):
    r = APIClient().get(reverse('music_audio_stream', args=['abc123']), HTTP_RANGE='bytes=10-19')
    assert r.status_code == 206
    assert r['Content-Range'] == 'bytes 10-19/1024'
    assert r['Content-Length'] == '10'
    assert b''.join(r.streaming_content) == stored[10:20]


def test_stream_bad_range_and_missing_file(stored):
    r = APIClient().get(reverse('music_audio_stream', args=['abc123']), HTTP_RANGE='bytes=2000-')
    assert r.status_code == 416
    assert r['Content-Range'] == 'bytes */1024'
    r = APIClient().get(reverse('music_audio_stream', args=['missing']))
    assert r.status_code == 404
    assert r.data['message'] == 'Audio file not found'


def test_delete_unknown_file(monkeypatch, music_client):
    monkeypatch.setattr(audio, 'delete_file', lambda file_id: False)
    r = music_client().delete(reverse('music_audio_delete', args=['missing']))
    assert r.status_code == 404


def test_duplicate_track_removes_the_stored_file(catalog, monkeypatch):
    file_id = ObjectId()
    deleted = []
    bucket = MagicMock()
    bucket.delete.side_effect = deleted.append
    monkeypatch.setattr(audio, 'store_file', lambda uploaded, parsed: str(file_id))
    monkeypatch.setattr(mongo, 'get_bucket', lambda: bucket)

    def duplicate(doc):
        raise DuplicateKeyError('E11000 duplicate key error')
    monkeypatch.setattr(tracks, 'insert_track', duplicate)

    with pytest.raises(DuplicateKeyError):
        audio.upload(mp3())
    assert deleted == [file_id]
    assert 'event_url' not in catalog


def test_duplicate_upload_view_is_conflict(catalog, monkeypatch, music_client):
    monkeypatch.setattr(mongo, 'get_bucket', lambda: MagicMock())
    monkeypatch.setattr(audio, 'store_file', lambda uploaded, parsed: str(ObjectId()))

    def duplicate(doc):
        raise DuplicateKeyError('E11000 duplicate key error')
    monkeypatch.setattr(tracks, 'insert_track', duplicate)
    r = music_client().post(reverse('music_audio_upload'), {'audio': mp3()}, format='multipart')
    assert r.status_code == 409


def test_delete_by_filename_removes_its_tracks(monkeypatch):
    file_id = ObjectId()
    files = MagicMock()
    files.find_one.side_effect = lambda query: {'_id': file_id, 'filename': NAME} if query == {'filename': NAME} else None
    bucket = MagicMock()
    monkeypatch.setattr(mongo, 'collection', lambda name: files)
    monkeypatch.setattr(mongo, 'get_bucket', lambda: bucket)
    removed_urls = []
    monkeypatch.setattr(tracks, 'delete_by_url', lambda url: removed_urls.append(url) or 1)

    assert audio.delete_file(NAME) is True
    assert removed_urls == [f'/api/music/audio/stream/{file_id}']
    bucket.delete.assert_called_once_with(file_id)

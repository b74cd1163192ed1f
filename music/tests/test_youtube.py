import pytest
import requests
from django.core.cache import cache
from django.urls import reverse

from music.services import tracks, users, youtube


@pytest.mark.parametrize('value, seconds', [
    ('PT1H2M3S', 3723),
    ('PT45M', 2700),
    ('PT59S', 59),
    ('P1D', 0),
    ('', 0),
])
def test_parse_duration(value, seconds):
    assert youtube.parse_duration(value) == seconds


def test_format_duration():
    assert youtube.format_duration(3723) == '1:02:03'
    assert youtube.format_duration(2700) == '45:00'
    assert youtube.format_duration(59) == '0:59'


def test_spelling_variations():
    assert youtube.spelling_variations('Bageshri') == ['bageshri', 'bageshree']
    assert youtube.spelling_variations('Bhairavi') == ['bhairavi', 'bhairavee']
    assert youtube.spelling_variations('Malkauns') == ['malkauns']


def test_is_raga_video():
    assert youtube.is_raga_video('Raag Bageshree - Vilambit', 'Hindustani vocal', 'Bageshri')
    assert not youtube.is_raga_video('Yaman alap', 'sitar recital', 'Bageshri')
    assert not youtube.is_raga_video('Bageshri', 'lovely evening', 'Bageshri')
    assert not youtube.is_raga_video('Bageshri raga remix', 'classical', 'Bageshri')


def test_extract_artist():
    assert youtube.extract_artist('Yaman by Kishori Amonkar', 'Channel', 'kishori amonkar') == 'kishori amonkar'
    assert youtube.extract_artist('Pandit Jasraj sings Yaman', 'Channel') == 'Pandit Jasraj'
    assert youtube.extract_artist('Yaman live', 'Darbar Festival') == 'Darbar Festival'
    assert youtube.extract_artist('Yaman live', '') == 'Various Artists'


def test_dedupe_prefers_artist_then_likes():
    videos = [
        {'url': 'a', 'artist': 'Channel', 'likes': 900},
        {'url': 'b', 'artist': 'Ravi Shankar', 'likes': 10},
        {'url': 'a', 'artist': 'Channel', 'likes': 900},
        {'url': 'c', 'artist': 'Other', 'likes': 50},
    ]
    ordered = youtube.dedupe_and_prioritize(videos, 'ravi shankar')
    assert [v['url'] for v in ordered] == ['b', 'a', 'c']


def test_quota_is_enforced(settings):
    settings.YOUTUBE_SEARCH_QUOTA = 150
    youtube.spend_quota(100)
    with pytest.raises(youtube.YouTubeQuotaExceeded):
        youtube.spend_quota(100)
    assert youtube.quota_status() == {'used': 100, 'limit': 150, 'remaining': 50}


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code
        self.text = str(payload)

    def json(self):
        return self.payload


def _video(video_id, title, duration, likes):
    return {
        'id': video_id,
        'snippet': {'title': title, 'description': 'Hindustani classical', 'channelTitle': 'Sangeet',
                    'thumbnails': {'high': {'url': f'https://img/{video_id}.jpg'}}},
        'contentDetails': {'duration': duration},
        'statistics': {'likeCount': str(likes), 'viewCount': '1000'},
    }


def test_search_videos(settings, monkeypatch):
    settings.YOUTUBE_API_KEY = 'test-key'
    settings.YOUTUBE_SEARCH_QUOTA = 10000
    details = [
        _video('v1', 'Raga Malkauns alap', 'PT1H5M', 20),
        _video('v2', 'Raga Malkauns short', 'PT5M', 500),
        _video('v3', 'Raga Malkauns by Ustad Rashid Khan', 'PT40M', 80),
    ]
    calls = []

    def fake_get(url, params, timeout):
        calls.append((url, params))
        if url == youtube.SEARCH_URL:
            return FakeResponse({'items': [{'id': {'videoId': d['id']}} for d in details]})
        return FakeResponse({'items': details})

    cached = []
    monkeypatch.setattr(youtube.requests, 'get', fake_get)
    monkeypatch.setattr(tracks, 'cache_tracks', lambda raga, artist, videos: cached.append((raga, artist, videos)))

    result = youtube.search_videos('Malkauns', 'Rashid Khan')

    # one spelling variation: one query with the artist, one without, one broad
    searches = [p for u, p in calls if u == youtube.SEARCH_URL]
    assert [p['q'] for p in searches] == [
        'malkauns raga indian classical music Rashid Khan',
        'malkauns raga indian classical music',
        'Malkauns indian classical music',
    ]
    assert searches[0]['regionCode'] == 'IN'
    assert searches[0]['videoDuration'] == 'long'
    assert [t['id'] for t in result['tracks']] == ['v3', 'v1']
    assert result['tracks'][0]['duration'] == '40:00'
    assert result['quotaUsed'] == 3 * (100 + 3)
    assert cached[0][1] == 'Rashid Khan'


def test_search_requires_api_key(settings):
    settings.YOUTUBE_API_KEY = ''
    with pytest.raises(youtube.YouTubeError):
        youtube.search_videos('Yaman')


def test_network_failure_is_reported(settings, monkeypatch):
    settings.YOUTUBE_API_KEY = 'test-key'

    def boom(*args, **kwargs):
        raise requests.Timeout('slow')
    monkeypatch.setattr(youtube.requests, 'get', boom)
    with pytest.raises(youtube.YouTubeError):
        youtube.search_videos('Yaman')


def _result():
    return {'tracks': [{'id': 'v1'}], 'quotaUsed': 103, 'quotaStatus': youtube.quota_status()}


def test_youtube_search_charges_one_credit(monkeypatch, music_client):
    charged = []
    monkeypatch.setattr(youtube, 'search_videos', lambda raga, artist, **kw: _result())
    monkeypatch.setattr(users, 'deduct_credit', lambda user_id: charged.append(user_id) or 4)
    client = music_client(credits=5)
    r = client.get(reverse('music_youtube_search'), {'raga': 'Yaman', 'artist': 'Jasraj'})
    assert r.status_code == 200
    assert r.data['credits'] == 4
    assert r.data['isAdmin'] is False
    assert r.data['searchParams']['filters'] == {'minDuration': 1200, 'maxResults': 100, 'orderBy': 'relevance'}
    assert charged == [client.user.id]


def test_youtube_search_is_free_for_admins(monkeypatch, music_client):
    monkeypatch.setattr(youtube, 'search_videos', lambda raga, artist, **kw: _result())
    monkeypatch.setattr(users, 'deduct_credit', lambda user_id: pytest.fail('admins are not charged'))
    r = music_client(role='admin', credits=0).get(reverse('music_youtube_search'), {'raga': 'Yaman'})
    assert r.status_code == 200
    assert r.data['isAdmin'] is True


def test_youtube_search_without_credits(monkeypatch, music_client):
    monkeypatch.setattr(youtube, 'search_videos', lambda *a, **kw: pytest.fail('should not search'))
    r = music_client(credits=0).get(reverse('music_youtube_search'), {'raga': 'Yaman'})
    assert r.status_code == 400
    assert r.data['credits'] == 0


def test_youtube_search_quota_exceeded(monkeypatch, music_client):
    def exceeded(*args, **kwargs):
        raise youtube.YouTubeQuotaExceeded('YouTube API quota exceeded')
    monkeypatch.setattr(youtube, 'search_videos', exceeded)
    r = music_client().get(reverse('music_youtube_search'), {'raga': 'Yaman'})
    assert r.status_code == 429
    assert r.data['quotaStatus']['limit'] == youtube.quota_status()['limit']


def test_quota_endpoint(music_client):
    cache.set(youtube.QUOTA_KEY, 300)
    r = music_client().get(reverse('music_youtube_quota'))
    assert r.data['used'] == 300

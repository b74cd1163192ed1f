import pytest
from django.core.cache import cache
from rest_framework.test import APIClient


@pytest.fixture(autouse=True)
def _clear_cache():
    # Throttle counters, OTP codes and the YouTube quota live in the cache.
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def make_platform_user():
    from accounts.models import SharedUser

    def _make(phone='9000000001', name='Asha', **extra):
        return SharedUser.objects.create(phone=phone, name=name, **extra)
    return _make


@pytest.fixture
def client_for():
    """APIClient already authenticated as the given user."""
    def _client(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client
    return _client


@pytest.fixture
def music_client():
    """APIClient authenticated as a music app user (no MongoDB round trip)."""
    from bson import ObjectId
    from music.authentication import MusicUser

    def _client(role='user', credits=5, phone='9000000001'):
        user = MusicUser({'_id': ObjectId(), 'phone': phone, 'role': role, 'credits': credits})
        client = APIClient()
        client.force_authenticate(user=user)
        client.user = user
        return client
    return _client

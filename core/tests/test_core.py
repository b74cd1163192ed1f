import logging

import pytest
from django.http import HttpResponse
from django.test import RequestFactory
from rest_framework.exceptions import NotFound, ValidationError

from accounts.models import SharedUser
from core.db_routers import PlatformRouter
from core.exceptions import api_exception_handler, message_of
from core.middleware import RequestLogMiddleware
from music import mongo
from records.models import PastVisit


@pytest.mark.django_db(databases=['default', 'platform'])
def test_health_reports_databases_and_mongo(client, monkeypatch):
    monkeypatch.setattr(mongo, 'ping', lambda: False)
    for url in ('/health', '/healthz'):
        r = client.get(url)
        assert r.status_code == 200
        body = r.json()
        assert body['status'] == 'OK'
        assert body['databases'] == {'default': True, 'platform': True}
        assert body['mongo'] is False


def test_platform_router():
    router = PlatformRouter()
    assert router.db_for_read(SharedUser) == 'platform'
    assert router.db_for_write(PastVisit) == 'default'
    assert router.allow_migrate('platform', 'accounts') is True
    assert router.allow_migrate('default', 'accounts') is False
    assert router.allow_migrate('default', 'records') is True


def test_message_of_flattens_details():
    assert message_of({'phone': ['This field is required.']}) == 'phone: This field is required.'
    assert message_of({'detail': 'Not found.'}) == 'Not found.'
    assert message_of(['a', 'b']) == 'a b'


def test_exception_handler_wraps_api_errors():
    r = api_exception_handler(NotFound('Past visit not found'), {})
    assert r.status_code == 404
    assert r.data['ok'] is False
    assert r.data['message'] == 'Past visit not found'
    assert r.data['error']['code'] == 'not_found'

    r = api_exception_handler(ValidationError({'value': ['A valid number is required.']}), {})
    assert r.status_code == 400
    assert r.data['message'] == 'value: A valid number is required.'


def test_exception_handler_hides_unexpected_errors():
    r = api_exception_handler(RuntimeError('boom'), {'view': None})
    assert r.status_code == 500
    assert r.data['message'] == 'Server error'
    assert r.data['error']['code'] == 'server_error'


def test_request_log_middleware(caplog):
    middleware = RequestLogMiddleware(lambda request: HttpResponse(status=204))
    factory = RequestFactory()
    with caplog.at_level(logging.INFO, logger='core.requests'):
        middleware(factory.get('/api/vitals/parameters'))
        middleware(factory.get('/health'))
    messages = [rec.getMessage() for rec in caplog.records if rec.name == 'core.requests']
    assert len(messages) == 1
    assert messages[0].startswith('GET /api/vitals/parameters 204')

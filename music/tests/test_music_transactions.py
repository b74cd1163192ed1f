from unittest.mock import MagicMock

import pytest
from bson import ObjectId
from django.urls import reverse
from pymongo.errors import DuplicateKeyError
from rest_framework.test import APIClient

from music import mongo
from music.services import transactions, users

PAYMENT = {'phone': '9000000001', 'razorpayPaymentId': 'pay_123', 'amount': 99.0, 'credits': 10}


@pytest.fixture
def buyer(monkeypatch):
    doc = {'_id': ObjectId(), 'phone': '9000000001', 'credits': 5}
    monkeypatch.setattr(users, 'find_by_phone', lambda phone: doc if phone == doc['phone'] else None)
    return doc


def test_pagination():
    assert transactions.pagination(2, 10, 25) == {
        'currentPage': 2, 'totalPages': 3, 'totalTransactions': 25, 'hasNext': True, 'hasPrev': True,
    }
    assert transactions.pagination(1, 10, 0)['hasNext'] is False


def test_record_payment_credits_the_buyer(monkeypatch, buyer):
    coll = MagicMock()
    coll.insert_one.return_value.inserted_id = ObjectId()
    monkeypatch.setattr(mongo, 'collection', lambda name: coll)
    credited = []
    monkeypatch.setattr(users, 'add_credits', lambda user_id, credits: credited.append((user_id, credits)))

    tx = transactions.record_payment(dict(PAYMENT))
    assert tx['status'] == 'completed'
    assert tx['paymentMode'] == 'razorpay'
    assert tx['user'] == buyer['_id']
    assert credited == [(buyer['_id'], 10)]


def test_record_payment_twice(monkeypatch, buyer):
    coll = MagicMock()
    coll.insert_one.side_effect = DuplicateKeyError('E11000 duplicate key')
    monkeypatch.setattr(mongo, 'collection', lambda name: coll)
    monkeypatch.setattr(users, 'add_credits', lambda *a: pytest.fail('must not credit twice'))
    with pytest.raises(transactions.DuplicatePayment):
        transactions.record_payment(dict(PAYMENT))


def test_record_payment_for_unknown_phone(buyer):
    with pytest.raises(transactions.UserNotFound):
        transactions.record_payment({**PAYMENT, 'phone': '9999999999'})


def test_list_all_filters_phone_as_literal(monkeypatch):
    coll = MagicMock()
    coll.find.return_value.sort.return_value.skip.return_value.limit.return_value = []
    coll.count_documents.return_value = 0
    monkeypatch.setattr(mongo, 'collection', lambda name: coll)

    page = transactions.list_all(page=3, limit=20, phone='+91')
    assert coll.find.call_args.args[0] == {'phone': {'$regex': r'\+91', '$options': 'i'}}
    coll.find.return_value.sort.return_value.skip.assert_called_with(40)
    assert page['pagination']['totalPages'] == 0


def test_create_transaction_view(monkeypatch, buyer):
    monkeypatch.setattr(mongo, 'collection', lambda name: MagicMock())
    monkeypatch.setattr(users, 'add_credits', lambda *a: None)
    r = APIClient().post(reverse('music_transactions'), PAYMENT, format='json')
    assert r.status_code == 201
    assert r.data['transaction']['credits'] == 10
    assert r.data['transaction']['status'] == 'completed'


def test_create_transaction_validation_and_unknown_user(buyer):
    r = APIClient().post(reverse('music_transactions'), {**PAYMENT, 'credits': 0}, format='json')
    assert r.status_code == 400
    r = APIClient().post(reverse('music_transactions'), {**PAYMENT, 'phone': '9999999999'}, format='json')
    assert r.status_code == 404
    assert r.data['message'] == 'User not found'


def test_duplicate_payment_is_conflict(monkeypatch):
    def duplicate(data):
        raise transactions.DuplicatePayment(data['razorpayPaymentId'])
    monkeypatch.setattr(transactions, 'record_payment', duplicate)
    r = APIClient().post(reverse('music_transactions'), PAYMENT, format='json')
    assert r.status_code == 409


def test_user_transactions_are_private(monkeypatch, music_client):
    monkeypatch.setattr(transactions, 'for_phone', lambda phone, page, limit: {
        'transactions': [{'_id': ObjectId(), 'phone': phone, 'amount': 99.0}],
        'pagination': transactions.pagination(page, limit, 1),
    })
    client = music_client(phone='9000000001')
    r = client.get(reverse('music_user_transactions', args=['9000000002']))
    assert r.status_code == 403

    r = client.get(reverse('music_user_transactions', args=['9000000001']), {'page': 'x', 'limit': 5})
    assert r.status_code == 200
    assert r.data['pagination']['currentPage'] == 1
    assert isinstance(r.data['transactions'][0]['_id'], str)

    admin = music_client(role='admin', phone='9000000099')
    assert admin.get(reverse('music_user_transactions', args=['9000000002'])).status_code == 200


@pytest.mark.parametrize('name', ['music_all_transactions', 'music_transaction_summary', 'music_transaction_stats'])
def test_reports_are_admin_only(name, music_client):
    assert APIClient().get(reverse(name)).status_code == 401
    r = music_client().get(reverse(name))
    assert r.status_code == 403
    assert r.data['message'] == 'Admin access required'


def test_stats_for_admin(monkeypatch, music_client):
    monkeypatch.setattr(transactions, 'stats', lambda: {
        'stats': dict(transactions.EMPTY_STATS),
        'monthlyRevenue': [{'_id': {'year': 2026, 'month': 9}, 'revenue': 990.0, 'transactions': 10}],
    })
    r = music_client(role='admin').get(reverse('music_transaction_stats'))
    assert r.status_code == 200
    assert r.data['stats']['totalTransactions'] == 0
    assert r.data['monthlyRevenue'][0]['revenue'] == 990.0

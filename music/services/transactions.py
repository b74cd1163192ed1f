"""
Credit purchases recorded after a Razorpay payment.

Recording a payment marks it completed and credits the buyer right away.
Admin reports aggregate completed payments only.
"""
from __future__ import annotations

import logging
import math
import re
from datetime import timedelta
from typing import Optional

from django.utils import timezone
from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError

from music import mongo
from music.services import users

logger = logging.getLogger(__name__)

STATUSES = ('pending', 'completed', 'failed', 'refunded')
STATS_WINDOW_DAYS = 12 * 30

EMPTY_STATS = {
    'totalTransactions': 0,
    'totalRevenue': 0,
    'totalCreditsSold': 0,
    'averageTransactionValue': 0,
    'uniqueUsers': 0,
}


class UserNotFound(Exception):
    pass


class DuplicatePayment(Exception):
    pass


def _transactions():
    return mongo.collection(mongo.TRANSACTIONS)


def pagination(page: int, limit: int, total: int) -> dict:
    pages = math.ceil(total / limit) if limit else 0
    return {
        'currentPage': page,
        'totalPages': pages,
        'totalTransactions': total,
        'hasNext': page < pages,
        'hasPrev': page > 1,
    }


def record_payment(data: dict) -> dict:
    user = users.find_by_phone(data['phone'])
    if user is None:
        raise UserNotFound(data['phone'])
    now = timezone.now()
    doc = {
        'phone': data['phone'],
        'razorpayPaymentId': data['razorpayPaymentId'],
        'razorpayOrderId': data.get('razorpayOrderId'),
        'amount': data['amount'],
        'credits': data['credits'],
        'paymentMode': data.get('paymentMode') or 'razorpay',
        'status': 'completed',
        'transactionDate': now,
        'user': user['_id'],
        'packageId': data.get('packageId'),
        'gstAmount': data.get('gstAmount'),
        'totalAmount': data.get('totalAmount'),
        'createdAt': now,
        'updatedAt': now,
    }
    try:
        doc['_id'] = _transactions().insert_one(doc).inserted_id
    except DuplicateKeyError as e:
        raise DuplicatePayment(data['razorpayPaymentId']) from e
    users.add_credits(user['_id'], data['credits'])
    logger.info("Recorded payment %s for %s: %s credits", doc['razorpayPaymentId'], doc['phone'], doc['credits'])
    return doc


def _page(query: dict, page: int, limit: int) -> dict:
    docs = (_transactions().find(query)
            .sort('transactionDate', DESCENDING)
            .skip((page - 1) * limit)
            .limit(limit))
    total = _transactions().count_documents(query)
    return {'transactions': list(docs), 'pagination': pagination(page, limit, total)}


def for_phone(phone: str, page: int = 1, limit: int = 10) -> dict:
    return _page({'phone': phone}, page, limit)


def list_all(page: int = 1, limit: int = 20, phone: Optional[str] = None) -> dict:
    query = {'phone': {'$regex': re.escape(phone), '$options': 'i'}} if phone else {}
    return _page(query, page, limit)


def summary() -> list[dict]:
    """Completed payments grouped by phone, biggest spenders first."""
    return list(_transactions().aggregate([
        {'$match': {'status': 'completed'}},
        {'$group': {
            '_id': '$phone',
            'totalTransactions': {'$sum': 1},
            'totalAmount': {'$sum': '$amount'},
            'totalCredits': {'$sum': '$credits'},
            'lastTransaction': {'$max': '$transactionDate'},
            'firstTransaction': {'$min': '$transactionDate'},
        }},
        {'$lookup': {'from': mongo.USERS, 'localField': '_id', 'foreignField': 'phone', 'as': 'user'}},
        {'$unwind': {'path': '$user', 'preserveNullAndEmptyArrays': True}},
        {'$project': {
            '_id': 0,
            'phone': '$_id',
            'userName': {'$ifNull': ['$user.name', 'N/A']},
            'totalTransactions': 1,
            'totalAmount': 1,
            'totalCredits': 1,
            'lastTransaction': 1,
            'firstTransaction': 1,
            'currentCredits': {'$ifNull': ['$user.credits', 0]},
        }},
        {'$sort': {'totalAmount': -1}},
    ]))


def stats(now=None) -> dict:
    now = now or timezone.now()
    totals = list(_transactions().aggregate([
        {'$match': {'status': 'completed'}},
        {'$group': {
            '_id': None,
            'totalTransactions': {'$sum': 1},
            'totalRevenue': {'$sum': '$amount'},
            'totalCreditsSold': {'$sum': '$credits'},
            'averageTransactionValue': {'$avg': '$amount'},
            'uniqueUsers': {'$addToSet': '$phone'},
        }},
        {'$project': {
            '_id': 0,
            'totalTransactions': 1,
            'totalRevenue': 1,
            'totalCreditsSold': 1,
            'averageTransactionValue': {'$round': ['$averageTransactionValue', 2]},
            'uniqueUsers': {'$size': '$uniqueUsers'},
        }},
    ]))
    monthly = list(_transactions().aggregate([
        {'$match': {'status': 'completed', 'transactionDate': {'$gte': now - timedelta(days=STATS_WINDOW_DAYS)}}},
        {'$group': {
            '_id': {'year': {'$year': '$transactionDate'}, 'month': {'$month': '$transactionDate'}},
            'revenue': {'$sum': '$amount'},
            'transactions': {'$sum': 1},
        }},
        {'$sort': {'_id.year': 1, '_id.month': 1}},
    ]))
    return {'stats': totals[0] if totals else dict(EMPTY_STATS), 'monthlyRevenue': monthly}

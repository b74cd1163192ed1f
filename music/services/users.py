"""
Music app users: phone + bcrypt PIN, a credit balance and a role.

PIN hashing is shared with the platform accounts.  Credits are spent one
at a time with an atomic conditional ``$inc`` so the balance never goes
below zero.
"""
from __future__ import annotations

import logging
from typing import Optional

from django.conf import settings
from django.utils import timezone
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError
from rest_framework_simplejwt.tokens import AccessToken

from accounts.services.auth import hash_pin, check_pin
from music import mongo

logger = logging.getLogger(__name__)

DEFAULT_CREDITS = 5


class UserExists(Exception):
    pass


class InsufficientCredits(Exception):
    pass


def _users():
    return mongo.collection(mongo.USERS)


def get_user(user_id) -> Optional[dict]:
    oid = mongo.object_id(user_id)
    if oid is None:
        return None
    return _users().find_one({'_id': oid})


def find_by_phone(phone: str) -> Optional[dict]:
    return _users().find_one({'phone': phone})


def create_user(phone: str, pin: str) -> dict:
    now = timezone.now()
    doc = {
        'phone': phone,
        'pinHash': hash_pin(pin),
        'credits': DEFAULT_CREDITS,
        'role': 'admin' if settings.ADMIN_PHONE and phone == settings.ADMIN_PHONE else 'user',
        'createdAt': now,
        'updatedAt': now,
    }
    try:
        doc['_id'] = _users().insert_one(doc).inserted_id
    except DuplicateKeyError as e:
        raise UserExists(phone) from e
    logger.info("Music user %s signed up as %s", doc['_id'], doc['role'])
    return doc


def authenticate(phone: str, pin: str) -> Optional[dict]:
    user = find_by_phone(phone)
    if user is None or not check_pin(pin, user.get('pinHash')):
        logger.info("Music login failed for %s", phone)
        return None
    return user


def set_pin(phone: str, pin: str) -> bool:
    result = _users().update_one(
        {'phone': phone},
        {'$set': {'pinHash': hash_pin(pin), 'updatedAt': timezone.now()}},
    )
    return result.matched_count > 0


def deduct_credit(user_id) -> int:
    """Spend one credit and return the remaining balance."""
    user = _users().find_one_and_update(
        {'_id': mongo.object_id(user_id), 'credits': {'$gt': 0}},
        {'$inc': {'credits': -1}, '$set': {'updatedAt': timezone.now()}},
        return_document=ReturnDocument.AFTER,
    )
    if user is None:
        raise InsufficientCredits()
    logger.info("Deducted 1 credit from %s, %s left", user_id, user['credits'])
    return user['credits']


def add_credits(user_id, credits: int) -> None:
    _users().update_one(
        {'_id': mongo.object_id(user_id)},
        {'$inc': {'credits': credits}, '$set': {'updatedAt': timezone.now()}},
    )


def issue_token(user: dict) -> str:
    token = AccessToken()
    token['userId'] = str(user['_id'])
    return str(token)


def user_payload(user: dict) -> dict:
    role = user.get('role') or 'user'
    return {
        'id': str(user['_id']),
        'phone': user['phone'],
        'credits': user.get('credits', 0),
        'role': role,
        'isAdmin': role == 'admin',
    }

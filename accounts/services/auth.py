"""
PIN hashing, lockout bookkeeping and token issuing for platform users.
"""
from __future__ import annotations

import logging
import secrets
from datetime import timedelta
from typing import Optional

import bcrypt
from django.db import transaction
from django.utils import timezone
from rest_framework_simplejwt.tokens import AccessToken

from accounts.models import SharedUser, PlatformPrivilege

logger = logging.getLogger(__name__)

DEFAULT_PLATFORM = 'aarogya-mitra'
MAX_LOGIN_ATTEMPTS = 5
LOCKOUT_MINUTES = 15

PATIENT_PERMISSIONS = [
    'view_own_data',
    'edit_own_profile',
    'book_appointment',
    'view_appointments',
    'cancel_appointment',
    'view_doctors',
    'view_clinics',
    'view_medical_records',
    'view_prescriptions',
]


def hash_pin(pin: str) -> str:
    return bcrypt.hashpw(str(pin).encode('utf-8'), bcrypt.gensalt(rounds=10)).decode('utf-8')


def check_pin(pin: str, pin_hash: Optional[str]) -> bool:
    if not pin_hash:
        return False
    try:
        return bcrypt.checkpw(str(pin).encode('utf-8'), pin_hash.encode('utf-8'))
    except ValueError:
        logger.warning("Stored PIN hash is malformed")
        return False


def generate_pin() -> str:
    """Random 4 digit PIN in 1000..9999."""
    return str(1000 + secrets.randbelow(9000))


def issue_token(user: SharedUser, platform: str, roles: list, permissions: list) -> str:
    token = AccessToken()
    token['userId'] = str(user.id)
    token['phone'] = user.phone
    token['platform'] = platform
    token['roles'] = list(roles or [])
    token['permissions'] = list(permissions or [])
    return str(token)


def privileges_of(user: SharedUser) -> list[dict]:
    return [
        {'platform': p.platform_name, 'roles': list(p.roles or []), 'permissions': list(p.permissions or [])}
        for p in PlatformPrivilege.objects.filter(user=user).order_by('created_at')
    ]


def user_payload(user: SharedUser, platform: str) -> dict:
    return {
        'id': str(user.id),
        'phone': user.phone,
        'name': user.name or user.phone,
        'platform': platform,
        'role': user.global_role or 'user',
        'credits': user.credits,
        'privileges': privileges_of(user),
    }


def _merge(existing: list, required: list) -> list:
    merged = list(existing or [])
    for item in required:
        if item not in merged:
            merged.append(item)
    return merged


@transaction.atomic(using='platform')
def register(phone: str, *, name: Optional[str] = None, platform: str = DEFAULT_PLATFORM,
             pin: Optional[str] = None) -> tuple[SharedUser, PlatformPrivilege, Optional[str]]:
    """Grant platform access, creating the user when needed.

    Returns ``(user, privilege, pin)`` where ``pin`` is only set for a
    newly created user (the plain PIN is shown to them once).
    """
    user = SharedUser.objects.filter(phone=phone).first()
    if user is not None:
        privilege = PlatformPrivilege.objects.filter(user=user, platform_name=platform).first()
        if privilege is not None:
            privilege.roles = _merge(privilege.roles, ['patient'])
            privilege.permissions = _merge(privilege.permissions, PATIENT_PERMISSIONS)
            privilege.is_active = True
            privilege.save()
        else:
            privilege = PlatformPrivilege.objects.create(
                user=user,
                platform_name=platform,
                roles=['guest', 'patient'],
                permissions=list(PATIENT_PERMISSIONS),
                is_active=True,
            )
        logger.info("Granted %s access to existing user %s", platform, user.id)
        return user, privilege, None

    plain_pin = str(pin) if pin else generate_pin()
    user = SharedUser.objects.create(
        phone=phone,
        name=name or None,
        global_role='user',
        pin_hash=hash_pin(plain_pin),
        phone_verified=True,
        is_active=True,
    )
    privilege = PlatformPrivilege.objects.create(
        user=user,
        platform_name=platform,
        roles=['guest', 'patient'],
        permissions=['view_own_data'],
        is_active=True,
    )
    logger.info("Registered new user %s on %s", user.id, platform)
    return user, privilege, plain_pin


class AccountLocked(Exception):
    def __init__(self, locked_until):
        super().__init__(f"Account locked until {locked_until.isoformat()}")
        self.locked_until = locked_until


class InvalidCredentials(Exception):
    pass


def authenticate_pin(phone: str, pin: str) -> SharedUser:
    """Check a phone/PIN pair, maintaining the lockout counters.

    Raises ``InvalidCredentials`` or ``AccountLocked``.
    """
    user = SharedUser.objects.filter(phone=phone, is_active=True).first()
    if user is None:
        logger.info("Login failed: unknown phone")
        raise InvalidCredentials()

    now = timezone.now()
    if user.locked_until and user.locked_until > now:
        logger.warning("Login refused for locked user %s", user.id)
        raise AccountLocked(user.locked_until)

    if not check_pin(pin, user.pin_hash):
        user.login_attempts = (user.login_attempts or 0) + 1
        user.last_login_attempt = now
        fields = ['login_attempts', 'last_login_attempt', 'updated_at']
        if user.login_attempts >= MAX_LOGIN_ATTEMPTS:
            user.locked_until = now + timedelta(minutes=LOCKOUT_MINUTES)
            fields.append('locked_until')
            logger.warning("User %s locked after %s failed attempts", user.id, user.login_attempts)
        user.save(update_fields=fields)
        raise InvalidCredentials()

    user.login_attempts = 0
    user.locked_until = None
    user.last_login_attempt = now
    user.save(update_fields=['login_attempts', 'locked_until', 'last_login_attempt', 'updated_at'])
    logger.info("User %s logged in", user.id)
    return user

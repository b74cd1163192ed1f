"""
One-time codes for phone verification and PIN resets.

Codes are kept in the Django cache for ``OTP_TTL_SECONDS`` and are
single use.  There is no SMS gateway; the code is written to the log.
"""
import logging
import secrets

from django.conf import settings
from django.core.cache import cache

logger = logging.getLogger(__name__)


def _key(phone: str) -> str:
    return f"music:otp:{phone}"


def generate_code() -> str:
    return str(1000 + secrets.randbelow(9000))


def send_code(phone: str) -> str:
    code = generate_code()
    cache.set(_key(phone), code, timeout=settings.OTP_TTL_SECONDS)
    logger.info("OTP for %s: %s", phone, code)
    return code


def verify_code(phone: str, code) -> bool:
    stored = cache.get(_key(phone))
    if not stored or not secrets.compare_digest(str(stored), str(code)):
        return False
    cache.delete(_key(phone))
    return True

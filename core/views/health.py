"""Liveness / readiness endpoints."""
import logging

from django.db import connections
from django.http import JsonResponse
from django.utils import timezone

from music import mongo

logger = logging.getLogger(__name__)

DB_ALIASES = ('default', 'platform')


def _check_db(alias: str) -> bool:
    try:
        with connections[alias].cursor() as c:
            c.execute('SELECT 1')
            row = c.fetchone()
        return bool(row and row[0] == 1)
    except Exception:
        logger.warning("Database %s is not reachable", alias, exc_info=True)
        return False


def healthz(request):
    databases = {alias: _check_db(alias) for alias in DB_ALIASES}
    ok = all(databases.values())
    payload = {
        'status': 'OK' if ok else 'DEGRADED',
        'message': 'Aarogya Mitra API is running' if ok else 'One or more databases are unavailable',
        'timestamp': timezone.now().isoformat(),
        'databases': databases,
        'mongo': mongo.ping(),
    }
    return JsonResponse(payload, status=200 if ok else 503)

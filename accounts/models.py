"""
Models for the shared platform database.

``SharedUser`` is the cross-platform identity keyed by phone number and
``PlatformPrivilege`` records what a user may do on one platform.  These
are not Django auth users: the API authenticates them with JWTs (see
``accounts.authentication``).
"""
from __future__ import annotations

import uuid

from django.db import models


class SharedUser(models.Model):
    """A user of the platform family, identified by phone number."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    phone = models.CharField(max_length=15, unique=True)
    name = models.CharField(max_length=255, blank=True, null=True)
    global_role = models.CharField(max_length=50, default='user')
    credits = models.IntegerField(default=0)
    pin_hash = models.CharField(max_length=255, blank=True, null=True, help_text='bcrypt hash of the login PIN')
    phone_verified = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    login_attempts = models.IntegerField(default=0)
    last_login_attempt = models.DateTimeField(blank=True, null=True)
    locked_until = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Populated from token claims by the authentication class.
    platform: str | None = None
    roles: list = []
    permissions: list = []

    class Meta:
        db_table = 'users'

    def __str__(self) -> str:
        return f"{self.name or self.phone} ({self.phone})"

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def is_anonymous(self) -> bool:
        return False

    @property
    def role(self) -> str:
        return self.roles[0] if self.roles else 'user'

    @property
    def is_admin(self) -> bool:
        return 'admin' in (self.roles or []) or self.role in {'admin', 'owner'}


class PlatformPrivilege(models.Model):
    """Roles and permissions a user holds on one platform."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(SharedUser, on_delete=models.CASCADE, related_name='privileges')
    platform_name = models.CharField(max_length=100)
    roles = models.JSONField(default=list)
    permissions = models.JSONField(default=list)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'platform_privileges'
        constraints = [
            models.UniqueConstraint(fields=['user', 'platform_name'], name='uniq_user_platform'),
        ]

    def __str__(self) -> str:
        return f"{self.user_id}@{self.platform_name}: {', '.join(self.roles or [])}"

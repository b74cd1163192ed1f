"""
Bearer JWT authentication for shared platform users.

Tokens carry ``userId`` plus the platform, roles and permissions that
were granted at login.  The active ``SharedUser`` is loaded from the
platform database and the claims are attached to it so that views and
permission classes can read ``request.user.roles`` or
``request.user.is_admin`` without another query.
"""
from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken

from accounts.models import SharedUser
from accounts.services.auth import DEFAULT_PLATFORM


class PlatformJWTAuthentication(JWTAuthentication):
    """Authenticate ``Authorization: Bearer <jwt>`` against ``SharedUser``."""

    def get_validated_token(self, raw_token):
        try:
            return super().get_validated_token(raw_token)
        except InvalidToken:
            raise AuthenticationFailed('Token is not valid', code='token_not_valid')

    def get_user(self, validated_token):
        user_id = validated_token.get('userId')
        try:
            user = SharedUser.objects.filter(id=user_id, is_active=True).first() if user_id else None
        except (ValueError, DjangoValidationError):
            user = None
        if user is None:
            raise AuthenticationFailed('Token is not valid', code='user_not_found')

        user.platform = validated_token.get('platform') or DEFAULT_PLATFORM
        user.roles = list(validated_token.get('roles') or [])
        user.permissions = list(validated_token.get('permissions') or [])
        return user

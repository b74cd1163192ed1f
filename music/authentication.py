"""
Bearer JWT authentication for music app users.

Music tokens only carry ``userId``; the user document is loaded from
MongoDB on every request so the credit balance and role are current.
"""
from __future__ import annotations

from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken

from music.services import users


class MusicUser:
    """Request user built from a ``users`` document."""
    is_authenticated = True
    is_anonymous = False

    def __init__(self, doc: dict):
        self.id = str(doc['_id'])
        self.pk = self.id
        self.phone = doc.get('phone')
        self.role = doc.get('role') or 'user'
        self.credits = doc.get('credits', 0)

    @property
    def is_admin(self) -> bool:
        return self.role == 'admin'

    def __str__(self) -> str:
        return self.phone or self.id


class MusicJWTAuthentication(JWTAuthentication):
    def get_validated_token(self, raw_token):
        try:
            return super().get_validated_token(raw_token)
        except InvalidToken:
            raise AuthenticationFailed('Token is not valid', code='token_not_valid')

    def get_user(self, validated_token):
        doc = users.get_user(validated_token.get('userId'))
        if doc is None:
            raise AuthenticationFailed('Token is not valid', code='user_not_found')
        return MusicUser(doc)

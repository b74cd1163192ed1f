"""
Authentication views for the shared platform users.

Register grants access to a platform (creating the user on first
contact), login checks the PIN with lockout after repeated failures,
verify echoes the user behind a bearer token and logout is stateless.
"""
from __future__ import annotations

import logging

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from accounts.models import PlatformPrivilege
from accounts.serializers.auth import RegisterSerializer, LoginSerializer
from accounts.services import auth as auth_service

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------
# Register / grant platform access
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def register_view(request):
    """
    Register a phone number on a platform.
    Accepts fields: phone, name, platform (default ``aarogya-mitra``), pin.
    """
    s = RegisterSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data

    phone = vd.get('phone')
    if not phone:
        return Response({'message': 'Phone number is required'}, status=400)

    platform = vd.get('platform') or auth_service.DEFAULT_PLATFORM
    user, privilege, pin = auth_service.register(
        phone, name=vd.get('name'), platform=platform, pin=vd.get('pin'),
    )
    token = auth_service.issue_token(user, platform, privilege.roles, privilege.permissions)

    if pin is None:
        payload = auth_service.user_payload(user, platform)
        if vd.get('name') and not user.name:
            payload['name'] = vd['name']
        return Response({
            'message': 'Platform access granted successfully',
            'token': token,
            'user': payload,
        }, status=200)

    return Response({
        'message': 'Registration successful',
        'token': token,
        'user': auth_service.user_payload(user, platform),
        'pin': pin,
    }, status=201)


register_view.cls.throttle_scope = 'login'


# ---------------------------------------------------------------------
# Phone + PIN login (no fallback PIN)
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    """
    Login with phone and PIN.
    Five consecutive failures lock the account for fifteen minutes.
    """
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data

    phone = vd.get('phone')
    pin = vd.get('pin')
    if not phone or not pin:
        return Response({'message': 'Phone and PIN are required'}, status=400)

    platform = vd.get('platform') or auth_service.DEFAULT_PLATFORM
    try:
        user = auth_service.authenticate_pin(phone, pin)
    except auth_service.AccountLocked as exc:
        return Response({
            'message': 'Account is temporarily locked. Please try again later.',
            'lockedUntil': exc.locked_until.isoformat(),
        }, status=423)
    except auth_service.InvalidCredentials:
        return Response({'message': 'Invalid credentials'}, status=401)

    privilege = PlatformPrivilege.objects.filter(user=user, platform_name=platform).first()
    roles = privilege.roles if privilege else ['guest']
    permissions = privilege.permissions if privilege else []
    token = auth_service.issue_token(user, platform, roles, permissions)

    return Response({
        'message': 'Login successful',
        'token': token,
        'user': auth_service.user_payload(user, platform),
    }, status=200)


# ScopedRateThrottle reads throttle_scope from the wrapped APIView class
login_view.cls.throttle_scope = 'login'


# ---------------------------------------------------------------------
# Token verification / logout
# ---------------------------------------------------------------------
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def verify_view(request):
    user = request.user
    return Response({
        'valid': True,
        'user': auth_service.user_payload(user, auth_service.DEFAULT_PLATFORM),
    })


@api_view(['POST'])
@permission_classes([AllowAny])
def logout_view(request):
    """Tokens are stateless; the client discards its copy."""
    return Response({'message': 'Logout successful'})

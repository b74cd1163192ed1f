"""
Phone + PIN authentication for the music app.

OTP codes verify the phone number and authorise PIN resets.  Signup
grants five free credits; the phone configured as ``ADMIN_PHONE`` signs
up as admin.
"""
from __future__ import annotations

import logging

from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from music.authentication import MusicJWTAuthentication
from music.serializers.auth import (
    SendOtpSerializer, VerifyOtpSerializer, CredentialsSerializer, ResetPinSerializer,
)
from music.services import otp, users

logger = logging.getLogger(__name__)


def _validated(serializer_class, request) -> dict:
    s = serializer_class(data=request.data)
    s.is_valid(raise_exception=True)
    return s.validated_data


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def send_otp(request):
    vd = _validated(SendOtpSerializer, request)
    if not vd.get('phone'):
        return Response({'message': 'Phone number is required'}, status=400)
    otp.send_code(vd['phone'])
    return Response({'message': 'OTP sent successfully'})


send_otp.cls.throttle_scope = 'otp'


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def verify_otp(request):
    vd = _validated(VerifyOtpSerializer, request)
    if not vd.get('phone') or not vd.get('otp'):
        return Response({'message': 'Phone and OTP are required'}, status=400)
    if not otp.verify_code(vd['phone'], vd['otp']):
        return Response({'message': 'Invalid or expired OTP'}, status=400)
    return Response({'message': 'OTP verified successfully'})


verify_otp.cls.throttle_scope = 'otp'


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def signup(request):
    vd = _validated(CredentialsSerializer, request)
    if not vd.get('phone') or not vd.get('pin'):
        return Response({'message': 'Phone and PIN are required'}, status=400)
    if users.find_by_phone(vd['phone']) is not None:
        return Response({'message': 'User already exists'}, status=400)
    try:
        user = users.create_user(vd['phone'], vd['pin'])
    except users.UserExists:
        return Response({'message': 'User already exists'}, status=400)
    return Response({
        'message': 'User created successfully',
        'token': users.issue_token(user),
        'user': users.user_payload(user),
    }, status=201)


signup.cls.throttle_scope = 'login'


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def login(request):
    vd = _validated(CredentialsSerializer, request)
    if not vd.get('phone') or not vd.get('pin'):
        return Response({'message': 'Phone and PIN are required'}, status=400)
    user = users.authenticate(vd['phone'], vd['pin'])
    if user is None:
        return Response({'message': 'Invalid credentials'}, status=400)
    return Response({
        'message': 'Login successful',
        'token': users.issue_token(user),
        'user': users.user_payload(user),
    })


login.cls.throttle_scope = 'login'


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def reset_pin(request):
    vd = _validated(ResetPinSerializer, request)
    if not vd.get('phone') or not vd.get('otp') or not vd.get('newPin'):
        return Response({'message': 'Phone, OTP, and new PIN are required'}, status=400)
    if not otp.verify_code(vd['phone'], vd['otp']):
        return Response({'message': 'Invalid or expired OTP'}, status=400)
    if not users.set_pin(vd['phone'], vd['newPin']):
        return Response({'message': 'User not found'}, status=400)
    logger.info("PIN reset for %s", vd['phone'])
    return Response({'message': 'PIN reset successfully'})


reset_pin.cls.throttle_scope = 'otp'


@api_view(['GET'])
@authentication_classes([MusicJWTAuthentication])
@permission_classes([IsAuthenticated])
def me(request):
    user = users.get_user(request.user.id)
    return Response({'user': users.user_payload(user)})

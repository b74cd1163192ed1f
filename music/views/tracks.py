"""
Track search, curated tracks, ratings and credit spending.

A YouTube search costs a non-admin user one credit, charged after the
search succeeds.
"""
from __future__ import annotations

import logging

from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from music.authentication import MusicJWTAuthentication
from music.serializers.catalog import RatingSerializer
from music.services import tracks as track_service
from music.services import users, youtube

logger = logging.getLogger(__name__)


def _int_param(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _quota_exceeded() -> Response:
    return Response({
        'message': 'YouTube API quota exceeded. Please try again later.',
        'quotaStatus': youtube.quota_status(),
    }, status=429)


@api_view(['GET'])
@authentication_classes([MusicJWTAuthentication])
@permission_classes([IsAuthenticated])
def search(request):
    raga = request.query_params.get('raga')
    artist = request.query_params.get('artist')
    if not raga or not artist:
        return Response({'message': 'Raga and artist are required'}, status=400)
    try:
        result = youtube.search_videos(raga, artist)
    except youtube.YouTubeQuotaExceeded:
        return _quota_exceeded()
    except youtube.YouTubeError as e:
        logger.error("YouTube search failed: %s", e)
        return Response({'message': 'YouTube search failed'}, status=502)
    return Response(result)


@api_view(['GET'])
@authentication_classes([MusicJWTAuthentication])
@permission_classes([IsAuthenticated])
def youtube_search(request):
    params = request.query_params
    raga = params.get('raga')
    artist = params.get('artist') or None
    if not raga:
        return Response({'message': 'Raga is required'}, status=400)

    user = request.user
    if not user.is_admin and user.credits <= 0:
        return Response({'message': 'Insufficient credits. Please buy more credits.', 'credits': 0}, status=400)

    filters = {
        'minDuration': _int_param(params.get('minDuration'), youtube.DEFAULT_MIN_DURATION),
        'maxResults': _int_param(params.get('maxResults'), youtube.DEFAULT_MAX_RESULTS),
        'orderBy': 'relevance',
    }
    try:
        result = youtube.search_videos(raga, artist, min_duration=filters['minDuration'],
                                       max_results=filters['maxResults'])
    except youtube.YouTubeQuotaExceeded:
        return _quota_exceeded()
    except youtube.YouTubeError as e:
        logger.error("YouTube search failed: %s", e)
        return Response({'message': 'YouTube search failed'}, status=502)

    if user.is_admin:
        credits = user.credits
    else:
        try:
            credits = users.deduct_credit(user.id)
        except users.InsufficientCredits:
            return Response({'message': 'Insufficient credits. Please buy more credits.', 'credits': 0}, status=400)

    return Response({
        'tracks': result['tracks'],
        'quotaUsed': result['quotaUsed'],
        'quotaStatus': result['quotaStatus'],
        'searchParams': {'raga': raga, 'artist': artist, 'filters': filters},
        'credits': credits,
        'isAdmin': user.is_admin,
    })


youtube_search.cls.throttle_scope = 'youtube_search'


@api_view(['GET'])
@authentication_classes([MusicJWTAuthentication])
@permission_classes([IsAuthenticated])
def youtube_quota(request):
    return Response(youtube.quota_status())


@api_view(['GET'])
@authentication_classes([MusicJWTAuthentication])
@permission_classes([IsAuthenticated])
def curated(request):
    return Response(track_service.curated_tracks())


@api_view(['POST'])
@authentication_classes([MusicJWTAuthentication])
@permission_classes([IsAuthenticated])
def rate(request, track_id):
    s = RatingSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    rating = s.validated_data.get('rating')
    if not rating or not 1 <= rating <= 5:
        return Response({'message': 'Rating must be between 1 and 5'}, status=400)
    if not track_service.rate_track(track_id, request.user.id, rating):
        raise NotFound('Track not found')
    return Response({'message': 'Rating submitted successfully'})


@api_view(['POST'])
@authentication_classes([MusicJWTAuthentication])
@permission_classes([IsAuthenticated])
def use_credit(request):
    try:
        remaining = users.deduct_credit(request.user.id)
    except users.InsufficientCredits:
        return Response({'message': 'Insufficient credits', 'remainingCredits': 0}, status=400)
    return Response({'message': 'Credit used successfully', 'remainingCredits': remaining})

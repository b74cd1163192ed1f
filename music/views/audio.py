"""
Audio upload and streaming from GridFS, plus the event listing.

Streaming honours single ``Range: bytes=a-b`` requests so players can
seek.
"""
from __future__ import annotations

import logging

from django.http import HttpResponse, StreamingHttpResponse
from pymongo.errors import DuplicateKeyError
from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.exceptions import NotFound
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from music import mongo
from music.authentication import MusicJWTAuthentication
from music.services import audio, events

logger = logging.getLogger(__name__)


@api_view(['POST'])
@authentication_classes([MusicJWTAuthentication])
@permission_classes([IsAuthenticated])
def upload_audio(request):
    uploaded = request.FILES.get('audio')
    if uploaded is None:
        return Response({'message': 'No audio file provided'}, status=400)
    try:
        track = audio.upload(uploaded)
    except audio.AudioValidationError as e:
        return Response({'message': str(e)}, status=400)
    except DuplicateKeyError as e:
        logger.warning("Duplicate track for %s: %s", uploaded.name, e.details)
        return Response({
            'message': ('A track with similar metadata already exists. '
                        'Please check the filename format or try a different file.'),
        }, status=409)
    return Response({'message': 'Audio file uploaded successfully', 'track': track}, status=201)


def _file_or_404(file_id):
    doc = audio.find_file(file_id)
    if doc is None:
        raise NotFound('Audio file not found')
    return doc


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def stream_audio(request, file_id):
    doc = _file_or_404(file_id)
    size = doc['length']
    content_type = (doc.get('metadata') or {}).get('contentType') or 'audio/mpeg'
    try:
        byte_range = audio.parse_range(request.headers.get('Range'), size)
    except audio.RangeNotSatisfiable:
        response = HttpResponse(status=416)
        response['Content-Range'] = f"bytes */{size}"
        return response

    if byte_range is None:
        response = StreamingHttpResponse(audio.iter_bytes(doc), content_type=content_type)
        response['Content-Length'] = str(size)
    else:
        start, end = byte_range
        response = StreamingHttpResponse(audio.iter_bytes(doc, start, end), status=206, content_type=content_type)
        response['Content-Range'] = f"bytes {start}-{end}/{size}"
        response['Content-Length'] = str(end - start + 1)
    response['Accept-Ranges'] = 'bytes'
    return response


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def audio_info(request, file_id):
    return Response({'metadata': mongo.to_json(audio.file_info(_file_or_404(file_id)))})


@api_view(['GET'])
@authentication_classes([MusicJWTAuthentication])
@permission_classes([IsAuthenticated])
def list_audio(request):
    return Response({'files': [mongo.to_json(f) for f in audio.list_files()]})


@api_view(['DELETE'])
@authentication_classes([MusicJWTAuthentication])
@permission_classes([IsAuthenticated])
def delete_audio(request, file_id):
    if not audio.delete_file(file_id):
        raise NotFound('Audio file not found')
    logger.info("User %s deleted audio %s", request.user.id, file_id)
    return Response({'message': 'Audio file deleted successfully'})


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def event_list(request):
    return Response([mongo.to_json(e) for e in events.list_active()])

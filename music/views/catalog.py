"""
Raga and artist catalog.

Reads are public; changes, bulk deletes and batch imports need an admin
token.
"""
from __future__ import annotations

import logging

from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.exceptions import NotFound
from rest_framework.response import Response

from core.exceptions import message_of
from music import mongo
from music.authentication import MusicJWTAuthentication
from music.permissions import IsMusicAdmin, IsMusicAdminOrReadOnly
from music.serializers.catalog import RagaInputSerializer, ArtistInputSerializer
from music.services import artists as artist_service
from music.services import ragas as raga_service

logger = logging.getLogger(__name__)


def _row_validator(serializer_class):
    def validate(row):
        s = serializer_class(data=row)
        if s.is_valid():
            return s.validated_data, None
        return None, message_of(s.errors)
    return validate


# ---------------------------------------------------------------------
# Ragas
# ---------------------------------------------------------------------
def _raga_input(request) -> dict:
    s = RagaInputSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    return s.validated_data


@api_view(['GET', 'POST', 'DELETE'])
@authentication_classes([MusicJWTAuthentication])
@permission_classes([IsMusicAdminOrReadOnly])
def ragas(request):
    if request.method == 'GET':
        return Response([mongo.to_json(r) for r in raga_service.list_ragas()])

    if request.method == 'DELETE':
        deleted = raga_service.delete_all()
        logger.warning("Admin %s deleted all %s ragas", request.user.id, deleted)
        return Response({'message': f"Successfully deleted {deleted} ragas", 'deletedCount': deleted})

    vd = _raga_input(request)
    if not vd.get('name'):
        return Response({'message': 'Raga name is required'}, status=400)
    try:
        raga = raga_service.create_raga(vd)
    except raga_service.DuplicateRaga:
        return Response({'message': 'Raga with this name already exists'}, status=400)
    return Response(mongo.to_json(raga), status=201)


@api_view(['POST'])
@authentication_classes([MusicJWTAuthentication])
@permission_classes([IsMusicAdmin])
def raga_batch_import(request):
    rows = request.data.get('ragas') if isinstance(request.data, dict) else None
    if not isinstance(rows, list):
        return Response({'message': 'Ragas must be an array'}, status=400)
    if not rows:
        return Response({'message': 'No ragas provided'}, status=400)
    if len(rows) > raga_service.MAX_BATCH:
        return Response({'message': f"Too many ragas. Maximum {raga_service.MAX_BATCH} ragas per batch."},
                        status=400)

    results = raga_service.batch_import(rows, _row_validator(RagaInputSerializer))
    return Response({
        'message': (f"Batch import completed. {results['successful']} successful, {results['failed']} failed, "
                    f"{len(results['duplicates'])} duplicates skipped."),
        'results': results,
    })


@api_view(['GET', 'PUT', 'DELETE'])
@authentication_classes([MusicJWTAuthentication])
@permission_classes([IsMusicAdminOrReadOnly])
def raga_detail(request, raga_id):
    if request.method == 'GET':
        raga = raga_service.get_raga(raga_id)
        if raga is None:
            raise NotFound('Raga not found')
        return Response(mongo.to_json(raga))

    if request.method == 'DELETE':
        if not raga_service.delete_raga(raga_id):
            raise NotFound('Raga not found')
        return Response({'message': 'Raga deleted successfully'})

    vd = _raga_input(request)
    if not vd.get('name'):
        return Response({'message': 'Raga name is required'}, status=400)
    try:
        raga = raga_service.update_raga(raga_id, vd)
    except raga_service.DuplicateRaga:
        return Response({'message': 'Raga with this name already exists'}, status=400)
    if raga is None:
        raise NotFound('Raga not found')
    return Response(mongo.to_json(raga))


# ---------------------------------------------------------------------
# Artists
# ---------------------------------------------------------------------
def _artist_input(request):
    """Validated artist fields, or an error ``Response``."""
    s = ArtistInputSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    if artist_service.missing_fields(vd):
        return None, Response({'message': 'Name, year born, specialty, and bio are required'}, status=400)
    if artist_service.bio_word_count(vd['bio']) > artist_service.MAX_BIO_WORDS:
        return None, Response({'message': 'Bio must not exceed 20 words'}, status=400)
    return vd, None


@api_view(['GET', 'POST', 'DELETE'])
@authentication_classes([MusicJWTAuthentication])
@permission_classes([IsMusicAdminOrReadOnly])
def artists(request):
    if request.method == 'GET':
        raga = request.query_params.get('raga')
        by_raga = request.query_params.get('filterByRaga') == 'true'
        rows = artist_service.list_artists(raga if by_raga else None)
        return Response([mongo.to_json(a) for a in rows])

    if request.method == 'DELETE':
        deleted = artist_service.delete_all()
        logger.warning("Admin %s deleted all %s artists", request.user.id, deleted)
        return Response({'message': f"Successfully deleted {deleted} artists", 'deletedCount': deleted})

    vd, error = _artist_input(request)
    if error is not None:
        return error
    try:
        artist = artist_service.create_artist(vd)
    except artist_service.DuplicateArtist:
        return Response({'message': 'Artist with this name already exists'}, status=400)
    return Response(mongo.to_json(artist), status=201)


@api_view(['POST'])
@authentication_classes([MusicJWTAuthentication])
@permission_classes([IsMusicAdmin])
def artist_batch_import(request):
    rows = request.data.get('artists') if isinstance(request.data, dict) else None
    if not isinstance(rows, list):
        return Response({'message': 'Artists must be an array'}, status=400)

    results = artist_service.batch_import(rows, _row_validator(ArtistInputSerializer))
    return Response({
        'message': (f"Import completed. {results['successful']} successful, {results['failed']} failed, "
                    f"{len(results['duplicates'])} duplicates skipped"),
        'results': results,
    })


@api_view(['GET', 'PUT', 'DELETE'])
@authentication_classes([MusicJWTAuthentication])
@permission_classes([IsMusicAdminOrReadOnly])
def artist_detail(request, artist_id):
    if request.method == 'GET':
        artist = artist_service.get_artist(artist_id)
        if artist is None:
            raise NotFound('Artist not found')
        return Response(mongo.to_json(artist))

    if request.method == 'DELETE':
        if not artist_service.delete_artist(artist_id):
            raise NotFound('Artist not found')
        return Response({'message': 'Artist deleted successfully'})

    vd, error = _artist_input(request)
    if error is not None:
        return error
    try:
        artist = artist_service.update_artist(artist_id, vd)
    except artist_service.DuplicateArtist:
        return Response({'message': 'Artist with this name already exists'}, status=400)
    if artist is None:
        raise NotFound('Artist not found')
    return Response(mongo.to_json(artist))

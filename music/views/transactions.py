"""
Credit purchases.

Recording a payment is public (the payment page posts it after checkout);
listing is limited to the buyer, and the reports to admins.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from music import mongo
from music.authentication import MusicJWTAuthentication
from music.permissions import IsMusicAdmin
from music.serializers.transactions import TransactionInputSerializer
from music.services import transactions as transaction_service


def _page_params(request, default_limit: int) -> tuple[int, int]:
    def positive(value, default):
        try:
            number = int(value)
        except (TypeError, ValueError):
            return default
        return number if number > 0 else default
    return (positive(request.query_params.get('page'), 1),
            positive(request.query_params.get('limit'), default_limit))


def _page_response(page: dict) -> Response:
    return Response({
        'transactions': [mongo.to_json(t) for t in page['transactions']],
        'pagination': page['pagination'],
    })


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def create_transaction(request):
    s = TransactionInputSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    try:
        tx = transaction_service.record_payment(s.validated_data)
    except transaction_service.UserNotFound:
        return Response({'message': 'User not found'}, status=404)
    except transaction_service.DuplicatePayment:
        return Response({'message': 'Payment already recorded'}, status=409)
    return Response({
        'message': 'Transaction created successfully',
        'transaction': {
            'id': str(tx['_id']),
            'phone': tx['phone'],
            'razorpayPaymentId': tx['razorpayPaymentId'],
            'amount': tx['amount'],
            'credits': tx['credits'],
            'status': tx['status'],
            'transactionDate': tx['transactionDate'].isoformat(),
        },
    }, status=201)


@api_view(['GET'])
@authentication_classes([MusicJWTAuthentication])
@permission_classes([IsAuthenticated])
def user_transactions(request, phone):
    if phone != request.user.phone and not request.user.is_admin:
        raise PermissionDenied('Access denied')
    page, limit = _page_params(request, 10)
    return _page_response(transaction_service.for_phone(phone, page, limit))


@api_view(['GET'])
@authentication_classes([MusicJWTAuthentication])
@permission_classes([IsMusicAdmin])
def all_transactions(request):
    page, limit = _page_params(request, 20)
    phone = request.query_params.get('phone') or None
    return _page_response(transaction_service.list_all(page, limit, phone))


@api_view(['GET'])
@authentication_classes([MusicJWTAuthentication])
@permission_classes([IsMusicAdmin])
def transaction_summary(request):
    return Response({'summary': [mongo.to_json(row) for row in transaction_service.summary()]})


@api_view(['GET'])
@authentication_classes([MusicJWTAuthentication])
@permission_classes([IsMusicAdmin])
def transaction_stats(request):
    result = transaction_service.stats()
    return Response({
        'stats': result['stats'],
        'monthlyRevenue': [mongo.to_json(row) for row in result['monthlyRevenue']],
    })

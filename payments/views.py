from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response
from django.conf import settings
from drf_spectacular.utils import extend_schema, OpenApiParameter, OpenApiResponse
from drf_spectacular.types import OpenApiTypes

from user.models import User
from user.permissions import IsActiveMember, has_role, identity_claim
from .models import Payment
from .serializers import (
    PaymentSerializer,
    QuoteRequestSerializer,
    QuoteResponseSerializer,
    SettlementOutcomeSerializer,
    SettlementRequestSerializer,
)
from .settlement import settle_payment
from .stripe_service import quote_charge


class PaymentViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """Payment history, charge quotes and settlement of completed charges."""
    serializer_class = PaymentSerializer

    def get_permissions(self):
        if self.action == 'list':
            return [permissions.IsAuthenticated()]
        return [IsActiveMember()]

    def get_queryset(self):
        if getattr(self, 'swagger_fake_view', False):
            return Payment.objects.none()

        claim = identity_claim(self.request.user)
        email = self.request.query_params.get('email')
        if email and email != claim['email']:
            if not has_role(claim, User.ROLE_ADMIN):
                raise PermissionDenied('forbidden access')
            return Payment.objects.filter(email=email).order_by('-created')
        return Payment.objects.filter(email=claim['email']).order_by('-created')

    @extend_schema(
        parameters=[
            OpenApiParameter(
                name='email',
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                description='Payer email; admins only when it is not your own',
            ),
        ],
    )
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    @extend_schema(
        request=SettlementRequestSerializer,
        parameters=[
            OpenApiParameter(
                name='Idempotency-Key',
                type=OpenApiTypes.STR,
                location=OpenApiParameter.HEADER,
                description='Replaying a key resumes the same settlement instead of recording a new payment',
            ),
        ],
        responses={
            201: SettlementOutcomeSerializer,
            200: OpenApiResponse(SettlementOutcomeSerializer, description='Replay of a fully settled payment'),
            207: OpenApiResponse(SettlementOutcomeSerializer, description='Payment recorded, a later step failed'),
        },
        description="Record a completed charge and enroll the caller in the purchased classes",
    )
    def create(self, request, *args, **kwargs):
        serializer = SettlementRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        idempotency_key = data['idempotency_key'] or request.headers.get('Idempotency-Key', '')

        outcome = settle_payment(
            request.user.email,
            data['amount'],
            data['class_ids'],
            transaction_id=data['transaction_id'],
            idempotency_key=idempotency_key or None,
            currency=settings.STRIPE_CURRENCY,
        )

        if not outcome.settled:
            response_status = status.HTTP_207_MULTI_STATUS
        elif outcome.replayed:
            response_status = status.HTTP_200_OK
        else:
            response_status = status.HTTP_201_CREATED
        return Response(outcome.as_dict(), status=response_status)

    @extend_schema(
        request=QuoteRequestSerializer,
        responses={200: QuoteResponseSerializer},
        description="Price the cart and create a card PaymentIntent for it",
    )
    @action(detail=False, methods=['post'], url_path='create-payment-intent')
    def create_payment_intent(self, request):
        serializer = QuoteRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        quote = quote_charge(serializer.validated_data['items'])
        return Response({
            'clientSecret': quote['client_secret'],
            'totalPrice': quote['total_price'],
            'amount': quote['amount'],
        })

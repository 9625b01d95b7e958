from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from user.permissions import IsActiveMember
from .services import toggle_booking


class BookingToggleView(APIView):
    """Book a class, or cancel the booking when it is already booked."""
    permission_classes = [IsActiveMember]

    @extend_schema(
        parameters=[
            OpenApiParameter(
                name='class_id',
                type=OpenApiTypes.INT,
                location=OpenApiParameter.QUERY,
                description='Class to book or unbook (may also be sent in the body)',
            ),
        ],
        responses={200: OpenApiTypes.OBJECT, 400: OpenApiTypes.OBJECT, 404: OpenApiTypes.OBJECT},
    )
    def patch(self, request):
        class_id = request.query_params.get('class_id') or request.data.get('class_id')
        booked = toggle_booking(request.user.email, class_id)
        return Response(
            {
                'class_id': int(class_id),
                'booked': booked,
                'booked_classes': sorted(request.user.booked_class_ids()),
            },
            status=status.HTTP_200_OK,
        )

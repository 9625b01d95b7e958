from rest_framework import viewsets, permissions
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.filters import SearchFilter, OrderingFilter
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema

from user.permissions import IsAdmin, IsInstructor
from .models import Class
from .serializers import ClassSerializer, ClassModerationSerializer


class ClassViewSet(viewsets.ModelViewSet):
    """Public catalog, instructor submission and admin moderation of classes."""
    queryset = Class.objects.all()
    serializer_class = ClassSerializer
    filter_backends = (DjangoFilterBackend, SearchFilter, OrderingFilter)
    filterset_fields = ['status', 'instructor_email']
    search_fields = ['name', 'instructor_name']
    ordering_fields = ['enrolled_count', 'price', 'created_at', 'status']
    ordering = ['-enrolled_count', '-created_at']
    http_method_names = ['get', 'post', 'patch', 'head', 'options']

    def get_permissions(self):
        if self.action in ('list', 'retrieve'):
            return [permissions.AllowAny()]
        if self.action == 'create':
            return [IsInstructor()]
        if self.action in ('booked', 'enrolled'):
            return [permissions.IsAuthenticated()]
        return [IsAdmin()]

    def get_serializer_class(self):
        if self.action in ('update', 'partial_update'):
            return ClassModerationSerializer
        return ClassSerializer

    def perform_create(self, serializer):
        user = self.request.user
        serializer.save(
            instructor_email=user.email,
            instructor_name=user.name,
            status=Class.STATUS_PENDING,
        )

    @extend_schema(responses=ClassSerializer(many=True), description="Classes the caller has booked but not paid for")
    @action(detail=False, methods=['get'])
    def booked(self, request):
        classes = request.user.booked_classes.all()
        return Response(self.get_serializer(classes, many=True).data)

    @extend_schema(responses=ClassSerializer(many=True), description="Classes the caller is enrolled in")
    @action(detail=False, methods=['get'])
    def enrolled(self, request):
        classes = request.user.enrolled_classes.all()
        return Response(self.get_serializer(classes, many=True).data)

from django.db.models import Sum
from rest_framework import generics, viewsets, status, permissions
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.views import TokenObtainPairView
from drf_spectacular.utils import extend_schema

from classes.models import Class
from .models import User
from .permissions import IsAdmin, has_role, identity_claim
from .serializers import (
    CustomTokenObtainPairSerializer,
    InstructorSerializer,
    UserAdminSerializer,
    UserCreateSerializer,
    UserSerializer,
)

POPULAR_INSTRUCTOR_LIMIT = 6


class CustomTokenObtainView(TokenObtainPairView):
    """Login returning access/refresh tokens with role claims."""
    serializer_class = CustomTokenObtainPairSerializer


class UserViewSet(viewsets.ModelViewSet):
    queryset = User.objects.all().order_by('role', 'email')
    lookup_field = 'email'
    lookup_value_regex = '[^/]+'
    http_method_names = ['get', 'post', 'patch', 'head', 'options']

    def get_permissions(self):
        if self.action == 'create':
            return [permissions.AllowAny()]
        if self.action == 'retrieve':
            return [permissions.IsAuthenticated()]
        return [IsAdmin()]

    def get_serializer_class(self):
        if self.action == 'create':
            return UserCreateSerializer
        if self.action in ('update', 'partial_update'):
            return UserAdminSerializer
        return UserSerializer

    def create(self, request, *args, **kwargs):
        email = request.data.get('email')
        if email and User.objects.filter(email__iexact=email).exists():
            return Response({'message': 'User Exists In Database!'}, status=status.HTTP_200_OK)
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, *args, **kwargs):
        claim = identity_claim(request.user)
        if claim['email'] != kwargs.get('email') and not has_role(claim, User.ROLE_ADMIN):
            raise PermissionDenied('forbidden access')
        return super().retrieve(request, *args, **kwargs)


class InstructorListView(generics.ListAPIView):
    serializer_class = InstructorSerializer
    permission_classes = [permissions.AllowAny]
    queryset = User.objects.filter(role=User.ROLE_INSTRUCTOR).order_by('name')


class PopularInstructorsView(APIView):
    """Instructors ranked by the total enrollment of their classes."""
    permission_classes = [permissions.AllowAny]

    @extend_schema(responses=InstructorSerializer(many=True))
    def get(self, request):
        ranked = (
            Class.objects.values('instructor_email')
            .annotate(total=Sum('enrolled_count'))
            .order_by('-total', 'instructor_email')
        )
        emails = [row['instructor_email'] for row in ranked]
        instructors = {
            user.email: user
            for user in User.objects.filter(email__in=emails, role=User.ROLE_INSTRUCTOR)
        }
        top = [instructors[email] for email in emails if email in instructors][:POPULAR_INSTRUCTOR_LIMIT]
        return Response(InstructorSerializer(top, many=True).data)

from django.urls import path, include
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenRefreshView
from .views import (
    CustomTokenObtainView,
    InstructorListView,
    PopularInstructorsView,
    UserViewSet,
)
app_name = 'user'

router = DefaultRouter()
router.register(r'users', UserViewSet, basename='users')


urlpatterns = [
    path('login/', CustomTokenObtainView.as_view(), name='token_obtain'),
    path('token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
    path('instructors/', InstructorListView.as_view(), name='instructors'),
    path('popular-instructors/', PopularInstructorsView.as_view(), name='popular-instructors'),
    path('', include(router.urls)),
]

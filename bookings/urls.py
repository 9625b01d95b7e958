from django.urls import path
from .views import BookingToggleView

urlpatterns = [
    path('', BookingToggleView.as_view(), name='booking-toggle'),
]

from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import ScheduledBookingViewSet

router = DefaultRouter()
router.register(r'scheduled-bookings', ScheduledBookingViewSet, basename='scheduled-booking')

urlpatterns = [
    path('api/', include(router.urls)),
]

import logging
from rest_framework import viewsets, status
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.decorators import action
from bookingsystem.models import Booking
from bookingsystem.serializers import BookingSerializer
from utils.queryset_helpers import UserFilterableQuerysetMixin
from utils.validators import ScheduledBookingValidators
from utils.constants import ScheduledBookingMessage, GeneralMessage
from exceptions.handlers import NotFoundException, MethodNotAllowedException
from .models import ScheduledBooking
from .serializers import ScheduledBookingCreateSerializer, ScheduledBookingSerializer
from .services import (
    create_scheduled_booking,
    cancel_scheduled_booking,
    process_scheduled_booking_now,
)

logger = logging.getLogger("scheduler")


class ScheduledBookingViewSet(UserFilterableQuerysetMixin, viewsets.ModelViewSet):
    """
    ViewSet for scheduled bookings.
    Users create, list, process and cancel their own scheduled bookings;
    status transitions to completed/failed are left to the processor.
    """

    queryset = ScheduledBooking.objects.select_related(
        "train", "booking", "booking__train"
    ).prefetch_related("passengers", "booking__passengers")
    permission_classes = [IsAuthenticated]
    user_field = "user"
    filter_fields = ["status", "booking_type"]
    default_ordering = ["-created_at"]

    def get_serializer_class(self):
        if self.action == "create":
            return ScheduledBookingCreateSerializer
        return ScheduledBookingSerializer

    def get_object(self):
        """
        Look the job up across all users so that a foreign job yields 403
        rather than 404.
        """
        lookup_url_kwarg = self.lookup_url_kwarg or self.lookup_field
        scheduled_booking = self.queryset.filter(
            **{self.lookup_field: self.kwargs[lookup_url_kwarg]}
        ).first()
        if scheduled_booking is None:
            raise NotFoundException(ScheduledBookingMessage.NOT_FOUND)
        ScheduledBookingValidators.validate_owner(scheduled_booking, self.request.user)
        return scheduled_booking

    def create(self, request, *args, **kwargs):
        """
        Validates and stores a scheduled booking request.
        """
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        scheduled_booking = create_scheduled_booking(request.user, dict(serializer.validated_data))

        return Response(
            {
                "message": ScheduledBookingMessage.CREATED,
                "id": scheduled_booking.id,
                "scheduled_at": scheduled_booking.scheduled_at,
                "status": scheduled_booking.status,
            },
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=["post"], url_path="process")
    def process(self, request, pk=None):
        """Process a scheduled booking immediately instead of waiting for the sweep."""
        scheduled_booking = self.get_object()
        booking = process_scheduled_booking_now(scheduled_booking, request.user)
        booking = Booking.objects.select_related("train").prefetch_related("passengers").get(pk=booking.pk)

        logger.info(
            f"Scheduled booking {scheduled_booking.pk} processed on demand by {request.user}, PNR {booking.pnr_number}"
        )
        return Response(
            {
                "message": ScheduledBookingMessage.PROCESSED,
                "booking": BookingSerializer(booking).data,
            },
            status=status.HTTP_200_OK,
        )

    def destroy(self, request, *args, **kwargs):
        """
        Cancels a pending scheduled booking. The record is kept.
        """
        scheduled_booking = self.get_object()
        scheduled_booking = cancel_scheduled_booking(scheduled_booking, request.user)
        return Response(
            {
                "message": ScheduledBookingMessage.CANCELLED,
                "id": scheduled_booking.id,
                "status": scheduled_booking.status,
            },
            status=status.HTTP_200_OK,
        )

    def update(self, request, *args, **kwargs):
        raise MethodNotAllowedException(GeneralMessage.UPDATE_NOT_ALLOWED)

    def partial_update(self, request, *args, **kwargs):
        raise MethodNotAllowedException(GeneralMessage.UPDATE_NOT_ALLOWED)

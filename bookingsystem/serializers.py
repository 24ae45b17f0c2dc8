from rest_framework import serializers
from .models import Booking, Passenger


class PassengerSerializer(serializers.ModelSerializer):
    """
    Serializes a passenger row of a booking.
    """

    class Meta:
        model = Passenger
        fields = [
            "id",
            "name",
            "age",
            "gender",
            "berth_preference",
            "seat_number",
            "booking_status",
        ]
        read_only_fields = fields


class BookingSerializer(serializers.ModelSerializer):
    """
    Serializes booking data together with its passengers.
    Read-only: bookings are created by the scheduled booking processor.
    """

    train_number = serializers.CharField(source="train.train_number", read_only=True)
    passengers = PassengerSerializer(many=True, read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "pnr_number",
            "train",
            "train_number",
            "class_code",
            "journey_date",
            "booking_status",
            "total_fare",
            "booking_type",
            "payment_status",
            "payment_due_date",
            "passengers",
            "created_at",
        ]
        read_only_fields = fields

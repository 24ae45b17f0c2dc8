from rest_framework import serializers
from trains.models import Train
from trains.serializers import TrainSummarySerializer
from bookingsystem.serializers import BookingSerializer
from utils.constants import Choices, ScheduledStatus, SchedulerDefaults
from utils.validators import ScheduledBookingValidators
from .models import ScheduledBooking, ScheduledPassenger


class ScheduledPassengerSerializer(serializers.ModelSerializer):
    """
    One passenger of the manifest; age is limited to 1-120.
    """

    berth_preference = serializers.ChoiceField(
        choices=Choices.BERTH_PREFERENCE_CHOICES, required=False, allow_blank=True, default=""
    )

    class Meta:
        model = ScheduledPassenger
        fields = ["name", "age", "gender", "berth_preference"]

    def validate_age(self, value):
        return ScheduledBookingValidators.validate_passenger_age(value)


class ScheduledBookingCreateSerializer(serializers.ModelSerializer):
    """
    Validates a request to book tickets at a future instant.
    """

    train = serializers.PrimaryKeyRelatedField(queryset=Train.all_objects.all())
    class_code = serializers.CharField(max_length=5)
    passengers = ScheduledPassengerSerializer(many=True)
    reminder_frequency = serializers.IntegerField(
        min_value=1, required=False, default=SchedulerDefaults.REMINDER_FREQUENCY_HOURS
    )
    max_reminders = serializers.IntegerField(
        min_value=1, required=False, default=SchedulerDefaults.MAX_REMINDERS
    )

    class Meta:
        model = ScheduledBooking
        fields = [
            "train",
            "class_code",
            "journey_date",
            "scheduled_at",
            "booking_type",
            "passengers",
            "payment_reminders_enabled",
            "reminder_frequency",
            "max_reminders",
        ]

    def validate_class_code(self, value):
        return value.strip().upper()

    def validate_scheduled_at(self, value):
        return ScheduledBookingValidators.validate_scheduled_at(value)

    def validate_passengers(self, value):
        return ScheduledBookingValidators.validate_passenger_count(value)

    def validate(self, data):
        """
        Cross-field checks: the train must offer the class, and the journey
        may not start before the booking is placed.
        """
        ScheduledBookingValidators.validate_train_class(
            data["train"], data["class_code"], data.get("booking_type", "general")
        )
        ScheduledBookingValidators.validate_journey_date(data["journey_date"], data["scheduled_at"])
        return data


class ScheduledBookingSerializer(serializers.ModelSerializer):
    """
    Read representation of a scheduled booking, enriched with the train
    summary and, once completed, the resulting booking and its passengers.
    """

    train = TrainSummarySerializer(read_only=True)
    passengers = ScheduledPassengerSerializer(many=True, read_only=True)
    booking = serializers.SerializerMethodField()

    class Meta:
        model = ScheduledBooking
        fields = [
            "id",
            "train",
            "class_code",
            "journey_date",
            "scheduled_at",
            "booking_type",
            "status",
            "failure_reason",
            "passengers",
            "payment_reminders_enabled",
            "reminder_frequency",
            "max_reminders",
            "booking",
            "processed_at",
            "created_at",
        ]
        read_only_fields = fields

    def get_booking(self, obj):
        if obj.status != ScheduledStatus.COMPLETED or obj.booking is None:
            return None
        return BookingSerializer(obj.booking).data

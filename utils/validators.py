from django.utils import timezone
from utils.constants import (
    ScheduledBookingMessage, TrainMessage, scheduler_setting)
from exceptions.handlers import (
    PermissionDeniedException, NotFoundException, InvalidInputException,
    InvalidStateException)
import logging

logger = logging.getLogger("scheduler")


class ScheduledBookingValidators:
    """
    Reusable validation logic for scheduled booking requests and actions.
    """

    @staticmethod
    def validate_scheduled_at(value, now=None):
        """
        Validates that the booking is scheduled strictly in the future.

        Raises:
            InvalidInputException: If scheduled_at is not after now
        """
        now = now or timezone.now()
        if value <= now:
            raise InvalidInputException(ScheduledBookingMessage.SCHEDULED_AT_IN_PAST)
        return value

    @staticmethod
    def validate_journey_date(journey_date, scheduled_at):
        """
        Validates that the journey does not start before the booking is placed.
        """
        if journey_date < timezone.localtime(scheduled_at).date():
            raise InvalidInputException(ScheduledBookingMessage.JOURNEY_BEFORE_SCHEDULE)
        return journey_date

    @staticmethod
    def validate_passenger_count(passengers):
        """
        Validates the manifest size against MAX_PASSENGERS.

        Raises:
            InvalidInputException: If the manifest is empty or too large
        """
        max_passengers = scheduler_setting("MAX_PASSENGERS")
        if not passengers:
            raise InvalidInputException(ScheduledBookingMessage.PASSENGERS_REQUIRED)
        if len(passengers) > max_passengers:
            raise InvalidInputException(
                ScheduledBookingMessage.TOO_MANY_PASSENGERS.format(max_passengers=max_passengers)
            )
        return passengers

    @staticmethod
    def validate_passenger_age(age):
        if age is None or age < 1 or age > 120:
            raise InvalidInputException(ScheduledBookingMessage.INVALID_AGE)
        return age

    @staticmethod
    def validate_train_class(train, class_code, booking_type="general"):
        """
        Validates that the train is active and offers the requested class.

        Args:
            train: Train object
            class_code (str): Requested class code
            booking_type (str): "general" or "tatkal"

        Returns:
            TrainClass: The matching class

        Raises:
            NotFoundException: If the train is inactive or lacks the class
            InvalidInputException: If tatkal is requested on a train without it
        """
        if not train.is_active:
            logger.warning(f"Scheduled booking requested on inactive train {train.pk}")
            raise NotFoundException(TrainMessage.TRAIN_NOT_FOUND)

        train_class = train.classes.filter(class_code=class_code.upper()).first()
        if train_class is None:
            raise NotFoundException(
                TrainMessage.TRAIN_CLASS_NOT_FOUND.format(class_code=class_code, train_id=train.pk)
            )
        if booking_type == "tatkal" and not train.tatkal_available:
            raise InvalidInputException(TrainMessage.TATKAL_NOT_AVAILABLE)
        return train_class

    @staticmethod
    def validate_owner(scheduled_booking, user):
        """
        Validates that the user owns the scheduled booking.

        Raises:
            PermissionDeniedException: If the user is not the owner
        """
        if scheduled_booking.user_id != user.pk:
            logger.warning(
                f"User {user} attempted to access scheduled booking {scheduled_booking.pk} belonging to user {scheduled_booking.user_id}"
            )
            raise PermissionDeniedException(ScheduledBookingMessage.FORBIDDEN)

    @staticmethod
    def validate_cancellable(scheduled_booking):
        """
        Raises:
            InvalidStateException: If the scheduled booking is no longer pending
        """
        if not scheduled_booking.is_pending:
            raise InvalidStateException(ScheduledBookingMessage.CANNOT_CANCEL)

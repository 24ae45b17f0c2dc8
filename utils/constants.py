from django.conf import settings

# ---------- STATUS AND TYPE CHOICES ----------

class Choices:
    TRAIN_TYPE_CHOICES = [
        ("Express", "express"),
        ("Superfast", "superfast"),
        ("Rajdhani", "rajdhani"),
        ("Shatabdi", "shatabdi"),
        ("Local", "local"),
    ]

    CLASS_CODE_CHOICES = [
        ("SL", "Sleeper"),
        ("3A", "AC 3 Tier"),
        ("2A", "AC 2 Tier"),
        ("1A", "AC First Class"),
        ("CC", "Chair Car"),
        ("EC", "Executive Chair Car"),
    ]

    BOOKING_TYPE_CHOICES = [
        ("general", "General"),
        ("tatkal", "Tatkal"),
    ]

    SCHEDULED_STATUS_CHOICES = [
        ("pending", "Pending"),
        ("processing", "Processing"),
        ("completed", "Completed"),
        ("failed", "Failed"),
        ("cancelled", "Cancelled"),
    ]

    BOOKING_STATUS_CHOICES = [
        ("CONFIRMED", "Confirmed"),
        ("CANCELLED", "Cancelled"),
    ]

    PASSENGER_STATUS_CHOICES = [
        ("CONFIRMED", "Confirmed"),
        ("RAC", "RAC"),
        ("WL", "Waiting List"),
    ]

    PAYMENT_STATUS_CHOICES = [
        ("PENDING", "Pending"),
        ("PAID", "Paid"),
        ("FAILED", "Failed"),
    ]

    GENDER_CHOICES = [
        ("male", "Male"),
        ("female", "Female"),
        ("other", "Other"),
    ]

    BERTH_PREFERENCE_CHOICES = [
        ("lower", "Lower"),
        ("middle", "Middle"),
        ("upper", "Upper"),
        ("side_lower", "Side Lower"),
        ("side_upper", "Side Upper"),
    ]

    REMINDER_TYPE_CHOICES = [
        ("email", "Email"),
        ("sms", "SMS"),
    ]

    REMINDER_STATUS_CHOICES = [
        ("SCHEDULED", "Scheduled"),
        ("SENT", "Sent"),
        ("FAILED", "Failed"),
    ]


class ScheduledStatus:
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


# ---------- FARE AND SEAT TABLES ----------

class FareTable:
    DISTANCE_RATE_PER_KM = "0.20"
    DEFAULT_TATKAL_SURCHARGE = 200
    TATKAL_SURCHARGES = {
        "SL": 200,
        "3A": 400,
        "2A": 500,
        "1A": 600,
        "CC": 300,
        "EC": 400,
    }


class SeatLayout:
    # class code -> (coach prefix, coaches, seats per coach)
    DEFAULT_CLASS = "SL"
    COACHES = {
        "SL": ("S", 12, 72),
        "3A": ("B", 8, 64),
        "2A": ("A", 4, 46),
        "1A": ("H", 2, 24),
        "CC": ("C", 10, 78),
        "EC": ("E", 2, 56),
    }


class PnrFormat:
    MIN_VALUE = 1_000_000_000
    MAX_VALUE = 9_999_999_999


# ---------- SCHEDULER CONFIGURATION ----------

class SchedulerDefaults:
    SWEEP_INTERVAL_SECONDS = 60
    MAX_CONCURRENCY = 5
    PAYMENT_WINDOW_HOURS = 24
    TATKAL_PAYMENT_WINDOW_HOURS = 2
    FIRST_REMINDER_LEAD_HOURS = 6
    PNR_MAX_ATTEMPTS = 100
    MAX_PASSENGERS = 6
    REMINDER_FREQUENCY_HOURS = 24
    MAX_REMINDERS = 3


def scheduler_setting(name):
    """
    Returns a scheduler option from settings.SCHEDULED_BOOKING,
    falling back to SchedulerDefaults.
    """
    overrides = getattr(settings, "SCHEDULED_BOOKING", {}) or {}
    if name in overrides:
        return overrides[name]
    return getattr(SchedulerDefaults, name)


# ---------- GENERAL MESSAGES ----------

class GeneralMessage:
    INVALID_INPUT = "Invalid input provided."
    PERMISSION_DENIED = "You do not have permission to perform this action."
    SOMETHING_WENT_WRONG = "Something went wrong. Please try again later."
    UPDATE_NOT_ALLOWED = "Updating a scheduled booking is not allowed."


# ------------TRAIN CONSTANTS-------------

class TrainMessage:
    TRAIN_NOT_FOUND = "Train not found."
    TRAIN_INACTIVE = "Train {train_id} is no longer running."
    TRAIN_CLASS_NOT_FOUND = "Train class {class_code} not found for train {train_id}."
    NO_SEATS_AVAILABLE = "No seats available for train {train_id}, class {class_code}."
    TATKAL_NOT_AVAILABLE = "Tatkal booking is not available for this train."


# ----------- BOOKING CONSTANTS -------------

class BookingMessage:
    INVALID_FARE = "Fare must be a positive amount."
    INVALID_PASSENGER_COUNT = "At least one passenger is required to calculate the fare."
    PNR_GENERATION_FAILED = "Could not generate a unique PNR after {attempts} attempts."


# ----------- SCHEDULED BOOKING CONSTANTS -------------

class ScheduledBookingMessage:
    CREATED = "Scheduled booking created successfully."
    PROCESSED = "Scheduled booking processed successfully."
    CANCELLED = "Scheduled booking cancelled successfully."
    NOT_FOUND = "Scheduled booking not found."
    FORBIDDEN = "You are not authorized to access this scheduled booking."
    ALREADY_HANDLED = "Scheduled booking has already been processed (status: {status})."
    CANNOT_CANCEL = "Cannot cancel a booking that has already been processed."
    PROCESSING_FAILED = "Failed to process scheduled booking: {reason}"
    INTERRUPTED = "Processing was interrupted before the booking completed."
    STUCK_NONE = "No scheduled bookings stuck in processing."
    SCHEDULED_AT_IN_PAST = "Scheduled time must be in the future."
    JOURNEY_BEFORE_SCHEDULE = "Journey date cannot be before the scheduled booking date."
    PASSENGERS_REQUIRED = "At least one passenger is required."
    TOO_MANY_PASSENGERS = "A maximum of {max_passengers} passengers is allowed per booking."
    INVALID_AGE = "Passenger age must be between 1 and 120."

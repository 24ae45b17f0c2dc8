from django.db import models
from bookingsystem.models import Booking
from utils.constants import Choices


class PaymentReminder(models.Model):
    """
    Follow-up nudge to pay for a booking.
    Only the schedule is stored here; sending is done by the reminder dispatcher.
    """

    booking = models.OneToOneField(
        Booking, on_delete=models.CASCADE, related_name="payment_reminder"
    )
    reminder_type = models.CharField(max_length=10, choices=Choices.REMINDER_TYPE_CHOICES, default="email")
    reminder_status = models.CharField(max_length=10, choices=Choices.REMINDER_STATUS_CHOICES, default="SCHEDULED")
    reminder_count = models.PositiveIntegerField(default=0)
    last_sent_at = models.DateTimeField(null=True, blank=True)
    next_reminder_at = models.DateTimeField(db_index=True)
    frequency_hours = models.PositiveIntegerField(default=24)
    max_reminders = models.PositiveIntegerField(default=3)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "payment_reminder"
        ordering = ["next_reminder_at"]

    def __str__(self):
        return f"Reminder for booking {self.booking_id} - {self.reminder_status}"

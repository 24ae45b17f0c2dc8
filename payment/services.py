import logging
from datetime import timedelta
from django.utils import timezone
from payment.models import PaymentReminder
from utils.constants import scheduler_setting

logger = logging.getLogger("payment")


def first_reminder_time(now, payment_due_date=None):
    """
    First reminder goes out a fixed lead time after booking,
    but never after the payment is due.
    """
    reminder_at = now + timedelta(hours=scheduler_setting("FIRST_REMINDER_LEAD_HOURS"))
    if payment_due_date is not None and payment_due_date < reminder_at:
        return payment_due_date
    return reminder_at


async def create_payment_reminder(booking, frequency_hours, max_reminders, now=None, reminder_type="email"):
    """Schedule the first payment reminder for a freshly created booking."""
    now = now or timezone.now()
    reminder = await PaymentReminder.objects.acreate(
        booking=booking,
        reminder_type=reminder_type,
        reminder_status="SCHEDULED",
        reminder_count=0,
        next_reminder_at=first_reminder_time(now, booking.payment_due_date),
        frequency_hours=frequency_hours,
        max_reminders=max_reminders,
    )
    logger.info(
        f"Payment reminder scheduled: booking={booking.pnr_number}, next_at={reminder.next_reminder_at.isoformat()}"
    )
    return reminder

from datetime import date, timedelta
from decimal import Decimal
from asgiref.sync import async_to_sync
from django.contrib.auth import get_user_model
from django.test import TestCase, SimpleTestCase
from django.utils import timezone
from trains.models import Train
from bookingsystem.models import Booking
from .models import PaymentReminder
from .services import first_reminder_time, create_payment_reminder

User = get_user_model()


class FirstReminderTimeTest(SimpleTestCase):
    """Test cases for the first payment reminder instant"""

    def setUp(self):
        self.now = timezone.now()

    def test_reminder_uses_lead_time(self):
        due = self.now + timedelta(hours=24)
        self.assertEqual(first_reminder_time(self.now, due), self.now + timedelta(hours=6))

    def test_reminder_clamped_to_payment_due_date(self):
        """A two hour tatkal window pulls the reminder in to the due date"""
        due = self.now + timedelta(hours=2)
        self.assertEqual(first_reminder_time(self.now, due), due)

    def test_reminder_without_due_date(self):
        self.assertEqual(first_reminder_time(self.now), self.now + timedelta(hours=6))


class CreatePaymentReminderTest(TestCase):
    """Test cases for scheduling the first reminder of a booking"""

    def setUp(self):
        self.now = timezone.now()
        user = User.objects.create_user(username="reminder_user", password="StrongPass123!")
        train = Train.objects.create(name="Godavari Express", train_type="Express")
        self.booking = Booking.objects.create(
            user=user,
            train=train,
            class_code="SL",
            journey_date=date(2026, 12, 20),
            pnr_number="5555555555",
            total_fare=Decimal("900.00"),
            payment_due_date=self.now + timedelta(hours=24),
        )

    def test_reminder_row_is_scheduled(self):
        reminder = async_to_sync(create_payment_reminder)(
            self.booking, frequency_hours=8, max_reminders=5, now=self.now
        )

        reminder = PaymentReminder.objects.get(pk=reminder.pk)
        self.assertEqual(reminder.booking, self.booking)
        self.assertEqual(reminder.reminder_type, "email")
        self.assertEqual(reminder.reminder_status, "SCHEDULED")
        self.assertEqual(reminder.reminder_count, 0)
        self.assertIsNone(reminder.last_sent_at)
        self.assertEqual(reminder.frequency_hours, 8)
        self.assertEqual(reminder.max_reminders, 5)
        self.assertEqual(reminder.next_reminder_at, self.now + timedelta(hours=6))

import asyncio
import threading
from datetime import timedelta
from decimal import Decimal
from io import StringIO
from smtplib import SMTPException
from unittest import mock
from asgiref.sync import async_to_sync
from django.contrib.auth import get_user_model
from django.core import mail
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, SimpleTestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase
from trains.models import Train, TrainClass
from bookingsystem.models import Booking, Passenger
from payment.models import PaymentReminder
from exceptions.handlers import (
    InvalidStateException, NotFoundException, ScheduledBookingFailedException)
from utils.constants import ScheduledStatus, ScheduledBookingMessage
from utils.notification_helpers import NotificationHelpers
from .models import ScheduledBooking, ScheduledPassenger
from .services import (
    process_scheduled_booking, process_due_scheduled_bookings, cancel_scheduled_booking)
from .worker import run_scheduler

User = get_user_model()


class ProcessingInterrupted(BaseException):
    """Stands in for cancellation or Ctrl-C arriving mid-workflow."""


class SchedulerFixturesMixin:
    """Shared builders for trains, classes and scheduled bookings."""

    def tearDown(self):
        NotificationHelpers.wait_for_pending(timeout=10)
        super().tearDown()

    def make_user(self, username, email=None):
        return User.objects.create_user(
            username=username, email=email or f"{username}@example.com", password="StrongPass123!"
        )

    def make_train(self, name="Chennai Express", fare="1050.00", class_code="SL", available_seats=100, **kwargs):
        train = Train.objects.create(name=name, train_type="Express", **kwargs)
        TrainClass.objects.create(
            train=train,
            class_code=class_code,
            class_name="Sleeper",
            fare=Decimal(fare),
            total_seats=100,
            available_seats=available_seats,
        )
        return train

    def make_job(self, user, train, passengers=("Asha",), scheduled_at=None, **kwargs):
        now = timezone.now()
        job = ScheduledBooking.objects.create(
            user=user,
            train=train,
            class_code=kwargs.pop("class_code", "SL"),
            journey_date=kwargs.pop("journey_date", (now + timedelta(days=10)).date()),
            scheduled_at=scheduled_at or now - timedelta(minutes=1),
            **kwargs,
        )
        for position, name in enumerate(passengers):
            ScheduledPassenger.objects.create(
                scheduled_booking=job, position=position, name=name, age=30 + position, gender="female"
            )
        return job


class ScheduledBookingQuerySetTest(SchedulerFixturesMixin, TestCase):
    """Test cases for the job store queries"""

    def setUp(self):
        self.user = self.make_user("queryset_user")
        self.train = self.make_train()
        self.now = timezone.now()

    def test_due_set_contains_only_pending_jobs_at_or_before_now(self):
        """Past and exactly-now pending jobs are due, future and terminal ones are not"""
        past = self.make_job(self.user, self.train, scheduled_at=self.now - timedelta(hours=1))
        exact = self.make_job(self.user, self.train, scheduled_at=self.now)
        self.make_job(self.user, self.train, scheduled_at=self.now + timedelta(hours=1))
        self.make_job(
            self.user, self.train, scheduled_at=self.now - timedelta(hours=2), status=ScheduledStatus.CANCELLED
        )
        self.make_job(
            self.user, self.train, scheduled_at=self.now - timedelta(hours=2), status=ScheduledStatus.COMPLETED
        )

        due = list(ScheduledBooking.objects.due(self.now))

        self.assertEqual(due, [past, exact])

    def test_future_job_becomes_due_once_its_time_passes(self):
        job = self.make_job(self.user, self.train, scheduled_at=self.now + timedelta(hours=1))

        self.assertFalse(ScheduledBooking.objects.due(self.now).exists())
        self.assertIn(job, ScheduledBooking.objects.due(self.now + timedelta(hours=1, seconds=1)))

    def test_claim_succeeds_only_once(self):
        job = self.make_job(self.user, self.train)

        self.assertTrue(async_to_sync(ScheduledBooking.objects.claim)(job.pk))
        self.assertFalse(async_to_sync(ScheduledBooking.objects.claim)(job.pk))
        job.refresh_from_db()
        self.assertEqual(job.status, ScheduledStatus.PROCESSING)

    def test_cancel_only_moves_pending_jobs(self):
        pending = self.make_job(self.user, self.train)
        completed = self.make_job(self.user, self.train, status=ScheduledStatus.COMPLETED)

        self.assertTrue(ScheduledBooking.objects.cancel(pending.pk))
        self.assertFalse(ScheduledBooking.objects.cancel(completed.pk))
        completed.refresh_from_db()
        self.assertEqual(completed.status, ScheduledStatus.COMPLETED)

    def test_stuck_lists_old_processing_jobs_only(self):
        old = self.make_job(self.user, self.train, status=ScheduledStatus.PROCESSING)
        recent = self.make_job(self.user, self.train, status=ScheduledStatus.PROCESSING)
        self.make_job(self.user, self.train, status=ScheduledStatus.PENDING)
        ScheduledBooking.objects.filter(pk=old.pk).update(updated_at=self.now - timedelta(hours=2))
        ScheduledBooking.objects.filter(pk=recent.pk).update(updated_at=self.now - timedelta(minutes=5))

        stuck = list(ScheduledBooking.objects.stuck(timedelta(minutes=30), now=self.now))

        self.assertEqual(stuck, [old])


class ProcessScheduledBookingTest(SchedulerFixturesMixin, TestCase):
    """Test cases for processing a single scheduled booking"""

    def setUp(self):
        self.user = self.make_user("process_user")
        self.train = self.make_train()
        self.now = timezone.now()

    def process(self, job):
        return async_to_sync(process_scheduled_booking)(job.pk, now=self.now)

    def test_processing_creates_booking_and_completes_job(self):
        """Test the full workflow for a due general booking"""
        job = self.make_job(self.user, self.train, passengers=("Asha", "Ravi", "Meena"))

        booking = self.process(job)

        job.refresh_from_db()
        self.assertEqual(job.status, ScheduledStatus.COMPLETED)
        self.assertEqual(job.booking_id, booking.pk)
        self.assertEqual(job.processed_at, self.now)
        self.assertEqual(booking.total_fare, Decimal("3150.00"))
        self.assertEqual(booking.booking_status, "CONFIRMED")
        self.assertEqual(booking.payment_status, "PENDING")
        self.assertEqual(booking.payment_due_date, self.now + timedelta(hours=24))
        self.assertEqual(len(booking.pnr_number), 10)
        self.assertTrue(booking.pnr_number.isdigit())

    def test_tatkal_booking_gets_short_payment_window(self):
        job = self.make_job(self.user, self.train, booking_type="tatkal")

        booking = self.process(job)

        self.assertEqual(booking.booking_type, "tatkal")
        self.assertEqual(booking.payment_due_date, self.now + timedelta(hours=2))

    def test_passengers_are_copied_in_manifest_order(self):
        """Each manifest entry becomes one waitlisted passenger with a seat label"""
        job = self.make_job(self.user, self.train, passengers=("Asha", "Ravi", "Meena", "Kiran"))

        booking = self.process(job)

        passengers = list(Passenger.objects.filter(booking=booking).order_by("position"))
        self.assertEqual([p.name for p in passengers], ["Asha", "Ravi", "Meena", "Kiran"])
        self.assertEqual([p.age for p in passengers], [30, 31, 32, 33])
        for passenger in passengers:
            self.assertEqual(passenger.booking_status, "WL")
            self.assertRegex(passenger.seat_number, r"^S\d+-\d+$")

    def test_processing_twice_creates_one_booking(self):
        """A completed job is never processed again"""
        job = self.make_job(self.user, self.train)
        self.process(job)

        with self.assertRaises(InvalidStateException):
            self.process(job)

        self.assertEqual(Booking.objects.count(), 1)

    def test_concurrent_processing_creates_one_booking(self):
        job = self.make_job(self.user, self.train)

        async def race():
            return await asyncio.gather(
                process_scheduled_booking(job.pk), process_scheduled_booking(job.pk), return_exceptions=True
            )

        outcomes = async_to_sync(race)()

        self.assertEqual(sum(isinstance(o, Booking) for o in outcomes), 1)
        self.assertEqual(sum(isinstance(o, InvalidStateException) for o in outcomes), 1)
        self.assertEqual(Booking.objects.count(), 1)

    def test_missing_job_raises_not_found(self):
        with self.assertRaises(NotFoundException):
            async_to_sync(process_scheduled_booking)(999999)

    def test_cancelled_job_is_not_processed(self):
        job = self.make_job(self.user, self.train, status=ScheduledStatus.CANCELLED)

        with self.assertRaises(InvalidStateException):
            self.process(job)
        self.assertFalse(Booking.objects.exists())

    def test_reminder_created_when_enabled(self):
        job = self.make_job(self.user, self.train, reminder_frequency=12, max_reminders=2)

        booking = self.process(job)

        reminder = PaymentReminder.objects.get(booking=booking)
        self.assertEqual(reminder.reminder_status, "SCHEDULED")
        self.assertEqual(reminder.reminder_count, 0)
        self.assertEqual(reminder.frequency_hours, 12)
        self.assertEqual(reminder.max_reminders, 2)
        self.assertEqual(reminder.next_reminder_at, self.now + timedelta(hours=6))

    def test_tatkal_reminder_never_after_payment_due(self):
        job = self.make_job(self.user, self.train, booking_type="tatkal")

        booking = self.process(job)

        reminder = PaymentReminder.objects.get(booking=booking)
        self.assertEqual(reminder.next_reminder_at, booking.payment_due_date)

    def test_no_reminder_when_disabled(self):
        job = self.make_job(self.user, self.train, payment_reminders_enabled=False)

        self.process(job)

        self.assertFalse(PaymentReminder.objects.exists())

    def test_missing_class_fails_job(self):
        """A class that disappeared after scheduling fails the job"""
        job = self.make_job(self.user, self.train, class_code="1A")

        with self.assertRaises(ScheduledBookingFailedException):
            self.process(job)

        job.refresh_from_db()
        self.assertEqual(job.status, ScheduledStatus.FAILED)
        self.assertIn("1A", job.failure_reason)
        self.assertIsNotNone(job.processed_at)
        self.assertFalse(Booking.objects.exists())

    def test_inactive_train_fails_job(self):
        job = self.make_job(self.user, self.train)
        Train.all_objects.filter(pk=self.train.pk).update(is_active=False)

        with self.assertRaises(ScheduledBookingFailedException):
            self.process(job)

        job.refresh_from_db()
        self.assertEqual(job.status, ScheduledStatus.FAILED)

    def test_sold_out_class_fails_job(self):
        train = self.make_train(name="Full Express", available_seats=0)
        job = self.make_job(self.user, train)

        with self.assertRaises(ScheduledBookingFailedException):
            self.process(job)

        job.refresh_from_db()
        self.assertEqual(job.status, ScheduledStatus.FAILED)

    def test_unexpected_error_fails_job_with_reason(self):
        job = self.make_job(self.user, self.train)

        with mock.patch(
            "scheduler.services.BookingHelpers.generate_seat_number", side_effect=RuntimeError("seat map offline")
        ):
            with self.assertRaises(ScheduledBookingFailedException):
                self.process(job)

        job.refresh_from_db()
        self.assertEqual(job.status, ScheduledStatus.FAILED)
        self.assertEqual(job.failure_reason, "seat map offline")
        self.assertIsNone(job.booking_id)

    def test_confirmation_email_is_sent(self):
        job = self.make_job(self.user, self.train, passengers=("Asha", "Ravi"))

        booking = self.process(job)

        self.assertEqual(NotificationHelpers.wait_for_pending(timeout=10), 0)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["process_user@example.com"])
        self.assertIn(booking.pnr_number, mail.outbox[0].subject)
        self.assertIn("Ravi", mail.outbox[0].body)

    def test_email_failure_does_not_fail_job(self):
        job = self.make_job(self.user, self.train)

        with mock.patch("utils.notification_helpers.send_mail", side_effect=SMTPException("relay down")):
            booking = self.process(job)
            self.assertEqual(NotificationHelpers.wait_for_pending(timeout=10), 0)

        job.refresh_from_db()
        self.assertEqual(job.status, ScheduledStatus.COMPLETED)
        self.assertEqual(job.booking_id, booking.pk)

    def test_user_without_email_gets_no_mail(self):
        user = User.objects.create_user(username="no_mail", password="StrongPass123!")
        job = self.make_job(user, self.train)

        self.process(job)

        self.assertEqual(len(mail.outbox), 0)

    def test_interrupted_processing_fails_job(self):
        """A job interrupted after the claim is not left in processing"""
        job = self.make_job(self.user, self.train)

        with mock.patch(
            "scheduler.services.BookingHelpers.generate_seat_number", side_effect=ProcessingInterrupted()
        ):
            with self.assertRaises(ProcessingInterrupted):
                self.process(job)

        job.refresh_from_db()
        self.assertEqual(job.status, ScheduledStatus.FAILED)
        self.assertEqual(job.failure_reason, ScheduledBookingMessage.INTERRUPTED)
        self.assertFalse(ScheduledBooking.objects.stuck(timedelta(0), now=timezone.now() + timedelta(minutes=1)).exists())


class ProcessDueScheduledBookingsTest(SchedulerFixturesMixin, TestCase):
    """Test cases for a sweep over due jobs"""

    def setUp(self):
        self.user = self.make_user("sweep_user")
        self.train = self.make_train()

    def test_sweep_processes_only_due_jobs(self):
        now = timezone.now()
        due = self.make_job(self.user, self.train, scheduled_at=now - timedelta(minutes=5))
        future = self.make_job(self.user, self.train, scheduled_at=now + timedelta(hours=1))

        result = async_to_sync(process_due_scheduled_bookings)(now)

        self.assertEqual(result["due"], 1)
        self.assertEqual(result["success_count"], 1)
        due.refresh_from_db()
        future.refresh_from_db()
        self.assertEqual(due.status, ScheduledStatus.COMPLETED)
        self.assertEqual(future.status, ScheduledStatus.PENDING)

    def test_one_failure_does_not_stop_the_sweep(self):
        """Two good jobs and one with a missing class: 2 succeed, 1 fails"""
        first = self.make_job(self.user, self.train)
        broken = self.make_job(self.user, self.train, class_code="2A")
        last = self.make_job(self.user, self.train)

        result = async_to_sync(process_due_scheduled_bookings)(max_concurrency=2)

        self.assertEqual(result["due"], 3)
        self.assertEqual(result["success_count"], 2)
        self.assertEqual(result["error_count"], 1)
        self.assertEqual(result["skipped_count"], 0)
        for job, expected in ((first, ScheduledStatus.COMPLETED), (broken, ScheduledStatus.FAILED),
                              (last, ScheduledStatus.COMPLETED)):
            job.refresh_from_db()
            self.assertEqual(job.status, expected)
        self.assertEqual(Booking.objects.count(), 2)

    def test_empty_sweep(self):
        result = async_to_sync(process_due_scheduled_bookings)()

        self.assertEqual(result, {"due": 0, "success_count": 0, "error_count": 0, "skipped_count": 0})


class CancelScheduledBookingTest(SchedulerFixturesMixin, TestCase):
    """Test cases for cancelling a scheduled booking"""

    def setUp(self):
        self.user = self.make_user("cancel_user")
        self.train = self.make_train()

    def test_cancel_pending_job_keeps_record(self):
        job = self.make_job(self.user, self.train, scheduled_at=timezone.now() + timedelta(hours=1))

        cancelled = cancel_scheduled_booking(job, self.user)

        self.assertEqual(cancelled.status, ScheduledStatus.CANCELLED)
        self.assertTrue(ScheduledBooking.objects.filter(pk=job.pk).exists())
        self.assertFalse(ScheduledBooking.objects.due(timezone.now() + timedelta(hours=2)).exists())

    def test_cancel_completed_job_is_rejected(self):
        job = self.make_job(self.user, self.train)
        async_to_sync(process_scheduled_booking)(job.pk)
        job.refresh_from_db()

        with self.assertRaises(InvalidStateException):
            cancel_scheduled_booking(job, self.user)

        job.refresh_from_db()
        self.assertEqual(job.status, ScheduledStatus.COMPLETED)
        self.assertIsNotNone(job.booking_id)


class ScheduledBookingAPITest(SchedulerFixturesMixin, APITestCase):
    """Test cases for the scheduled booking API"""

    def setUp(self):
        self.user = self.make_user("api_user")
        self.other_user = self.make_user("other_user")
        self.train = self.make_train()
        self.client.force_authenticate(user=self.user)
        self.list_url = reverse("scheduled-booking-list")
        scheduled_at = timezone.now() + timedelta(hours=1)
        self.payload = {
            "train": self.train.pk,
            "class_code": "SL",
            "journey_date": str((timezone.localtime(scheduled_at) + timedelta(days=10)).date()),
            "scheduled_at": scheduled_at.isoformat(),
            "booking_type": "general",
            "passengers": [
                {"name": "Asha", "age": 34, "gender": "female", "berth_preference": "lower"},
                {"name": "Ravi", "age": 36, "gender": "male"},
            ],
        }

    def detail_url(self, job):
        return reverse("scheduled-booking-detail", kwargs={"pk": job.pk})

    def process_url(self, job):
        return reverse("scheduled-booking-process", kwargs={"pk": job.pk})

    def test_create_scheduled_booking(self):
        """Test creating a scheduled booking with a valid payload"""
        response = self.client.post(self.list_url, self.payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["status"], ScheduledStatus.PENDING)
        job = ScheduledBooking.objects.get(pk=response.data["id"])
        self.assertEqual(job.user, self.user)
        self.assertEqual(job.reminder_frequency, 24)
        self.assertEqual(job.max_reminders, 3)
        self.assertEqual(
            list(job.passengers.order_by("position").values_list("name", flat=True)), ["Asha", "Ravi"]
        )

    def test_create_normalizes_class_code(self):
        self.payload["class_code"] = "sl"

        response = self.client.post(self.list_url, self.payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(ScheduledBooking.objects.get(pk=response.data["id"]).class_code, "SL")

    def test_create_requires_authentication(self):
        self.client.force_authenticate(user=None)

        response = self.client.post(self.list_url, self.payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_rejects_past_scheduled_at(self):
        self.payload["scheduled_at"] = (timezone.now() - timedelta(minutes=5)).isoformat()

        response = self.client.post(self.list_url, self.payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(ScheduledBooking.objects.exists())

    def test_create_rejects_empty_passenger_list(self):
        self.payload["passengers"] = []

        response = self.client.post(self.list_url, self.payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_rejects_too_many_passengers(self):
        self.payload["passengers"] = [
            {"name": f"Passenger {i}", "age": 20 + i, "gender": "other"} for i in range(7)
        ]

        response = self.client.post(self.list_url, self.payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_rejects_out_of_range_age(self):
        for age in (0, 121):
            with self.subTest(age=age):
                self.payload["passengers"] = [{"name": "Asha", "age": age, "gender": "female"}]
                response = self.client.post(self.list_url, self.payload, format="json")
                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(ScheduledBooking.objects.exists())

    def test_create_rejects_unknown_class(self):
        self.payload["class_code"] = "1A"

        response = self.client.post(self.list_url, self.payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_create_rejects_tatkal_on_train_without_tatkal(self):
        train = self.make_train(name="Local Passenger", tatkal_available=False)
        self.payload.update({"train": train.pk, "booking_type": "tatkal"})

        response = self.client.post(self.list_url, self.payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_rejects_journey_before_schedule(self):
        self.payload["journey_date"] = str((timezone.localtime() - timedelta(days=1)).date())

        response = self.client.post(self.list_url, self.payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_returns_only_own_jobs_with_booking_details(self):
        completed = self.make_job(self.user, self.train, passengers=("Asha", "Ravi"))
        booking = async_to_sync(process_scheduled_booking)(completed.pk)
        pending = self.make_job(self.user, self.train, scheduled_at=timezone.now() + timedelta(hours=3))
        self.make_job(self.other_user, self.train)

        response = self.client.get(self.list_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        by_id = {item["id"]: item for item in response.data}
        self.assertEqual(set(by_id), {completed.pk, pending.pk})
        self.assertEqual(by_id[completed.pk]["booking"]["pnr_number"], booking.pnr_number)
        self.assertEqual(
            [p["name"] for p in by_id[completed.pk]["booking"]["passengers"]], ["Asha", "Ravi"]
        )
        self.assertEqual(by_id[completed.pk]["train"]["train_number"], self.train.train_number)
        self.assertIsNone(by_id[pending.pk]["booking"])

    def test_list_filters_by_status(self):
        self.make_job(self.user, self.train, status=ScheduledStatus.CANCELLED)
        pending = self.make_job(self.user, self.train)

        response = self.client.get(self.list_url, {"status": "pending"})

        self.assertEqual([item["id"] for item in response.data], [pending.pk])

    def test_retrieve_foreign_job_is_forbidden(self):
        job = self.make_job(self.other_user, self.train)

        response = self.client.get(self.detail_url(job))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_process_now(self):
        """Test processing a scheduled booking on demand before its time"""
        job = self.make_job(self.user, self.train, scheduled_at=timezone.now() + timedelta(days=1))

        response = self.client.post(self.process_url(job))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        job.refresh_from_db()
        self.assertEqual(job.status, ScheduledStatus.COMPLETED)
        self.assertEqual(response.data["booking"]["pnr_number"], job.booking.pnr_number)
        self.assertEqual(len(response.data["booking"]["passengers"]), 1)

    def test_process_foreign_job_is_forbidden(self):
        job = self.make_job(self.other_user, self.train)

        response = self.client.post(self.process_url(job))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        job.refresh_from_db()
        self.assertEqual(job.status, ScheduledStatus.PENDING)
        self.assertFalse(Booking.objects.exists())

    def test_process_completed_job_is_rejected(self):
        job = self.make_job(self.user, self.train)
        self.client.post(self.process_url(job))

        response = self.client.post(self.process_url(job))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Booking.objects.count(), 1)

    def test_process_failure_marks_job_failed(self):
        job = self.make_job(self.user, self.train, class_code="3A")

        response = self.client.post(self.process_url(job))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        job.refresh_from_db()
        self.assertEqual(job.status, ScheduledStatus.FAILED)
        self.assertTrue(job.failure_reason)

    def test_process_missing_job(self):
        response = self.client.post(reverse("scheduled-booking-process", kwargs={"pk": 424242}))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_cancel_pending_job(self):
        job = self.make_job(self.user, self.train, scheduled_at=timezone.now() + timedelta(hours=1))

        response = self.client.delete(self.detail_url(job))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], ScheduledStatus.CANCELLED)
        job.refresh_from_db()
        self.assertEqual(job.status, ScheduledStatus.CANCELLED)

    def test_cancel_completed_job_is_rejected(self):
        job = self.make_job(self.user, self.train)
        async_to_sync(process_scheduled_booking)(job.pk)

        response = self.client.delete(self.detail_url(job))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        job.refresh_from_db()
        self.assertEqual(job.status, ScheduledStatus.COMPLETED)

    def test_cancel_foreign_job_is_forbidden(self):
        job = self.make_job(self.other_user, self.train)

        response = self.client.delete(self.detail_url(job))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        job.refresh_from_db()
        self.assertEqual(job.status, ScheduledStatus.PENDING)

    def test_update_is_not_allowed(self):
        job = self.make_job(self.user, self.train)

        response = self.client.put(self.detail_url(job), self.payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)

        response = self.client.patch(self.detail_url(job), {"status": "completed"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)
        job.refresh_from_db()
        self.assertEqual(job.status, ScheduledStatus.PENDING)


class RunSchedulerTest(SimpleTestCase):
    """Test cases for the periodic worker loop"""

    async def test_sweeps_immediately_and_stops_on_event(self):
        stop_event = asyncio.Event()

        def sweep():
            stop_event.set()
            return {"due": 0, "success_count": 0, "error_count": 0, "skipped_count": 0}

        with mock.patch("scheduler.worker.process_due_scheduled_bookings", side_effect=sweep) as mocked:
            sweeps = await run_scheduler(stop_event, interval_seconds=60)

        self.assertEqual(sweeps, 1)
        mocked.assert_called_once()

    async def test_sweep_error_does_not_stop_the_loop(self):
        stop_event = asyncio.Event()
        calls = []

        def sweep():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("database unavailable")
            stop_event.set()
            return {"due": 1, "success_count": 1, "error_count": 0, "skipped_count": 0}

        with mock.patch("scheduler.worker.process_due_scheduled_bookings", side_effect=sweep):
            sweeps = await run_scheduler(stop_event, interval_seconds=0.01)

        self.assertEqual(sweeps, 2)
        self.assertEqual(len(calls), 2)

    async def test_no_sweep_when_already_stopped(self):
        stop_event = asyncio.Event()
        stop_event.set()

        with mock.patch("scheduler.worker.process_due_scheduled_bookings") as mocked:
            sweeps = await run_scheduler(stop_event, interval_seconds=60)

        self.assertEqual(sweeps, 0)
        mocked.assert_not_called()


class RunBookingSchedulerCommandTest(SchedulerFixturesMixin, TestCase):
    """Test cases for the run_booking_scheduler management command"""

    def setUp(self):
        self.user = self.make_user("command_user")
        self.train = self.make_train()

    def test_once_runs_a_single_sweep(self):
        job = self.make_job(self.user, self.train)
        out = StringIO()

        call_command("run_booking_scheduler", "--once", stdout=out)

        self.assertIn("due=1 success=1", out.getvalue())
        job.refresh_from_db()
        self.assertEqual(job.status, ScheduledStatus.COMPLETED)

    def test_job_option_processes_one_job(self):
        job = self.make_job(self.user, self.train, scheduled_at=timezone.now() + timedelta(days=2))
        out = StringIO()

        call_command("run_booking_scheduler", "--job", str(job.pk), stdout=out)

        job.refresh_from_db()
        self.assertEqual(job.status, ScheduledStatus.COMPLETED)
        self.assertIn(job.booking.pnr_number, out.getvalue())

    def test_job_option_with_unknown_id(self):
        with self.assertRaises(CommandError):
            call_command("run_booking_scheduler", "--job", "99999", stdout=StringIO())

    def test_interval_must_be_positive(self):
        with self.assertRaises(CommandError):
            call_command("run_booking_scheduler", "--interval", "0", stdout=StringIO())

    def test_once_sends_confirmation_before_exit(self):
        self.make_job(self.user, self.train)

        call_command("run_booking_scheduler", "--once", stdout=StringIO())

        self.assertEqual(len(mail.outbox), 1)

    def test_stuck_option_lists_jobs_left_in_processing(self):
        stuck = self.make_job(self.user, self.train, status=ScheduledStatus.PROCESSING)
        ScheduledBooking.objects.filter(pk=stuck.pk).update(updated_at=timezone.now() - timedelta(hours=1))
        out = StringIO()

        call_command("run_booking_scheduler", "--stuck", "30", stdout=out)

        self.assertIn(f"#{stuck.pk} ", out.getvalue())

    def test_stuck_option_with_nothing_stuck(self):
        self.make_job(self.user, self.train)
        out = StringIO()

        call_command("run_booking_scheduler", "--stuck", "30", stdout=out)

        self.assertIn(ScheduledBookingMessage.STUCK_NONE, out.getvalue())


class NonBlockingConfirmationTest(SchedulerFixturesMixin, APITestCase):
    """Test cases showing a slow mail server never holds up processing"""

    def setUp(self):
        self.user = self.make_user("slow_mail_user")
        self.train = self.make_train()
        self.client.force_authenticate(user=self.user)
        self.release = threading.Event()
        self.sent = []

    def tearDown(self):
        self.release.set()
        super().tearDown()

    def held_send_mail(self, subject, body, from_email, recipient_list, **kwargs):
        # Blocks like an unresponsive SMTP server until the test releases it
        self.release.wait(timeout=10)
        self.sent.append(subject)
        return 1

    def test_sweep_finishes_while_mail_is_held(self):
        jobs = [self.make_job(self.user, self.train) for _ in range(3)]

        with mock.patch("utils.notification_helpers.send_mail", side_effect=self.held_send_mail):
            result = async_to_sync(process_due_scheduled_bookings)(max_concurrency=5)

            self.assertEqual(result["success_count"], 3)
            self.assertEqual(self.sent, [])
            for job in jobs:
                job.refresh_from_db()
                self.assertEqual(job.status, ScheduledStatus.COMPLETED)

            self.release.set()
            self.assertEqual(NotificationHelpers.wait_for_pending(timeout=10), 0)

        self.assertEqual(len(self.sent), 3)

    def test_process_now_responds_while_mail_is_held(self):
        job = self.make_job(self.user, self.train, scheduled_at=timezone.now() + timedelta(hours=4))

        with mock.patch("utils.notification_helpers.send_mail", side_effect=self.held_send_mail):
            response = self.client.post(reverse("scheduled-booking-process", kwargs={"pk": job.pk}))

            self.assertEqual(response.status_code, status.HTTP_200_OK)
            self.assertEqual(self.sent, [])

            self.release.set()
            self.assertEqual(NotificationHelpers.wait_for_pending(timeout=10), 0)

        self.assertEqual(len(self.sent), 1)
        self.assertIn(response.data["booking"]["pnr_number"], self.sent[0])

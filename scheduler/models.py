from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils import timezone
from utils.constants import Choices, ScheduledStatus, SchedulerDefaults


class ScheduledBookingQuerySet(models.QuerySet):
    """
    Job store queries. Status transitions are conditional updates so that
    only the caller whose precondition still holds gets to act.
    """

    def due(self, now=None):
        """Pending jobs whose execution instant has passed."""
        now = now or timezone.now()
        return self.filter(
            status=ScheduledStatus.PENDING, scheduled_at__lte=now
        ).order_by("scheduled_at", "id")

    def stuck(self, older_than, now=None):
        """Jobs left in processing with no status change for longer than older_than."""
        now = now or timezone.now()
        return self.filter(
            status=ScheduledStatus.PROCESSING, updated_at__lt=now - older_than
        ).order_by("updated_at", "id")

    async def claim(self, pk):
        """
        Atomically move a job from pending to processing.
        Returns True only for the caller that won the claim.
        """
        updated = await self.filter(pk=pk, status=ScheduledStatus.PENDING).aupdate(
            status=ScheduledStatus.PROCESSING, updated_at=timezone.now()
        )
        return updated == 1

    async def transition(self, pk, from_status, to_status, **fields):
        updated = await self.filter(pk=pk, status=from_status).aupdate(
            status=to_status, updated_at=timezone.now(), **fields
        )
        return updated == 1

    def cancel(self, pk):
        updated = self.filter(pk=pk, status=ScheduledStatus.PENDING).update(
            status=ScheduledStatus.CANCELLED, updated_at=timezone.now()
        )
        return updated == 1


class ScheduledBooking(models.Model):
    """
    A user's request to book tickets automatically at scheduled_at.
    Rows are never deleted; cancelled and failed jobs remain as an audit trail.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="scheduled_bookings"
    )
    train = models.ForeignKey(
        "trains.Train", on_delete=models.PROTECT, related_name="scheduled_bookings"
    )
    class_code = models.CharField(max_length=5, choices=Choices.CLASS_CODE_CHOICES)
    journey_date = models.DateField()
    scheduled_at = models.DateTimeField(db_index=True)
    booking_type = models.CharField(
        max_length=10, choices=Choices.BOOKING_TYPE_CHOICES, default="general"
    )
    payment_reminders_enabled = models.BooleanField(default=True)
    reminder_frequency = models.PositiveIntegerField(
        default=SchedulerDefaults.REMINDER_FREQUENCY_HOURS, validators=[MinValueValidator(1)]
    )
    max_reminders = models.PositiveIntegerField(
        default=SchedulerDefaults.MAX_REMINDERS, validators=[MinValueValidator(1)]
    )
    status = models.CharField(
        max_length=20,
        choices=Choices.SCHEDULED_STATUS_CHOICES,
        default=ScheduledStatus.PENDING,
        db_index=True,
    )
    booking = models.OneToOneField(
        "bookingsystem.Booking",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="scheduled_booking",
    )
    failure_reason = models.CharField(max_length=255, blank=True, default="")
    processed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ScheduledBookingQuerySet.as_manager()

    @property
    def is_pending(self):
        return self.status == ScheduledStatus.PENDING

    def __str__(self):
        return f"Scheduled booking #{self.pk} - train {self.train_id} {self.class_code} at {self.scheduled_at} ({self.status})"

    class Meta:
        db_table = "scheduled_booking"
        ordering = ["-created_at"]
        verbose_name = "Scheduled Booking"
        verbose_name_plural = "Scheduled Bookings"
        indexes = [
            models.Index(fields=["status", "scheduled_at"], name="sched_status_at_idx"),
        ]


class ScheduledPassenger(models.Model):
    """One entry of a scheduled booking's passenger manifest."""

    scheduled_booking = models.ForeignKey(
        ScheduledBooking, on_delete=models.CASCADE, related_name="passengers"
    )
    position = models.PositiveSmallIntegerField(default=0)
    name = models.CharField(max_length=100)
    age = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(120)]
    )
    gender = models.CharField(max_length=10, choices=Choices.GENDER_CHOICES)
    berth_preference = models.CharField(
        max_length=20, choices=Choices.BERTH_PREFERENCE_CHOICES, blank=True, default=""
    )

    class Meta:
        db_table = "scheduled_passenger"
        ordering = ["scheduled_booking", "position"]

    def __str__(self):
        return f"{self.name} ({self.age})"

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("trains", "0001_initial"),
        ("bookingsystem", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="ScheduledBooking",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("class_code", models.CharField(
                    choices=[("SL", "Sleeper"), ("3A", "AC 3 Tier"), ("2A", "AC 2 Tier"), ("1A", "AC First Class"),
                             ("CC", "Chair Car"), ("EC", "Executive Chair Car")],
                    max_length=5)),
                ("journey_date", models.DateField()),
                ("scheduled_at", models.DateTimeField(db_index=True)),
                ("booking_type", models.CharField(
                    choices=[("general", "General"), ("tatkal", "Tatkal")], default="general", max_length=10)),
                ("payment_reminders_enabled", models.BooleanField(default=True)),
                ("reminder_frequency", models.PositiveIntegerField(
                    default=24, validators=[django.core.validators.MinValueValidator(1)])),
                ("max_reminders", models.PositiveIntegerField(
                    default=3, validators=[django.core.validators.MinValueValidator(1)])),
                ("status", models.CharField(
                    choices=[("pending", "Pending"), ("processing", "Processing"), ("completed", "Completed"),
                             ("failed", "Failed"), ("cancelled", "Cancelled")],
                    db_index=True, default="pending", max_length=20)),
                ("failure_reason", models.CharField(blank=True, default="", max_length=255)),
                ("processed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("booking", models.OneToOneField(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="scheduled_booking", to="bookingsystem.booking")),
                ("train", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT, related_name="scheduled_bookings",
                    to="trains.train")),
                ("user", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name="scheduled_bookings",
                    to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name": "Scheduled Booking",
                "verbose_name_plural": "Scheduled Bookings",
                "db_table": "scheduled_booking",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "scheduled_at"], name="sched_status_at_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ScheduledPassenger",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("position", models.PositiveSmallIntegerField(default=0)),
                ("name", models.CharField(max_length=100)),
                ("age", models.PositiveSmallIntegerField(
                    validators=[django.core.validators.MinValueValidator(1),
                                django.core.validators.MaxValueValidator(120)])),
                ("gender", models.CharField(
                    choices=[("male", "Male"), ("female", "Female"), ("other", "Other")], max_length=10)),
                ("berth_preference", models.CharField(
                    blank=True, default="",
                    choices=[("lower", "Lower"), ("middle", "Middle"), ("upper", "Upper"),
                             ("side_lower", "Side Lower"), ("side_upper", "Side Upper")],
                    max_length=20)),
                ("scheduled_booking", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name="passengers",
                    to="scheduler.scheduledbooking")),
            ],
            options={
                "db_table": "scheduled_passenger",
                "ordering": ["scheduled_booking", "position"],
            },
        ),
    ]

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("trains", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("class_code", models.CharField(
                    choices=[("SL", "Sleeper"), ("3A", "AC 3 Tier"), ("2A", "AC 2 Tier"), ("1A", "AC First Class"),
                             ("CC", "Chair Car"), ("EC", "Executive Chair Car")],
                    max_length=5)),
                ("journey_date", models.DateField()),
                ("pnr_number", models.CharField(max_length=10, unique=True)),
                ("booking_status", models.CharField(
                    choices=[("CONFIRMED", "Confirmed"), ("CANCELLED", "Cancelled")],
                    default="CONFIRMED", max_length=20)),
                ("total_fare", models.DecimalField(decimal_places=2, max_digits=10)),
                ("booking_type", models.CharField(
                    choices=[("general", "General"), ("tatkal", "Tatkal")], default="general", max_length=10)),
                ("payment_status", models.CharField(
                    choices=[("PENDING", "Pending"), ("PAID", "Paid"), ("FAILED", "Failed")],
                    default="PENDING", max_length=10)),
                ("payment_due_date", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("train", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT, related_name="bookings", to="trains.train")),
                ("user", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name="bookings",
                    to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name": "Booking",
                "verbose_name_plural": "Bookings",
                "db_table": "booking",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Passenger",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("position", models.PositiveSmallIntegerField(default=0)),
                ("name", models.CharField(max_length=100)),
                ("age", models.PositiveSmallIntegerField()),
                ("gender", models.CharField(
                    choices=[("male", "Male"), ("female", "Female"), ("other", "Other")], max_length=10)),
                ("berth_preference", models.CharField(
                    blank=True, default="",
                    choices=[("lower", "Lower"), ("middle", "Middle"), ("upper", "Upper"),
                             ("side_lower", "Side Lower"), ("side_upper", "Side Upper")],
                    max_length=20)),
                ("seat_number", models.CharField(blank=True, default="", max_length=10)),
                ("booking_status", models.CharField(
                    choices=[("CONFIRMED", "Confirmed"), ("RAC", "RAC"), ("WL", "Waiting List")],
                    default="WL", max_length=10)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("booking", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name="passengers",
                    to="bookingsystem.booking")),
            ],
            options={
                "db_table": "passenger",
                "ordering": ["booking", "position"],
            },
        ),
    ]

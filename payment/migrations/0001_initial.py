import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("bookingsystem", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="PaymentReminder",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("reminder_type", models.CharField(
                    choices=[("email", "Email"), ("sms", "SMS")], default="email", max_length=10)),
                ("reminder_status", models.CharField(
                    choices=[("SCHEDULED", "Scheduled"), ("SENT", "Sent"), ("FAILED", "Failed")],
                    default="SCHEDULED", max_length=10)),
                ("reminder_count", models.PositiveIntegerField(default=0)),
                ("last_sent_at", models.DateTimeField(blank=True, null=True)),
                ("next_reminder_at", models.DateTimeField(db_index=True)),
                ("frequency_hours", models.PositiveIntegerField(default=24)),
                ("max_reminders", models.PositiveIntegerField(default=3)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("booking", models.OneToOneField(
                    on_delete=django.db.models.deletion.CASCADE, related_name="payment_reminder",
                    to="bookingsystem.booking")),
            ],
            options={
                "db_table": "payment_reminder",
                "ordering": ["next_reminder_at"],
            },
        ),
    ]

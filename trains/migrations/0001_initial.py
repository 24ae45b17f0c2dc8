import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Train",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("train_number", models.CharField(blank=True, db_index=True, max_length=10, unique=True)),
                ("name", models.CharField(max_length=200)),
                ("train_type", models.CharField(
                    choices=[("Express", "express"), ("Superfast", "superfast"), ("Rajdhani", "rajdhani"),
                             ("Shatabdi", "shatabdi"), ("Local", "local")],
                    db_index=True, max_length=20)),
                ("distance_km", models.PositiveIntegerField(default=0)),
                ("tatkal_available", models.BooleanField(default=True)),
                ("is_active", models.BooleanField(
                    db_index=True, default=True, help_text="Indicates if the train is active or soft deleted")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Train",
                "verbose_name_plural": "Trains",
                "db_table": "trains",
                "ordering": ["train_number"],
                "indexes": [
                    models.Index(fields=["train_number", "is_active"], name="trains_number_active_idx"),
                    models.Index(fields=["train_type", "is_active"], name="trains_type_active_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="TrainClass",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("class_code", models.CharField(
                    choices=[("SL", "Sleeper"), ("3A", "AC 3 Tier"), ("2A", "AC 2 Tier"), ("1A", "AC First Class"),
                             ("CC", "Chair Car"), ("EC", "Executive Chair Car")],
                    max_length=5)),
                ("class_name", models.CharField(max_length=50)),
                ("fare", models.DecimalField(
                    decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(1)])),
                ("total_seats", models.PositiveIntegerField(default=0)),
                ("available_seats", models.PositiveIntegerField(default=0)),
                ("train", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name="classes", to="trains.train")),
            ],
            options={
                "verbose_name": "Train Class",
                "verbose_name_plural": "Train Classes",
                "db_table": "train_classes",
                "ordering": ["train", "class_code"],
                "constraints": [
                    models.UniqueConstraint(fields=("train", "class_code"), name="unique_class_per_train"),
                ],
            },
        ),
    ]

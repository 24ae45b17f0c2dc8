from django.core.validators import MinValueValidator
from django.db import models
import random
from utils.constants import Choices


class ActiveManager(models.Manager):
    """Manager that returns only active records"""

    def get_queryset(self):
        return super().get_queryset().filter(is_active=True)


class Train(models.Model):
    """
    Represents a train with its number, name, type, distance and status.
    Supports soft delete via is_active; an inactive train is treated as
    no longer bookable.
    """

    train_number = models.CharField(max_length=10, unique=True, blank=True, db_index=True)
    name = models.CharField(max_length=200)
    train_type = models.CharField(
        max_length=20,
        choices=Choices.TRAIN_TYPE_CHOICES,
        db_index=True
        )
    distance_km = models.PositiveIntegerField(default=0)
    tatkal_available = models.BooleanField(default=True)
    is_active = models.BooleanField(
        default=True, help_text="Indicates if the train is active or soft deleted", db_index=True
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Managers
    objects = ActiveManager()  # Returns only active records
    all_objects = models.Manager()  # Returns all records including inactive

    def generate_train_number(self):
        """
        Generates a unique 5-digit train number for new trains.
        """
        while True:
            train_number = str(random.randint(10000, 99999))
            if not Train.all_objects.filter(train_number=train_number).exists():
                return train_number

    def save(self, *args, **kwargs):
        """
        Saves the train, auto-generating a train number if needed.
        """
        if not self.train_number:
            self.train_number = self.generate_train_number()

        super().save(*args, **kwargs)

    def __str__(self):
        status = " (Inactive)" if not self.is_active else ""
        return f"{self.name} ({self.train_number}){status}"

    class Meta:
        db_table = "trains"
        verbose_name = "Train"
        verbose_name_plural = "Trains"
        ordering = ["train_number"]
        indexes = [
            models.Index(fields=['train_number', 'is_active'], name='trains_number_active_idx'),
            models.Index(fields=['train_type', 'is_active'], name='trains_type_active_idx'),
        ]


class TrainClass(models.Model):
    """
    A travel class offered on a train with its per-passenger base fare
    and seat counts.
    """

    train = models.ForeignKey(Train, on_delete=models.CASCADE, related_name="classes")
    class_code = models.CharField(max_length=5, choices=Choices.CLASS_CODE_CHOICES)
    class_name = models.CharField(max_length=50)
    fare = models.DecimalField(
        max_digits=10, decimal_places=2, validators=[MinValueValidator(1)]
    )
    total_seats = models.PositiveIntegerField(default=0)
    available_seats = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "train_classes"
        verbose_name = "Train Class"
        verbose_name_plural = "Train Classes"
        ordering = ["train", "class_code"]
        constraints = [
            models.UniqueConstraint(
                fields=["train", "class_code"], name="unique_class_per_train"
            )
        ]

    def __str__(self):
        return f"{self.train.train_number} - {self.class_code}"

from django.conf import settings
from django.db import models
from utils.constants import Choices


class Booking(models.Model):
    """
    Booking model for train reservations.
    Stores the train, class, fare and payment state of a confirmed ticket.
    """

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='bookings')
    train = models.ForeignKey('trains.Train', on_delete=models.PROTECT, related_name='bookings')
    class_code = models.CharField(max_length=5, choices=Choices.CLASS_CODE_CHOICES)
    journey_date = models.DateField()
    pnr_number = models.CharField(max_length=10, unique=True)
    booking_status = models.CharField(max_length=20, choices=Choices.BOOKING_STATUS_CHOICES, default='CONFIRMED')
    total_fare = models.DecimalField(max_digits=10, decimal_places=2)
    booking_type = models.CharField(max_length=10, choices=Choices.BOOKING_TYPE_CHOICES, default='general')
    payment_status = models.CharField(max_length=10, choices=Choices.PAYMENT_STATUS_CHOICES, default='PENDING')
    payment_due_date = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"PNR: {self.pnr_number} - {self.class_code} - {self.booking_status}"

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Booking'
        verbose_name_plural = 'Bookings'
        db_table = 'booking'


class Passenger(models.Model):
    """
    A traveller on a booking. The seat number is a display label,
    not an inventory allocation.
    """

    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name='passengers')
    position = models.PositiveSmallIntegerField(default=0)
    name = models.CharField(max_length=100)
    age = models.PositiveSmallIntegerField()
    gender = models.CharField(max_length=10, choices=Choices.GENDER_CHOICES)
    berth_preference = models.CharField(max_length=20, choices=Choices.BERTH_PREFERENCE_CHOICES, blank=True, default='')
    seat_number = models.CharField(max_length=10, blank=True, default='')
    booking_status = models.CharField(max_length=10, choices=Choices.PASSENGER_STATUS_CHOICES, default='WL')

    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.name} ({self.age}) - {self.seat_number or 'unallocated'}"

    class Meta:
        ordering = ['booking', 'position']
        db_table = 'passenger'

from django.contrib import admin
from .models import ScheduledBooking, ScheduledPassenger


class ScheduledPassengerInline(admin.TabularInline):
    model = ScheduledPassenger
    extra = 0


@admin.register(ScheduledBooking)
class ScheduledBookingAdmin(admin.ModelAdmin):
    list_display = ['id', 'user', 'train', 'class_code', 'journey_date', 'scheduled_at',
                    'booking_type', 'status', 'booking', 'processed_at']
    list_filter = ['status', 'booking_type', 'class_code', 'scheduled_at']
    search_fields = ['user__username', 'train__train_number', 'booking__pnr_number']
    readonly_fields = ['status', 'booking', 'failure_reason', 'processed_at', 'created_at', 'updated_at']
    inlines = [ScheduledPassengerInline]
    ordering = ['-created_at']

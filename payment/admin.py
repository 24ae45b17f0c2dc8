from django.contrib import admin
from .models import PaymentReminder


@admin.register(PaymentReminder)
class PaymentReminderAdmin(admin.ModelAdmin):
    list_display = ['booking', 'reminder_type', 'reminder_status', 'reminder_count',
                    'next_reminder_at', 'last_sent_at']
    list_filter = ['reminder_type', 'reminder_status']
    search_fields = ['booking__pnr_number']

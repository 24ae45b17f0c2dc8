from django.contrib import admin
from .models import Train, TrainClass

class TrainClassInline(admin.TabularInline):
    model = TrainClass
    extra = 1

@admin.register(Train)
class TrainAdmin(admin.ModelAdmin):
    list_display = ('train_number', 'name', 'train_type', 'distance_km', 'tatkal_available', 'is_active')
    search_fields = ('train_number', 'name')
    list_filter = ('train_type', 'tatkal_available', 'is_active')
    inlines = [TrainClassInline]
    readonly_fields = ('train_number', 'created_at', 'updated_at')

    def get_queryset(self, request):
        # Soft-deleted trains stay visible to admins
        return Train.all_objects.all()

    def get_readonly_fields(self, request, obj=None):
        if obj:  # Editing an existing object
            return self.readonly_fields
        return ('created_at', 'updated_at')

@admin.register(TrainClass)
class TrainClassAdmin(admin.ModelAdmin):
    list_display = ('train', 'class_code', 'class_name', 'fare', 'available_seats', 'total_seats')
    list_filter = ('class_code', 'train')
    search_fields = ('train__name', 'train__train_number')

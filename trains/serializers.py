from rest_framework import serializers
from .models import Train


class TrainSummarySerializer(serializers.ModelSerializer):
    """
    Compact train representation embedded in scheduled booking listings.
    """

    class Meta:
        model = Train
        fields = ["id", "train_number", "name", "train_type", "distance_km", "is_active"]
        read_only_fields = fields

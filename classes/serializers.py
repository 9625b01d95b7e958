from decimal import Decimal

from rest_framework import serializers
from .models import Class


class ClassSerializer(serializers.ModelSerializer):
    """Class as submitted by an instructor and listed to members."""

    class Meta:
        model = Class
        fields = [
            'id', 'name', 'image', 'instructor_name', 'instructor_email', 'capacity',
            'price', 'status', 'feedback', 'enrolled_count', 'created_at', 'updated_at',
        ]
        read_only_fields = [
            'id', 'instructor_name', 'instructor_email', 'status', 'feedback',
            'enrolled_count', 'created_at', 'updated_at',
        ]

    def validate_price(self, value):
        if value < Decimal('0'):
            raise serializers.ValidationError('Price cannot be negative.')
        return value

    def validate_capacity(self, value):
        if value <= 0:
            raise serializers.ValidationError('Capacity must be a positive integer.')
        return value


class ClassModerationSerializer(serializers.ModelSerializer):
    """Admin-only changes: approval status and feedback to the instructor."""

    class Meta:
        model = Class
        fields = ['id', 'name', 'status', 'feedback', 'enrolled_count']
        read_only_fields = ['id', 'name', 'enrolled_count']

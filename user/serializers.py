from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from .models import User


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)

        # Add custom claims
        token['email'] = user.email
        token['name'] = user.name
        token['role'] = user.role
        token['is_banned'] = user.is_banned

        return token

    def validate(self, attrs):
        data = super().validate(attrs)
        data['email'] = self.user.email
        data['name'] = self.user.name
        data['role'] = self.user.role
        return data


class UserSerializer(serializers.ModelSerializer):
    booked_classes = serializers.PrimaryKeyRelatedField(many=True, read_only=True)
    enrolled_classes = serializers.PrimaryKeyRelatedField(many=True, read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'email', 'name', 'photo_url', 'role', 'is_banned',
            'booked_classes', 'enrolled_classes', 'date_joined',
        ]
        read_only_fields = fields


class UserCreateSerializer(serializers.ModelSerializer):
    """First sign-in: every new account starts as a student."""
    password = serializers.CharField(write_only=True, min_length=5, required=False)

    class Meta:
        model = User
        fields = ['id', 'email', 'name', 'photo_url', 'password']
        read_only_fields = ['id']

    def create(self, validated_data):
        password = validated_data.pop('password', None)
        return User.objects.create_user(role=User.ROLE_STUDENT, password=password, **validated_data)


class UserAdminSerializer(serializers.ModelSerializer):
    """Moderation fields an admin may change."""

    class Meta:
        model = User
        fields = ['id', 'email', 'name', 'role', 'is_banned']
        read_only_fields = ['id', 'email', 'name']


class InstructorSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'email', 'name', 'photo_url']
        read_only_fields = fields

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers
from .models import Driver, Container

User = get_user_model()


class DriverSerializer(serializers.ModelSerializer):
    user_id = serializers.UUIDField(source='user.id', read_only=True)
    email = serializers.EmailField(source='user.email', read_only=True)
    first_name = serializers.CharField(source='user.first_name', read_only=True)
    last_name = serializers.CharField(source='user.last_name', read_only=True)

    class Meta:
        model = Driver
        fields = ('id', 'user_id', 'email', 'first_name', 'last_name', 'phone', 'gender',
                  'country', 'is_verified', 'created_at', 'updated_at')
        read_only_fields = fields


class DriverCreateSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, validators=[validate_password])
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')
    gender = serializers.ChoiceField(choices=Driver.Gender.choices, required=False, allow_blank=True, default='')
    country = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    is_verified = serializers.BooleanField(required=False, default=False)

    def validate_email(self, value):
        email = value.lower().strip()
        if User.objects.filter(email=email).exists():
            raise serializers.ValidationError('Email already registered')
        return email


class DriverProfileUpdateSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=150, required=False)
    last_name = serializers.CharField(max_length=150, required=False)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    gender = serializers.ChoiceField(choices=Driver.Gender.choices, required=False, allow_blank=True)
    country = serializers.CharField(max_length=100, required=False, allow_blank=True)


class ContainerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Container
        fields = ('id', 'container_number', 'type', 'status', 'capacity', 'location',
                  'last_maintenance_date', 'next_maintenance_date', 'notes', 'created_at', 'updated_at')
        read_only_fields = ('id', 'created_at', 'updated_at')

    def validate_capacity(self, value):
        if value <= 0:
            raise serializers.ValidationError('Capacity must be positive')
        return value

    def validate(self, attrs):
        last = attrs.get('last_maintenance_date', getattr(self.instance, 'last_maintenance_date', None))
        upcoming = attrs.get('next_maintenance_date', getattr(self.instance, 'next_maintenance_date', None))
        if last and upcoming and upcoming < last:
            raise serializers.ValidationError({'next_maintenance_date': 'Must be after the last maintenance date'})
        return attrs

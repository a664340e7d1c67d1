from rest_framework import serializers
from .models import UserSettings


class NotificationPreferencesSerializer(serializers.Serializer):
    email = serializers.BooleanField(required=False)
    push = serializers.BooleanField(required=False)
    sms = serializers.BooleanField(required=False)
    shipment_updates = serializers.BooleanField(required=False)
    promotional_offers = serializers.BooleanField(required=False)
    newsletter = serializers.BooleanField(required=False)


class UserSettingsSerializer(serializers.ModelSerializer):
    notification_preferences = NotificationPreferencesSerializer(required=False)

    class Meta:
        model = UserSettings
        fields = ('id', 'user', 'notification_preferences', 'default_currency', 'language', 'theme',
                  'default_pickup_address', 'measurement_system', 'time_zone', 'created_at', 'updated_at')
        read_only_fields = ('id', 'user', 'created_at', 'updated_at')

    def validate_default_currency(self, value):
        return value.upper()

    def validate_default_pickup_address(self, value):
        user = self.context.get('settings_owner')
        if value is not None and user is not None and value.user_id != user.pk:
            raise serializers.ValidationError('Address does not belong to this user')
        return value

    def update(self, instance, validated_data):
        preferences = validated_data.pop('notification_preferences', None)
        if preferences is not None:
            instance.notification_preferences = {**(instance.notification_preferences or {}), **preferences}
        return super().update(instance, validated_data)

    def create(self, validated_data):
        preferences = validated_data.pop('notification_preferences', None)
        instance = UserSettings(**validated_data)
        if preferences is not None:
            instance.notification_preferences = {**instance.notification_preferences, **preferences}
        instance.save()
        return instance

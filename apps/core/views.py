from django.contrib.auth import get_user_model
from django.shortcuts import get_object_or_404
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from apps.utils.exceptions import NotFoundError
from apps.utils.permissions import IsAdminRole
from apps.utils.security import SecurityAuditLogger
from .models import UserSettings
from .serializers import NotificationPreferencesSerializer, UserSettingsSerializer

User = get_user_model()


class UserSettingsViewSet(viewsets.GenericViewSet):
    """The caller's own settings."""
    serializer_class = UserSettingsSerializer

    def get_object(self):
        try:
            return UserSettings.objects.get(user=self.request.user)
        except UserSettings.DoesNotExist:
            raise NotFoundError('Settings not found')

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['settings_owner'] = self.request.user
        return context

    def retrieve(self, request, *args, **kwargs):
        return Response({'success': True, 'data': self.get_serializer(self.get_object()).data})

    def upsert(self, request, *args, **kwargs):
        """Create the caller's settings, or update them if they already exist."""
        instance = UserSettings.objects.filter(user=request.user).first()
        serializer = self.get_serializer(instance, data=request.data, partial=instance is not None)
        serializer.is_valid(raise_exception=True)
        settings_obj = serializer.save(user=request.user)

        created = instance is None
        return Response({
            'success': True,
            'message': 'Settings created' if created else 'Settings updated',
            'data': self.get_serializer(settings_obj).data,
        }, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)

    @action(detail=False, methods=['patch'])
    def notifications(self, request):
        """Merge the submitted notification flags into the stored preferences."""
        settings_obj = self.get_object()
        serializer = NotificationPreferencesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        settings_obj.merge_notification_preferences(serializer.validated_data)
        return Response({
            'success': True,
            'message': 'Notification preferences updated',
            'data': self.get_serializer(settings_obj).data,
        })


class AdminUserSettingsViewSet(viewsets.GenericViewSet):
    """Admin: read or update any user's settings."""
    serializer_class = UserSettingsSerializer
    permission_classes = [IsAdminRole]
    lookup_url_kwarg = 'user_id'

    _settings_obj = None

    def get_object(self):
        """Loaded once per request; the serializer context reuses it."""
        if self._settings_obj is None:
            user_id = self.kwargs['user_id']
            try:
                self._settings_obj = UserSettings.objects.select_related('user').get(user_id=user_id)
            except UserSettings.DoesNotExist:
                get_object_or_404(User, pk=user_id)
                raise NotFoundError('Settings not found')
        return self._settings_obj

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['settings_owner'] = self.get_object().user if 'user_id' in self.kwargs else None
        return context

    def retrieve(self, request, *args, **kwargs):
        return Response({'success': True, 'data': self.get_serializer(self.get_object()).data})

    def update(self, request, *args, **kwargs):
        settings_obj = self.get_object()
        serializer = self.get_serializer(settings_obj, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        SecurityAuditLogger().log_admin_action('update_user_settings', str(request.user.id), {
            'target': str(settings_obj.user_id)
        })
        return Response({'success': True, 'message': 'Settings updated', 'data': serializer.data})

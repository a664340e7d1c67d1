from django.urls import path
from .views import AdminUserSettingsViewSet, UserSettingsViewSet

app_name = 'core'

settings_detail = UserSettingsViewSet.as_view({'get': 'retrieve', 'put': 'upsert', 'post': 'upsert'})
settings_notifications = UserSettingsViewSet.as_view({'patch': 'notifications'})
admin_settings = AdminUserSettingsViewSet.as_view({'get': 'retrieve', 'put': 'update', 'patch': 'update'})

urlpatterns = [
    path('', settings_detail, name='settings'),
    path('notifications/', settings_notifications, name='settings_notifications'),
    path('admin/<uuid:user_id>/', admin_settings, name='admin_user_settings'),
]

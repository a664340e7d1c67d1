from django.contrib import admin
from .models import UserSettings


@admin.register(UserSettings)
class UserSettingsAdmin(admin.ModelAdmin):
    list_display = ('user', 'default_currency', 'language', 'theme', 'measurement_system', 'time_zone', 'updated_at')
    list_filter = ('theme', 'measurement_system')
    search_fields = ('user__email',)
    raw_id_fields = ('user', 'default_pickup_address')

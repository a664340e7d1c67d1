from django.contrib import admin
from .models import Driver, Container


@admin.register(Driver)
class DriverAdmin(admin.ModelAdmin):
    list_display = ('user', 'phone', 'country', 'is_verified', 'created_at')
    list_filter = ('is_verified', 'gender', 'country')
    search_fields = ('user__email', 'user__first_name', 'user__last_name', 'phone')
    raw_id_fields = ('user',)


@admin.register(Container)
class ContainerAdmin(admin.ModelAdmin):
    list_display = ('container_number', 'type', 'status', 'capacity', 'next_maintenance_date')
    list_filter = ('status', 'type')
    search_fields = ('container_number', 'notes')

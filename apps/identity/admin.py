from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User, Address


class AddressInline(admin.TabularInline):
    model = Address
    extra = 0


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ('email', 'username', 'full_name', 'is_email_verified', 'is_staff', 'date_joined')
    list_filter = ('is_staff', 'is_superuser', 'is_active', 'is_email_verified')
    search_fields = ('email', 'username', 'first_name', 'last_name', 'phone')
    ordering = ('-date_joined',)
    inlines = [AddressInline]

    fieldsets = BaseUserAdmin.fieldsets + (
        ('Profile', {'fields': ('phone', 'gender', 'is_email_verified', 'email_verified_at')}),
    )
    readonly_fields = ('email_verified_at',)


@admin.register(Address)
class AddressAdmin(admin.ModelAdmin):
    list_display = ('user', 'street', 'city', 'country', 'type', 'is_verified')
    list_filter = ('type', 'is_verified', 'country')
    search_fields = ('user__email', 'street', 'city', 'zip_code')

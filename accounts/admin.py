"""Admin registrations for shared platform users."""
from django.contrib import admin

from .models import SharedUser, PlatformPrivilege


@admin.register(SharedUser)
class SharedUserAdmin(admin.ModelAdmin):
    list_display = ('phone', 'name', 'global_role', 'credits', 'is_active', 'locked_until')
    search_fields = ('phone', 'name')
    exclude = ('pin_hash',)


@admin.register(PlatformPrivilege)
class PlatformPrivilegeAdmin(admin.ModelAdmin):
    list_display = ('user', 'platform_name', 'is_active')
    list_filter = ('platform_name', 'is_active')

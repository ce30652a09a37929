from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    list_display = ('username', 'full_name', 'role', 'department', 'is_active')
    list_filter = ('role', 'department', 'is_active')
    search_fields = ('username', 'full_name', 'email')
    fieldsets = DjangoUserAdmin.fieldsets + (
        ('GFM Portal', {'fields': ('role', 'full_name', 'department', 'mobile_no')}),
    )
    add_fieldsets = DjangoUserAdmin.add_fieldsets + (
        ('GFM Portal', {'fields': ('role', 'full_name', 'department')}),
    )

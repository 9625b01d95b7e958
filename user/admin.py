from django.contrib import admin
from .models import User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('id', 'email', 'name', 'role', 'is_banned', 'date_joined')
    list_filter = ('role', 'is_banned')
    search_fields = ('email', 'name')
    filter_horizontal = ('booked_classes', 'enrolled_classes')
    exclude = ('password', 'groups', 'user_permissions')

from django.contrib import admin
from .models import Class


@admin.register(Class)
class ClassAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'instructor_email', 'price', 'status', 'enrolled_count', 'created_at')
    list_filter = ('status',)
    search_fields = ('name', 'instructor_email', 'instructor_name')
    readonly_fields = ('enrolled_count',)

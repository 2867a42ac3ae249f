from django.contrib import admin
from .models import Hotfix


@admin.register(Hotfix)
class HotfixAdmin(admin.ModelAdmin):
    list_display = ['title', 'release_id', 'created_by', 'created_at', 'updated_at']
    list_filter = ['created_at']
    search_fields = ['title', 'description']
    ordering = ['-created_at']
    readonly_fields = ['release', 'created_by', 'updated_by', 'created_at', 'updated_at']

from django.contrib import admin
from .models import Release


@admin.register(Release)
class ReleaseAdmin(admin.ModelAdmin):
    list_display = ['name', 'version', 'workspace_id', 'qa_status', 'deployed', 'deployed_at', 'created_by', 'created_at']
    list_filter = ['qa_status', 'deployed', 'created_at']
    search_fields = ['name', 'version', 'workspace_id', 'description']
    ordering = ['-created_at']
    readonly_fields = ['deployed_at', 'deployed_by', 'created_by', 'updated_by', 'created_at', 'updated_at']

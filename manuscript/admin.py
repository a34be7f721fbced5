from django.contrib import admin
from .models import Episode


@admin.register(Episode)
class EpisodeAdmin(admin.ModelAdmin):
    list_display = ['title', 'project', 'sequence_number', 'current_word_count', 'target_word_count', 'status']
    list_filter = ['status', 'project']
    readonly_fields = ['project', 'sequence_number', 'current_word_count', 'created_at', 'updated_at']
    ordering = ['project', 'sequence_number']

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

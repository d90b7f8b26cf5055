# apps/notifications/admin.py
from django.contrib import admin
from django.utils.timezone import localtime
from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('user', 'event', 'title', 'order', 'is_read', 'pushed_at', 'created_at_date')
    list_filter = ('event', 'is_read', 'created_at')
    search_fields = ('user__phone', 'title', 'message')
    list_select_related = ('user',)
    raw_id_fields = ('user', 'order')
    list_per_page = 25

    @admin.display(description="Created", ordering="created_at")
    def created_at_date(self, obj):
        return localtime(obj.created_at).strftime('%d/%m/%Y %H:%M')

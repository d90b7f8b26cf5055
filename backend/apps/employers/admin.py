from django.contrib import admin
from django.utils.html import format_html
from import_export import resources, fields
from import_export.widgets import ForeignKeyWidget
from import_export.admin import ImportExportModelAdmin
from django.contrib.auth import get_user_model

from .models import EmployerProfile
from .services import EmployerService

User = get_user_model()


class EmployerProfileResource(resources.ModelResource):
    user = fields.Field(
        column_name='phone',
        attribute='user',
        widget=ForeignKeyWidget(User, 'phone')
    )

    class Meta:
        model = EmployerProfile
        fields = ('id', 'user', 'status', 'vehicle_type', 'is_online', 'is_available', 'created_at')


@admin.register(EmployerProfile)
class EmployerProfileAdmin(ImportExportModelAdmin):
    resource_class = EmployerProfileResource
    list_display = ('user', 'status_badge', 'vehicle_type', 'is_online', 'is_available', 'created_at')
    list_filter = ('status', 'is_online', 'is_available', 'vehicle_type')
    search_fields = ('user__phone', 'user__first_name', 'user__last_name')
    list_select_related = ('user',)
    raw_id_fields = ('user',)
    readonly_fields = ('is_available',)
    actions = ['approve', 'suspend']

    @admin.display(description="Status")
    def status_badge(self, obj):
        colors = {
            'pending': '#ffc107',
            'approved': '#17a2b8',
            'active': '#28a745',
            'rejected': '#dc3545',
            'suspended': '#6c757d',
        }
        return format_html(
            '<span style="background-color: {}; color: white; padding: 2px 6px; border-radius: 3px;">{}</span>',
            colors.get(obj.status, '#6c757d'),
            obj.get_status_display()
        )

    @admin.action(description='Approve selected employers')
    def approve(self, request, queryset):
        for profile in queryset:
            EmployerService.update_status(profile, EmployerProfile.STATUS_APPROVED, actor=request.user)
        self.message_user(request, f"{queryset.count()} employers approved.")

    @admin.action(description='Suspend selected employers')
    def suspend(self, request, queryset):
        for profile in queryset:
            EmployerService.update_status(profile, EmployerProfile.STATUS_SUSPENDED, actor=request.user)
        self.message_user(request, f"{queryset.count()} employers suspended.")

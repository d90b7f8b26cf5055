from django import forms
from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from django.utils.html import format_html
from django.utils.timezone import localtime
from import_export import resources, fields, widgets
from import_export.admin import ImportExportModelAdmin, ImportExportMixin
from .models import User, UserRole, ROLE_ADMIN, ROLE_EMPLOYER


class CustomUserCreationForm(forms.ModelForm):
    class Meta:
        model = User
        fields = ('phone', 'first_name', 'last_name', 'email')

    def save(self, commit=True):
        user = super().save(commit=False)
        user.set_unusable_password()
        if commit:
            user.save()
        return user


class UserRoleInline(admin.TabularInline):
    model = UserRole
    extra = 1
    fields = ('role',)


class UserResource(resources.ModelResource):
    class Meta:
        model = User
        import_id_fields = ('phone',)
        fields = ('id', 'phone', 'first_name', 'last_name', 'email', 'is_active', 'is_staff', 'created_at')


class UserRoleResource(resources.ModelResource):
    user = fields.Field(
        column_name='user',
        attribute='user',
        widget=widgets.ForeignKeyWidget(User, 'phone')
    )

    class Meta:
        model = UserRole
        fields = ('id', 'user', 'role')


@admin.register(User)
class CustomUserAdmin(ImportExportMixin, UserAdmin):
    resource_class = UserResource
    add_form = CustomUserCreationForm

    list_display = ('phone', 'full_name_display', 'user_roles_display', 'is_active', 'created_at_date')
    list_filter = ('is_active', 'is_staff', 'roles__role', 'created_at')
    search_fields = ('phone', 'email', 'first_name', 'last_name')
    ordering = ('-created_at',)
    list_per_page = 25
    inlines = [UserRoleInline]

    fieldsets = (
        ('Authentication Info', {'fields': ('phone',)}),
        ('Personal Info', {'fields': ('first_name', 'last_name', 'email')}),
        ('Permissions', {'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions')}),
        ('Important Dates', {'fields': ('last_login', 'created_at'), 'classes': ('collapse',)}),
    )
    add_fieldsets = (
        ('Authentication Info', {'classes': ('wide',), 'fields': ('phone',)}),
        ('Personal Info', {'classes': ('wide',), 'fields': ('first_name', 'last_name', 'email')}),
    )
    readonly_fields = ('created_at', 'last_login')

    @admin.display(description="Name", ordering="first_name")
    def full_name_display(self, obj):
        return obj.full_name or "N/A"

    @admin.display(description="Roles")
    def user_roles_display(self, obj):
        roles = [r.role for r in obj.roles.all()]
        if not roles:
            return format_html('<span style="color: orange;">No roles</span>')
        color = "blue" if ROLE_ADMIN in roles else "green" if ROLE_EMPLOYER in roles else "gray"
        return format_html('<span style="color: {};">{}</span>', color, ", ".join(roles))

    @admin.display(description="Joined", ordering="created_at")
    def created_at_date(self, obj):
        return localtime(obj.created_at).strftime('%d/%m/%Y %H:%M')


@admin.register(UserRole)
class UserRoleAdmin(ImportExportModelAdmin):
    resource_class = UserRoleResource
    list_display = ('user', 'role')
    list_filter = ('role',)
    search_fields = ('user__phone', 'user__first_name', 'user__last_name')
    list_select_related = ('user',)
    raw_id_fields = ('user',)

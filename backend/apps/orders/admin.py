from django.contrib import admin
from django.contrib import messages
from django.contrib.auth import get_user_model
from django.utils.html import format_html
from django.utils.timezone import localtime
from import_export import resources, fields
from import_export.widgets import ForeignKeyWidget
from import_export.admin import ImportExportModelAdmin

from apps.accounts.models import ROLE_ADMIN
from apps.catalog.models import Store
from apps.utils.exceptions import BusinessLogicException

from . import lifecycle
from .models import Order, OrderItem, Rating
from .services import OrderService

User = get_user_model()


class OrderResource(resources.ModelResource):
    user = fields.Field(
        column_name='user_phone',
        attribute='user',
        widget=ForeignKeyWidget(User, 'phone')
    )
    employer = fields.Field(
        column_name='employer_phone',
        attribute='employer',
        widget=ForeignKeyWidget(User, 'phone')
    )
    store = fields.Field(
        column_name='store_name',
        attribute='store',
        widget=ForeignKeyWidget(Store, 'name')
    )

    class Meta:
        model = Order
        fields = (
            'id',
            'order_type',
            'status',
            'user',
            'employer',
            'store',
            'address',
            'pickup_address',
            'subtotal',
            'delivery_fee',
            'total',
            'payment_method',
            'created_at',
            'delivered_at',
            'canceled_at',
        )
        export_order = fields


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    raw_id_fields = ('product',)
    fields = ('type', 'product', 'custom_name', 'quantity', 'price', 'line_total_display', 'special_instructions')
    readonly_fields = ('type', 'product', 'custom_name', 'line_total_display')

    @admin.display(description="Line Total")
    def line_total_display(self, obj):
        if obj.price is None or obj.quantity is None:
            return "0.00"
        return f"{obj.line_total:.2f}"


@admin.register(Order)
class OrderAdmin(ImportExportModelAdmin):
    resource_class = OrderResource
    list_display = (
        'id',
        'order_type',
        'customer_phone',
        'employer_phone',
        'status_badge',
        'total',
        'maps_link',
        'created_at_date',
    )
    list_filter = ('status', 'order_type', 'payment_method', 'created_at')
    search_fields = ('id', 'user__phone', 'employer__phone', 'store__name', 'phone')
    list_select_related = ('user', 'employer', 'store')
    raw_id_fields = ('user', 'employer', 'store')
    inlines = [OrderItemInline]
    list_per_page = 25
    actions = ['mark_as_preparing', 'mark_as_on_the_way', 'mark_as_delivered', 'cancel_orders']

    fieldsets = (
        ('Order Information', {
            'fields': ('id', 'order_type', 'status', 'user', 'employer', 'store')
        }),
        ('Addresses', {
            'fields': (
                'address', 'latitude', 'longitude',
                'pickup_address', 'pickup_latitude', 'pickup_longitude', 'distance_km',
                'maps_link',
            )
        }),
        ('Payment', {
            'fields': ('subtotal', 'delivery_fee', 'total', 'payment_method', 'phone', 'notes')
        }),
        ('Milestones', {
            'fields': (
                'assigned_at', 'confirmed_at', 'preparing_at',
                'on_the_way_at', 'delivered_at', 'canceled_at',
            ),
            'classes': ('collapse',)
        }),
        ('Live Tracking', {
            'fields': ('delivery_current_lat', 'delivery_current_lng', 'delivery_updated_at'),
            'classes': ('collapse',)
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    # Status and money only move through the service layer
    readonly_fields = (
        'id', 'order_type', 'status', 'user', 'employer', 'store',
        'subtotal', 'total', 'distance_km', 'maps_link',
        'assigned_at', 'confirmed_at', 'preparing_at',
        'on_the_way_at', 'delivered_at', 'canceled_at',
        'delivery_current_lat', 'delivery_current_lng', 'delivery_updated_at',
        'created_at', 'updated_at',
    )

    def has_add_permission(self, request):
        return False

    @admin.display(description="Customer Phone", ordering='user__phone')
    def customer_phone(self, obj):
        return obj.user.phone

    @admin.display(description="Employer", ordering='employer__phone')
    def employer_phone(self, obj):
        return obj.employer.phone if obj.employer_id else "Unassigned"

    @admin.display(description="Status")
    def status_badge(self, obj):
        colors = {
            'pending': '#6c757d',
            'confirmed': '#007bff',
            'preparing': '#ffc107',
            'on_the_way': '#17a2b8',
            'delivered': '#28a745',
            'cancelled': '#dc3545',
        }
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 8px; border-radius: 4px; font-size: 0.8em;">{}</span>',
            colors.get(obj.status, '#6c757d'),
            obj.get_status_display()
        )

    @admin.display(description="Created", ordering='created_at')
    def created_at_date(self, obj):
        if obj.created_at:
            return localtime(obj.created_at).strftime('%d/%m/%Y %H:%M')
        return "N/A"

    @admin.display(description="Customer Map Location")
    def maps_link(self, obj):
        if obj.latitude is None or obj.longitude is None:
            return format_html('<span style="color:red;">Location Missing</span>')

        url = f"https://www.google.com/maps/dir/?api=1&destination={obj.latitude},{obj.longitude}"
        return format_html(
            '<a href="{}" target="_blank" rel="noopener noreferrer">Get Directions</a>',
            url
        )

    def _move(self, request, queryset, target):
        moved = 0
        for order in queryset:
            try:
                OrderService.transition(order.id, target, request.user, ROLE_ADMIN)
                moved += 1
            except BusinessLogicException as e:
                self.message_user(request, f"Order #{order.id}: {e.message}", level=messages.WARNING)
        self.message_user(request, f"{moved} orders moved to {target}.")

    @admin.action(description="Mark selected orders as Preparing")
    def mark_as_preparing(self, request, queryset):
        self._move(request, queryset, lifecycle.PREPARING)

    @admin.action(description="Mark selected orders as On the way")
    def mark_as_on_the_way(self, request, queryset):
        self._move(request, queryset, lifecycle.ON_THE_WAY)

    @admin.action(description="Mark selected orders as Delivered")
    def mark_as_delivered(self, request, queryset):
        self._move(request, queryset, lifecycle.DELIVERED)

    @admin.action(description="Cancel selected orders")
    def cancel_orders(self, request, queryset):
        self._move(request, queryset, lifecycle.CANCELLED)


@admin.register(Rating)
class RatingAdmin(admin.ModelAdmin):
    list_display = ('order', 'store', 'customer', 'rating', 'created_at')
    list_filter = ('rating', 'created_at')
    search_fields = ('order__id', 'store__name', 'customer__phone')
    list_select_related = ('order', 'store', 'customer')
    readonly_fields = ('order', 'store', 'customer', 'rating', 'review', 'created_at')

    def has_add_permission(self, request):
        return False

from django.contrib import admin
from import_export import resources
from import_export.admin import ImportExportModelAdmin

from .models import Store, Product


class StoreResource(resources.ModelResource):
    class Meta:
        model = Store
        fields = ('id', 'name', 'address', 'latitude', 'longitude', 'is_active')


class ProductResource(resources.ModelResource):
    class Meta:
        model = Product
        fields = ('id', 'store', 'name', 'price', 'is_available')


class ProductInline(admin.TabularInline):
    model = Product
    extra = 0
    fields = ('name', 'price', 'is_available')


@admin.register(Store)
class StoreAdmin(ImportExportModelAdmin):
    resource_class = StoreResource
    list_display = ('name', 'latitude', 'longitude', 'is_active')
    list_filter = ('is_active',)
    search_fields = ('name', 'address')
    inlines = [ProductInline]


@admin.register(Product)
class ProductAdmin(ImportExportModelAdmin):
    resource_class = ProductResource
    list_display = ('name', 'store', 'price', 'is_available')
    list_filter = ('is_available', 'store')
    search_fields = ('name',)
    list_select_related = ('store',)

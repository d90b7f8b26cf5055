import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal

from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("order_type", models.CharField(
                    choices=[
                        ("regular", "Store Order"),
                        ("custom_delivery", "Custom Delivery"),
                        ("water_tank", "Water Tank"),
                    ],
                    default="regular",
                    max_length=20,
                )),
                ("status", models.CharField(
                    choices=[
                        ("pending", "Pending"),
                        ("confirmed", "Confirmed"),
                        ("preparing", "Preparing"),
                        ("on_the_way", "On The Way"),
                        ("delivered", "Delivered"),
                        ("cancelled", "Cancelled"),
                    ],
                    default="pending",
                    max_length=20,
                )),
                ("address", models.TextField()),
                ("latitude", models.DecimalField(blank=True, decimal_places=7, max_digits=10, null=True)),
                ("longitude", models.DecimalField(blank=True, decimal_places=7, max_digits=10, null=True)),
                ("pickup_address", models.TextField(blank=True)),
                ("pickup_latitude", models.DecimalField(blank=True, decimal_places=7, max_digits=10, null=True)),
                ("pickup_longitude", models.DecimalField(blank=True, decimal_places=7, max_digits=10, null=True)),
                ("distance_km", models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ("subtotal", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("delivery_fee", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("payment_method", models.CharField(max_length=50)),
                ("phone", models.CharField(max_length=20)),
                ("notes", models.TextField(blank=True)),
                ("assigned_at", models.DateTimeField(blank=True, null=True)),
                ("confirmed_at", models.DateTimeField(blank=True, null=True)),
                ("preparing_at", models.DateTimeField(blank=True, null=True)),
                ("on_the_way_at", models.DateTimeField(blank=True, null=True)),
                ("delivered_at", models.DateTimeField(blank=True, null=True)),
                ("canceled_at", models.DateTimeField(blank=True, null=True)),
                ("delivery_current_lat", models.DecimalField(blank=True, decimal_places=7, max_digits=10, null=True)),
                ("delivery_current_lng", models.DecimalField(blank=True, decimal_places=7, max_digits=10, null=True)),
                ("delivery_updated_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("employer", models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="assigned_orders",
                    to=settings.AUTH_USER_MODEL,
                )),
                ("store", models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="orders",
                    to="catalog.store",
                )),
                ("user", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="orders",
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["user", "-created_at"], name="order_user_created_idx"),
                    models.Index(fields=["status", "employer"], name="order_status_employer_idx"),
                    models.Index(fields=["employer", "status"], name="order_employer_status_idx"),
                    models.Index(fields=["order_type", "status"], name="order_type_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(subtotal__gte=0) & models.Q(delivery_fee__gte=0) & models.Q(total__gte=0),
                        name="order_amounts_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("custom_name", models.CharField(blank=True, max_length=255)),
                ("type", models.CharField(
                    choices=[
                        ("product", "Catalog Product"),
                        ("custom", "Custom Item"),
                        ("water_tank", "Water Tank"),
                    ],
                    default="product",
                    max_length=20,
                )),
                ("quantity", models.PositiveIntegerField()),
                ("price", models.DecimalField(decimal_places=2, max_digits=10)),
                ("special_instructions", models.CharField(blank=True, max_length=500)),
                ("order", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="items",
                    to="orders.order",
                )),
                ("product", models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="order_items",
                    to="catalog.product",
                )),
            ],
            options={
                "ordering": ["id"],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(quantity__gte=1), name="order_item_quantity_positive"),
                    models.CheckConstraint(condition=models.Q(price__gte=0), name="order_item_price_non_negative"),
                    models.CheckConstraint(
                        condition=(
                            (models.Q(product__isnull=False) & models.Q(custom_name=""))
                            | (models.Q(product__isnull=True) & ~models.Q(custom_name=""))
                        ),
                        name="order_item_product_xor_custom_name",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Rating",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("rating", models.PositiveSmallIntegerField()),
                ("review", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("customer", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="ratings",
                    to=settings.AUTH_USER_MODEL,
                )),
                ("order", models.OneToOneField(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="rating",
                    to="orders.order",
                )),
                ("store", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="ratings",
                    to="catalog.store",
                )),
            ],
            options={
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(rating__gte=1) & models.Q(rating__lte=5),
                        name="rating_between_1_and_5",
                    ),
                ],
            },
        ),
    ]

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="EmployerProfile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("status", models.CharField(
                    choices=[
                        ("pending", "Pending Review"),
                        ("approved", "Approved"),
                        ("active", "Active"),
                        ("rejected", "Rejected"),
                        ("suspended", "Suspended"),
                    ],
                    default="pending",
                    max_length=20,
                )),
                ("vehicle_type", models.CharField(
                    blank=True,
                    choices=[
                        ("motorcycle", "Motorcycle"),
                        ("car", "Car"),
                        ("van", "Van"),
                        ("truck", "Truck"),
                        ("water_tanker", "Water Tanker"),
                    ],
                    max_length=20,
                )),
                ("is_online", models.BooleanField(default=False)),
                ("is_available", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("user", models.OneToOneField(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="employer_profile",
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                "indexes": [models.Index(fields=["status", "is_available"], name="employer_avail_idx")],
            },
        ),
    ]

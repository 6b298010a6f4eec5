from django.db import migrations, models
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="OrderRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("external_id", models.CharField(db_index=True, help_text="Order ID from Shopify", max_length=255, unique=True)),
                ("order_number", models.CharField(blank=True, default="", max_length=64)),
                ("source_name", models.CharField(blank=True, max_length=64, null=True)),
                ("email", models.CharField(blank=True, max_length=255, null=True)),
                ("line_items", models.JSONField(blank=True, default=list)),
                ("total_item_count", models.PositiveIntegerField(default=0)),
                ("shipping_address", models.JSONField(blank=True, null=True)),
                ("shipping_lines", models.JSONField(blank=True, default=list)),
                (
                    "shipping_method",
                    models.CharField(
                        choices=[("service_point", "Service point"), ("home_delivery", "Home delivery")],
                        default="home_delivery",
                        max_length=32,
                    ),
                ),
                ("shipping_method_overridden", models.BooleanField(default=False, help_text="Set once an operator chose the shipping method")),
                ("dimensions", models.JSONField(blank=True, help_text="Parcel measurements", null=True)),
                ("pickup_point", models.JSONField(blank=True, help_text="Carrier pickup location", null=True)),
                ("tracking_number", models.CharField(blank=True, max_length=128, null=True)),
                ("is_fulfilled", models.BooleanField(default=False)),
                ("fulfilled_at", models.DateTimeField(blank=True, null=True)),
                ("source_created_at", models.DateTimeField(blank=True, help_text="Creation time reported by Shopify", null=True)),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now, help_text="Ingestion time")),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Order",
                "verbose_name_plural": "Orders",
                "ordering": ["-created_at", "-id"],
            },
        ),
    ]

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
        ("inventory", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="MenuItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=140)),
                ("description", models.TextField(blank=True, default="")),
                ("category", models.CharField(choices=[("breakfast", "Breakfast"), ("starter", "Starter"), ("main", "Main"), ("dessert", "Dessert"), ("beverage", "Beverage"), ("snack", "Snack"), ("other", "Other")], default="other", max_length=20)),
                ("is_active", models.BooleanField(default=True)),
                ("price", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="menu_items", to="accounts.tenant")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["tenant", "is_active"], name="kitchen_men_tenant__41be0a_idx"),
                    models.Index(fields=["tenant", "name"], name="kitchen_men_tenant__9c7d52_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="RecipeItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("qty", models.DecimalField(decimal_places=3, default=0, max_digits=12)),
                ("unit", models.CharField(default="piece", max_length=20)),
                ("inventory_item", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="recipe_items", to="inventory.inventoryitem")),
                ("menu_item", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="recipe_items", to="kitchen.menuitem")),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(fields=("menu_item", "inventory_item"), name="uniq_recipe_ingredient"),
                ],
            },
        ),
        migrations.CreateModel(
            name="FoodOrder",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("order_number", models.CharField(max_length=30)),
                ("status", models.CharField(choices=[("pending", "En attente"), ("confirmed", "Acceptée"), ("preparing", "En préparation"), ("ready", "Prête"), ("out_for_delivery", "En livraison"), ("delivered", "Livrée"), ("cancelled", "Annulée")], default="pending", max_length=20)),
                ("version", models.PositiveIntegerField(default=1)),
                ("order_type", models.CharField(choices=[("room_service", "Room service"), ("dine_in", "Dine in"), ("takeaway", "Takeaway"), ("delivery", "Delivery")], default="room_service", max_length=20)),
                ("guest_name", models.CharField(blank=True, default="", max_length=150)),
                ("guest_phone", models.CharField(blank=True, default="", max_length=40)),
                ("guest_email", models.EmailField(blank=True, default="", max_length=254)),
                ("room_number", models.CharField(blank=True, default="", max_length=20)),
                ("delivery_location", models.CharField(choices=[("in_room", "In room"), ("restaurant", "Restaurant"), ("bar", "Bar"), ("pool_side", "Pool side"), ("beach_side", "Beach side"), ("other", "Other")], default="in_room", max_length=20)),
                ("notes", models.TextField(blank=True, default="")),
                ("subtotal_amount", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("tax_amount", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("discount_amount", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("total_amount", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("stock_deducted", models.BooleanField(default=False)),
                ("cancel_reason_code", models.CharField(blank=True, default="", max_length=30)),
                ("cancel_reason_text", models.CharField(blank=True, default="", max_length=255)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("scheduled_delivery_at", models.DateTimeField(blank=True, null=True)),
                ("confirmed_at", models.DateTimeField(blank=True, null=True)),
                ("preparing_at", models.DateTimeField(blank=True, null=True)),
                ("ready_at", models.DateTimeField(blank=True, null=True)),
                ("dispatched_at", models.DateTimeField(blank=True, null=True)),
                ("delivered_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="food_orders", to=settings.AUTH_USER_MODEL)),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="food_orders", to="accounts.tenant")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["tenant", "status"], name="kitchen_foo_tenant__d81f3a_idx"),
                    models.Index(fields=["tenant", "created_at"], name="kitchen_foo_tenant__5e20c4_idx"),
                    models.Index(fields=["tenant", "updated_at"], name="kitchen_foo_tenant__a3b9e7_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("tenant", "order_number"), name="uniq_order_number_per_tenant"),
                ],
            },
        ),
        migrations.CreateModel(
            name="FoodOrderLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("menu_item_name", models.CharField(blank=True, default="", max_length=140)),
                ("qty", models.PositiveIntegerField(default=1)),
                ("unit_price", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("line_total", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("modifiers", models.JSONField(blank=True, default=dict)),
                ("special_instructions", models.TextField(blank=True, default="")),
                ("menu_item", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="order_lines", to="kitchen.menuitem")),
                ("order", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="kitchen.foodorder")),
            ],
        ),
    ]

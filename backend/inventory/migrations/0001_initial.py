from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Supplier",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=150)),
                ("contact_email", models.EmailField(blank=True, default="", max_length=254)),
                ("contact_phone", models.CharField(blank=True, default="", max_length=40)),
                ("address", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="suppliers", to="accounts.tenant")),
            ],
            options={
                "ordering": ["name"],
                "unique_together": {("tenant", "name")},
            },
        ),
        migrations.CreateModel(
            name="InventoryItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=140)),
                ("sku", models.CharField(blank=True, default="", max_length=50)),
                ("category", models.CharField(choices=[("food", "Food"), ("beverage", "Beverage"), ("amenity", "Amenity"), ("supply", "Supply"), ("linen", "Linen"), ("cleaning", "Cleaning"), ("maintenance", "Maintenance"), ("other", "Other")], default="other", max_length=20)),
                ("unit", models.CharField(choices=[("kg", "kg"), ("gram", "gram"), ("liter", "liter"), ("ml", "ml"), ("piece", "piece"), ("bottle", "bottle"), ("box", "box"), ("pack", "pack"), ("can", "can"), ("other", "other")], default="piece", max_length=10)),
                ("current_stock", models.DecimalField(decimal_places=3, default=0, max_digits=12)),
                ("location_stock", models.JSONField(blank=True, default=dict)),
                ("min_stock_level", models.DecimalField(decimal_places=3, default=0, max_digits=12)),
                ("max_stock_level", models.DecimalField(blank=True, decimal_places=3, max_digits=12, null=True)),
                ("unit_cost", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("last_restocked_at", models.DateTimeField(blank=True, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("preferred_supplier", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="preferred_items", to="inventory.supplier")),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="inventory_items", to="accounts.tenant")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["tenant", "is_active", "name"], name="inventory_i_tenant__5a1c2e_idx"),
                    models.Index(fields=["tenant", "category"], name="inventory_i_tenant__8b3d41_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockMovement",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("movement_type", models.CharField(choices=[("purchase", "Purchase"), ("usage", "Usage"), ("waste", "Waste"), ("adjustment", "Adjustment"), ("transfer_in", "Transfer in"), ("transfer_out", "Transfer out"), ("sales_deduction", "Sales deduction")], max_length=20)),
                ("quantity", models.DecimalField(decimal_places=3, max_digits=12)),
                ("previous_stock", models.DecimalField(decimal_places=3, max_digits=12)),
                ("new_stock", models.DecimalField(decimal_places=3, max_digits=12)),
                ("unit_cost", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("location", models.CharField(blank=True, default="", max_length=80)),
                ("reference", models.CharField(blank=True, default="", max_length=60)),
                ("note", models.CharField(blank=True, default="", max_length=255)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="stock_movements", to=settings.AUTH_USER_MODEL)),
                ("item", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="movements", to="inventory.inventoryitem")),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="stock_movements", to="accounts.tenant")),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["tenant", "created_at"], name="inventory_s_tenant__c41f07_idx"),
                    models.Index(fields=["item", "created_at"], name="inventory_s_item_id_2e9a5b_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="LowStockAlert",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("current_stock", models.DecimalField(decimal_places=3, max_digits=12)),
                ("min_stock_level", models.DecimalField(decimal_places=3, max_digits=12)),
                ("status", models.CharField(choices=[("active", "Active"), ("resolved", "Resolved")], default="active", max_length=10)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("resolved_at", models.DateTimeField(blank=True, null=True)),
                ("item", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="low_stock_alerts", to="inventory.inventoryitem")),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="low_stock_alerts", to="accounts.tenant")),
            ],
            options={
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(condition=models.Q(("status", "active")), fields=("item",), name="uniq_active_low_stock_alert"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PurchaseOrder",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("po_number", models.CharField(max_length=30)),
                ("supplier_name", models.CharField(blank=True, default="", max_length=150)),
                ("status", models.CharField(choices=[("draft", "Draft"), ("ordered", "Ordered"), ("received", "Received"), ("cancelled", "Cancelled")], default="draft", max_length=10)),
                ("source", models.CharField(choices=[("manual", "Manual"), ("auto_restock", "Auto restock")], default="manual", max_length=15)),
                ("subtotal_amount", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("total_amount", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("notes", models.TextField(blank=True, default="")),
                ("expected_delivery_date", models.DateField(blank=True, null=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("ordered_at", models.DateTimeField(blank=True, null=True)),
                ("received_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="purchase_orders", to=settings.AUTH_USER_MODEL)),
                ("supplier", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="purchase_orders", to="inventory.supplier")),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="purchase_orders", to="accounts.tenant")),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["tenant", "status"], name="inventory_p_tenant__7d0e93_idx"),
                    models.Index(fields=["tenant", "created_at"], name="inventory_p_tenant__f2b6c8_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("tenant", "po_number"), name="uniq_po_number_per_tenant"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PurchaseOrderLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("item_name", models.CharField(blank=True, default="", max_length=140)),
                ("quantity", models.DecimalField(decimal_places=3, max_digits=12)),
                ("unit_cost", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("line_total", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("received_qty", models.DecimalField(blank=True, decimal_places=3, max_digits=12, null=True)),
                ("rejected_qty", models.DecimalField(decimal_places=3, default=0, max_digits=12)),
                ("item", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="purchase_order_lines", to="inventory.inventoryitem")),
                ("purchase_order", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="inventory.purchaseorder")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["purchase_order"], name="inventory_p_purchas_3a7c15_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockTransfer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("transfer_number", models.CharField(max_length=30)),
                ("from_location", models.CharField(max_length=80)),
                ("to_location", models.CharField(max_length=80)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="stock_transfers", to=settings.AUTH_USER_MODEL)),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="stock_transfers", to="accounts.tenant")),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "constraints": [
                    models.UniqueConstraint(fields=("tenant", "transfer_number"), name="uniq_transfer_number_per_tenant"),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockTransferLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("item_name", models.CharField(blank=True, default="", max_length=140)),
                ("quantity", models.DecimalField(decimal_places=3, max_digits=12)),
                ("item", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="transfer_lines", to="inventory.inventoryitem")),
                ("transfer", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="inventory.stocktransfer")),
            ],
        ),
    ]

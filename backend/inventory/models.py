from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from accounts.models import Tenant


class Supplier(models.Model):
    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="suppliers")
    name = models.CharField(max_length=150)
    contact_email = models.EmailField(blank=True, default="")
    contact_phone = models.CharField(max_length=40, blank=True, default="")
    address = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ("tenant", "name")
        ordering = ["name"]

    def __str__(self):
        return self.name


class InventoryItem(models.Model):
    CATEGORY_CHOICES = (
        ("food", "Food"),
        ("beverage", "Beverage"),
        ("amenity", "Amenity"),
        ("supply", "Supply"),
        ("linen", "Linen"),
        ("cleaning", "Cleaning"),
        ("maintenance", "Maintenance"),
        ("other", "Other"),
    )
    UNIT_CHOICES = (
        ("kg", "kg"),
        ("gram", "gram"),
        ("liter", "liter"),
        ("ml", "ml"),
        ("piece", "piece"),
        ("bottle", "bottle"),
        ("box", "box"),
        ("pack", "pack"),
        ("can", "can"),
        ("other", "other"),
    )

    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="inventory_items")
    name = models.CharField(max_length=140)
    sku = models.CharField(max_length=50, blank=True, default="")
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default="other")
    unit = models.CharField(max_length=10, choices=UNIT_CHOICES, default="piece")

    current_stock = models.DecimalField(max_digits=12, decimal_places=3, default=0)
    # répartition optionnelle par emplacement : {"Main Store": "12", "Kitchen": "3"}
    location_stock = models.JSONField(default=dict, blank=True)
    min_stock_level = models.DecimalField(max_digits=12, decimal_places=3, default=0)
    max_stock_level = models.DecimalField(max_digits=12, decimal_places=3, null=True, blank=True)

    unit_cost = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    preferred_supplier = models.ForeignKey(
        Supplier, on_delete=models.SET_NULL, null=True, blank=True, related_name="preferred_items"
    )
    last_restocked_at = models.DateTimeField(null=True, blank=True)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["tenant", "is_active", "name"], name="inventory_i_tenant__5a1c2e_idx"),
            models.Index(fields=["tenant", "category"], name="inventory_i_tenant__8b3d41_idx"),
        ]

    def __str__(self):
        return self.name

    @property
    def total_value(self):
        return (self.current_stock or 0) * (self.unit_cost or 0)


class StockMovement(models.Model):
    TYPE_CHOICES = (
        ("purchase", "Purchase"),
        ("usage", "Usage"),
        ("waste", "Waste"),
        ("adjustment", "Adjustment"),
        ("transfer_in", "Transfer in"),
        ("transfer_out", "Transfer out"),
        ("sales_deduction", "Sales deduction"),
    )

    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="stock_movements")
    item = models.ForeignKey(InventoryItem, on_delete=models.CASCADE, related_name="movements")
    movement_type = models.CharField(max_length=20, choices=TYPE_CHOICES)

    # signé : positif = entrée, négatif = sortie
    quantity = models.DecimalField(max_digits=12, decimal_places=3)
    previous_stock = models.DecimalField(max_digits=12, decimal_places=3)
    new_stock = models.DecimalField(max_digits=12, decimal_places=3)
    unit_cost = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    location = models.CharField(max_length=80, blank=True, default="")
    reference = models.CharField(max_length=60, blank=True, default="")
    note = models.CharField(max_length=255, blank=True, default="")
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_movements",
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["tenant", "created_at"], name="inventory_s_tenant__c41f07_idx"),
            models.Index(fields=["item", "created_at"], name="inventory_s_item_id_2e9a5b_idx"),
        ]

    def __str__(self):
        return f"{self.movement_type} {self.item_id} {self.quantity}"


class LowStockAlert(models.Model):
    STATUS_CHOICES = (
        ("active", "Active"),
        ("resolved", "Resolved"),
    )

    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="low_stock_alerts")
    item = models.ForeignKey(InventoryItem, on_delete=models.CASCADE, related_name="low_stock_alerts")
    current_stock = models.DecimalField(max_digits=12, decimal_places=3)
    min_stock_level = models.DecimalField(max_digits=12, decimal_places=3)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="active")
    created_at = models.DateTimeField(default=timezone.now)
    resolved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["item"],
                condition=Q(status="active"),
                name="uniq_active_low_stock_alert",
            )
        ]

    def __str__(self):
        return f"Alert {self.item_id} ({self.status})"


class PurchaseOrder(models.Model):
    STATUS_CHOICES = (
        ("draft", "Draft"),
        ("ordered", "Ordered"),
        ("received", "Received"),
        ("cancelled", "Cancelled"),
    )
    SOURCE_CHOICES = (
        ("manual", "Manual"),
        ("auto_restock", "Auto restock"),
    )

    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="purchase_orders")
    po_number = models.CharField(max_length=30)
    supplier = models.ForeignKey(
        Supplier, on_delete=models.SET_NULL, null=True, blank=True, related_name="purchase_orders"
    )
    supplier_name = models.CharField(max_length=150, blank=True, default="")
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="draft")
    source = models.CharField(max_length=15, choices=SOURCE_CHOICES, default="manual")

    subtotal_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    notes = models.TextField(blank=True, default="")
    expected_delivery_date = models.DateField(null=True, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="purchase_orders",
    )
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)
    ordered_at = models.DateTimeField(null=True, blank=True)
    received_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["tenant", "status"], name="inventory_p_tenant__7d0e93_idx"),
            models.Index(fields=["tenant", "created_at"], name="inventory_p_tenant__f2b6c8_idx"),
        ]
        constraints = [
            models.UniqueConstraint(fields=["tenant", "po_number"], name="uniq_po_number_per_tenant"),
        ]

    def __str__(self):
        return self.po_number


class PurchaseOrderLine(models.Model):
    purchase_order = models.ForeignKey(PurchaseOrder, on_delete=models.CASCADE, related_name="lines")
    item = models.ForeignKey(
        InventoryItem, on_delete=models.SET_NULL, null=True, blank=True, related_name="purchase_order_lines"
    )
    item_name = models.CharField(max_length=140, blank=True, default="")
    quantity = models.DecimalField(max_digits=12, decimal_places=3)
    unit_cost = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    line_total = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    received_qty = models.DecimalField(max_digits=12, decimal_places=3, null=True, blank=True)
    rejected_qty = models.DecimalField(max_digits=12, decimal_places=3, default=0)

    class Meta:
        indexes = [
            models.Index(fields=["purchase_order"], name="inventory_p_purchas_3a7c15_idx"),
        ]

    def __str__(self):
        return f"{self.item_name or 'Ligne'} x{self.quantity}"


class StockTransfer(models.Model):
    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="stock_transfers")
    transfer_number = models.CharField(max_length=30)
    from_location = models.CharField(max_length=80)
    to_location = models.CharField(max_length=80)
    notes = models.TextField(blank=True, default="")
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_transfers",
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(fields=["tenant", "transfer_number"], name="uniq_transfer_number_per_tenant"),
        ]

    def __str__(self):
        return self.transfer_number


class StockTransferLine(models.Model):
    transfer = models.ForeignKey(StockTransfer, on_delete=models.CASCADE, related_name="lines")
    item = models.ForeignKey(InventoryItem, on_delete=models.CASCADE, related_name="transfer_lines")
    item_name = models.CharField(max_length=140, blank=True, default="")
    quantity = models.DecimalField(max_digits=12, decimal_places=3)

    def __str__(self):
        return f"{self.item_name} x{self.quantity}"

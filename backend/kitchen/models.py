from django.conf import settings
from django.db import models
from django.utils import timezone

from accounts.models import Tenant
from inventory.models import InventoryItem


class MenuItem(models.Model):
    CATEGORY_CHOICES = (
        ("breakfast", "Breakfast"),
        ("starter", "Starter"),
        ("main", "Main"),
        ("dessert", "Dessert"),
        ("beverage", "Beverage"),
        ("snack", "Snack"),
        ("other", "Other"),
    )

    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="menu_items")

    name = models.CharField(max_length=140)
    description = models.TextField(blank=True, default="")
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default="other")
    is_active = models.BooleanField(default=True)
    price = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["tenant", "is_active"], name="kitchen_men_tenant__41be0a_idx"),
            models.Index(fields=["tenant", "name"], name="kitchen_men_tenant__9c7d52_idx"),
        ]

    def __str__(self):
        return self.name


class RecipeItem(models.Model):
    menu_item = models.ForeignKey(MenuItem, on_delete=models.CASCADE, related_name="recipe_items")
    inventory_item = models.ForeignKey(
        InventoryItem, on_delete=models.CASCADE, related_name="recipe_items"
    )
    qty = models.DecimalField(max_digits=12, decimal_places=3, default=0)
    unit = models.CharField(max_length=20, default="piece")

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["menu_item", "inventory_item"], name="uniq_recipe_ingredient"
            )
        ]

    def __str__(self):
        return f"{self.menu_item_id} -> {self.inventory_item_id}"


class FoodOrder(models.Model):
    STATUS_CHOICES = [
        ("pending", "En attente"),
        ("confirmed", "Acceptée"),
        ("preparing", "En préparation"),
        ("ready", "Prête"),
        ("out_for_delivery", "En livraison"),
        ("delivered", "Livrée"),
        ("cancelled", "Annulée"),
    ]
    ORDER_TYPE_CHOICES = [
        ("room_service", "Room service"),
        ("dine_in", "Dine in"),
        ("takeaway", "Takeaway"),
        ("delivery", "Delivery"),
    ]
    DELIVERY_LOCATION_CHOICES = [
        ("in_room", "In room"),
        ("restaurant", "Restaurant"),
        ("bar", "Bar"),
        ("pool_side", "Pool side"),
        ("beach_side", "Beach side"),
        ("other", "Other"),
    ]

    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="food_orders")
    order_number = models.CharField(max_length=30)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending")
    # jeton de concurrence optimiste, incrémenté à chaque transition
    version = models.PositiveIntegerField(default=1)

    order_type = models.CharField(max_length=20, choices=ORDER_TYPE_CHOICES, default="room_service")
    guest_name = models.CharField(max_length=150, blank=True, default="")
    guest_phone = models.CharField(max_length=40, blank=True, default="")
    guest_email = models.EmailField(blank=True, default="")
    room_number = models.CharField(max_length=20, blank=True, default="")
    delivery_location = models.CharField(
        max_length=20, choices=DELIVERY_LOCATION_CHOICES, default="in_room"
    )
    notes = models.TextField(blank=True, default="")

    subtotal_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    # vrai une fois les ingrédients déduits (passage en préparation)
    stock_deducted = models.BooleanField(default=False)
    cancel_reason_code = models.CharField(max_length=30, blank=True, default="")
    cancel_reason_text = models.CharField(max_length=255, blank=True, default="")

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="food_orders",
    )
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)
    scheduled_delivery_at = models.DateTimeField(null=True, blank=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    preparing_at = models.DateTimeField(null=True, blank=True)
    ready_at = models.DateTimeField(null=True, blank=True)
    dispatched_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=["tenant", "status"], name="kitchen_foo_tenant__d81f3a_idx"),
            models.Index(fields=["tenant", "created_at"], name="kitchen_foo_tenant__5e20c4_idx"),
            models.Index(fields=["tenant", "updated_at"], name="kitchen_foo_tenant__a3b9e7_idx"),
        ]
        constraints = [
            models.UniqueConstraint(fields=["tenant", "order_number"], name="uniq_order_number_per_tenant"),
        ]

    def __str__(self):
        return f"{self.order_number} ({self.status})"


class FoodOrderLine(models.Model):
    order = models.ForeignKey(FoodOrder, on_delete=models.CASCADE, related_name="lines")
    menu_item = models.ForeignKey(
        MenuItem, on_delete=models.SET_NULL, null=True, blank=True, related_name="order_lines"
    )
    menu_item_name = models.CharField(max_length=140, blank=True, default="")
    qty = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    line_total = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    # variante / options choisies : {"size": "large", "extras": ["cheese"]}
    modifiers = models.JSONField(default=dict, blank=True)
    special_instructions = models.TextField(blank=True, default="")

    def __str__(self):
        return f"{self.menu_item_name} x{self.qty}"

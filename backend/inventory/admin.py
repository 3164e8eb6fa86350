from django.contrib import admin
from .models import (
    InventoryItem,
    LowStockAlert,
    PurchaseOrder,
    PurchaseOrderLine,
    StockMovement,
    StockTransfer,
    Supplier,
)


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "tenant", "contact_email", "contact_phone")
    search_fields = ("name", "contact_email")


@admin.register(InventoryItem)
class InventoryItemAdmin(admin.ModelAdmin):
    list_display = ("name", "tenant", "category", "unit", "current_stock", "min_stock_level", "unit_cost", "is_active")
    list_filter = ("tenant", "category", "is_active")
    search_fields = ("name", "sku")


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = ("id", "item", "movement_type", "quantity", "previous_stock", "new_stock", "reference", "created_at")
    list_filter = ("movement_type",)
    search_fields = ("item__name", "reference")


@admin.register(LowStockAlert)
class LowStockAlertAdmin(admin.ModelAdmin):
    list_display = ("id", "item", "current_stock", "min_stock_level", "status", "created_at")
    list_filter = ("status",)


class PurchaseOrderLineInline(admin.TabularInline):
    model = PurchaseOrderLine
    extra = 0


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(admin.ModelAdmin):
    list_display = ("po_number", "tenant", "supplier_name", "status", "source", "total_amount", "created_at")
    list_filter = ("status", "source")
    search_fields = ("po_number", "supplier_name")
    inlines = [PurchaseOrderLineInline]


@admin.register(StockTransfer)
class StockTransferAdmin(admin.ModelAdmin):
    list_display = ("transfer_number", "tenant", "from_location", "to_location", "created_at")

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from . import views

router = DefaultRouter()
router.register(r"items", views.InventoryItemViewSet, basename="inventory-items")
router.register(r"suppliers", views.SupplierViewSet, basename="suppliers")
router.register(r"movements", views.StockMovementViewSet, basename="stock-movements")
router.register(r"transfers", views.StockTransferViewSet, basename="stock-transfers")

urlpatterns = [
    path("low-stock/", views.low_stock_items, name="inventory_low_stock"),
    path("adjustments/", views.stock_adjust, name="inventory_adjust"),
    path("transfers/new/", views.stock_transfer_create, name="inventory_transfer_create"),
    path("alerts/", views.alerts_list, name="inventory_alerts"),
    path("alerts/<int:alert_id>/resolve/", views.alert_resolve, name="inventory_alert_resolve"),
    path("restock/check/", views.restock_check, name="inventory_restock_check"),
    path("purchase-orders/", views.purchase_orders, name="purchase_orders"),
    path("purchase-orders/<int:po_id>/", views.purchase_order_detail, name="purchase_order_detail"),
    path("purchase-orders/<int:po_id>/place/", views.purchase_order_place, name="purchase_order_place"),
    path("purchase-orders/<int:po_id>/receive/", views.purchase_order_receive, name="purchase_order_receive"),
    path("purchase-orders/<int:po_id>/cancel/", views.purchase_order_cancel, name="purchase_order_cancel"),
    path("reports/valuation/", views.valuation_report, name="inventory_valuation"),
    path("reports/valuation/export/", views.valuation_export, name="inventory_valuation_export"),
    path("", include(router.urls)),
]

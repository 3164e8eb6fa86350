import logging

from django.db import transaction
from django.utils import timezone
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import api_view, permission_classes, renderer_classes
from rest_framework.response import Response

from accounts.mixins import TenantQuerySetMixin
from accounts.models import Tenant
from accounts.permissions import ManagerPermission, StaffPermission
from accounts.utils import get_tenant_for_request
from utils.renderers import CSVRenderer, XLSXRenderer
from utils.sendgrid_email import send_email_with_sendgrid

from .exports import build_valuation_export
from .models import (
    InventoryItem,
    LowStockAlert,
    PurchaseOrder,
    StockMovement,
    StockTransfer,
    Supplier,
)
from .serializers import (
    InventoryItemSerializer,
    LowStockAlertSerializer,
    PurchaseOrderCreateSerializer,
    PurchaseOrderReceiveSerializer,
    PurchaseOrderSerializer,
    RestockCheckSerializer,
    StockAdjustmentSerializer,
    StockMovementSerializer,
    StockTransferCreateSerializer,
    StockTransferSerializer,
    SupplierSerializer,
)
from .services.errors import ItemNotFoundError
from .services.purchasing import (
    cancel_purchase_order,
    create_purchase_order,
    place_purchase_order,
    receive_purchase_order,
)
from .services.restock import low_stock_queryset, run_restock_check, suggested_quantity
from .services.stock import adjust_stock, inventory_valuation, resolve_alert, transfer_stock

logger = logging.getLogger(__name__)


def _get_scope(request):
    return get_tenant_for_request(request)


def _candidate_payload(item):
    return {
        "id": item.id,
        "name": item.name,
        "unit": item.unit,
        "current_stock": str(item.current_stock),
        "min_stock_level": str(item.min_stock_level),
        "suggested_quantity": str(suggested_quantity(item)),
        "preferred_supplier": item.preferred_supplier_id,
    }


class SupplierViewSet(TenantQuerySetMixin, viewsets.ModelViewSet):
    queryset = Supplier.objects.all()
    serializer_class = SupplierSerializer
    permission_classes = [permissions.IsAuthenticated, ManagerPermission]


class InventoryItemViewSet(TenantQuerySetMixin, viewsets.ModelViewSet):
    queryset = InventoryItem.objects.select_related("preferred_supplier")
    serializer_class = InventoryItemSerializer
    permission_classes = [permissions.IsAuthenticated, StaffPermission]

    def get_queryset(self):
        qs = super().get_queryset()
        params = self.request.query_params
        if params.get("include_inactive") != "1":
            qs = qs.filter(is_active=True)
        category = params.get("category")
        if category:
            qs = qs.filter(category=category)
        search = (params.get("q") or "").strip()
        if search:
            qs = qs.filter(name__icontains=search)
        return qs.order_by("name")

    def perform_destroy(self, instance):
        # archivage : l'historique des mouvements reste consultable
        instance.is_active = False
        instance.save(update_fields=["is_active", "updated_at"])


class StockMovementViewSet(TenantQuerySetMixin, viewsets.ReadOnlyModelViewSet):
    queryset = StockMovement.objects.select_related("item")
    serializer_class = StockMovementSerializer
    permission_classes = [permissions.IsAuthenticated, StaffPermission]

    def get_queryset(self):
        qs = super().get_queryset()
        item_id = self.request.query_params.get("item")
        if item_id:
            qs = qs.filter(item_id=item_id)
        movement_type = self.request.query_params.get("type")
        if movement_type:
            qs = qs.filter(movement_type=movement_type)
        return qs


class StockTransferViewSet(TenantQuerySetMixin, viewsets.ReadOnlyModelViewSet):
    queryset = StockTransfer.objects.prefetch_related("lines")
    serializer_class = StockTransferSerializer
    permission_classes = [permissions.IsAuthenticated, StaffPermission]


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated, StaffPermission])
def low_stock_items(request):
    tenant = _get_scope(request)
    items = low_stock_queryset(tenant).order_by("name")
    return Response([_candidate_payload(item) for item in items])


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, StaffPermission])
def stock_adjust(request):
    tenant = _get_scope(request)
    serializer = StockAdjustmentSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    movement = adjust_stock(
        tenant,
        data["item_id"],
        data["quantity"],
        data["movement_type"],
        user=request.user,
        location=data.get("location") or "",
        note=data.get("note") or "",
    )
    return Response(StockMovementSerializer(movement).data, status=status.HTTP_201_CREATED)


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, StaffPermission])
def stock_transfer_create(request):
    tenant = _get_scope(request)
    serializer = StockTransferCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    transfer = transfer_stock(
        tenant,
        data["from_location"],
        data["to_location"],
        data["lines"],
        user=request.user,
        notes=data.get("notes") or "",
    )
    return Response(StockTransferSerializer(transfer).data, status=status.HTTP_201_CREATED)


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated, StaffPermission])
def alerts_list(request):
    tenant = _get_scope(request)
    qs = LowStockAlert.objects.filter(tenant=tenant).select_related("item")
    state = request.query_params.get("status", "active")
    if state != "all":
        qs = qs.filter(status=state)
    return Response(LowStockAlertSerializer(qs, many=True).data)


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, StaffPermission])
def alert_resolve(request, alert_id: int):
    tenant = _get_scope(request)
    alert = LowStockAlert.objects.filter(tenant=tenant, id=alert_id).select_related("item").first()
    if not alert:
        return Response({"detail": "Alerte introuvable."}, status=status.HTTP_404_NOT_FOUND)
    alert = resolve_alert(alert)
    return Response(LowStockAlertSerializer(alert).data)


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, ManagerPermission])
def restock_check(request):
    tenant = _get_scope(request)
    serializer = RestockCheckSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    result = run_restock_check(
        tenant,
        user=request.user,
        mode=serializer.validated_data["mode"],
        confirm=serializer.validated_data["confirm"],
    )
    created = result["created"]
    return Response(
        {
            "mode": result["mode"],
            "low_stock": [_candidate_payload(item) for item in result["low_stock"]],
            "to_order": [_candidate_payload(item) for item in result["to_order"]],
            "already_drafted": [item.id for item in result["already_drafted"]],
            "skipped": [item.id for item in result["skipped"]],
            "created": PurchaseOrderSerializer(created, many=True).data,
            "requires_confirmation": bool(result["to_order"]) and not created,
        },
        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
    )


@api_view(["GET", "POST"])
@permission_classes([permissions.IsAuthenticated, ManagerPermission])
def purchase_orders(request):
    tenant = _get_scope(request)

    if request.method == "POST":
        serializer = PurchaseOrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        supplier = None
        if data.get("supplier_id"):
            supplier = Supplier.objects.filter(tenant=tenant, id=data["supplier_id"]).first()
            if not supplier:
                return Response({"detail": "Fournisseur introuvable."}, status=status.HTTP_404_NOT_FOUND)

        item_ids = [line["item_id"] for line in data["lines"]]
        items = {item.id: item for item in InventoryItem.objects.filter(tenant=tenant, id__in=item_ids)}
        missing = [item_id for item_id in item_ids if item_id not in items]
        if missing:
            raise ItemNotFoundError(items=missing)

        with transaction.atomic():
            # verrou tenant : numérotation PO-<année>-NNN sans doublon
            locked_tenant = Tenant.objects.select_for_update().get(id=tenant.id)
            po = create_purchase_order(
                locked_tenant,
                request.user,
                [
                    {
                        "item": items[line["item_id"]],
                        "quantity": line["quantity"],
                        "unit_cost": line.get("unit_cost"),
                    }
                    for line in data["lines"]
                ],
                supplier=supplier,
                notes=data.get("notes") or "",
                expected_delivery_date=data.get("expected_delivery_date"),
            )
        return Response(PurchaseOrderSerializer(po).data, status=status.HTTP_201_CREATED)

    qs = PurchaseOrder.objects.filter(tenant=tenant).prefetch_related("lines")
    state = request.query_params.get("status")
    if state:
        qs = qs.filter(status=state)
    return Response(PurchaseOrderSerializer(qs, many=True).data)


def _get_purchase_order(tenant, po_id):
    return PurchaseOrder.objects.filter(tenant=tenant, id=po_id).first()


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated, ManagerPermission])
def purchase_order_detail(request, po_id: int):
    tenant = _get_scope(request)
    po = _get_purchase_order(tenant, po_id)
    if not po:
        return Response({"detail": "Bon de commande introuvable."}, status=status.HTTP_404_NOT_FOUND)
    return Response(PurchaseOrderSerializer(po).data)


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, ManagerPermission])
def purchase_order_place(request, po_id: int):
    tenant = _get_scope(request)
    po = _get_purchase_order(tenant, po_id)
    if not po:
        return Response({"detail": "Bon de commande introuvable."}, status=status.HTTP_404_NOT_FOUND)
    po = place_purchase_order(po)
    return Response(PurchaseOrderSerializer(po).data)


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, ManagerPermission])
def purchase_order_receive(request, po_id: int):
    tenant = _get_scope(request)
    po = _get_purchase_order(tenant, po_id)
    if not po:
        return Response({"detail": "Bon de commande introuvable."}, status=status.HTTP_404_NOT_FOUND)

    serializer = PurchaseOrderReceiveSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    po = receive_purchase_order(
        po,
        request.user,
        data.get("lines") or [],
        location=data.get("location") or "",
        notes=data.get("notes") or "",
    )
    return Response(PurchaseOrderSerializer(po).data)


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, ManagerPermission])
def purchase_order_cancel(request, po_id: int):
    tenant = _get_scope(request)
    po = _get_purchase_order(tenant, po_id)
    if not po:
        return Response({"detail": "Bon de commande introuvable."}, status=status.HTTP_404_NOT_FOUND)
    po = cancel_purchase_order(po)
    return Response(PurchaseOrderSerializer(po).data)


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated, ManagerPermission])
def valuation_report(request):
    tenant = _get_scope(request)
    report = inventory_valuation(tenant)
    return Response(
        {
            "currency": tenant.currency_code,
            "total_value": str(report["total_value"]),
            "item_count": report["item_count"],
            "total_units": str(report["total_units"]),
            "categories": [
                {"category": entry["category"], "value": str(entry["value"])}
                for entry in report["categories"]
            ],
            "items": [
                {
                    "id": row["id"],
                    "name": row["name"],
                    "category": row["category"],
                    "current_stock": str(row["current_stock"]),
                    "unit_cost": str(row["unit_cost"]),
                    "value": str(row["value"]),
                }
                for row in report["items"]
            ],
        }
    )


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated, ManagerPermission])
@renderer_classes([XLSXRenderer, CSVRenderer])
def valuation_export(request):
    tenant = _get_scope(request)
    export_format = (request.query_params.get("format", "xlsx") or "xlsx").lower()
    email_to = request.query_params.get("email")

    report = inventory_valuation(tenant)
    today = timezone.localdate().isoformat()
    title = f"{tenant.name} | Valorisation du stock | {today}"
    payload, mimetype, ext = build_valuation_export(report, export_format, title=title)
    filename = f"valorisation_{today}.{ext}"

    if email_to:
        sent = send_email_with_sendgrid(
            to_email=email_to,
            subject=f"Valorisation du stock {tenant.name}",
            text_body=request.query_params.get("message") or "Ci-joint la valorisation du stock.",
            filename=filename,
            file_bytes=payload,
            mimetype=mimetype,
            fallback_to_django=True,
        )
        if not sent:
            logger.warning("Valuation export email failed tenant=%s to=%s", tenant.id, email_to)

    resp = Response(payload, content_type=mimetype if ext == "xlsx" else f"{mimetype}; charset=utf-8")
    resp["Content-Disposition"] = f'attachment; filename="{filename}"'
    logger.info("Valuation export tenant=%s format=%s emailed=%s", tenant.id, ext, bool(email_to))
    return resp

from datetime import datetime

from django.db import transaction
from django.utils import timezone
from rest_framework import permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.response import Response

from accounts.permissions import ManagerPermission, StaffPermission
from accounts.utils import get_tenant_for_request
from inventory.models import InventoryItem

from .models import FoodOrder, MenuItem, RecipeItem
from .serializers import (
    MenuItemSerializer,
    OrderAdvanceSerializer,
    OrderCancelSerializer,
    OrderCreateSerializer,
    OrderSerializer,
    RecipeItemSerializer,
)
from .services.orders import (
    BOARD_STATUSES,
    advance_order,
    cancel_order,
    compute_menu_item_availability,
    create_order,
)


def _parse_since(value):
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def _get_scope(request):
    return get_tenant_for_request(request)


def _get_order(tenant, order_id):
    return FoodOrder.objects.filter(tenant=tenant, id=order_id).first()


@api_view(["GET", "POST"])
@permission_classes([permissions.IsAuthenticated, StaffPermission])
def menu_items(request):
    tenant = _get_scope(request)

    if request.method == "POST":
        if not ManagerPermission().has_permission(request, None):
            raise PermissionDenied("Rôle insuffisant pour modifier la carte.")
        serializer = MenuItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        menu_item = serializer.save(tenant=tenant)
        return Response(MenuItemSerializer(menu_item).data, status=status.HTTP_201_CREATED)

    qs = MenuItem.objects.filter(tenant=tenant)
    if request.query_params.get("include_inactive") != "1":
        qs = qs.filter(is_active=True)
    with_availability = request.query_params.get("with_availability") == "1"
    if with_availability:
        qs = qs.prefetch_related("recipe_items__inventory_item")

    items = list(qs.order_by("name"))
    data = MenuItemSerializer(items, many=True).data
    if with_availability:
        for idx, item in enumerate(items):
            available, limiting = compute_menu_item_availability(item)
            data[idx]["available_count"] = available
            data[idx]["limiting_ingredients"] = limiting
    return Response(data)


@api_view(["GET", "PATCH"])
@permission_classes([permissions.IsAuthenticated, StaffPermission])
def menu_item_detail(request, menu_item_id: int):
    tenant = _get_scope(request)
    menu_item = MenuItem.objects.filter(tenant=tenant, id=menu_item_id).first()
    if not menu_item:
        return Response({"detail": "Plat introuvable."}, status=status.HTTP_404_NOT_FOUND)

    if request.method == "PATCH":
        if not ManagerPermission().has_permission(request, None):
            raise PermissionDenied("Rôle insuffisant pour modifier la carte.")
        serializer = MenuItemSerializer(menu_item, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)

    return Response(MenuItemSerializer(menu_item).data)


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated, StaffPermission])
def menu_item_availability(request, menu_item_id: int):
    tenant = _get_scope(request)
    menu_item = (
        MenuItem.objects.filter(tenant=tenant, id=menu_item_id)
        .prefetch_related("recipe_items__inventory_item")
        .first()
    )
    if not menu_item:
        return Response({"detail": "Plat introuvable."}, status=status.HTTP_404_NOT_FOUND)

    available, limiting = compute_menu_item_availability(menu_item)
    return Response({"available_count": available, "limiting_ingredients": limiting})


@api_view(["GET", "POST"])
@permission_classes([permissions.IsAuthenticated, ManagerPermission])
def menu_item_recipe(request, menu_item_id: int):
    tenant = _get_scope(request)
    menu_item = MenuItem.objects.filter(tenant=tenant, id=menu_item_id).first()
    if not menu_item:
        return Response({"detail": "Plat introuvable."}, status=status.HTTP_404_NOT_FOUND)

    if request.method == "GET":
        recipe = menu_item.recipe_items.select_related("inventory_item").order_by("id")
        return Response(
            [
                {
                    "inventory_item_id": row.inventory_item_id,
                    "name": row.inventory_item.name,
                    "qty": str(row.qty),
                    "unit": row.unit,
                }
                for row in recipe
            ]
        )

    items_payload = request.data.get("items") if isinstance(request.data, dict) else request.data
    serializer = RecipeItemSerializer(data=items_payload, many=True)
    serializer.is_valid(raise_exception=True)

    ingredient_ids = [row["inventory_item_id"] for row in serializer.validated_data]
    if len(set(ingredient_ids)) != len(ingredient_ids):
        raise ValidationError({"items": "Chaque ingrédient ne peut apparaître qu'une fois dans la recette."})
    item_map = {
        item.id: item for item in InventoryItem.objects.filter(tenant=tenant, id__in=ingredient_ids)
    }
    if any(item_id not in item_map for item_id in ingredient_ids):
        raise PermissionDenied("Accès interdit à un ou plusieurs articles de stock.")

    with transaction.atomic():
        RecipeItem.objects.filter(menu_item=menu_item).delete()
        RecipeItem.objects.bulk_create(
            [
                RecipeItem(
                    menu_item=menu_item,
                    inventory_item=item_map[row["inventory_item_id"]],
                    qty=row["qty"],
                    unit=row.get("unit") or item_map[row["inventory_item_id"]].unit,
                )
                for row in serializer.validated_data
            ]
        )

    return Response({"detail": "Recette mise à jour."})


@api_view(["GET", "POST"])
@permission_classes([permissions.IsAuthenticated, StaffPermission])
def orders(request):
    tenant = _get_scope(request)

    if request.method == "POST":
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        details = dict(serializer.validated_data)
        lines = details.pop("lines")
        order = create_order(tenant, request.user, lines, **details)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    qs = FoodOrder.objects.filter(tenant=tenant).prefetch_related("lines")
    state = request.query_params.get("status")
    if state:
        qs = qs.filter(status__in=[s.strip() for s in state.split(",") if s.strip()])
    order_type = request.query_params.get("order_type")
    if order_type:
        qs = qs.filter(order_type=order_type)
    return Response(OrderSerializer(qs.order_by("-created_at"), many=True).data)


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated, StaffPermission])
def order_detail(request, order_id: int):
    tenant = _get_scope(request)
    order = (
        FoodOrder.objects.filter(tenant=tenant, id=order_id)
        .prefetch_related("lines")
        .first()
    )
    if not order:
        return Response({"detail": "Commande introuvable."}, status=status.HTTP_404_NOT_FOUND)
    return Response(OrderSerializer(order).data)


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, StaffPermission])
def order_advance(request, order_id: int):
    tenant = _get_scope(request)
    order = _get_order(tenant, order_id)
    if not order:
        return Response({"detail": "Commande introuvable."}, status=status.HTTP_404_NOT_FOUND)

    serializer = OrderAdvanceSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    order = advance_order(
        order,
        serializer.validated_data["status"],
        user=request.user,
        expected_version=serializer.validated_data.get("version"),
    )
    return Response(OrderSerializer(order).data)


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, StaffPermission])
def order_cancel(request, order_id: int):
    tenant = _get_scope(request)
    order = _get_order(tenant, order_id)
    if not order:
        return Response({"detail": "Commande introuvable."}, status=status.HTTP_404_NOT_FOUND)

    serializer = OrderCancelSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    order = cancel_order(
        order,
        data["reason_code"],
        data.get("reason_text") or "",
        user=request.user,
        restock=data["restock"],
        expected_version=data.get("version"),
    )
    return Response(OrderSerializer(order).data)


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated, StaffPermission])
def kitchen_board(request):
    tenant = _get_scope(request)
    since = _parse_since(request.query_params.get("since"))

    qs = FoodOrder.objects.filter(tenant=tenant, status__in=BOARD_STATUSES).prefetch_related("lines")
    if since:
        qs = qs.filter(updated_at__gte=since)
    order_type = request.query_params.get("order_type")
    if order_type:
        qs = qs.filter(order_type=order_type)

    return Response(OrderSerializer(qs.order_by("created_at", "id"), many=True).data)

# backend/kitchen/services/orders.py
import logging
from decimal import Decimal, ROUND_FLOOR

from django.db import transaction
from django.utils import timezone
from rest_framework import status as http_status

from accounts.models import Tenant
from hotelops.metrics import track_order_transition
from inventory.services.stock import consume_ingredients, record_waste, return_ingredients
from utils.numbering import next_document_number

from ..models import FoodOrder, FoodOrderLine, MenuItem

logger = logging.getLogger(__name__)

ORDER_FLOW = ["pending", "confirmed", "preparing", "ready", "out_for_delivery", "delivered"]
NEXT_STATUS = dict(zip(ORDER_FLOW, ORDER_FLOW[1:]))
TERMINAL_STATUSES = {"delivered", "cancelled"}
BOARD_STATUSES = ["pending", "confirmed", "preparing", "ready"]

STATUS_TIMESTAMPS = {
    "confirmed": "confirmed_at",
    "preparing": "preparing_at",
    "ready": "ready_at",
    "out_for_delivery": "dispatched_at",
    "delivered": "delivered_at",
    "cancelled": "cancelled_at",
}
STATUS_ACTIONS = {
    "confirmed": "accept",
    "preparing": "start_cooking",
    "ready": "mark_ready",
    "out_for_delivery": "dispatch",
    "delivered": "deliver",
    "cancelled": "cancel",
}
# vue cuisine : preparing -> cooking
KITCHEN_STATUS = {
    "pending": "new",
    "confirmed": "new",
    "preparing": "cooking",
    "ready": "ready",
    "out_for_delivery": "served",
    "delivered": "served",
    "cancelled": "cancelled",
}

CANCEL_REASONS = ["guest_request", "out_of_stock", "mistake", "duplicate", "other"]


class KitchenError(Exception):
    code = "kitchen_error"
    status_code = http_status.HTTP_400_BAD_REQUEST
    default_detail = "Opération impossible sur cette commande."

    def __init__(self, detail=None, items=None):
        self.detail = detail or self.default_detail
        self.items = items
        super().__init__(self.detail)


class InvalidTransitionError(KitchenError):
    code = "invalid_transition"
    default_detail = "Transition de statut invalide."


class VersionConflictError(KitchenError):
    code = "version_conflict"
    status_code = http_status.HTTP_409_CONFLICT
    default_detail = "La commande a été modifiée entre-temps. Rechargez-la."


class MissingMenuPriceError(KitchenError):
    code = "missing_menu_price"
    default_detail = "Prix manquant pour certains plats."


class MenuItemNotFoundError(KitchenError):
    code = "menu_item_not_found"
    default_detail = "Plat introuvable ou inactif."


def next_status(current):
    return NEXT_STATUS.get(current)


def can_transition(current, target):
    if current in TERMINAL_STATUSES:
        return False
    if target == "cancelled":
        return True
    return NEXT_STATUS.get(current) == target


def allowed_actions(current):
    """Actions proposées à l'opérateur : l'étape suivante puis l'annulation."""
    if current in TERMINAL_STATUSES:
        return []
    target = NEXT_STATUS[current]
    return [
        {"action": STATUS_ACTIONS[target], "status": target},
        {"action": STATUS_ACTIONS["cancelled"], "status": "cancelled"},
    ]


def _floor_div(stock: Decimal, needed: Decimal) -> int:
    if needed <= 0:
        return 0
    return int((stock / needed).to_integral_value(rounding=ROUND_FLOOR))


def compute_menu_item_availability(menu_item: MenuItem):
    recipe_items = list(menu_item.recipe_items.select_related("inventory_item"))
    if not recipe_items:
        return None, []

    limiting = []
    possible_counts = []
    for item in recipe_items:
        stock = item.inventory_item.current_stock
        possible = _floor_div(stock, item.qty)
        possible_counts.append(possible)
        limiting.append(
            {
                "inventory_item_id": item.inventory_item_id,
                "name": item.inventory_item.name,
                "needed": str(item.qty),
                "stock": str(stock),
                "possible": possible,
            }
        )

    return min(possible_counts), limiting


def create_order(tenant, user, lines_payload, **details):
    """
    lines_payload = [{"menu_item_id", "qty", "modifiers"?, "special_instructions"?}]
    details : champs client / livraison (guest_name, room_number, order_type...).
    """
    menu_item_ids = [line["menu_item_id"] for line in lines_payload]
    menu_map = {
        item.id: item
        for item in MenuItem.objects.filter(tenant=tenant, id__in=menu_item_ids, is_active=True)
    }
    missing = sorted({mid for mid in menu_item_ids if mid not in menu_map})
    if missing:
        raise MenuItemNotFoundError(items=missing)

    missing_price = []
    subtotal = Decimal("0")
    rows = []
    for line in lines_payload:
        menu_item = menu_map[line["menu_item_id"]]
        unit_price = menu_item.price or Decimal("0")
        if unit_price <= 0:
            missing_price.append({"id": menu_item.id, "name": menu_item.name})
            continue
        line_total = unit_price * line["qty"]
        subtotal += line_total
        rows.append((menu_item, line, unit_price, line_total))
    if missing_price:
        raise MissingMenuPriceError(items=missing_price)

    tax_amount = details.pop("tax_amount", None) or Decimal("0")
    discount_amount = details.pop("discount_amount", None) or Decimal("0")
    total = max(subtotal + tax_amount - discount_amount, Decimal("0"))

    with transaction.atomic():
        locked_tenant = Tenant.objects.select_for_update().get(id=tenant.id)
        order = FoodOrder.objects.create(
            tenant=locked_tenant,
            order_number=next_document_number(
                FoodOrder.objects.filter(tenant=locked_tenant), "order_number", "ORD-", padding=4
            ),
            created_by=user if getattr(user, "is_authenticated", False) else None,
            subtotal_amount=subtotal,
            tax_amount=tax_amount,
            discount_amount=discount_amount,
            total_amount=total,
            **details,
        )
        FoodOrderLine.objects.bulk_create(
            [
                FoodOrderLine(
                    order=order,
                    menu_item=menu_item,
                    menu_item_name=menu_item.name,
                    qty=line["qty"],
                    unit_price=unit_price,
                    line_total=line_total,
                    modifiers=line.get("modifiers") or {},
                    special_instructions=line.get("special_instructions") or "",
                )
                for menu_item, line, unit_price, line_total in rows
            ]
        )

    logger.info("Food order %s created tenant=%s total=%s", order.order_number, tenant.id, total)
    return order


def collect_requirements(order: FoodOrder):
    """Besoins en ingrédients {inventory_item_id: qty} ; les plats sans recette sont ignorés."""
    lines = order.lines.select_related("menu_item").prefetch_related("menu_item__recipe_items")
    requirements = {}
    for line in lines:
        if not line.menu_item:
            continue
        for recipe in line.menu_item.recipe_items.all():
            needed = recipe.qty * line.qty
            requirements[recipe.inventory_item_id] = (
                requirements.get(recipe.inventory_item_id, Decimal("0")) + needed
            )
    return requirements


def _lock_order(order: FoodOrder, expected_version=None) -> FoodOrder:
    locked = FoodOrder.objects.select_for_update().select_related("tenant").get(id=order.id)
    if expected_version is not None and int(expected_version) != locked.version:
        raise VersionConflictError(
            items=[{"id": locked.id, "expected_version": int(expected_version), "version": locked.version}]
        )
    return locked


def _stamp(order: FoodOrder, target: str, extra_fields=()):
    order.status = target
    order.version += 1
    timestamp_field = STATUS_TIMESTAMPS[target]
    setattr(order, timestamp_field, timezone.now())
    order.save(update_fields=["status", "version", timestamp_field, "updated_at", *extra_fields])


def advance_order(order: FoodOrder, target_status: str, user=None, expected_version=None):
    """
    Fait avancer la commande d'exactement une étape. Le passage en préparation
    déduit les ingrédients dans la même transaction.
    """
    if target_status == "cancelled":
        # l'annulation passe par cancel_order (choix remise en stock / perte)
        raise InvalidTransitionError(
            "Utilisez l'annulation pour annuler une commande.",
            items=[{"id": order.id, "status": order.status, "next_status": next_status(order.status)}],
        )

    with transaction.atomic():
        order = _lock_order(order, expected_version)
        previous = order.status
        if not can_transition(previous, target_status):
            raise InvalidTransitionError(
                f"Impossible de passer de {previous} à {target_status}.",
                items=[{"id": order.id, "status": previous, "next_status": next_status(previous)}],
            )

        extra_fields = []
        if target_status == "preparing" and not order.stock_deducted:
            requirements = collect_requirements(order)
            if requirements:
                consume_ingredients(order.tenant, requirements, reference=order.order_number, user=user)
            order.stock_deducted = True
            extra_fields.append("stock_deducted")

        _stamp(order, target_status, extra_fields)

    track_order_transition(target_status)
    logger.info("Food order %s %s -> %s", order.order_number, previous, target_status)
    return order


def cancel_order(order: FoodOrder, reason_code: str, reason_text: str = "", user=None, restock: bool = True,
                 expected_version=None):
    """
    restock=True  -> si les ingrédients ont été déduits, ils reviennent en stock (ajustement).
    restock=False -> perte : on trace des mouvements waste sans toucher au stock,
                     déjà décrémenté au passage en préparation.
    """
    with transaction.atomic():
        order = _lock_order(order, expected_version)
        previous = order.status
        if previous in TERMINAL_STATUSES:
            raise InvalidTransitionError(
                "Commande déjà terminée.",
                items=[{"id": order.id, "status": previous, "next_status": None}],
            )

        if order.stock_deducted:
            requirements = collect_requirements(order)
            note = f"Annulation {order.order_number} ({reason_code})"
            if restock:
                return_ingredients(
                    order.tenant, requirements, reference=order.order_number, user=user, note=note
                )
            else:
                record_waste(order.tenant, requirements, reference=order.order_number, user=user, note=note)

        order.cancel_reason_code = reason_code or ""
        order.cancel_reason_text = reason_text or ""
        _stamp(order, "cancelled", ["cancel_reason_code", "cancel_reason_text"])

    track_order_transition("cancelled")
    logger.info(
        "Food order %s cancelled from %s reason=%s restock=%s",
        order.order_number,
        previous,
        reason_code,
        restock,
    )
    return order

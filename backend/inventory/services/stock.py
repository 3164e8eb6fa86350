import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from accounts.models import Tenant
from utils.numbering import next_document_number

from ..models import (
    InventoryItem,
    LowStockAlert,
    StockMovement,
    StockTransfer,
    StockTransferLine,
)
from .errors import InvalidTransferError, ItemNotFoundError, StockInsufficientError

logger = logging.getLogger(__name__)

OUTGOING_TYPES = {"usage", "waste", "sales_deduction", "transfer_out"}
MANUAL_MOVEMENT_TYPES = ("usage", "waste", "adjustment")


def _to_decimal(value) -> Decimal:
    if value in (None, ""):
        return Decimal("0")
    return Decimal(str(value))


def location_quantity(item: InventoryItem, location: str) -> Decimal:
    return _to_decimal((item.location_stock or {}).get(location))


def _draw_from_locations(partition, total):
    """
    Une sortie sans emplacement consomme d'abord le stock non affecté, puis
    les emplacements (ordre alphabétique) : la somme des emplacements ne
    dépasse jamais le stock total.
    """
    excess = sum(_to_decimal(value) for value in partition.values()) - total
    for location in sorted(partition):
        if excess <= 0:
            break
        available = _to_decimal(partition[location])
        taken = min(available, excess)
        if taken > 0:
            partition[location] = str(available - taken)
            excess -= taken
    return partition


def sync_low_stock_alert(item: InventoryItem):
    """
    Ouvre une alerte si le stock est au niveau du seuil ou en dessous
    (une seule alerte active par article), la résout sinon.
    """
    active = LowStockAlert.objects.filter(item=item, status="active")
    if item.current_stock <= item.min_stock_level:
        if not active.exists():
            LowStockAlert.objects.create(
                tenant_id=item.tenant_id,
                item=item,
                current_stock=item.current_stock,
                min_stock_level=item.min_stock_level,
            )
            logger.info(
                "Low stock alert opened item=%s stock=%s min=%s",
                item.id,
                item.current_stock,
                item.min_stock_level,
            )
        return
    resolved = active.update(status="resolved", resolved_at=timezone.now())
    if resolved:
        logger.info("Low stock alert resolved item=%s stock=%s", item.id, item.current_stock)


def apply_movement(
    item: InventoryItem,
    quantity,
    movement_type: str,
    *,
    user=None,
    location: str = "",
    reference: str = "",
    note: str = "",
    unit_cost=None,
) -> StockMovement:
    """
    Applique un mouvement signé sur un article déjà verrouillé
    (select_for_update) par l'appelant, et trace le mouvement.
    """
    quantity = _to_decimal(quantity)
    previous = item.current_stock
    new_stock = previous + quantity
    if new_stock < 0:
        raise StockInsufficientError(
            items=[
                {
                    "id": item.id,
                    "name": item.name,
                    "needed": str(-quantity),
                    "available": str(previous),
                }
            ]
        )

    update_fields = ["current_stock", "updated_at"]
    if not location and quantity < 0 and item.location_stock:
        partition = _draw_from_locations(dict(item.location_stock), new_stock)
        if partition != item.location_stock:
            item.location_stock = partition
            update_fields.append("location_stock")
    elif location:
        partition = dict(item.location_stock or {})
        at_location = _to_decimal(partition.get(location)) + quantity
        if at_location < 0:
            raise StockInsufficientError(
                detail=f"Stock insuffisant à l'emplacement {location}.",
                items=[
                    {
                        "id": item.id,
                        "name": item.name,
                        "location": location,
                        "needed": str(-quantity),
                        "available": str(at_location - quantity),
                    }
                ],
            )
        partition[location] = str(at_location)
        item.location_stock = partition
        update_fields.append("location_stock")

    item.current_stock = new_stock
    item.save(update_fields=update_fields)

    movement = StockMovement.objects.create(
        tenant_id=item.tenant_id,
        item=item,
        movement_type=movement_type,
        quantity=quantity,
        previous_stock=previous,
        new_stock=new_stock,
        unit_cost=item.unit_cost if unit_cost is None else unit_cost,
        location=location or "",
        reference=reference or "",
        note=note or "",
        created_by=user if getattr(user, "is_authenticated", False) else None,
    )
    sync_low_stock_alert(item)
    return movement


def _lock_items(tenant, item_ids):
    items = list(
        InventoryItem.objects.select_for_update().filter(tenant=tenant, id__in=list(item_ids))
    )
    return {item.id: item for item in items}


def adjust_stock(tenant, item_id, quantity, movement_type, *, user=None, location="", note=""):
    """
    Ajustement manuel : usage et perte sont des sorties (quantité positive
    saisie, appliquée en négatif), l'ajustement garde son signe.
    """
    quantity = _to_decimal(quantity)
    if movement_type in OUTGOING_TYPES:
        quantity = -abs(quantity)

    with transaction.atomic():
        item = _lock_items(tenant, [item_id]).get(item_id)
        if item is None:
            raise ItemNotFoundError()
        movement = apply_movement(
            item,
            quantity,
            movement_type,
            user=user,
            location=location,
            note=note,
        )
    logger.info(
        "Stock adjusted item=%s type=%s qty=%s new=%s",
        item.id,
        movement_type,
        quantity,
        movement.new_stock,
    )
    return movement


def consume_ingredients(tenant, requirements, *, reference="", user=None):
    """
    Déduit les ingrédients d'une commande (requirements = {item_id: qty}).
    Tout ou rien : si un ingrédient manque, rien n'est écrit.
    """
    with transaction.atomic():
        item_map = _lock_items(tenant, requirements.keys())

        insufficient = []
        for item_id, needed in requirements.items():
            item = item_map.get(item_id)
            if item is None:
                insufficient.append({"id": item_id, "name": "Article introuvable", "needed": str(needed)})
                continue
            if item.current_stock < needed:
                insufficient.append(
                    {
                        "id": item.id,
                        "name": item.name,
                        "needed": str(needed),
                        "available": str(item.current_stock),
                    }
                )
        if insufficient:
            raise StockInsufficientError(items=insufficient)

        return [
            apply_movement(
                item_map[item_id],
                -needed,
                "sales_deduction",
                user=user,
                reference=reference,
            )
            for item_id, needed in requirements.items()
        ]


def return_ingredients(tenant, requirements, *, reference="", user=None, note=""):
    with transaction.atomic():
        item_map = _lock_items(tenant, requirements.keys())
        return [
            apply_movement(
                item_map[item_id],
                needed,
                "adjustment",
                user=user,
                reference=reference,
                note=note or "Remise en stock après annulation",
            )
            for item_id, needed in requirements.items()
            if item_id in item_map
        ]


def record_waste(tenant, requirements, *, reference="", user=None, note=""):
    """
    Trace une perte pour des ingrédients déjà déduits : le stock ne bouge pas,
    previous_stock == new_stock et la quantité perdue est portée en négatif.
    """
    item_map = {
        item.id: item
        for item in InventoryItem.objects.filter(tenant=tenant, id__in=list(requirements.keys()))
    }
    movements = [
        StockMovement(
            tenant=tenant,
            item=item_map[item_id],
            movement_type="waste",
            quantity=-needed,
            previous_stock=item_map[item_id].current_stock,
            new_stock=item_map[item_id].current_stock,
            unit_cost=item_map[item_id].unit_cost,
            reference=reference or "",
            note=note or "Perte après préparation",
            created_by=user if getattr(user, "is_authenticated", False) else None,
        )
        for item_id, needed in requirements.items()
        if item_id in item_map
    ]
    if movements:
        StockMovement.objects.bulk_create(movements)
    return movements


def transfer_stock(tenant, from_location, to_location, lines, *, user=None, notes=""):
    """
    Déplace du stock entre deux emplacements ; le stock total ne change pas.
    lines = [{"item_id": int, "quantity": Decimal}]
    """
    from_location = (from_location or "").strip()
    to_location = (to_location or "").strip()
    if not from_location or not to_location:
        raise InvalidTransferError("Emplacements source et destination requis.")
    if from_location == to_location:
        raise InvalidTransferError("La source et la destination doivent être différentes.")
    if not lines:
        raise InvalidTransferError("Ajoutez au moins un article.")

    # une ligne par article : les quantités répétées sont cumulées avant contrôle
    merged = {}
    for line in lines:
        merged[line["item_id"]] = merged.get(line["item_id"], Decimal("0")) + _to_decimal(line["quantity"])
    lines = [{"item_id": item_id, "quantity": quantity} for item_id, quantity in merged.items()]

    with transaction.atomic():
        locked_tenant = Tenant.objects.select_for_update().get(id=tenant.id)
        item_map = _lock_items(locked_tenant, [line["item_id"] for line in lines])

        missing = [line["item_id"] for line in lines if line["item_id"] not in item_map]
        if missing:
            raise ItemNotFoundError(items=missing)

        insufficient = []
        for line in lines:
            item = item_map[line["item_id"]]
            available = min(location_quantity(item, from_location), item.current_stock)
            if available < line["quantity"]:
                insufficient.append(
                    {
                        "id": item.id,
                        "name": item.name,
                        "location": from_location,
                        "needed": str(line["quantity"]),
                        "available": str(available),
                    }
                )
        if insufficient:
            raise StockInsufficientError(
                detail=f"Stock insuffisant à l'emplacement {from_location}.",
                items=insufficient,
            )

        year = timezone.now().year
        transfer = StockTransfer.objects.create(
            tenant=locked_tenant,
            transfer_number=next_document_number(
                StockTransfer.objects.filter(tenant=locked_tenant),
                "transfer_number",
                f"TRF-{year}-",
            ),
            from_location=from_location,
            to_location=to_location,
            notes=notes or "",
            created_by=user if getattr(user, "is_authenticated", False) else None,
        )

        movements = []
        transfer_lines = []
        for line in lines:
            item = item_map[line["item_id"]]
            qty = line["quantity"]
            partition = dict(item.location_stock or {})
            partition[from_location] = str(location_quantity(item, from_location) - qty)
            partition[to_location] = str(location_quantity(item, to_location) + qty)
            item.location_stock = partition
            item.save(update_fields=["location_stock", "updated_at"])

            transfer_lines.append(
                StockTransferLine(transfer=transfer, item=item, item_name=item.name, quantity=qty)
            )
            for movement_type, signed, location in (
                ("transfer_out", -qty, from_location),
                ("transfer_in", qty, to_location),
            ):
                movements.append(
                    StockMovement(
                        tenant=locked_tenant,
                        item=item,
                        movement_type=movement_type,
                        quantity=signed,
                        previous_stock=item.current_stock,
                        new_stock=item.current_stock,
                        unit_cost=item.unit_cost,
                        location=location,
                        reference=transfer.transfer_number,
                        created_by=transfer.created_by,
                    )
                )

        StockTransferLine.objects.bulk_create(transfer_lines)
        StockMovement.objects.bulk_create(movements)

    logger.info(
        "Stock transfer %s %s -> %s (%s lines)",
        transfer.transfer_number,
        from_location,
        to_location,
        len(lines),
    )
    return transfer


def resolve_alert(alert: LowStockAlert):
    if alert.status == "resolved":
        return alert
    alert.status = "resolved"
    alert.resolved_at = timezone.now()
    alert.save(update_fields=["status", "resolved_at"])
    return alert


def inventory_valuation(tenant):
    """Valeur du stock actif : total et ventilation par catégorie."""
    items = list(
        InventoryItem.objects.filter(tenant=tenant, is_active=True).order_by("category", "name")
    )
    categories = {}
    rows = []
    total = Decimal("0")
    for item in items:
        value = item.total_value
        total += value
        categories[item.category] = categories.get(item.category, Decimal("0")) + value
        rows.append(
            {
                "id": item.id,
                "name": item.name,
                "sku": item.sku,
                "category": item.category,
                "unit": item.unit,
                "current_stock": item.current_stock,
                "unit_cost": item.unit_cost,
                "value": value,
            }
        )

    return {
        "total_value": total,
        "item_count": len(items),
        "total_units": InventoryItem.objects.filter(tenant=tenant, is_active=True).aggregate(
            total=Sum("current_stock")
        )["total"]
        or Decimal("0"),
        "categories": [
            {"category": category, "value": value}
            for category, value in sorted(categories.items())
        ],
        "items": rows,
    }

import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from hotelops.metrics import track_purchase_order_transition
from utils.numbering import next_document_number

from ..models import InventoryItem, PurchaseOrder, PurchaseOrderLine
from .errors import InvalidPurchaseOrderTransition, InventoryError, ItemNotFoundError
from .stock import apply_movement

logger = logging.getLogger(__name__)

PO_TRANSITIONS = {
    "draft": {"ordered", "cancelled"},
    "ordered": {"received", "cancelled"},
    "received": set(),
    "cancelled": set(),
}


def can_transition(current: str, target: str) -> bool:
    return target in PO_TRANSITIONS.get(current, set())


def next_po_number(tenant, year=None) -> str:
    year = year or timezone.now().year
    return next_document_number(
        PurchaseOrder.objects.filter(tenant=tenant),
        "po_number",
        f"PO-{year}-",
    )


def create_purchase_order(tenant, user, lines_payload, *, supplier=None, notes="", source="manual",
                          expected_delivery_date=None):
    """
    lines_payload = [{"item": InventoryItem, "quantity": Decimal, "unit_cost": Decimal|None}]
    Appeler sous verrou du tenant quand plusieurs créations peuvent se croiser.
    """
    if not lines_payload:
        raise InventoryError("Ajoutez au moins une ligne.")

    rows = []
    subtotal = Decimal("0")
    for line in lines_payload:
        item = line["item"]
        quantity = Decimal(str(line["quantity"]))
        unit_cost = line.get("unit_cost")
        unit_cost = item.unit_cost if unit_cost is None else Decimal(str(unit_cost))
        if quantity <= 0:
            raise InventoryError("La quantité doit être supérieure à 0.", items=[item.id])
        if unit_cost < 0:
            raise InventoryError("Le coût unitaire doit être positif.", items=[item.id])
        line_total = (quantity * unit_cost).quantize(Decimal("0.01"))
        subtotal += line_total
        rows.append((item, quantity, unit_cost, line_total))

    po = PurchaseOrder.objects.create(
        tenant=tenant,
        po_number=next_po_number(tenant),
        supplier=supplier,
        supplier_name=supplier.name if supplier else "",
        status="draft",
        source=source,
        subtotal_amount=subtotal,
        total_amount=subtotal,
        notes=notes or "",
        expected_delivery_date=expected_delivery_date,
        created_by=user if getattr(user, "is_authenticated", False) else None,
    )
    PurchaseOrderLine.objects.bulk_create(
        [
            PurchaseOrderLine(
                purchase_order=po,
                item=item,
                item_name=item.name,
                quantity=quantity,
                unit_cost=unit_cost,
                line_total=line_total,
            )
            for item, quantity, unit_cost, line_total in rows
        ]
    )
    logger.info("Purchase order %s created (source=%s, %s lines)", po.po_number, source, len(rows))
    return po


def _locked(po: PurchaseOrder) -> PurchaseOrder:
    return PurchaseOrder.objects.select_for_update().get(id=po.id)


def _check_transition(po: PurchaseOrder, target: str):
    if not can_transition(po.status, target):
        raise InvalidPurchaseOrderTransition(
            f"Impossible de passer de {po.status} à {target}.",
            items=[{"id": po.id, "status": po.status, "target": target}],
        )


def place_purchase_order(po: PurchaseOrder):
    with transaction.atomic():
        po = _locked(po)
        _check_transition(po, "ordered")
        po.status = "ordered"
        po.ordered_at = timezone.now()
        po.save(update_fields=["status", "ordered_at", "updated_at"])
    track_purchase_order_transition("ordered")
    logger.info("Purchase order %s placed", po.po_number)
    return po


def cancel_purchase_order(po: PurchaseOrder):
    with transaction.atomic():
        po = _locked(po)
        _check_transition(po, "cancelled")
        po.status = "cancelled"
        po.cancelled_at = timezone.now()
        po.save(update_fields=["status", "cancelled_at", "updated_at"])
    track_purchase_order_transition("cancelled")
    logger.info("Purchase order %s cancelled", po.po_number)
    return po


def receive_purchase_order(po: PurchaseOrder, user=None, lines_payload=None, *, location="", notes=""):
    """
    Réception : chaque ligne ajoute la quantité reçue au stock
    (par défaut la quantité commandée). La quantité rejetée est seulement
    tracée. Le coût réel remplace le coût de l'article.

    lines_payload = [{"line_id", "received_qty"?, "rejected_qty"?, "unit_cost"?}]
    """
    overrides = {row["line_id"]: row for row in (lines_payload or [])}

    with transaction.atomic():
        po = _locked(po)
        _check_transition(po, "received")

        lines = list(po.lines.all())
        unknown = [line_id for line_id in overrides if line_id not in {line.id for line in lines}]
        if unknown:
            raise InventoryError("Lignes inconnues pour ce bon de commande.", items=unknown)

        item_ids = [line.item_id for line in lines if line.item_id]
        items = {
            item.id: item
            for item in InventoryItem.objects.select_for_update().filter(tenant=po.tenant, id__in=item_ids)
        }

        now = timezone.now()
        subtotal = Decimal("0")
        for line in lines:
            override = overrides.get(line.id, {})
            received = override.get("received_qty")
            received = line.quantity if received is None else Decimal(str(received))
            rejected = Decimal(str(override.get("rejected_qty") or 0))
            unit_cost = override.get("unit_cost")
            unit_cost = line.unit_cost if unit_cost is None else Decimal(str(unit_cost))
            if received < 0 or rejected < 0:
                raise InventoryError("Quantités reçues invalides.", items=[line.id])

            line.received_qty = received
            line.rejected_qty = rejected
            line.unit_cost = unit_cost
            line.line_total = (received * unit_cost).quantize(Decimal("0.01"))
            line.save(update_fields=["received_qty", "rejected_qty", "unit_cost", "line_total"])
            subtotal += line.line_total

            item = items.get(line.item_id)
            if line.item_id and item is None:
                raise ItemNotFoundError(items=[line.item_id])
            if item is None or received == 0:
                continue
            item.unit_cost = unit_cost
            item.last_restocked_at = now
            item.save(update_fields=["unit_cost", "last_restocked_at", "updated_at"])
            apply_movement(
                item,
                received,
                "purchase",
                user=user,
                location=location,
                reference=po.po_number,
                unit_cost=unit_cost,
            )

        po.status = "received"
        po.received_at = now
        po.subtotal_amount = subtotal
        po.total_amount = subtotal
        update_fields = ["status", "received_at", "subtotal_amount", "total_amount", "updated_at"]
        if notes:
            po.notes = f"{po.notes}\n{notes}".strip()
            update_fields.append("notes")
        po.save(update_fields=update_fields)

    track_purchase_order_transition("received")
    logger.info("Purchase order %s received (%s lines)", po.po_number, len(lines))
    return po

import logging
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import F

from accounts.models import Tenant
from hotelops.metrics import track_restock_drafts

from ..models import InventoryItem, PurchaseOrder
from .purchasing import create_purchase_order

logger = logging.getLogger(__name__)

RESTOCK_MODES = ("auto", "manual")


def _get(obj, name, default=None):
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def scan_low_stock(items):
    """Articles dont le stock courant est au seuil minimum ou en dessous."""
    return [
        item
        for item in items
        if Decimal(str(_get(item, "current_stock", 0))) <= Decimal(str(_get(item, "min_stock_level", 0)))
    ]


def _line_item_ids(order):
    if isinstance(order, PurchaseOrder):
        return [line.item_id for line in order.lines.all() if line.item_id]
    ids = []
    for line in _get(order, "lines", None) or []:
        item_id = _get(line, "item_id")
        if item_id is None:
            item_id = _get(line, "item")
        if item_id is not None:
            ids.append(item_id)
    return ids


def drafted_item_ids(orders):
    drafted = set()
    for order in orders:
        if _get(order, "status") == "draft":
            drafted.update(_line_item_ids(order))
    return drafted


def dedupe_against_drafts(candidates, orders):
    """
    Retire des candidats les articles déjà présents dans un bon de commande
    au statut brouillon. Les autres statuts ne bloquent pas.
    """
    drafted = drafted_item_ids(orders)
    if not drafted:
        return list(candidates)
    return [item for item in candidates if _get(item, "id") not in drafted]


def low_stock_queryset(tenant):
    return InventoryItem.objects.filter(
        tenant=tenant,
        is_active=True,
        current_stock__lte=F("min_stock_level"),
    ).select_related("preferred_supplier")


def suggested_quantity(item, multiplier=None) -> Decimal:
    if multiplier is None:
        multiplier = getattr(settings, "RESTOCK_QUANTITY_MULTIPLIER", 2)
    return Decimal(str(item.min_stock_level)) * Decimal(str(multiplier))


def _draft_orders(tenant):
    return PurchaseOrder.objects.filter(tenant=tenant, status="draft").prefetch_related("lines")


def _create_drafts(tenant, user, items, mode):
    by_supplier = {}
    for item in items:
        by_supplier.setdefault(item.preferred_supplier_id, []).append(item)

    created = []
    # les articles sans fournisseur partagent un brouillon sans fournisseur
    for supplier_id in sorted(by_supplier, key=lambda value: (value is None, value or 0)):
        group = by_supplier[supplier_id]
        supplier = group[0].preferred_supplier
        created.append(
            create_purchase_order(
                tenant,
                user,
                [
                    {"item": item, "quantity": suggested_quantity(item), "unit_cost": item.unit_cost}
                    for item in group
                ],
                supplier=supplier,
                notes="Réassort automatique (stock sous le seuil minimum).",
                source="auto_restock",
            )
        )
    if created:
        track_restock_drafts(mode, len(created))
    return created


def run_restock_check(tenant, user=None, mode="auto", confirm=False):
    """
    Scan + dédoublonnage + création des brouillons, sous verrou du tenant :
    deux vérifications simultanées ne peuvent pas rédiger le même article,
    et une seconde vérification sans changement ne crée rien.

    mode="auto"   : crée les brouillons dès qu'il reste des candidats.
    mode="manual" : renvoie les candidats ; crée seulement si confirm=True.
    """
    if mode not in RESTOCK_MODES:
        raise ValueError(f"Unknown restock mode: {mode}")

    with transaction.atomic():
        locked_tenant = Tenant.objects.select_for_update().get(id=tenant.id)
        low_stock = list(low_stock_queryset(locked_tenant).order_by("name"))
        candidates = scan_low_stock(low_stock)
        not_drafted = dedupe_against_drafts(candidates, _draft_orders(locked_tenant))
        not_drafted_ids = {item.id for item in not_drafted}
        already_drafted = [item for item in candidates if item.id not in not_drafted_ids]
        # seuil minimum à 0 : aucune quantité à commander, l'article est signalé sans brouillon
        to_order = [item for item in not_drafted if suggested_quantity(item) > 0]
        skipped = [item for item in not_drafted if suggested_quantity(item) <= 0]

        created = []
        if to_order and (mode == "auto" or confirm):
            created = _create_drafts(locked_tenant, user, to_order, mode)

    logger.info(
        "Restock check tenant=%s mode=%s low=%s to_order=%s drafts_created=%s",
        tenant.id,
        mode,
        len(candidates),
        len(to_order),
        len(created),
    )
    return {
        "mode": mode,
        "low_stock": candidates,
        "to_order": to_order,
        "already_drafted": already_drafted,
        "skipped": skipped,
        "created": created,
    }

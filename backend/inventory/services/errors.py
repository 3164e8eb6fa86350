from rest_framework import status


class InventoryError(Exception):
    code = "inventory_error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Opération de stock impossible."

    def __init__(self, detail=None, items=None):
        self.detail = detail or self.default_detail
        self.items = items
        super().__init__(self.detail)


class StockInsufficientError(InventoryError):
    code = "stock_insufficient"
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Stock insuffisant pour certains articles."


class InvalidPurchaseOrderTransition(InventoryError):
    code = "invalid_transition"
    default_detail = "Transition de bon de commande invalide."


class InvalidTransferError(InventoryError):
    code = "invalid_transfer"
    default_detail = "Transfert de stock invalide."


class ItemNotFoundError(InventoryError):
    code = "item_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Article introuvable."

from rest_framework import serializers

from .models import (
    InventoryItem,
    LowStockAlert,
    PurchaseOrder,
    PurchaseOrderLine,
    StockMovement,
    StockTransfer,
    StockTransferLine,
    Supplier,
)
from .services.purchasing import PO_TRANSITIONS
from .services.stock import MANUAL_MOVEMENT_TYPES


class SupplierSerializer(serializers.ModelSerializer):
    class Meta:
        model = Supplier
        fields = ["id", "name", "contact_email", "contact_phone", "address", "created_at"]
        read_only_fields = ["id", "created_at"]

    def validate_name(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("Le nom du fournisseur est requis.")
        return value


class InventoryItemSerializer(serializers.ModelSerializer):
    preferred_supplier = serializers.PrimaryKeyRelatedField(
        queryset=Supplier.objects.all(), required=False, allow_null=True
    )
    preferred_supplier_name = serializers.CharField(source="preferred_supplier.name", read_only=True, default="")
    total_value = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    is_low_stock = serializers.SerializerMethodField()

    class Meta:
        model = InventoryItem
        fields = [
            "id",
            "name",
            "sku",
            "category",
            "unit",
            "current_stock",
            "location_stock",
            "min_stock_level",
            "max_stock_level",
            "unit_cost",
            "preferred_supplier",
            "preferred_supplier_name",
            "last_restocked_at",
            "is_active",
            "is_low_stock",
            "total_value",
            "created_at",
            "updated_at",
        ]
        # le stock ne bouge que par mouvements (réception, ajustement, transfert, cuisine)
        read_only_fields = [
            "id",
            "current_stock",
            "location_stock",
            "last_restocked_at",
            "created_at",
            "updated_at",
        ]

    def get_is_low_stock(self, obj):
        return obj.current_stock <= obj.min_stock_level

    def validate_preferred_supplier(self, supplier):
        request = self.context.get("request")
        profile = getattr(getattr(request, "user", None), "profile", None)
        if supplier and profile and supplier.tenant_id != profile.tenant_id:
            raise serializers.ValidationError("Fournisseur introuvable.")
        return supplier

    def validate(self, attrs):
        min_level = attrs.get("min_stock_level", getattr(self.instance, "min_stock_level", 0))
        max_level = attrs.get("max_stock_level", getattr(self.instance, "max_stock_level", None))
        if min_level is not None and min_level < 0:
            raise serializers.ValidationError({"min_stock_level": "Le seuil minimum doit être positif."})
        if max_level is not None and min_level is not None and max_level < min_level:
            raise serializers.ValidationError(
                {"max_stock_level": "Le stock maximum doit être supérieur au seuil minimum."}
            )
        if attrs.get("unit_cost") is not None and attrs["unit_cost"] < 0:
            raise serializers.ValidationError({"unit_cost": "Le coût unitaire doit être positif."})
        return attrs


class StockMovementSerializer(serializers.ModelSerializer):
    item_name = serializers.CharField(source="item.name", read_only=True)

    class Meta:
        model = StockMovement
        fields = [
            "id",
            "item",
            "item_name",
            "movement_type",
            "quantity",
            "previous_stock",
            "new_stock",
            "unit_cost",
            "location",
            "reference",
            "note",
            "created_at",
        ]


class StockAdjustmentSerializer(serializers.Serializer):
    item_id = serializers.IntegerField()
    movement_type = serializers.ChoiceField(choices=MANUAL_MOVEMENT_TYPES)
    quantity = serializers.DecimalField(max_digits=12, decimal_places=3)
    location = serializers.CharField(required=False, allow_blank=True, default="")
    note = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):
        if attrs["quantity"] == 0:
            raise serializers.ValidationError({"quantity": "La quantité ne peut pas être nulle."})
        if attrs["movement_type"] != "adjustment" and attrs["quantity"] < 0:
            raise serializers.ValidationError({"quantity": "Saisissez une quantité positive."})
        return attrs


class LowStockAlertSerializer(serializers.ModelSerializer):
    item_name = serializers.CharField(source="item.name", read_only=True)
    unit = serializers.CharField(source="item.unit", read_only=True)

    class Meta:
        model = LowStockAlert
        fields = [
            "id",
            "item",
            "item_name",
            "unit",
            "current_stock",
            "min_stock_level",
            "status",
            "created_at",
            "resolved_at",
        ]


class PurchaseOrderLineSerializer(serializers.ModelSerializer):
    class Meta:
        model = PurchaseOrderLine
        fields = [
            "id",
            "item",
            "item_name",
            "quantity",
            "unit_cost",
            "line_total",
            "received_qty",
            "rejected_qty",
        ]


class PurchaseOrderSerializer(serializers.ModelSerializer):
    lines = PurchaseOrderLineSerializer(many=True, read_only=True)
    allowed_transitions = serializers.SerializerMethodField()

    class Meta:
        model = PurchaseOrder
        fields = [
            "id",
            "po_number",
            "supplier",
            "supplier_name",
            "status",
            "source",
            "subtotal_amount",
            "total_amount",
            "notes",
            "expected_delivery_date",
            "created_at",
            "ordered_at",
            "received_at",
            "cancelled_at",
            "allowed_transitions",
            "lines",
        ]

    def get_allowed_transitions(self, obj):
        return sorted(PO_TRANSITIONS.get(obj.status, set()))


class PurchaseOrderLineInputSerializer(serializers.Serializer):
    item_id = serializers.IntegerField()
    quantity = serializers.DecimalField(max_digits=12, decimal_places=3)
    unit_cost = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError("La quantité doit être supérieure à 0.")
        return value

    def validate_unit_cost(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError("Le coût unitaire doit être positif.")
        return value


class PurchaseOrderCreateSerializer(serializers.Serializer):
    supplier_id = serializers.IntegerField(required=False, allow_null=True)
    lines = PurchaseOrderLineInputSerializer(many=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    expected_delivery_date = serializers.DateField(required=False, allow_null=True)

    def validate(self, attrs):
        if not attrs.get("lines"):
            raise serializers.ValidationError({"lines": "Ajoutez au moins une ligne."})
        return attrs


class ReceiveLineSerializer(serializers.Serializer):
    line_id = serializers.IntegerField()
    received_qty = serializers.DecimalField(max_digits=12, decimal_places=3, required=False, allow_null=True)
    rejected_qty = serializers.DecimalField(max_digits=12, decimal_places=3, required=False, default=0)
    unit_cost = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)


class PurchaseOrderReceiveSerializer(serializers.Serializer):
    lines = ReceiveLineSerializer(many=True, required=False)
    location = serializers.CharField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class RestockCheckSerializer(serializers.Serializer):
    mode = serializers.ChoiceField(choices=["auto", "manual"], default="auto")
    confirm = serializers.BooleanField(required=False, default=False)


class TransferLineInputSerializer(serializers.Serializer):
    item_id = serializers.IntegerField()
    quantity = serializers.DecimalField(max_digits=12, decimal_places=3)

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError("La quantité doit être supérieure à 0.")
        return value


class StockTransferCreateSerializer(serializers.Serializer):
    from_location = serializers.CharField()
    to_location = serializers.CharField()
    lines = TransferLineInputSerializer(many=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class StockTransferLineSerializer(serializers.ModelSerializer):
    class Meta:
        model = StockTransferLine
        fields = ["id", "item", "item_name", "quantity"]


class StockTransferSerializer(serializers.ModelSerializer):
    lines = StockTransferLineSerializer(many=True, read_only=True)

    class Meta:
        model = StockTransfer
        fields = ["id", "transfer_number", "from_location", "to_location", "notes", "created_at", "lines"]

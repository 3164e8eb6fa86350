from rest_framework import serializers

from .models import FoodOrder, FoodOrderLine, MenuItem, RecipeItem
from .services.orders import CANCEL_REASONS, KITCHEN_STATUS, allowed_actions, next_status


class MenuItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = MenuItem
        fields = ["id", "name", "description", "category", "is_active", "price", "created_at", "updated_at"]
        read_only_fields = ["id", "created_at", "updated_at"]

    def validate_price(self, value):
        if value < 0:
            raise serializers.ValidationError("Le prix doit être positif.")
        return value


class RecipeItemSerializer(serializers.ModelSerializer):
    inventory_item_id = serializers.IntegerField()

    class Meta:
        model = RecipeItem
        fields = ["inventory_item_id", "qty", "unit"]

    def validate_qty(self, value):
        if value <= 0:
            raise serializers.ValidationError("La quantité doit être supérieure à 0.")
        return value


class OrderLineInputSerializer(serializers.Serializer):
    menu_item_id = serializers.IntegerField()
    qty = serializers.IntegerField(min_value=1)
    modifiers = serializers.JSONField(required=False, default=dict)
    special_instructions = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_modifiers(self, value):
        if value in (None, ""):
            return {}
        if not isinstance(value, dict):
            raise serializers.ValidationError("Les options doivent être un objet.")
        return value


class OrderCreateSerializer(serializers.Serializer):
    lines = OrderLineInputSerializer(many=True)
    order_type = serializers.ChoiceField(choices=FoodOrder.ORDER_TYPE_CHOICES, default="room_service")
    guest_name = serializers.CharField(required=False, allow_blank=True, default="")
    guest_phone = serializers.CharField(required=False, allow_blank=True, default="")
    guest_email = serializers.EmailField(required=False, allow_blank=True, default="")
    room_number = serializers.CharField(required=False, allow_blank=True, default="")
    delivery_location = serializers.ChoiceField(
        choices=FoodOrder.DELIVERY_LOCATION_CHOICES, default="in_room"
    )
    scheduled_delivery_at = serializers.DateTimeField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    tax_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, min_value=0)
    discount_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, min_value=0)

    def validate(self, attrs):
        if not attrs.get("lines"):
            raise serializers.ValidationError({"lines": "Ajoutez au moins un plat."})
        if attrs.get("order_type") == "room_service" and not attrs.get("room_number"):
            raise serializers.ValidationError({"room_number": "Numéro de chambre requis pour le room service."})
        return attrs


class OrderLineSerializer(serializers.ModelSerializer):
    class Meta:
        model = FoodOrderLine
        fields = [
            "id",
            "menu_item_id",
            "menu_item_name",
            "qty",
            "unit_price",
            "line_total",
            "modifiers",
            "special_instructions",
        ]


class OrderSerializer(serializers.ModelSerializer):
    lines = OrderLineSerializer(many=True, read_only=True)
    next_status = serializers.SerializerMethodField()
    allowed_actions = serializers.SerializerMethodField()
    kitchen_status = serializers.SerializerMethodField()

    class Meta:
        model = FoodOrder
        fields = [
            "id",
            "order_number",
            "status",
            "kitchen_status",
            "version",
            "next_status",
            "allowed_actions",
            "order_type",
            "guest_name",
            "guest_phone",
            "guest_email",
            "room_number",
            "delivery_location",
            "notes",
            "subtotal_amount",
            "tax_amount",
            "discount_amount",
            "total_amount",
            "cancel_reason_code",
            "cancel_reason_text",
            "created_at",
            "updated_at",
            "scheduled_delivery_at",
            "confirmed_at",
            "preparing_at",
            "ready_at",
            "dispatched_at",
            "delivered_at",
            "cancelled_at",
            "lines",
        ]

    def get_next_status(self, obj):
        return next_status(obj.status)

    def get_allowed_actions(self, obj):
        return allowed_actions(obj.status)

    def get_kitchen_status(self, obj):
        return KITCHEN_STATUS.get(obj.status)


class OrderAdvanceSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[choice for choice, _ in FoodOrder.STATUS_CHOICES])
    version = serializers.IntegerField(required=False, allow_null=True, min_value=1)


class OrderCancelSerializer(serializers.Serializer):
    reason_code = serializers.ChoiceField(choices=CANCEL_REASONS, default="other")
    reason_text = serializers.CharField(required=False, allow_blank=True, default="")
    restock = serializers.BooleanField(required=False, default=True)
    version = serializers.IntegerField(required=False, allow_null=True, min_value=1)

from decimal import Decimal

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from inventory.models import StockMovement
from kitchen.models import FoodOrder
from kitchen.services.orders import allowed_actions, can_transition, next_status
from .factories import InventoryItemFactory, MenuItemFactory, RecipeItemFactory, TenantFactory, UserFactory


def _auth_client(user):
    client = APIClient()
    token = RefreshToken.for_user(user).access_token
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    return client


def _setup(stock="10"):
    tenant = TenantFactory()
    user = UserFactory(profile=tenant)
    tomato = InventoryItemFactory(tenant=tenant, name="Tomate", current_stock=Decimal(stock))
    salad = MenuItemFactory(tenant=tenant, name="Salade", price=Decimal("8.00"))
    RecipeItemFactory(menu_item=salad, inventory_item=tomato, qty=Decimal("2"))
    return tenant, user, tomato, salad


def _create_order(client, menu_item, qty=1, **extra):
    payload = {
        "lines": [{"menu_item_id": menu_item.id, "qty": qty}],
        "order_type": "room_service",
        "room_number": "204",
        "guest_name": "Mme Diallo",
    }
    payload.update(extra)
    res = client.post("/api/kitchen/orders/", payload, format="json")
    assert res.status_code == 201, res.data
    return res.data


def _advance(client, order_id, target, **extra):
    return client.post(
        f"/api/kitchen/orders/{order_id}/advance/",
        {"status": target, **extra},
        format="json",
    )


def test_status_flow_helpers():
    assert next_status("pending") == "confirmed"
    assert next_status("out_for_delivery") == "delivered"
    assert next_status("delivered") is None
    assert can_transition("ready", "out_for_delivery")
    assert not can_transition("pending", "preparing")
    assert can_transition("preparing", "cancelled")
    assert not can_transition("cancelled", "pending")
    assert allowed_actions("delivered") == []
    assert allowed_actions("pending") == [
        {"action": "accept", "status": "confirmed"},
        {"action": "cancel", "status": "cancelled"},
    ]


@pytest.mark.django_db
def test_create_order_computes_totals_and_number():
    tenant, user, _, salad = _setup()
    client = _auth_client(user)

    first = _create_order(client, salad, qty=3, tax_amount="2.40")
    second = _create_order(client, salad)

    assert first["order_number"] == "ORD-0001"
    assert second["order_number"] == "ORD-0002"
    assert first["status"] == "pending"
    assert first["version"] == 1
    assert Decimal(first["subtotal_amount"]) == Decimal("24.00")
    assert Decimal(first["total_amount"]) == Decimal("26.40")
    assert first["lines"][0]["menu_item_name"] == "Salade"


@pytest.mark.django_db
def test_room_service_requires_room_number():
    _, user, _, salad = _setup()
    res = _auth_client(user).post(
        "/api/kitchen/orders/",
        {"lines": [{"menu_item_id": salad.id, "qty": 1}], "order_type": "room_service"},
        format="json",
    )
    assert res.status_code == 400
    assert "room_number" in res.data


@pytest.mark.django_db
def test_order_for_other_tenant_menu_item_rejected():
    _, user, _, _ = _setup()
    foreign = MenuItemFactory()
    res = _auth_client(user).post(
        "/api/kitchen/orders/",
        {"lines": [{"menu_item_id": foreign.id, "qty": 1}], "order_type": "dine_in"},
        format="json",
    )
    assert res.status_code == 400
    assert res.data["code"] == "menu_item_not_found"


@pytest.mark.django_db
def test_advance_one_step_stamps_timestamp():
    _, user, _, salad = _setup()
    client = _auth_client(user)
    order = _create_order(client, salad)

    res = _advance(client, order["id"], "confirmed")
    assert res.status_code == 200
    assert res.data["status"] == "confirmed"
    assert res.data["confirmed_at"] is not None
    assert res.data["version"] == 2
    assert res.data["next_status"] == "preparing"


@pytest.mark.django_db
def test_skipping_a_step_is_rejected():
    _, user, _, salad = _setup()
    client = _auth_client(user)
    order = _create_order(client, salad)

    res = _advance(client, order["id"], "ready")
    assert res.status_code == 400
    assert res.data["code"] == "invalid_transition"
    assert FoodOrder.objects.get(id=order["id"]).status == "pending"


@pytest.mark.django_db
def test_stale_version_returns_conflict():
    _, user, _, salad = _setup()
    client = _auth_client(user)
    order = _create_order(client, salad)

    assert _advance(client, order["id"], "confirmed", version=1).status_code == 200
    res = _advance(client, order["id"], "preparing", version=1)
    assert res.status_code == 409
    assert res.data["code"] == "version_conflict"


@pytest.mark.django_db
def test_preparing_deducts_recipe_ingredients():
    _, user, tomato, salad = _setup(stock="10")
    client = _auth_client(user)
    order = _create_order(client, salad, qty=3)

    _advance(client, order["id"], "confirmed")
    res = _advance(client, order["id"], "preparing")
    assert res.status_code == 200
    assert res.data["kitchen_status"] == "cooking"

    tomato.refresh_from_db()
    assert tomato.current_stock == Decimal("4")
    movement = StockMovement.objects.get(item=tomato, movement_type="sales_deduction")
    assert movement.quantity == Decimal("-6")
    assert movement.previous_stock == Decimal("10")
    assert movement.reference == order["order_number"]


@pytest.mark.django_db
def test_insufficient_stock_blocks_preparing_and_writes_nothing():
    _, user, tomato, salad = _setup(stock="3")
    client = _auth_client(user)
    order = _create_order(client, salad, qty=2)
    _advance(client, order["id"], "confirmed")

    res = _advance(client, order["id"], "preparing")
    assert res.status_code == 409
    assert res.data["code"] == "stock_insufficient"
    assert res.data["items"][0]["id"] == tomato.id

    tomato.refresh_from_db()
    assert tomato.current_stock == Decimal("3")
    assert not StockMovement.objects.filter(item=tomato).exists()
    assert FoodOrder.objects.get(id=order["id"]).status == "confirmed"


@pytest.mark.django_db
def test_full_flow_to_delivered_has_no_actions():
    _, user, _, salad = _setup()
    client = _auth_client(user)
    order = _create_order(client, salad)

    for target in ["confirmed", "preparing", "ready", "out_for_delivery", "delivered"]:
        res = _advance(client, order["id"], target)
        assert res.status_code == 200, res.data

    assert res.data["allowed_actions"] == []
    assert res.data["dispatched_at"] is not None
    assert res.data["delivered_at"] is not None

    cancel = client.post(f"/api/kitchen/orders/{order['id']}/cancel/", {}, format="json")
    assert cancel.status_code == 400
    assert cancel.data["code"] == "invalid_transition"


@pytest.mark.django_db
def test_cancel_after_preparing_restocks_ingredients():
    _, user, tomato, salad = _setup(stock="10")
    client = _auth_client(user)
    order = _create_order(client, salad, qty=2)
    _advance(client, order["id"], "confirmed")
    _advance(client, order["id"], "preparing")

    res = client.post(
        f"/api/kitchen/orders/{order['id']}/cancel/",
        {"reason_code": "guest_request", "reason_text": "Client parti"},
        format="json",
    )
    assert res.status_code == 200
    assert res.data["status"] == "cancelled"
    assert res.data["cancel_reason_code"] == "guest_request"
    assert res.data["cancelled_at"] is not None

    tomato.refresh_from_db()
    assert tomato.current_stock == Decimal("10")
    assert StockMovement.objects.filter(item=tomato, movement_type="adjustment").count() == 1


@pytest.mark.django_db
def test_cancel_without_restock_records_waste():
    _, user, tomato, salad = _setup(stock="10")
    client = _auth_client(user)
    order = _create_order(client, salad, qty=2)
    _advance(client, order["id"], "confirmed")
    _advance(client, order["id"], "preparing")

    res = client.post(
        f"/api/kitchen/orders/{order['id']}/cancel/",
        {"reason_code": "mistake", "restock": False},
        format="json",
    )
    assert res.status_code == 200

    tomato.refresh_from_db()
    assert tomato.current_stock == Decimal("6")
    waste = StockMovement.objects.get(item=tomato, movement_type="waste")
    assert waste.quantity == Decimal("-4")
    assert waste.previous_stock == waste.new_stock == Decimal("6")


@pytest.mark.django_db
def test_cancel_pending_order_leaves_stock_untouched():
    _, user, tomato, salad = _setup(stock="10")
    client = _auth_client(user)
    order = _create_order(client, salad)

    res = client.post(f"/api/kitchen/orders/{order['id']}/cancel/", {}, format="json")
    assert res.status_code == 200
    assert res.data["cancel_reason_code"] == "other"
    assert not StockMovement.objects.filter(item=tomato).exists()


@pytest.mark.django_db
def test_board_lists_active_orders_oldest_first():
    _, user, _, salad = _setup()
    client = _auth_client(user)
    first = _create_order(client, salad)
    second = _create_order(client, salad)
    done = _create_order(client, salad)
    client.post(f"/api/kitchen/orders/{done['id']}/cancel/", {}, format="json")

    res = client.get("/api/kitchen/board/")
    assert res.status_code == 200
    assert [row["id"] for row in res.data] == [first["id"], second["id"]]


@pytest.mark.django_db
def test_orders_are_isolated_per_tenant():
    _, user, _, salad = _setup()
    order = _create_order(_auth_client(user), salad)

    other_user = UserFactory()
    other = _auth_client(other_user)
    assert other.get(f"/api/kitchen/orders/{order['id']}/").status_code == 404
    assert other.get("/api/kitchen/orders/").data == []


@pytest.mark.django_db
def test_advance_to_cancelled_is_refused():
    _, user, tomato, salad = _setup(stock="10")
    client = _auth_client(user)
    order = _create_order(client, salad)
    _advance(client, order["id"], "confirmed")
    _advance(client, order["id"], "preparing")

    res = _advance(client, order["id"], "cancelled")
    assert res.status_code == 400
    assert res.data["code"] == "invalid_transition"
    assert FoodOrder.objects.get(id=order["id"]).status == "preparing"
    tomato.refresh_from_db()
    assert tomato.current_stock == Decimal("8")

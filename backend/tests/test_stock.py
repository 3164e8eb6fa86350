from decimal import Decimal

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from inventory.models import InventoryItem, LowStockAlert, StockMovement, StockTransfer
from .factories import InventoryItemFactory, SupplierFactory, TenantFactory, UserFactory


def _auth_client(user):
    client = APIClient()
    token = RefreshToken.for_user(user).access_token
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    return client


@pytest.mark.django_db
def test_item_crud_keeps_stock_read_only():
    tenant = TenantFactory()
    user = UserFactory(profile=tenant)
    client = _auth_client(user)

    res = client.post(
        "/api/inventory/items/",
        {
            "name": "Savon",
            "category": "amenity",
            "unit": "piece",
            "min_stock_level": "20",
            "unit_cost": "0.40",
            "current_stock": "999",
        },
        format="json",
    )
    assert res.status_code == 201
    item = InventoryItem.objects.get(id=res.data["id"])
    assert item.tenant == tenant
    assert item.current_stock == Decimal("0")
    assert res.data["is_low_stock"] is True

    res = client.delete(f"/api/inventory/items/{item.id}/")
    assert res.status_code == 204
    item.refresh_from_db()
    assert item.is_active is False
    assert client.get("/api/inventory/items/").data == []


@pytest.mark.django_db
def test_item_rejects_supplier_from_other_tenant():
    user = UserFactory()
    foreign_supplier = SupplierFactory()
    res = _auth_client(user).post(
        "/api/inventory/items/",
        {"name": "Riz", "preferred_supplier": foreign_supplier.id},
        format="json",
    )
    assert res.status_code == 400
    assert "preferred_supplier" in res.data


@pytest.mark.django_db
def test_usage_adjustment_records_signed_movement():
    tenant = TenantFactory()
    user = UserFactory(profile=tenant)
    item = InventoryItemFactory(tenant=tenant, current_stock=Decimal("10"), min_stock_level=Decimal("2"))

    res = _auth_client(user).post(
        "/api/inventory/adjustments/",
        {"item_id": item.id, "movement_type": "usage", "quantity": "3"},
        format="json",
    )
    assert res.status_code == 201
    assert Decimal(res.data["quantity"]) == Decimal("-3")
    assert Decimal(res.data["previous_stock"]) == Decimal("10")
    assert Decimal(res.data["new_stock"]) == Decimal("7")
    item.refresh_from_db()
    assert item.current_stock == Decimal("7")


@pytest.mark.django_db
def test_adjustment_cannot_go_negative():
    tenant = TenantFactory()
    user = UserFactory(profile=tenant)
    item = InventoryItemFactory(tenant=tenant, current_stock=Decimal("1"))

    res = _auth_client(user).post(
        "/api/inventory/adjustments/",
        {"item_id": item.id, "movement_type": "waste", "quantity": "5"},
        format="json",
    )
    assert res.status_code == 409
    assert res.data["code"] == "stock_insufficient"
    assert not StockMovement.objects.filter(item=item).exists()


@pytest.mark.django_db
def test_adjustment_on_foreign_item_is_not_found():
    user = UserFactory()
    foreign = InventoryItemFactory()
    res = _auth_client(user).post(
        "/api/inventory/adjustments/",
        {"item_id": foreign.id, "movement_type": "adjustment", "quantity": "1"},
        format="json",
    )
    assert res.status_code == 404


@pytest.mark.django_db
def test_alert_opens_below_minimum_and_resolves_on_restock():
    tenant = TenantFactory()
    user = UserFactory(profile=tenant)
    item = InventoryItemFactory(tenant=tenant, current_stock=Decimal("6"), min_stock_level=Decimal("5"))
    client = _auth_client(user)

    client.post(
        "/api/inventory/adjustments/",
        {"item_id": item.id, "movement_type": "usage", "quantity": "2"},
        format="json",
    )
    client.post(
        "/api/inventory/adjustments/",
        {"item_id": item.id, "movement_type": "usage", "quantity": "1"},
        format="json",
    )
    alerts = client.get("/api/inventory/alerts/")
    assert alerts.status_code == 200
    assert len(alerts.data) == 1
    assert alerts.data[0]["item"] == item.id

    client.post(
        "/api/inventory/adjustments/",
        {"item_id": item.id, "movement_type": "adjustment", "quantity": "10"},
        format="json",
    )
    assert LowStockAlert.objects.filter(item=item, status="active").count() == 0
    assert LowStockAlert.objects.get(item=item).resolved_at is not None


@pytest.mark.django_db
def test_resolve_alert_manually():
    tenant = TenantFactory()
    user = UserFactory(profile=tenant)
    item = InventoryItemFactory(tenant=tenant)
    alert = LowStockAlert.objects.create(
        tenant=tenant, item=item, current_stock=Decimal("1"), min_stock_level=Decimal("2")
    )

    res = _auth_client(user).post(f"/api/inventory/alerts/{alert.id}/resolve/", {}, format="json")
    assert res.status_code == 200
    assert res.data["status"] == "resolved"


@pytest.mark.django_db
def test_transfer_moves_location_stock_only():
    tenant = TenantFactory()
    user = UserFactory(profile=tenant)
    item = InventoryItemFactory(
        tenant=tenant,
        current_stock=Decimal("12"),
        location_stock={"Main Store": "12"},
    )

    res = _auth_client(user).post(
        "/api/inventory/transfers/new/",
        {
            "from_location": "Main Store",
            "to_location": "Kitchen",
            "lines": [{"item_id": item.id, "quantity": "5"}],
        },
        format="json",
    )
    assert res.status_code == 201
    assert res.data["transfer_number"].startswith("TRF-")
    assert res.data["transfer_number"].endswith("-001")

    item.refresh_from_db()
    assert item.current_stock == Decimal("12")
    assert Decimal(item.location_stock["Main Store"]) == Decimal("7")
    assert Decimal(item.location_stock["Kitchen"]) == Decimal("5")
    types = set(StockMovement.objects.filter(item=item).values_list("movement_type", flat=True))
    assert types == {"transfer_in", "transfer_out"}


@pytest.mark.django_db
def test_transfer_over_location_stock_rejected():
    tenant = TenantFactory()
    user = UserFactory(profile=tenant)
    item = InventoryItemFactory(tenant=tenant, current_stock=Decimal("12"), location_stock={"Bar": "2"})

    res = _auth_client(user).post(
        "/api/inventory/transfers/new/",
        {"from_location": "Bar", "to_location": "Kitchen", "lines": [{"item_id": item.id, "quantity": "3"}]},
        format="json",
    )
    assert res.status_code == 409
    assert res.data["items"][0]["location"] == "Bar"
    assert not StockTransfer.objects.exists()


@pytest.mark.django_db
def test_transfer_same_location_rejected():
    tenant = TenantFactory()
    user = UserFactory(profile=tenant)
    item = InventoryItemFactory(tenant=tenant, location_stock={"Bar": "2"})

    res = _auth_client(user).post(
        "/api/inventory/transfers/new/",
        {"from_location": "Bar", "to_location": "Bar", "lines": [{"item_id": item.id, "quantity": "1"}]},
        format="json",
    )
    assert res.status_code == 400
    assert res.data["code"] == "invalid_transfer"


@pytest.mark.django_db
def test_transfer_repeated_item_lines_are_cumulated():
    tenant = TenantFactory()
    user = UserFactory(profile=tenant)
    item = InventoryItemFactory(tenant=tenant, current_stock=Decimal("10"), location_stock={"Main": "10"})

    res = _auth_client(user).post(
        "/api/inventory/transfers/new/",
        {
            "from_location": "Main",
            "to_location": "Kitchen",
            "lines": [{"item_id": item.id, "quantity": "6"}, {"item_id": item.id, "quantity": "6"}],
        },
        format="json",
    )
    assert res.status_code == 409
    assert Decimal(res.data["items"][0]["needed"]) == Decimal("12")
    item.refresh_from_db()
    assert item.location_stock == {"Main": "10"}
    assert not StockTransfer.objects.exists()


def _location_total(item):
    return sum(Decimal(value) for value in item.location_stock.values())


@pytest.mark.django_db
def test_usage_without_location_draws_down_locations():
    tenant = TenantFactory()
    user = UserFactory(profile=tenant)
    item = InventoryItemFactory(tenant=tenant, current_stock=Decimal("0"), min_stock_level=Decimal("0"))
    client = _auth_client(user)

    client.post(
        "/api/inventory/adjustments/",
        {"item_id": item.id, "movement_type": "adjustment", "quantity": "10", "location": "Main"},
        format="json",
    )
    res = client.post(
        "/api/inventory/adjustments/",
        {"item_id": item.id, "movement_type": "usage", "quantity": "10"},
        format="json",
    )
    assert res.status_code == 201
    item.refresh_from_db()
    assert item.current_stock == Decimal("0")
    assert _location_total(item) <= item.current_stock

    transfer = client.post(
        "/api/inventory/transfers/new/",
        {"from_location": "Main", "to_location": "Kitchen", "lines": [{"item_id": item.id, "quantity": "10"}]},
        format="json",
    )
    assert transfer.status_code == 409
    item.refresh_from_db()
    assert "Kitchen" not in item.location_stock


@pytest.mark.django_db
def test_usage_without_location_consumes_unallocated_stock_first():
    tenant = TenantFactory()
    user = UserFactory(profile=tenant)
    item = InventoryItemFactory(
        tenant=tenant,
        current_stock=Decimal("10"),
        location_stock={"Bar": "3", "Main": "4"},
    )
    client = _auth_client(user)

    client.post(
        "/api/inventory/adjustments/",
        {"item_id": item.id, "movement_type": "usage", "quantity": "3"},
        format="json",
    )
    item.refresh_from_db()
    assert item.location_stock == {"Bar": "3", "Main": "4"}

    client.post(
        "/api/inventory/adjustments/",
        {"item_id": item.id, "movement_type": "waste", "quantity": "5"},
        format="json",
    )
    item.refresh_from_db()
    assert item.current_stock == Decimal("2")
    assert Decimal(item.location_stock["Bar"]) == Decimal("0")
    assert Decimal(item.location_stock["Main"]) == Decimal("2")
    assert _location_total(item) <= item.current_stock

from decimal import Decimal

import factory
from django.contrib.auth import get_user_model

from accounts.models import Tenant, UserProfile
from inventory.models import InventoryItem, Supplier
from kitchen.models import MenuItem, RecipeItem

User = get_user_model()


class TenantFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Tenant

    name = factory.Sequence(lambda n: f"Hotel {n}")
    currency_code = "USD"


class UserFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = User
        skip_postgeneration_save = True

    username = factory.Sequence(lambda n: f"user{n}")
    email = factory.LazyAttribute(lambda o: f"{o.username}@example.com")
    password = factory.PostGenerationMethodCall("set_password", "password123")

    @factory.post_generation
    def profile(self, create, extracted, **kwargs):
        if not create:
            return
        tenant = extracted or TenantFactory()
        UserProfile.objects.create(user=self, tenant=tenant, role=kwargs.get("role", "owner"))
        self.save()


class SupplierFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Supplier

    tenant = factory.SubFactory(TenantFactory)
    name = factory.Sequence(lambda n: f"Supplier {n}")
    contact_email = factory.Sequence(lambda n: f"orders{n}@supplier.test")


class InventoryItemFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = InventoryItem

    tenant = factory.SubFactory(TenantFactory)
    name = factory.Sequence(lambda n: f"Item {n}")
    category = "food"
    unit = "kg"
    current_stock = Decimal("10")
    min_stock_level = Decimal("2")
    unit_cost = Decimal("3.00")


class MenuItemFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = MenuItem

    tenant = factory.SubFactory(TenantFactory)
    name = factory.Sequence(lambda n: f"Dish {n}")
    category = "main"
    price = Decimal("12.50")


class RecipeItemFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = RecipeItem

    menu_item = factory.SubFactory(MenuItemFactory)
    inventory_item = factory.SubFactory(InventoryItemFactory)
    qty = Decimal("1")

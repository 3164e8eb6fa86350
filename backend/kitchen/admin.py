from django.contrib import admin
from .models import FoodOrder, FoodOrderLine, MenuItem, RecipeItem


class RecipeItemInline(admin.TabularInline):
    model = RecipeItem
    extra = 0


@admin.register(MenuItem)
class MenuItemAdmin(admin.ModelAdmin):
    list_display = ("name", "tenant", "category", "price", "is_active")
    list_filter = ("tenant", "category", "is_active")
    search_fields = ("name",)
    inlines = [RecipeItemInline]


class FoodOrderLineInline(admin.TabularInline):
    model = FoodOrderLine
    extra = 0


@admin.register(FoodOrder)
class FoodOrderAdmin(admin.ModelAdmin):
    list_display = ("order_number", "tenant", "status", "order_type", "room_number", "total_amount", "created_at")
    list_filter = ("status", "order_type")
    search_fields = ("order_number", "guest_name", "room_number")
    readonly_fields = ("version",)
    inlines = [FoodOrderLineInline]

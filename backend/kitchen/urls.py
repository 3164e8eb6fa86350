from django.urls import path

from . import views

urlpatterns = [
    path("menu-items/", views.menu_items, name="kitchen_menu_items"),
    path("menu-items/<int:menu_item_id>/", views.menu_item_detail, name="kitchen_menu_item_detail"),
    path(
        "menu-items/<int:menu_item_id>/availability/",
        views.menu_item_availability,
        name="kitchen_menu_item_availability",
    ),
    path(
        "menu-items/<int:menu_item_id>/recipe/",
        views.menu_item_recipe,
        name="kitchen_menu_item_recipe",
    ),
    path("orders/", views.orders, name="kitchen_orders"),
    path("orders/<int:order_id>/", views.order_detail, name="kitchen_order_detail"),
    path("orders/<int:order_id>/advance/", views.order_advance, name="kitchen_order_advance"),
    path("orders/<int:order_id>/cancel/", views.order_cancel, name="kitchen_order_cancel"),
    path("board/", views.kitchen_board, name="kitchen_board"),
]

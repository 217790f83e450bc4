from django.urls import path

from .views import (
    CartClearView,
    CartForgetView,
    CartItemDetailView,
    CartItemListView,
    CartRemoveProductView,
    CartView,
)

urlpatterns = [
    path("", CartView.as_view(), name="api-cart"),
    path("items/", CartItemListView.as_view(), name="api-cart-items"),
    path("items/<int:item_id>/", CartItemDetailView.as_view(), name="api-cart-item-detail"),
    path("remove-product/", CartRemoveProductView.as_view(), name="api-cart-remove-product"),
    path("clear/", CartClearView.as_view(), name="api-cart-clear"),
    path("forget/", CartForgetView.as_view(), name="api-cart-forget"),
]

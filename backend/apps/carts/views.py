from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.api.schemas import ErrorResponseSerializer
from apps.common import get_logger
from .container import build_cart_manager
from .dtos import CartDTO, ProductRef
from .identity import identity_from_request
from .serializers import (
    AddItemSerializer,
    CartItemReadSerializer,
    CartReadSerializer,
    ForgetResponseSerializer,
    ProductRefSerializer,
    RemovedResponseSerializer,
)
from .totals import ZERO

logger = get_logger(__name__).bind(component="carts", layer="view")

ERROR_RESPONSES = {
    400: OpenApiResponse(response=ErrorResponseSerializer),
    404: OpenApiResponse(response=ErrorResponseSerializer),
    409: OpenApiResponse(response=ErrorResponseSerializer),
    503: OpenApiResponse(response=ErrorResponseSerializer),
}


def empty_cart() -> CartDTO:
    return CartDTO(
        id=None, session_key=None, user_id=None, state=None, items=[], item_count=0, total=ZERO
    )


class CartViewMixin:
    permission_classes = [AllowAny]
    manager = build_cart_manager()

    def identity(self, request, create: bool = False):
        return identity_from_request(request, create=create)


class CartView(CartViewMixin, APIView):
    log = logger.bind(view="CartView")

    @extend_schema(
        summary="Get the current cart",
        description="Returns the cart bound to the caller's session; `exists` is false when none was created yet.",
        responses={200: CartReadSerializer, 409: OpenApiResponse(response=ErrorResponseSerializer)},
    )
    def get(self, request):
        dto = self.manager.get_cart(self.identity(request))
        return Response(CartReadSerializer(dto or empty_cart()).data)

    @extend_schema(
        summary="Destroy the current cart",
        responses={204: None, 409: OpenApiResponse(response=ErrorResponseSerializer)},
    )
    def delete(self, request):
        self.manager.destroy(self.identity(request))
        return Response(status=status.HTTP_204_NO_CONTENT)


class CartItemListView(CartViewMixin, APIView):
    log = logger.bind(view="CartItemListView")

    @extend_schema(
        summary="Add a product to the cart",
        description=(
            "Creates the cart on first use. Adding a product whose configuration matches an "
            "existing line increments that line; otherwise a new line is opened."
        ),
        request=AddItemSerializer,
        responses={201: CartItemReadSerializer, **ERROR_RESPONSES},
    )
    def post(self, request):
        serializer = AddItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        ref = ProductRef.of(data["type"], data["productId"])
        identity = self.identity(request, create=True)
        item = self.manager.add_item(
            identity, ref, data["quantity"], serializer.to_parameters()
        )
        self.log.debug("Add handled", item_id=item.id, product=str(ref))
        return Response(CartItemReadSerializer(item).data, status=status.HTTP_201_CREATED)


class CartItemDetailView(CartViewMixin, APIView):
    @extend_schema(
        summary="Remove a line from the cart",
        responses={204: None, 404: OpenApiResponse(response=ErrorResponseSerializer)},
    )
    def delete(self, request, item_id: int):
        self.manager.remove_item(self.identity(request), item_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class CartRemoveProductView(CartViewMixin, APIView):
    @extend_schema(
        summary="Remove the first line holding a product",
        request=ProductRefSerializer,
        responses={200: RemovedResponseSerializer, **ERROR_RESPONSES},
    )
    def post(self, request):
        serializer = ProductRefSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        removed = self.manager.remove_product(
            self.identity(request), ProductRef.of(data["type"], data["productId"])
        )
        return Response({"removed": removed})


class CartClearView(CartViewMixin, APIView):
    @extend_schema(
        summary="Remove every line from the cart",
        request=None,
        responses={204: None, 409: OpenApiResponse(response=ErrorResponseSerializer)},
    )
    def post(self, request):
        self.manager.clear(self.identity(request))
        return Response(status=status.HTTP_204_NO_CONTENT)


class CartForgetView(CartViewMixin, APIView):
    log = logger.bind(view="CartForgetView")

    @extend_schema(
        summary="Detach the cart from this session",
        description="The cart record is kept; the session starts over with no cart.",
        request=None,
        responses={200: ForgetResponseSerializer, 409: OpenApiResponse(response=ErrorResponseSerializer)},
    )
    def post(self, request):
        cart_id = self.manager.forget(self.identity(request))
        self.log.info("Cart forgotten via API", cart_id=cart_id)
        return Response({"cartId": cart_id})

from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.test import APIRequestFactory

from apps.api.exceptions import ApplicationError, global_exception_handler
from apps.carts.exceptions import BindingConflict, CartBusy, ItemNotInCart, SessionRequired

factory = APIRequestFactory()


class DummyView:
    pass


def _context(request):
    return {"request": request, "view": DummyView()}


def test_application_error_returns_structured_response():
    request = factory.post("/api/cart/items/")
    exc = ApplicationError(
        "CONFLICT",
        "Cart is owned by someone else",
        status_code=status.HTTP_409_CONFLICT,
        details={"cartId": 12},
    )
    response = global_exception_handler(exc, _context(request))
    payload = response.data["error"]
    assert response.status_code == status.HTTP_409_CONFLICT
    assert payload["code"] == "CONFLICT"
    assert payload["message"] == "Cart is owned by someone else"
    assert payload["details"] == {"cartId": 12}


def test_domain_errors_pick_their_status_from_the_code():
    request = factory.delete("/api/cart/items/3/")
    cases = [
        (ItemNotInCart("Item does not belong to the current cart", item_id=3), 404),
        (BindingConflict("Session is bound to more than one cart"), 409),
        (CartBusy("The cart is being modified by another request"), 503),
        (SessionRequired("A session is required to create a cart"), 400),
    ]
    for domain_error, expected in cases:
        response = global_exception_handler(
            ApplicationError.from_domain(domain_error), _context(request)
        )
        payload = response.data["error"]
        assert response.status_code == expected
        assert payload["code"] == domain_error.code
        assert payload["message"] == domain_error.message


def test_domain_error_details_are_kept_and_empty_details_dropped():
    with_details = ApplicationError.from_domain(ItemNotInCart("missing", item_id=3))
    assert with_details.details == {"item_id": 3}
    without = ApplicationError.from_domain(BindingConflict("conflict"))
    assert "details" not in without.to_response().data["error"]


def test_validation_error_preserves_details():
    request = factory.post("/api/cart/items/", data={})
    exc = ValidationError({"productId": ["This field is required."]})
    response = global_exception_handler(exc, _context(request))
    payload = response.data["error"]
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert payload["code"] == "VALIDATION_ERROR"
    assert payload["message"] == "Validation failed"
    assert payload["details"] == {"productId": ["This field is required."]}


def test_django_validation_error_is_normalized():
    request = factory.post("/api/cart/items/")
    exc = DjangoValidationError({"quantity": ["Too many"]})
    response = global_exception_handler(exc, _context(request))
    payload = response.data["error"]
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert payload["code"] == "VALIDATION_ERROR"
    assert payload["details"] == {"quantity": ["Too many"]}


def test_http404_maps_to_not_found():
    request = factory.get("/api/cart/nowhere/")
    response = global_exception_handler(Http404(), _context(request))
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.data["error"]["code"] == "NOT_FOUND"


def test_unhandled_exception_returns_generic_message():
    request = factory.get("/api/cart/")
    response = global_exception_handler(RuntimeError("boom"), _context(request))
    payload = response.data["error"]
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert payload["code"] == "SERVER_ERROR"
    assert payload["message"] == "Something went wrong"
    assert "details" not in payload

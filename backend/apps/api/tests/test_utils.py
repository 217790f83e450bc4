import unittest

from rest_framework import status

from apps.api.utils import error_response, status_for_code


class ErrorResponseTests(unittest.TestCase):
    def test_default_status_mapping_and_details(self):
        resp = error_response("ITEM_NOT_IN_CART", "missing", {"item_id": 1})
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data["error"]["code"], "ITEM_NOT_IN_CART")
        self.assertEqual(resp.data["error"]["status"], status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data["error"]["details"], {"item_id": 1})

    def test_cart_codes_map_to_statuses(self):
        self.assertEqual(status_for_code("INVALID_QUANTITY"), 400)
        self.assertEqual(status_for_code("unresolvable_product"), 404)
        self.assertEqual(status_for_code("BINDING_CONFLICT"), 409)
        self.assertEqual(status_for_code("CART_BUSY"), 503)
        self.assertEqual(status_for_code("SESSION_REQUIRED"), 400)
        self.assertEqual(status_for_code("SOMETHING_ELSE"), 400)

    def test_custom_status_override(self):
        resp = error_response("UNKNOWN", "oops", http_status=status.HTTP_202_ACCEPTED)
        self.assertEqual(resp.status_code, status.HTTP_202_ACCEPTED)
        self.assertEqual(resp.data["error"]["message"], "oops")

    def test_code_is_normalized(self):
        resp = error_response(" cart_busy ", " try again ")
        self.assertEqual(resp.data["error"]["code"], "CART_BUSY")
        self.assertEqual(resp.data["error"]["message"], "try again")
        self.assertEqual(resp.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)

    def test_error_response_supports_hint_and_headers(self):
        resp = error_response(
            "CART_BUSY",
            "The cart is being modified by another request",
            hint="Retry shortly",
            headers={"Retry-After": 1},
        )
        self.assertEqual(resp.data["error"]["hint"], "Retry shortly")
        self.assertEqual(resp["Retry-After"], "1")

    def test_details_from_validation_error_are_plain(self):
        from rest_framework.exceptions import ValidationError

        resp = error_response("VALIDATION_ERROR", "bad", ValidationError({"quantity": ["bad"]}))
        self.assertEqual(resp.data["error"]["details"], {"quantity": ["bad"]})

    def test_rejects_blank_code(self):
        with self.assertRaises(ValueError):
            error_response("  ", "message")
        with self.assertRaises(TypeError):
            error_response(None, "message")

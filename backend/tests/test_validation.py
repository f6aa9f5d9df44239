"""
Unit tests for input validation helpers.
"""

import unittest
from datetime import date

from shopdesk.errors import ValidationError
from shopdesk.models import Product, Worker
from shopdesk.validation import (
    MAX_PRICE_CENTS,
    ModelValidationPolicy,
    coerce_int,
    enforce_rules_product,
    require_positive_int,
    require_price_cents,
    validate_payload,
)


class TestCoerceInt(unittest.TestCase):

    def test_accepts_ints_and_digit_strings(self):
        self.assertEqual(coerce_int(5, "q"), 5)
        self.assertEqual(coerce_int(" 12 ", "q"), 12)

    def test_rejects_floats_bools_and_notation(self):
        for value in (1.0, True, "1e3", "2.5", "", [], None):
            with self.assertRaises(ValidationError):
                coerce_int(value, "q")


class TestRequireHelpers(unittest.TestCase):

    def test_positive_int_bounds(self):
        self.assertEqual(require_positive_int("3", "quantity"), 3)
        with self.assertRaises(ValidationError):
            require_positive_int(0, "quantity")
        with self.assertRaises(ValidationError):
            require_positive_int(11, "quantity", maximum=10)

    def test_price_cents(self):
        self.assertEqual(require_price_cents(0, "price"), 0)
        with self.assertRaises(ValidationError):
            require_price_cents(0, "price", allow_zero=False)
        with self.assertRaises(ValidationError):
            require_price_cents(MAX_PRICE_CENTS + 1, "price")


class TestValidatePayload(unittest.TestCase):

    POLICY = ModelValidationPolicy(
        writable_fields={"name", "sell_price_cents", "quantity"},
        required_on_create={"name"},
    )

    def test_missing_required(self):
        with self.assertRaises(ValidationError):
            validate_payload(model=Product, payload={"sell_price_cents": 5}, policy=self.POLICY, partial=False)

    def test_rejects_non_writable_field(self):
        with self.assertRaises(ValidationError):
            validate_payload(model=Product, payload={"name": "x", "is_archived": True}, policy=self.POLICY, partial=False)

    def test_strips_strings_and_rejects_blank(self):
        patch = validate_payload(model=Product, payload={"name": "  Jam  "}, policy=self.POLICY, partial=False)
        self.assertEqual(patch["name"], "Jam")
        with self.assertRaises(ValidationError):
            validate_payload(model=Product, payload={"name": "   "}, policy=self.POLICY, partial=False)

    def test_negative_opening_quantity(self):
        patch = validate_payload(model=Product, payload={"name": "Jam", "quantity": -1}, policy=self.POLICY, partial=False)
        with self.assertRaises(ValidationError):
            enforce_rules_product(patch)

    def test_date_columns(self):
        policy = ModelValidationPolicy(writable_fields={"name", "joining_date"}, required_on_create={"name"})
        patch = validate_payload(
            model=Worker, payload={"name": "Asad", "joining_date": "2024-03-01"}, policy=policy, partial=False
        )
        self.assertEqual(patch["joining_date"], date(2024, 3, 1))
        with self.assertRaises(ValidationError):
            validate_payload(model=Worker, payload={"joining_date": "not-a-date"}, policy=policy, partial=True)


if __name__ == "__main__":
    unittest.main()

import unittest
from decimal import Decimal

import base  # noqa: F401
from db.models import Capability, OrderStatus, Role, has_capability
from utils.errors import ValidationError
from utils.pure import (
    format_price,
    generate_markdown_table,
    parse_price,
    validate_email,
    validate_hex,
    validate_new_password,
)


class PureTestCase(unittest.TestCase):
    def test_markdown_table(self):
        md = generate_markdown_table(["Name", "Qty"], [["A|B", 2]], ["l", "r"])
        self.assertEqual(md, "| Name | Qty |\n| :--- | ---: |\n| A\\|B | 2 |")
        self.assertEqual(generate_markdown_table([], []), "")
        with self.assertRaises(ValueError):
            generate_markdown_table(["a", "b"], [], ["l"])

    def test_prices(self):
        self.assertEqual(format_price(Decimal("1189.9")), "R$ 1.189,90")
        self.assertEqual(format_price(Decimal("0")), "R$ 0,00")
        self.assertEqual(parse_price("45,5"), Decimal("45.50"))
        self.assertEqual(parse_price(" 10 "), Decimal("10.00"))
        for bad in ("", "abc", "-1", "NaN", None):
            with self.assertRaises(ValidationError):
                parse_price(bad)

    def test_validators(self):
        self.assertEqual(validate_email(" Ana@Example.COM "), "ana@example.com")
        with self.assertRaises(ValidationError):
            validate_email("ana@example")
        with self.assertRaises(ValidationError):
            validate_new_password("secret1", "secret2")
        with self.assertRaises(ValidationError):
            validate_new_password("short")
        self.assertEqual(validate_new_password("secret1", "secret1"), "secret1")
        self.assertEqual(validate_hex("61896F"), "#61896f")
        with self.assertRaises(ValidationError):
            validate_hex("#abcd")


class RolesTestCase(unittest.TestCase):
    def test_capabilities(self):
        for cap in Capability:
            self.assertFalse(has_capability(Role.CUSTOMER, cap))
            self.assertFalse(has_capability(None, cap))
            self.assertTrue(has_capability(Role.MASTER_ADMIN, cap))
        self.assertTrue(has_capability(Role.ADMIN, Capability.MANAGE_CATALOG))
        self.assertTrue(has_capability(Role.ADMIN, Capability.PROMOTE_USERS))
        self.assertFalse(has_capability(Role.ADMIN, Capability.MANAGE_USERS))
        self.assertTrue(has_capability("admin", Capability.VIEW_USERS))

    def test_order_status(self):
        self.assertEqual(OrderStatus("em_analise"), OrderStatus.IN_REVIEW)
        self.assertEqual(OrderStatus.IN_REVIEW.label, "In review")


if __name__ == "__main__":
    unittest.main()

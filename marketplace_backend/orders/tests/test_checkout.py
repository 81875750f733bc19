# orders/tests/test_checkout.py

import re
from decimal import Decimal
from unittest import mock

from django.core import mail
from django.test import TestCase, override_settings

from cart.models import Cart
from cart.services.cart_store import CartOwner, add_item, view
from common.testing import make_customer, make_order, make_product, make_seller, shipping_details
from notifications.models import Notification
from orders.models import Order, OrderItem
from orders.services import checkout_orchestrator
from orders.services.checkout_orchestrator import (
    CartEmptyError,
    CartInvalidError,
    CheckoutFailedError,
    InvalidShippingDetailsError,
    ShippingDetails,
    place_order,
)
from products.models import Product, StockMovement
from products.services.inventory import InsufficientStockError


def exploding_sink(order, event):
    raise RuntimeError("mail server on fire")


@override_settings(
    CHECKOUT_SHIPPING_FLAT_RATE=Decimal("10.00"),
    CHECKOUT_TAX_RATE=Decimal("0.10"),
    ORDER_NUMBER_PREFIX="ORD",
)
class CheckoutTests(TestCase):
    """
    Checkout orchestrator tests.

    GUARANTEES:
    - Atomic: stock, order rows and cart clear commit together or not at all
    - Money frozen at checkout
    - Stock never oversold
    """

    def setUp(self):
        self.seller = make_seller()
        self.customer = make_customer()
        self.owner = CartOwner.for_user(self.customer)

        self.a = make_product(seller=self.seller, name="Refill Bottle", price="10.00", stock=2)
        self.b = make_product(seller=self.seller, name="Soap Bar", price="5.00", stock=1)

    def _shipping(self, **overrides):
        return ShippingDetails(**shipping_details(**overrides))

    def _checkout(self, user=None, **kwargs):
        return place_order(
            user=user or self.customer,
            shipping=kwargs.pop("shipping", None) or self._shipping(),
            payment_method=kwargs.pop("payment_method", "COD"),
        )

    # ======================================================
    # HAPPY PATH
    # ======================================================

    def test_two_line_checkout_totals_stock_and_cart(self):
        add_item(self.owner, product_id=self.a.id, quantity=2)
        add_item(self.owner, product_id=self.b.id, quantity=1)

        order = self._checkout()

        self.assertEqual(order.status, Order.Status.PENDING)
        self.assertEqual(order.subtotal, Decimal("25.00"))
        self.assertEqual(order.shipping_cost, Decimal("10.00"))
        self.assertEqual(order.tax, Decimal("2.50"))
        self.assertEqual(order.total_amount, Decimal("37.50"))
        self.assertEqual(order.payment_method, "COD")

        self.a.refresh_from_db()
        self.b.refresh_from_db()
        self.assertEqual(self.a.stock, 0)
        self.assertEqual(self.b.stock, 0)

        self.assertEqual(view(self.owner).count, 0)

        items = {i.product_id: i for i in order.items.all()}
        self.assertEqual(items[self.a.id].line_total, Decimal("20.00"))
        self.assertEqual(items[self.a.id].seller_id, self.seller.id)
        self.assertEqual(items[self.b.id].product_name, "Soap Bar")

        movements = StockMovement.objects.filter(reason=StockMovement.Reason.RESERVATION)
        self.assertEqual(movements.count(), 2)
        self.assertTrue(all(m.order_id == order.id for m in movements))

    def test_totals_invariant(self):
        order = make_order(customer=self.customer, lines=[(self.a, 1), (self.b, 1)])

        self.assertEqual(order.total_amount, order.subtotal + order.shipping_cost + order.tax)
        self.assertEqual(order.subtotal, sum(i.line_total for i in order.items.all()))
        for item in order.items.all():
            self.assertEqual(item.line_total, item.unit_price * item.quantity)

    def test_snapshot_ignores_later_price_and_name_changes(self):
        order = make_order(customer=self.customer, lines=[(self.a, 1)])

        Product.objects.filter(pk=self.a.pk).update(price=Decimal("99.00"), name="Renamed")

        item = OrderItem.objects.get(order=order)
        self.assertEqual(item.unit_price, Decimal("10.00"))
        self.assertEqual(item.product_name, "Refill Bottle")
        order.refresh_from_db()
        self.assertEqual(order.subtotal, Decimal("10.00"))

    @override_settings(CHECKOUT_TAX_RATE=Decimal("0.075"))
    def test_tax_rounds_half_up(self):
        product = make_product(seller=self.seller, price="0.10", stock=5)

        order = make_order(customer=self.customer, lines=[(product, 1)])

        # 0.10 * 0.075 = 0.0075 -> 0.01
        self.assertEqual(order.tax, Decimal("0.01"))

    def test_order_number_format(self):
        order = make_order(customer=self.customer, lines=[(self.a, 1)])

        self.assertRegex(order.order_number, re.compile(r"^ORD-\d{14}-[0-9A-F]{6}$"))

    def test_blank_payment_method_defaults_to_cod(self):
        add_item(self.owner, product_id=self.a.id, quantity=1)

        order = self._checkout(payment_method="  ")

        self.assertEqual(order.payment_method, "COD")

    def test_shipping_details_are_stored(self):
        add_item(self.owner, product_id=self.a.id, quantity=1)

        order = self._checkout(shipping=self._shipping(shipping_city="Shelbyville", order_notes="Leave at door"))

        self.assertEqual(order.shipping_city, "Shelbyville")
        self.assertEqual(order.order_notes, "Leave at door")
        self.assertEqual(order.customer, self.customer)

    # ======================================================
    # PRECONDITIONS
    # ======================================================

    def test_no_cart_is_cart_empty(self):
        with self.assertRaises(CartEmptyError) as ctx:
            self._checkout()

        self.assertEqual(ctx.exception.code, "CART_EMPTY")
        self.assertFalse(Order.objects.exists())

    def test_empty_cart_is_cart_empty_without_stock_mutation(self):
        item = add_item(self.owner, product_id=self.a.id, quantity=1)
        item.delete()

        with self.assertRaises(CartEmptyError):
            self._checkout()

        self.a.refresh_from_db()
        self.assertEqual(self.a.stock, 2)
        self.assertFalse(StockMovement.objects.exists())

    def test_missing_shipping_field_rejected(self):
        add_item(self.owner, product_id=self.a.id, quantity=1)

        with self.assertRaises(InvalidShippingDetailsError) as ctx:
            self._checkout(shipping=self._shipping(shipping_city="  "))

        self.assertIn("shipping_city", ctx.exception.details["missing"])
        self.assertFalse(Order.objects.exists())

    def test_invalid_email_rejected(self):
        add_item(self.owner, product_id=self.a.id, quantity=1)

        with self.assertRaises(InvalidShippingDetailsError):
            self._checkout(shipping=self._shipping(customer_email="not-an-email"))

    def test_unavailable_product_is_cart_invalid(self):
        add_item(self.owner, product_id=self.a.id, quantity=1)
        add_item(self.owner, product_id=self.b.id, quantity=1)
        Product.objects.filter(pk=self.b.pk).update(status=Product.Status.INACTIVE)

        with self.assertRaises(CartInvalidError) as ctx:
            self._checkout()

        problems = ctx.exception.details["problems"]
        self.assertEqual(len(problems), 1)
        self.assertEqual(problems[0]["code"], "PRODUCT_UNAVAILABLE")

        self.a.refresh_from_db()
        self.assertEqual(self.a.stock, 2)
        self.assertEqual(view(self.owner).count, 2)

    def test_cart_over_stock_is_cart_invalid(self):
        add_item(self.owner, product_id=self.a.id, quantity=3)

        with self.assertRaises(CartInvalidError) as ctx:
            self._checkout()

        problem = ctx.exception.details["problems"][0]
        self.assertEqual(problem["code"], "INSUFFICIENT_STOCK")
        self.assertEqual(problem["available"], 2)

    # ======================================================
    # LAST UNIT
    # ======================================================

    def test_second_checkout_for_last_unit_fails(self):
        rival = make_customer()
        add_item(self.owner, product_id=self.b.id, quantity=1)
        add_item(CartOwner.for_user(rival), product_id=self.b.id, quantity=1)

        first = self._checkout()

        with self.assertRaises(CartInvalidError) as ctx:
            self._checkout(user=rival)

        self.assertEqual(ctx.exception.details["problems"][0]["code"], "INSUFFICIENT_STOCK")
        self.assertEqual(list(Order.objects.values_list("id", flat=True)), [first.id])

        self.b.refresh_from_db()
        self.assertEqual(self.b.stock, 0)
        # Loser keeps their cart.
        self.assertEqual(view(CartOwner.for_user(rival)).count, 1)

    # ======================================================
    # ROLLBACK
    # ======================================================

    def test_reservation_failure_unwinds_everything(self):
        add_item(self.owner, product_id=self.a.id, quantity=2)
        add_item(self.owner, product_id=self.b.id, quantity=1)

        real_reserve = checkout_orchestrator.reserve_stock
        calls = []

        def reserve_then_fail(**kwargs):
            calls.append(kwargs["product_id"])
            if len(calls) == 2:
                raise InsufficientStockError(
                    "Only 0 left in stock.",
                    details={"product_id": str(kwargs["product_id"]), "available": 0},
                )
            return real_reserve(**kwargs)

        with mock.patch(
            "orders.services.checkout_orchestrator.reserve_stock",
            side_effect=reserve_then_fail,
        ):
            with self.assertRaises(CheckoutFailedError) as ctx:
                self._checkout()

        self.assertEqual(ctx.exception.code, "CHECKOUT_FAILED")
        self.assertEqual(ctx.exception.details["reason"], "INSUFFICIENT_STOCK")

        self.a.refresh_from_db()
        self.b.refresh_from_db()
        self.assertEqual(self.a.stock, 2)
        self.assertEqual(self.b.stock, 1)
        self.assertFalse(StockMovement.objects.exists())
        self.assertFalse(Order.objects.exists())
        self.assertEqual(view(self.owner).count, 3)

    def test_order_number_exhaustion_unwinds(self):
        existing = make_order(customer=make_customer(), lines=[(self.a, 1)])
        add_item(self.owner, product_id=self.b.id, quantity=1)

        with mock.patch(
            "orders.services.checkout_orchestrator.generate_order_number",
            return_value=existing.order_number,
        ):
            with self.assertRaises(CheckoutFailedError) as ctx:
                self._checkout()

        self.assertEqual(ctx.exception.details["reason"], "ORDER_NUMBER_EXHAUSTED")
        self.b.refresh_from_db()
        self.assertEqual(self.b.stock, 1)
        self.assertEqual(Order.objects.count(), 1)

    # ======================================================
    # NOTIFICATIONS
    # ======================================================

    def test_order_placed_notification_after_commit(self):
        add_item(self.owner, product_id=self.a.id, quantity=1)

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            order = self._checkout()

        self.assertEqual(len(callbacks), 1)
        note = Notification.objects.get(recipient=self.customer)
        self.assertEqual(note.event, "ORDER_PLACED")
        self.assertEqual(note.order, order)
        self.assertIn(order.order_number, note.message)

    def test_no_notification_before_commit(self):
        add_item(self.owner, product_id=self.a.id, quantity=1)

        with self.captureOnCommitCallbacks(execute=False):
            self._checkout()

        self.assertFalse(Notification.objects.exists())

    @override_settings(ORDER_EMAILS_ENABLED=True)
    def test_order_placed_email(self):
        add_item(self.owner, product_id=self.a.id, quantity=1)

        with self.captureOnCommitCallbacks(execute=True):
            order = self._checkout()

        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["ada@example.com"])
        self.assertIn(order.order_number, mail.outbox[0].subject)

    @override_settings(ORDER_NOTIFICATION_SINK="orders.tests.test_checkout.exploding_sink")
    def test_failing_sink_does_not_break_checkout(self):
        add_item(self.owner, product_id=self.a.id, quantity=1)

        with self.assertLogs("notifications.services.sink", level="ERROR"):
            with self.captureOnCommitCallbacks(execute=True):
                order = self._checkout()

        self.assertTrue(Order.objects.filter(pk=order.pk).exists())
        self.assertFalse(Cart.objects.get(user=self.customer).items.exists())

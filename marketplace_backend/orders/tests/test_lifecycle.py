# orders/tests/test_lifecycle.py

import uuid

from django.core.exceptions import ValidationError
from django.test import SimpleTestCase, TestCase

from common.errors import ForbiddenError
from common.testing import make_admin, make_customer, make_order, make_product, make_seller
from notifications.models import Notification
from orders.models import Order
from orders.services.order_lifecycle import (
    ALLOWED_TRANSITIONS,
    InvalidTransitionError,
    can_transition,
    effects_for,
)
from orders.services.order_status import (
    OrderNotFoundError,
    request_cancellation,
    transition_order,
    update_tracking_number,
)
from products.models import StockMovement

S = Order.Status


class LifecycleTableTests(SimpleTestCase):
    """
    Pure transition table: no database.
    """

    EXPECTED = {
        S.PENDING: {S.CONFIRMED, S.CANCELLED},
        S.CONFIRMED: {S.PROCESSING, S.CANCELLED},
        S.PROCESSING: {S.SHIPPED, S.CANCELLED},
        S.SHIPPED: {S.DELIVERED, S.CANCELLED},
        S.DELIVERED: {S.REFUNDED},
        S.CANCELLED: set(),
        S.REFUNDED: set(),
    }

    def test_every_edge_matches_table(self):
        for source in S.values:
            for target in S.values:
                with self.subTest(source=source, target=target):
                    self.assertEqual(
                        can_transition(from_status=source, to_status=target),
                        target in self.EXPECTED[source],
                    )

    def test_table_covers_every_status(self):
        self.assertEqual(set(ALLOWED_TRANSITIONS), set(S.values))

    def test_effects(self):
        cancelled = effects_for(S.CANCELLED)
        self.assertTrue(cancelled.release_stock)
        self.assertEqual(cancelled.stamp_field, "cancelled_at")
        self.assertEqual(cancelled.notify_event, "ORDER_CANCELLED")

        self.assertEqual(effects_for(S.SHIPPED).stamp_field, "shipped_at")
        self.assertEqual(effects_for(S.DELIVERED).stamp_field, "delivered_at")
        self.assertFalse(effects_for(S.REFUNDED).release_stock)
        self.assertIsNone(effects_for(S.PENDING).notify_event)
        self.assertIsNone(effects_for(S.CONFIRMED).stamp_field)


class OrderStatusTests(TestCase):
    """
    Persisted transitions.

    GUARANTEES:
    - Illegal edges never change the status
    - Cancellation restores stock exactly once
    - Only admins and sellers in the order drive fulfilment
    """

    def setUp(self):
        self.seller = make_seller()
        self.other_seller = make_seller()
        self.customer = make_customer()
        self.admin = make_admin()

        self.a = make_product(seller=self.seller, price="10.00", stock=5)
        self.b = make_product(seller=self.seller, price="4.00", stock=5)

        self.order = make_order(customer=self.customer, lines=[(self.a, 2), (self.b, 1)])

    def _walk(self, *statuses):
        for target in statuses:
            transition_order(order_id=self.order.id, new_status=target, actor=self.admin)
        self.order.refresh_from_db()

    def _stock(self):
        self.a.refresh_from_db()
        self.b.refresh_from_db()
        return self.a.stock, self.b.stock

    # ======================================================
    # FORWARD PATH
    # ======================================================

    def test_full_forward_path_stamps_timestamps(self):
        self._walk(S.CONFIRMED, S.PROCESSING, S.SHIPPED, S.DELIVERED)

        self.assertEqual(self.order.status, S.DELIVERED)
        self.assertIsNotNone(self.order.shipped_at)
        self.assertIsNotNone(self.order.delivered_at)
        self.assertIsNone(self.order.cancelled_at)

    def test_refund_after_delivery(self):
        self._walk(S.CONFIRMED, S.PROCESSING, S.SHIPPED, S.DELIVERED, S.REFUNDED)
        self.assertEqual(self.order.status, S.REFUNDED)
        # Refund does not restock.
        self.assertEqual(self._stock(), (3, 4))

    def test_illegal_transition_leaves_status_unchanged(self):
        self._walk(S.CONFIRMED, S.PROCESSING, S.SHIPPED, S.DELIVERED)

        with self.assertRaises(InvalidTransitionError) as ctx:
            transition_order(order_id=self.order.id, new_status=S.PROCESSING, actor=self.admin)

        self.assertEqual(ctx.exception.code, "INVALID_TRANSITION")
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, S.DELIVERED)

    def test_skipping_states_is_illegal(self):
        with self.assertRaises(InvalidTransitionError):
            transition_order(order_id=self.order.id, new_status=S.SHIPPED, actor=self.admin)

    def test_unknown_status_is_illegal(self):
        with self.assertRaises(InvalidTransitionError):
            transition_order(order_id=self.order.id, new_status="LOST", actor=self.admin)

    def test_same_status_is_a_noop(self):
        before = Order.objects.get(pk=self.order.pk).updated_at

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            result = transition_order(order_id=self.order.id, new_status=S.PENDING, actor=self.admin)

        self.assertEqual(result.status, S.PENDING)
        self.assertEqual(callbacks, [])
        self.assertEqual(Order.objects.get(pk=self.order.pk).updated_at, before)

    def test_missing_order(self):
        with self.assertRaises(OrderNotFoundError):
            transition_order(order_id=uuid.uuid4(), new_status=S.CONFIRMED, actor=self.admin)

    # ======================================================
    # CANCELLATION + STOCK
    # ======================================================

    def test_cancel_restores_ordered_quantities(self):
        self.assertEqual(self._stock(), (3, 4))

        transition_order(order_id=self.order.id, new_status=S.CANCELLED, actor=self.admin)

        self.assertEqual(self._stock(), (5, 5))
        self.order.refresh_from_db()
        self.assertIsNotNone(self.order.cancelled_at)
        self.assertEqual(
            StockMovement.objects.filter(order=self.order, reason=StockMovement.Reason.RELEASE).count(),
            2,
        )

    def test_second_cancel_does_not_restore_again(self):
        transition_order(order_id=self.order.id, new_status=S.CANCELLED, actor=self.admin)
        transition_order(order_id=self.order.id, new_status=S.CANCELLED, actor=self.admin)
        request_cancellation(order_id=self.order.id, actor=self.customer)

        self.assertEqual(self._stock(), (5, 5))
        self.assertEqual(
            StockMovement.objects.filter(order=self.order, reason=StockMovement.Reason.RELEASE).count(),
            2,
        )

    def test_cancelled_is_terminal(self):
        transition_order(order_id=self.order.id, new_status=S.CANCELLED, actor=self.admin)

        with self.assertRaises(InvalidTransitionError):
            transition_order(order_id=self.order.id, new_status=S.CONFIRMED, actor=self.admin)

    def test_cancel_after_shipping_restores_stock(self):
        self._walk(S.CONFIRMED, S.PROCESSING, S.SHIPPED)

        transition_order(order_id=self.order.id, new_status=S.CANCELLED, actor=self.admin)

        self.assertEqual(self._stock(), (5, 5))

    def test_cancel_with_deleted_product_skips_that_line(self):
        self.b.delete()

        with self.assertLogs("orders.services.order_status", level="WARNING"):
            transition_order(order_id=self.order.id, new_status=S.CANCELLED, actor=self.admin)

        self.a.refresh_from_db()
        self.assertEqual(self.a.stock, 5)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, S.CANCELLED)

    # ======================================================
    # AUTHORIZATION
    # ======================================================

    def test_seller_with_lines_can_transition(self):
        transition_order(order_id=self.order.id, new_status=S.CONFIRMED, actor=self.seller)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, S.CONFIRMED)

    def test_seller_without_lines_is_forbidden(self):
        with self.assertRaises(ForbiddenError):
            transition_order(order_id=self.order.id, new_status=S.CONFIRMED, actor=self.other_seller)

    def test_customer_cannot_transition(self):
        with self.assertRaises(ForbiddenError) as ctx:
            transition_order(order_id=self.order.id, new_status=S.CONFIRMED, actor=self.customer)

        self.assertEqual(ctx.exception.code, "FORBIDDEN")
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, S.PENDING)

    # ======================================================
    # CUSTOMER CANCELLATION WINDOW
    # ======================================================

    def test_customer_cancels_own_pending_order(self):
        request_cancellation(order_id=self.order.id, actor=self.customer)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, S.CANCELLED)
        self.assertEqual(self._stock(), (5, 5))

    def test_customer_can_cancel_while_processing(self):
        self._walk(S.CONFIRMED, S.PROCESSING)

        request_cancellation(order_id=self.order.id, actor=self.customer)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, S.CANCELLED)

    def test_customer_cannot_cancel_shipped_order(self):
        self._walk(S.CONFIRMED, S.PROCESSING, S.SHIPPED)

        with self.assertRaises(InvalidTransitionError):
            request_cancellation(order_id=self.order.id, actor=self.customer)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, S.SHIPPED)

    def test_other_customer_cannot_cancel(self):
        with self.assertRaises(ForbiddenError):
            request_cancellation(order_id=self.order.id, actor=make_customer())

    # ======================================================
    # TRACKING
    # ======================================================

    def test_seller_sets_tracking_number(self):
        update_tracking_number(order_id=self.order.id, tracking_number=" 1Z999 ", actor=self.seller)

        self.order.refresh_from_db()
        self.assertEqual(self.order.tracking_number, "1Z999")

    def test_customer_cannot_set_tracking_number(self):
        with self.assertRaises(ForbiddenError):
            update_tracking_number(order_id=self.order.id, tracking_number="X", actor=self.customer)

    # ======================================================
    # NOTIFICATIONS
    # ======================================================

    def test_customer_notified_after_commit(self):
        with self.captureOnCommitCallbacks(execute=True):
            transition_order(order_id=self.order.id, new_status=S.CONFIRMED, actor=self.seller)

        note = Notification.objects.get(recipient=self.customer, event="ORDER_CONFIRMED")
        self.assertEqual(note.title, "Order Confirmed")
        self.assertEqual(note.level, Notification.Level.SUCCESS)

    def test_illegal_transition_sends_nothing(self):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with self.assertRaises(InvalidTransitionError):
                transition_order(order_id=self.order.id, new_status=S.DELIVERED, actor=self.admin)

        self.assertEqual(callbacks, [])

    # ======================================================
    # IMMUTABILITY
    # ======================================================

    def test_order_money_fields_are_frozen(self):
        order = Order.objects.get(pk=self.order.pk)
        order.total_amount = order.total_amount + 1

        with self.assertRaises(ValidationError):
            order.save()

    def test_order_items_are_frozen(self):
        item = self.order.items.first()
        item.quantity = 9

        with self.assertRaises(ValidationError):
            item.save()

        with self.assertRaises(ValidationError):
            item.delete()

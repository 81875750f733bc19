# orders/tests/test_order_api.py

from decimal import Decimal

from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from cart.services.cart_store import CartOwner, add_item
from common.testing import (
    make_admin,
    make_customer,
    make_order,
    make_product,
    make_seller,
    shipping_details,
)
from orders.models import Order


@override_settings(
    CHECKOUT_SHIPPING_FLAT_RATE=Decimal("10.00"),
    CHECKOUT_TAX_RATE=Decimal("0.10"),
)
class OrderApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()

        self.seller = make_seller()
        self.other_seller = make_seller()
        self.customer = make_customer()
        self.admin = make_admin()

        self.a = make_product(seller=self.seller, price="10.00", stock=10)
        self.c = make_product(seller=self.other_seller, price="3.00", stock=10)

        self.list_url = reverse("orders:orders-list")
        self.checkout_url = reverse("orders:orders-checkout")

    def _url(self, name, order):
        return reverse(f"orders:orders-{name}", args=[order.id])

    # ======================================================
    # CHECKOUT
    # ======================================================

    def test_checkout_returns_201_with_frozen_totals(self):
        add_item(CartOwner.for_user(self.customer), product_id=self.a.id, quantity=2)
        self.client.force_authenticate(self.customer)

        resp = self.client.post(self.checkout_url, shipping_details(), format="json")

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["status"], "PENDING")
        self.assertEqual(resp.data["subtotal"], "20.00")
        self.assertEqual(resp.data["shipping_cost"], "10.00")
        self.assertEqual(resp.data["tax"], "2.00")
        self.assertEqual(resp.data["total_amount"], "32.00")
        self.assertEqual(resp.data["payment_method"], "COD")
        self.assertEqual(len(resp.data["items"]), 1)
        self.assertEqual(resp.data["items"][0]["line_total"], "20.00")

    def test_checkout_with_empty_cart(self):
        self.client.force_authenticate(self.customer)

        resp = self.client.post(self.checkout_url, shipping_details(), format="json")

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["error"]["code"], "CART_EMPTY")

    def test_checkout_missing_field_is_rejected(self):
        add_item(CartOwner.for_user(self.customer), product_id=self.a.id, quantity=1)
        self.client.force_authenticate(self.customer)
        payload = shipping_details()
        del payload["shipping_city"]

        resp = self.client.post(self.checkout_url, payload, format="json")

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("shipping_city", resp.data)
        self.assertFalse(Order.objects.exists())

    def test_checkout_over_stock_returns_cart_invalid(self):
        add_item(CartOwner.for_user(self.customer), product_id=self.a.id, quantity=11)
        self.client.force_authenticate(self.customer)

        resp = self.client.post(self.checkout_url, shipping_details(), format="json")

        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.data["error"]["code"], "CART_INVALID")
        self.assertEqual(resp.data["error"]["details"]["problems"][0]["code"], "INSUFFICIENT_STOCK")

    def test_checkout_requires_authentication(self):
        resp = self.client.post(self.checkout_url, shipping_details(), format="json")

        self.assertIn(resp.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))

    # ======================================================
    # LISTING
    # ======================================================

    def test_list_scoping_by_role(self):
        mine = make_order(customer=self.customer, lines=[(self.a, 1)])
        theirs = make_order(customer=make_customer(), lines=[(self.c, 1)])

        self.client.force_authenticate(self.customer)
        ids = {row["id"] for row in self.client.get(self.list_url).data["results"]}
        self.assertEqual(ids, {str(mine.id)})

        self.client.force_authenticate(self.other_seller)
        ids = {row["id"] for row in self.client.get(self.list_url).data["results"]}
        self.assertEqual(ids, {str(theirs.id)})

        self.client.force_authenticate(self.admin)
        ids = {row["id"] for row in self.client.get(self.list_url).data["results"]}
        self.assertEqual(ids, {str(mine.id), str(theirs.id)})

    def test_list_filters_by_status(self):
        pending = make_order(customer=self.customer, lines=[(self.a, 1)])
        cancelled = make_order(customer=self.customer, lines=[(self.a, 1)])
        Order.objects.filter(pk=cancelled.pk).update(status=Order.Status.CANCELLED)

        self.client.force_authenticate(self.customer)
        resp = self.client.get(self.list_url, {"status": "PENDING"})

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual([row["id"] for row in resp.data["results"]], [str(pending.id)])

    def test_stranger_gets_404_on_detail(self):
        order = make_order(customer=self.customer, lines=[(self.a, 1)])

        self.client.force_authenticate(make_customer())
        resp = self.client.get(self._url("detail", order))

        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data["error"]["code"], "NOT_FOUND")

    def test_owner_reads_detail(self):
        order = make_order(customer=self.customer, lines=[(self.a, 1)])

        self.client.force_authenticate(self.customer)
        resp = self.client.get(self._url("detail", order))

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["order_number"], order.order_number)

    # ======================================================
    # LIFECYCLE
    # ======================================================

    def test_seller_advances_status(self):
        order = make_order(customer=self.customer, lines=[(self.a, 1)])

        self.client.force_authenticate(self.seller)
        resp = self.client.post(self._url("status", order), {"status": "CONFIRMED"}, format="json")

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["status"], "CONFIRMED")

    def test_illegal_transition_returns_409(self):
        order = make_order(customer=self.customer, lines=[(self.a, 1)])

        self.client.force_authenticate(self.admin)
        resp = self.client.post(self._url("status", order), {"status": "DELIVERED"}, format="json")

        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.data["error"]["code"], "INVALID_TRANSITION")
        order.refresh_from_db()
        self.assertEqual(order.status, Order.Status.PENDING)

    def test_customer_cannot_set_status(self):
        order = make_order(customer=self.customer, lines=[(self.a, 1)])

        self.client.force_authenticate(self.customer)
        resp = self.client.post(self._url("status", order), {"status": "CONFIRMED"}, format="json")

        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(resp.data["error"]["code"], "FORBIDDEN")

    def test_unknown_status_value_is_400(self):
        order = make_order(customer=self.customer, lines=[(self.a, 1)])

        self.client.force_authenticate(self.admin)
        resp = self.client.post(self._url("status", order), {"status": "LOST"}, format="json")

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_customer_cancel_restores_stock(self):
        order = make_order(customer=self.customer, lines=[(self.a, 3)])

        self.client.force_authenticate(self.customer)
        resp = self.client.post(self._url("cancel", order))

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["status"], "CANCELLED")
        self.a.refresh_from_db()
        self.assertEqual(self.a.stock, 10)

    def test_tracking_number_update(self):
        order = make_order(customer=self.customer, lines=[(self.a, 1)])

        self.client.force_authenticate(self.seller)
        resp = self.client.post(self._url("tracking", order), {"tracking_number": "TRK-42"}, format="json")

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["tracking_number"], "TRK-42")

    def test_missing_order_action_is_404(self):
        self.client.force_authenticate(self.admin)
        url = reverse("orders:orders-cancel", args=["00000000-0000-0000-0000-000000000000"])

        resp = self.client.post(url)

        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data["error"]["code"], "NOT_FOUND")

    def test_non_uuid_order_id_is_404(self):
        self.client.force_authenticate(self.admin)
        bogus = "-" * 32

        self.assertEqual(self.client.get(f"{self.list_url}{bogus}/").status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(
            self.client.post(f"{self.list_url}{bogus}/cancel/").status_code,
            status.HTTP_404_NOT_FOUND,
        )

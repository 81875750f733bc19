# cart/tests/test_cart_api.py

from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from cart.models import Cart, CartItem
from common.testing import make_customer, make_product, make_seller
from products.models import Product


class CartApiTests(TestCase):
    """
    Cart endpoints for signed-in users and anonymous sessions.
    """

    def setUp(self):
        self.client = APIClient()
        self.seller = make_seller()
        self.customer = make_customer()
        self.product = make_product(seller=self.seller, name="Glass Jar", price="7.50", stock=4)

        self.cart_url = reverse("cart:cart")
        self.items_url = reverse("cart:cart-items")
        self.validate_url = reverse("cart:cart-validate")

    def _item_url(self, item_id):
        return reverse("cart:cart-item-detail", args=[item_id])

    def test_authenticated_add_and_view(self):
        self.client.force_authenticate(self.customer)

        resp = self.client.post(
            self.items_url, {"product_id": str(self.product.id), "quantity": 2}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["count"], 2)
        self.assertEqual(resp.data["total"], "15.00")

        resp = self.client.get(self.cart_url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(len(resp.data["items"]), 1)
        self.assertEqual(resp.data["items"][0]["unit_price"], "7.50")

    def test_anonymous_view_without_session_is_empty(self):
        resp = self.client.get(self.cart_url)

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["count"], 0)
        self.assertEqual(resp.data["total"], "0.00")
        self.assertFalse(Cart.objects.exists())

    def test_anonymous_cart_lives_in_session(self):
        resp = self.client.post(
            self.items_url, {"product_id": str(self.product.id), "quantity": 1}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)

        cart = Cart.objects.get()
        self.assertIsNone(cart.user_id)
        self.assertTrue(cart.session_key)

        resp = self.client.get(self.cart_url)
        self.assertEqual(resp.data["count"], 1)

    def test_invalid_quantity_returns_400(self):
        self.client.force_authenticate(self.customer)

        resp = self.client.post(
            self.items_url, {"product_id": str(self.product.id), "quantity": 0}, format="json"
        )

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["error"]["code"], "INVALID_QUANTITY")

    def test_unavailable_product_returns_409(self):
        Product.objects.filter(pk=self.product.pk).update(status=Product.Status.INACTIVE)
        self.client.force_authenticate(self.customer)

        resp = self.client.post(
            self.items_url, {"product_id": str(self.product.id), "quantity": 1}, format="json"
        )

        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.data["error"]["code"], "PRODUCT_UNAVAILABLE")

    def test_update_and_remove_line(self):
        self.client.force_authenticate(self.customer)
        self.client.post(
            self.items_url, {"product_id": str(self.product.id), "quantity": 1}, format="json"
        )
        item = CartItem.objects.get()

        resp = self.client.patch(self._item_url(item.id), {"quantity": 3}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["count"], 3)

        resp = self.client.delete(self._item_url(item.id))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["items"], [])

    def test_foreign_item_is_forbidden(self):
        self.client.force_authenticate(self.customer)
        self.client.post(
            self.items_url, {"product_id": str(self.product.id), "quantity": 1}, format="json"
        )
        item = CartItem.objects.get()

        other = APIClient()
        other.force_authenticate(make_customer())
        resp = other.patch(self._item_url(item.id), {"quantity": 5}, format="json")

        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(resp.data["error"]["code"], "UNAUTHORIZED")

    def test_clear(self):
        self.client.force_authenticate(self.customer)
        self.client.post(
            self.items_url, {"product_id": str(self.product.id), "quantity": 2}, format="json"
        )

        resp = self.client.delete(self.cart_url)

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["count"], 0)

    def test_validate_reports_short_stock(self):
        self.client.force_authenticate(self.customer)
        self.client.post(
            self.items_url, {"product_id": str(self.product.id), "quantity": 6}, format="json"
        )

        resp = self.client.get(self.validate_url)

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertFalse(resp.data["valid"])
        self.assertEqual(resp.data["problems"][0]["code"], "INSUFFICIENT_STOCK")
        self.assertEqual(resp.data["problems"][0]["available"], 4)

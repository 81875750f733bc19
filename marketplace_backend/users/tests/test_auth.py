# users/tests/test_auth.py

from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from cart.models import Cart, CartItem
from common.testing import DEFAULT_PASSWORD, make_customer, make_product, make_seller
from products.models import Product


class RegisterTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.url = reverse("users:register")

    def test_register_defaults_to_customer(self):
        resp = self.client.post(
            self.url,
            {"email": "new@example.com", "password": "a-Long-pass-9917"},
            format="json",
        )

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["user"]["role"], "customer")
        self.assertNotIn("password", resp.data["user"])

    def test_register_as_seller(self):
        resp = self.client.post(
            self.url,
            {"email": "shop@example.com", "password": "a-Long-pass-9917", "role": "seller"},
            format="json",
        )

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["user"]["role"], "seller")

    def test_cannot_self_register_as_admin(self):
        resp = self.client.post(
            self.url,
            {"email": "root@example.com", "password": "a-Long-pass-9917", "role": "admin"},
            format="json",
        )

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("role", resp.data)


class LoginTests(TestCase):
    """
    Login issues JWTs and merges the session's guest cart.
    """

    def setUp(self):
        self.client = APIClient()
        self.customer = make_customer(email="ada@example.com")
        self.seller = make_seller()

        self.login_url = reverse("users:login")
        self.items_url = reverse("cart:cart-items")

    def _login(self, password=DEFAULT_PASSWORD):
        return self.client.post(
            self.login_url,
            {"email": "ada@example.com", "password": password},
            format="json",
        )

    def _guest_add(self, product, quantity):
        resp = self.client.post(
            self.items_url,
            {"product_id": str(product.id), "quantity": quantity},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)

    def test_login_returns_tokens(self):
        resp = self._login()

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertIn("access", resp.data)
        self.assertIn("refresh", resp.data)
        self.assertEqual(resp.data["user"]["email"], "ada@example.com")
        self.assertEqual(resp.data["cart_merge"], {"merged": [], "dropped": []})

    def test_wrong_password(self):
        resp = self._login(password="nope")

        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_guest_cart_is_merged_on_login(self):
        jar = make_product(seller=self.seller, name="Jar", price="4.00", stock=5)
        lid = make_product(seller=self.seller, name="Lid", price="1.00", stock=5)
        self._guest_add(jar, 2)
        self._guest_add(lid, 1)

        resp = self._login()

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(len(resp.data["cart_merge"]["merged"]), 2)
        self.assertEqual(resp.data["cart_merge"]["dropped"], [])

        user_cart = Cart.objects.get(user=self.customer)
        quantities = {i.product_id: i.quantity for i in user_cart.items.all()}
        self.assertEqual(quantities, {jar.id: 2, lid.id: 1})
        self.assertFalse(CartItem.objects.filter(cart__user__isnull=True).exists())

    def test_unavailable_guest_line_is_reported_as_dropped(self):
        jar = make_product(seller=self.seller, name="Jar", price="4.00", stock=5)
        gone = make_product(seller=self.seller, name="Discontinued", price="1.00", stock=5)
        self._guest_add(jar, 1)
        self._guest_add(gone, 1)
        Product.objects.filter(pk=gone.pk).update(status=Product.Status.INACTIVE)

        resp = self._login()

        dropped = resp.data["cart_merge"]["dropped"]
        self.assertEqual(len(dropped), 1)
        self.assertEqual(dropped[0]["product_name"], "Discontinued")
        self.assertEqual(dropped[0]["code"], "PRODUCT_UNAVAILABLE")

        user_cart = Cart.objects.get(user=self.customer)
        self.assertEqual([i.product_id for i in user_cart.items.all()], [jar.id])


class MeTests(TestCase):
    def test_me_returns_profile(self):
        client = APIClient()
        user = make_customer(email="me@example.com")
        client.force_authenticate(user)

        resp = client.get(reverse("users:me"))

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["email"], "me@example.com")
        self.assertEqual(resp.data["role"], "customer")

    def test_me_requires_authentication(self):
        resp = APIClient().get(reverse("users:me"))

        self.assertIn(resp.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))

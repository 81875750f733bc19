# orders/apps.py

"""
ORDERS APP CONFIG

Checkout (cart → order) and the order status lifecycle.
"""

from django.apps import AppConfig


class OrdersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "orders"
    verbose_name = "Orders"

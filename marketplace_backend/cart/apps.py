# cart/apps.py

"""
CART APP CONFIG

Shopping carts for signed-in users and anonymous sessions,
plus the guest → user cart merge performed at login.
"""

from django.apps import AppConfig


class CartConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "cart"
    verbose_name = "Shopping Carts"

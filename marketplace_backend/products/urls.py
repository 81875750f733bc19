# products/urls.py

"""
PRODUCTS URLS

Purpose:
- Register product domain routes under /api/products/
- Includes viewset actions like:
    /products/products/<id>/adjust-stock/
    /products/products/<id>/movements/
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from products.views import ProductViewSet

app_name = "products"

router = DefaultRouter()

router.register(r"products", ProductViewSet, basename="products")

urlpatterns = [
    path("", include(router.urls)),
]

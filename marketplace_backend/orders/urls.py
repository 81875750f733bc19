"""
ORDERS URLS

Routes live directly under /api/orders/ (empty router prefix):
    /api/orders/
    /api/orders/checkout/
    /api/orders/<id>/
    /api/orders/<id>/status/ | cancel/ | tracking/
"""

from rest_framework.routers import SimpleRouter

from orders.views import OrderViewSet

app_name = "orders"

router = SimpleRouter()
router.register(r"", OrderViewSet, basename="orders")

urlpatterns = router.urls

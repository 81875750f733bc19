# products/serializers/__init__.py

from .product import ProductSerializer, StockAdjustmentInputSerializer, StockMovementSerializer

__all__ = [
    "ProductSerializer",
    "StockAdjustmentInputSerializer",
    "StockMovementSerializer",
]

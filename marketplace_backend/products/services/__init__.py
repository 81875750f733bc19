from .inventory import (
    InsufficientStockError,
    ProductUnavailableError,
    StockReleaseError,
    adjust_stock,
    release_stock,
    reserve_stock,
)

__all__ = [
    "reserve_stock",
    "release_stock",
    "adjust_stock",
    "InsufficientStockError",
    "ProductUnavailableError",
    "StockReleaseError",
]

from .cart import (
    AddCartItemInputSerializer,
    CartLineSerializer,
    CartProblemSerializer,
    CartSerializer,
    CartValidationSerializer,
    UpdateCartItemInputSerializer,
)

__all__ = [
    "AddCartItemInputSerializer",
    "CartLineSerializer",
    "CartProblemSerializer",
    "CartSerializer",
    "CartValidationSerializer",
    "UpdateCartItemInputSerializer",
]

#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from spincart.data.models.user import UserModel, AddressModel
from spincart.data.models.product import ProductModel, ProductVariantModel
from spincart.data.models.cart import CartModel
from spincart.data.models.cart_item import CartItemModel
from spincart.data.models.spin import SpinDefinitionModel
from spincart.data.models.order import OrderModel, OrderItemModel
from spincart.data.models.payment import EsewaPaymentModel

__all__ = [
    "UserModel",
    "AddressModel",
    "ProductModel",
    "ProductVariantModel",
    "CartModel",
    "CartItemModel",
    "SpinDefinitionModel",
    "OrderModel",
    "OrderItemModel",
    "EsewaPaymentModel",
]

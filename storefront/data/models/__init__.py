# import every model so SQLAlchemy registers it in Base.metadata

from storefront.data.models.product import ProductModel
from storefront.data.models.product_weight import ProductWeightModel
from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.purchase import PurchaseModel
from storefront.data.models.purchase_item import PurchaseItemModel
from storefront.data.models.order_status import OrderStatusModel

__all__ = [
    "ProductModel",
    "ProductWeightModel",
    "CartModel",
    "CartItemModel",
    "PurchaseModel",
    "PurchaseItemModel",
    "OrderStatusModel",
]

# storefront/services/cart_service.py
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.domain.errors import (
    ConcurrentModification,
    InvalidArgument,
    NotFound,
    StorageFailure,
)
from storefront.repos.cart_repo import CartRepo
from storefront.services.catalog_service import CatalogService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Commands (add, update, remove, clear) and the get query for the per-user cart.

    The cart is addressed by user id only and created lazily. Every command
    runs in one transaction and bumps the cart version with a conditional
    update, so two racing writers cannot both commit on the same version.
    The total is always recomputed from current variant prices.
    """

    def __init__(self, db: Session, catalog: CatalogService | None = None):
        self.repo = CartRepo(db)
        self.catalog = catalog or CatalogService(db)

    # query
    def get_cart(self, user_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            return {"user_id": user_id, "items": [], "total_price": Decimal("0.00")}
        return self._cart_view(cart)

    # commands
    def add_item(self, user_id: int, product_weight_id: int, quantity: int | None = 1) -> Dict[str, Any]:
        if not quantity or quantity <= 0:
            quantity = 1

        # fails with NotFound before anything is written
        self.catalog.get_product_weight(product_weight_id)

        def mutate(cart: CartModel) -> None:
            existing_item = self.repo.get_cart_item(cart.id, product_weight_id)
            if existing_item:
                logger.info(
                    f"Variant {product_weight_id} already in cart of user {user_id}, "
                    f"quantity {existing_item.quantity} -> {existing_item.quantity + quantity}"
                )
                existing_item.quantity += quantity
                self.repo.add_cart_item(existing_item)
            else:
                logger.info(f"Adding variant {product_weight_id} x {quantity} to cart of user {user_id}")
                self.repo.add_cart_item(
                    CartItemModel(
                        cart_id=cart.id,
                        product_weight_id=product_weight_id,
                        quantity=quantity,
                    )
                )

        return self._mutate(user_id, mutate, create=True)

    def update_item_quantity(self, user_id: int, product_weight_id: int, quantity: int) -> Dict[str, Any]:
        if quantity is None or quantity < 1:
            raise InvalidArgument(
                "Quantity must be at least 1, remove the item instead",
                context={"quantity": quantity},
            )

        def mutate(cart: CartModel) -> None:
            item = self._require_item(cart, user_id, product_weight_id)
            logger.info(f"Setting variant {product_weight_id} quantity to {quantity} for user {user_id}")
            item.quantity = quantity
            self.repo.add_cart_item(item)

        return self._mutate(user_id, mutate)

    def remove_item(self, user_id: int, product_weight_id: int) -> Dict[str, Any]:
        def mutate(cart: CartModel) -> None:
            item = self._require_item(cart, user_id, product_weight_id)
            logger.info(f"Removing variant {product_weight_id} from cart of user {user_id}")
            self.repo.delete_cart_item(item)

        return self._mutate(user_id, mutate)

    def clear_cart(self, user_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            # nothing to clear
            return self.get_cart(user_id)

        def mutate(cart: CartModel) -> None:
            removed = self.repo.delete_cart_items(cart.id)
            logger.info(f"Cleared {removed} line(s) from cart of user {user_id}")

        return self._mutate(user_id, mutate)

    # helpers
    def _require_item(self, cart: CartModel, user_id: int, product_weight_id: int) -> CartItemModel:
        item = self.repo.get_cart_item(cart.id, product_weight_id)
        if not item:
            raise NotFound(
                f"Variant {product_weight_id} is not in the cart of user {user_id}",
                context={"user_id": user_id, "product_weight_id": product_weight_id},
            )
        return item

    def _mutate(self, user_id: int, mutate, create: bool = False) -> Dict[str, Any]:
        try:
            cart = self.repo.get_cart_by_user(user_id)
            if not cart:
                if not create:
                    raise NotFound(
                        f"Cart of user {user_id} not found",
                        context={"user_id": user_id},
                    )
                cart = self._create_cart(user_id)

            old_version = cart.version
            mutate(cart)

            # optimistic locking on the cart header
            rowcount = self.repo.update_cart_version(
                cart_id=cart.id,
                old_version=old_version,
                new_data={
                    "version": old_version + 1,
                    "updated_at": datetime.now(timezone.utc),
                },
            )
            if rowcount == 0:
                raise ConcurrentModification(
                    "Cart was modified by another request, retry",
                    context={"user_id": user_id},
                )

            self.repo.commit()
        except IntegrityError as e:
            # a concurrent request inserted the same line first
            self.repo.rollback()
            logger.warning(f"Cart of user {user_id} changed concurrently: {e.orig}")
            raise ConcurrentModification(
                "Cart was modified by another request, retry",
                context={"user_id": user_id},
            ) from e
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.error(f"Cart update failed for user {user_id}: {e}")
            raise StorageFailure("Failed to update cart") from e
        except Exception:
            self.repo.rollback()
            raise

        return self.get_cart(user_id)

    def _create_cart(self, user_id: int) -> CartModel:
        try:
            cart = self.repo.create_cart(user_id)
        except IntegrityError:
            # lost the race for the first cart row, use the winner's cart
            self.repo.rollback()
            cart = self.repo.get_cart_by_user(user_id)
            if cart is None:
                raise ConcurrentModification(
                    "Cart was modified by another request, retry",
                    context={"user_id": user_id},
                )
            logger.info(f"Cart of user {user_id} was created concurrently, reusing cart {cart.id}")
            return cart

        logger.info(f"Created cart {cart.id} for user {user_id}")
        return cart

    def _cart_view(self, cart: CartModel) -> Dict[str, Any]:
        items = self.repo.get_cart_items(cart.id)
        lines = []
        for i in items:
            weight = i.product_weight
            unit_price = Decimal(weight.price)
            lines.append(
                {
                    "product_weight_id": i.product_weight_id,
                    "product_id": weight.product_id,
                    "product_name": weight.product.name,
                    "weight": weight.weight,
                    "measurement": weight.measurement,
                    "unit_price": unit_price,
                    "quantity": i.quantity,
                    "line_total": unit_price * i.quantity,
                    "created_at": i.created_at,
                    "updated_at": i.updated_at,
                }
            )

        return {
            "user_id": cart.user_id,
            "items": lines,
            "total_price": sum((line["line_total"] for line in lines), Decimal("0.00")),
        }

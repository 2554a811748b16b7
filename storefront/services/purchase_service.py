# storefront/services/purchase_service.py
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.purchase import PurchaseModel
from storefront.data.models.purchase_item import PurchaseItemModel
from storefront.domain.errors import (
    InsufficientStock,
    InvalidArgument,
    NotFound,
    StatusSeedFailure,
    StorageFailure,
    StorefrontError,
    VariantNotFound,
)
from storefront.domain.schemas import PurchaseItemIn
from storefront.repos.cart_repo import CartRepo
from storefront.repos.purchase_repo import PurchaseRepo
from storefront.services.catalog_service import CatalogService
from storefront.services.duplicate_guard import fingerprint_purchase
from storefront.services.notification_service import NotificationService
from storefront.services.order_status_service import OrderStatusService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class PurchaseService:
    """
    Turns a purchase request into a committed purchase.

    Stock check, stock decrement, item snapshots, header insert and cart
    clear share one transaction. Status seeding and the notification happen
    after commit.
    """

    def __init__(
        self,
        db: Session,
        guard,
        notifier: NotificationService | None = None,
        catalog: CatalogService | None = None,
        status_service: OrderStatusService | None = None,
    ):
        self.db = db
        self.repo = PurchaseRepo(db)
        self.cart_repo = CartRepo(db)
        self.guard = guard
        self.notifier = notifier or NotificationService()
        self.catalog = catalog or CatalogService(db)
        self.status_service = status_service or OrderStatusService(db)

    # =====================================================
    # COMMANDS
    # =====================================================
    def create_purchase(
        self,
        user_id: int,
        address_id: int,
        payment_id: int,
        items: Sequence[PurchaseItemIn],
    ) -> int:
        """
        Use case: place an order.

        1. Validate ids and quantities (InvalidArgument, no storage access)
        2. Reject identical requests inside the duplicate window
        3. In one transaction: lock variant, check and decrement stock,
           snapshot lines, insert purchase and items, clear the cart
        4. Seed the order status 'accepted'
        5. Notify the purchaser, best effort
        """
        self._validate(user_id, address_id, payment_id, items)

        fingerprint = fingerprint_purchase(
            user_id,
            address_id,
            payment_id,
            [(i.product_id, i.product_weight_id, i.quantity) for i in items],
        )
        self.guard.acquire(fingerprint)

        stored = False
        try:
            purchase_id, lines = self._store_purchase(user_id, address_id, payment_id, items)
            stored = True
        finally:
            # interrupted or failed before commit: free the in-flight slot
            if not stored:
                self.guard.release(fingerprint)

        # the purchase is durable from here on; close the window before
        # anything else can fail so a retry cannot place a second order
        self.guard.commit(fingerprint)

        seed_error = None
        try:
            self.status_service.seed(purchase_id)
        except StorefrontError as e:
            logger.error(f"Purchase {purchase_id} committed but status seeding failed: {e}")
            seed_error = e

        self._notify(user_id, purchase_id, lines)

        if seed_error is not None:
            raise StatusSeedFailure(purchase_id) from seed_error
        return purchase_id

    def create_purchase_from_cart(self, user_id: int, address_id: int, payment_id: int) -> int:
        """Use case: check out the user's current cart."""
        if user_id is None or user_id <= 0:
            raise InvalidArgument("user_id must be a positive integer", context={"user_id": user_id})

        cart = self.cart_repo.get_cart_by_user(user_id)
        cart_items = self.cart_repo.get_cart_items(cart.id) if cart else []
        if not cart_items:
            raise InvalidArgument("Cart is empty", context={"user_id": user_id})

        items = [
            PurchaseItemIn(
                product_id=i.product_weight.product_id,
                product_weight_id=i.product_weight_id,
                quantity=i.quantity,
            )
            for i in cart_items
        ]
        # nothing stays open while the purchase transaction runs
        self.db.rollback()
        return self.create_purchase(user_id, address_id, payment_id, items)

    # =====================================================
    # QUERIES
    # =====================================================
    def get_purchase(self, purchase_id: int) -> Dict[str, Any]:
        purchase = self.repo.get_purchase(purchase_id)
        if not purchase:
            raise NotFound(f"Purchase {purchase_id} not found", context={"purchase_id": purchase_id})
        return self._purchase_view(purchase)

    def get_purchases_by_user(self, user_id: int) -> List[Dict[str, Any]]:
        if user_id is None or user_id <= 0:
            raise InvalidArgument("user_id must be a positive integer", context={"user_id": user_id})
        return [self._purchase_view(p) for p in self.repo.list_by_user(user_id)]

    def get_all_purchases(self) -> List[Dict[str, Any]]:
        return [self._purchase_view(p) for p in self.repo.list_all()]

    # =====================================================
    # internals
    # =====================================================
    @staticmethod
    def _validate(user_id, address_id, payment_id, items) -> None:
        for name, value in (("user_id", user_id), ("address_id", address_id), ("payment_id", payment_id)):
            if value is None or value <= 0:
                raise InvalidArgument(f"{name} must be a positive integer", context={name: value})

        if not items:
            raise InvalidArgument("Purchase must contain at least one item")

        for index, item in enumerate(items):
            if item.product_id is None or item.product_id <= 0:
                raise InvalidArgument(
                    "product_id must be a positive integer",
                    context={"item": index, "product_id": item.product_id},
                )
            if item.product_weight_id is None or item.product_weight_id <= 0:
                raise InvalidArgument(
                    "product_weight_id must be a positive integer",
                    context={"item": index, "product_weight_id": item.product_weight_id},
                )
            if item.quantity is None or item.quantity < 1:
                raise InvalidArgument(
                    "quantity must be at least 1",
                    context={"item": index, "quantity": item.quantity},
                )

    def _store_purchase(self, user_id, address_id, payment_id, items):
        try:
            lines = [self._reserve_line(item) for item in items]

            now = datetime.now(timezone.utc)
            purchase = self.repo.add_purchase(
                PurchaseModel(
                    user_id=user_id,
                    address_id=address_id,
                    payment_id=payment_id,
                    total_price=sum((line["total_price"] for line in lines), Decimal("0.00")),
                    created_at=now,
                    updated_at=now,
                    items=[PurchaseItemModel(**line) for line in lines],
                )
            )
            purchase_id = purchase.id

            cleared = self.repo.clear_cart(user_id)
            self.repo.commit()
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.error(f"Purchase transaction for user {user_id} failed: {e}")
            raise StorageFailure("Failed to create purchase") from e
        except Exception:
            self.repo.rollback()
            raise

        logger.info(
            f"Purchase {purchase_id} committed for user {user_id}: "
            f"{len(lines)} line(s), {cleared} cart line(s) cleared"
        )
        return purchase_id, lines

    def _reserve_line(self, item: PurchaseItemIn) -> Dict[str, Any]:
        product = self.catalog.get_product_by_id(item.product_id)

        variant = next((w for w in product.weights if w.id == item.product_weight_id), None)
        if variant is None:
            raise VariantNotFound(
                f"Weight {item.product_weight_id} does not belong to product {item.product_id}",
                context={"product_id": item.product_id, "product_weight_id": item.product_weight_id},
            )

        locked = self.repo.lock_weight(variant.id)
        if locked is None or locked.stock < item.quantity:
            available = locked.stock if locked is not None else 0
            logger.warning(
                f"Insufficient stock for weight {variant.id}: requested {item.quantity}, available {available}"
            )
            raise InsufficientStock(
                f"Only {available} unit(s) of {product.name} ({variant.weight}) available",
                context={
                    "product_weight_id": variant.id,
                    "requested": item.quantity,
                    "available": available,
                },
            )

        # conditional decrement, guards against a concurrent purchase that
        # slipped in between the read and the update
        if self.repo.decrement_stock(variant.id, item.quantity) == 0:
            raise InsufficientStock(
                f"Stock of {product.name} ({variant.weight}) changed, not enough left",
                context={"product_weight_id": variant.id, "requested": item.quantity},
            )

        unit_price = Decimal(locked.price)
        return {
            "product_id": product.id,
            "product_name": product.name,
            "product_weight_id": variant.id,
            "weight": locked.weight,
            "measurement": locked.measurement,
            "unit_price": unit_price,
            "quantity": item.quantity,
            "total_price": unit_price * item.quantity,
        }

    def _notify(self, user_id: int, purchase_id: int, lines: List[Dict[str, Any]]) -> None:
        summary = [{"product_name": line["product_name"], "quantity": line["quantity"]} for line in lines]
        try:
            self.notifier.send_purchase_notification(user_id, purchase_id, summary)
        except Exception as e:
            logger.warning(f"Notification for purchase {purchase_id} failed: {e}")

    @staticmethod
    def _purchase_view(purchase: PurchaseModel) -> Dict[str, Any]:
        return {
            "id": purchase.id,
            "user_id": purchase.user_id,
            "address_id": purchase.address_id,
            "payment_id": purchase.payment_id,
            "total_price": purchase.total_price,
            "status": purchase.status.status if purchase.status else None,
            "created_at": purchase.created_at,
            "updated_at": purchase.updated_at,
            "items": [
                {
                    "product_id": i.product_id,
                    "product_name": i.product_name,
                    "product_weight_id": i.product_weight_id,
                    "weight": i.weight,
                    "measurement": i.measurement,
                    "unit_price": i.unit_price,
                    "quantity": i.quantity,
                    "total_price": i.total_price,
                }
                for i in purchase.items
            ],
        }

# storefront/repos/purchase_repo.py
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import select, update, delete

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.order_status import OrderStatusModel
from storefront.data.models.product_weight import ProductWeightModel
from storefront.data.models.purchase import PurchaseModel


class PurchaseRepo:
    def __init__(self, db: Session):
        self.db = db

    # --- stock -------------------------------------------------------------

    def lock_weight(self, weight_id: int) -> ProductWeightModel | None:
        """SELECT ... FOR UPDATE on the variant row (no-op on sqlite)."""
        return self.db.execute(
            select(ProductWeightModel)
            .where(ProductWeightModel.id == weight_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def decrement_stock(self, weight_id: int, quantity: int) -> int:
        res = self.db.execute(
            update(ProductWeightModel)
            .where(ProductWeightModel.id == weight_id, ProductWeightModel.stock >= quantity)
            .values(stock=ProductWeightModel.stock - quantity)
            .execution_options(synchronize_session="fetch")
        )
        return res.rowcount or 0

    # --- purchases ---------------------------------------------------------

    def add_purchase(self, purchase: PurchaseModel) -> PurchaseModel:
        self.db.add(purchase)
        self.db.flush()  # assigns the purchase id
        return purchase

    def clear_cart(self, user_id: int) -> int:
        cart_ids = select(CartModel.id).where(CartModel.user_id == user_id).scalar_subquery()
        res = self.db.execute(
            delete(CartItemModel)
            .where(CartItemModel.cart_id.in_(cart_ids))
            .execution_options(synchronize_session="fetch")
        )
        self.db.execute(
            update(CartModel)
            .where(CartModel.user_id == user_id)
            .values(version=CartModel.version + 1)
            .execution_options(synchronize_session="fetch")
        )
        return res.rowcount or 0

    def get_purchase(self, purchase_id: int) -> PurchaseModel | None:
        return self.db.execute(
            select(PurchaseModel)
            .options(selectinload(PurchaseModel.items), selectinload(PurchaseModel.status))
            .where(PurchaseModel.id == purchase_id)
        ).scalar_one_or_none()

    def list_by_user(self, user_id: int) -> list[PurchaseModel]:
        return list(
            self.db.execute(
                select(PurchaseModel)
                .options(selectinload(PurchaseModel.items), selectinload(PurchaseModel.status))
                .where(PurchaseModel.user_id == user_id)
                .order_by(PurchaseModel.id.desc())
            ).scalars().all()
        )

    def list_all(self) -> list[PurchaseModel]:
        return list(
            self.db.execute(
                select(PurchaseModel)
                .options(selectinload(PurchaseModel.items), selectinload(PurchaseModel.status))
                .order_by(PurchaseModel.id.desc())
            ).scalars().all()
        )

    def ids_without_status(self) -> list[int]:
        return list(
            self.db.execute(
                select(PurchaseModel.id)
                .outerjoin(OrderStatusModel, OrderStatusModel.purchase_id == PurchaseModel.id)
                .where(OrderStatusModel.purchase_id.is_(None))
                .order_by(PurchaseModel.id)
            ).scalars().all()
        )

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

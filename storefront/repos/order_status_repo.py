# storefront/repos/order_status_repo.py
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from storefront.data.models.order_status import OrderStatusModel
from storefront.data.models.purchase import PurchaseModel


class OrderStatusRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_status(self, purchase_id: int) -> OrderStatusModel | None:
        return self.db.get(OrderStatusModel, purchase_id)

    def purchase_exists(self, purchase_id: int) -> bool:
        return self.db.get(PurchaseModel, purchase_id) is not None

    def upsert_status(self, purchase_id: int, status: str) -> OrderStatusModel:
        now = datetime.now(timezone.utc)
        row = self.get_status(purchase_id)
        if row is None:
            row = OrderStatusModel(purchase_id=purchase_id, status=status, created_at=now, updated_at=now)
            self.db.add(row)
        else:
            row.status = status
            row.updated_at = now
        self.db.flush()
        return row

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

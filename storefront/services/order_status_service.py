# storefront/services/order_status_service.py
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.domain.errors import InvalidArgument, NotFound, StorageFailure
from storefront.domain.schemas import OrderStatusOut
from storefront.repos.order_status_repo import OrderStatusRepo
from storefront.utils.settings import ORDER_STATUS_MAX_LENGTH
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

# well-known values; any other non-empty string is accepted as well
ACCEPTED = "accepted"
PREPARING = "preparing"
OUT_FOR_DELIVERY = "out_for_delivery"
DELIVERED = "delivered"
CANCELLED = "cancelled"

KNOWN_STATUSES = (ACCEPTED, PREPARING, OUT_FOR_DELIVERY, DELIVERED, CANCELLED)


class OrderStatusService:
    """
    purchase id -> status string.

    The only transition the workflow itself makes is absent -> accepted when
    a purchase commits; update_status overwrites unconditionally.
    """

    def __init__(self, db: Session):
        self.repo = OrderStatusRepo(db)

    def seed(self, purchase_id: int) -> OrderStatusOut:
        return self._write(purchase_id, ACCEPTED)

    def update_status(self, purchase_id: int, status: str) -> OrderStatusOut:
        status = (status or "").strip()
        if not status:
            raise InvalidArgument("Status must be a non-empty string")
        if len(status) > ORDER_STATUS_MAX_LENGTH:
            raise InvalidArgument(
                f"Status must be at most {ORDER_STATUS_MAX_LENGTH} characters",
                context={"length": len(status)},
            )

        if not self.repo.purchase_exists(purchase_id):
            raise NotFound(
                f"Purchase {purchase_id} not found",
                context={"purchase_id": purchase_id},
            )

        if status not in KNOWN_STATUSES:
            logger.info(f"Purchase {purchase_id}: non-standard status '{status}'")
        return self._write(purchase_id, status)

    def get_status(self, purchase_id: int) -> OrderStatusOut:
        row = self.repo.get_status(purchase_id)
        if not row:
            raise NotFound(
                f"No order status for purchase {purchase_id}",
                context={"purchase_id": purchase_id},
            )
        return OrderStatusOut.model_validate(row)

    def _write(self, purchase_id: int, status: str) -> OrderStatusOut:
        try:
            row = self.repo.upsert_status(purchase_id, status)
            self.repo.commit()
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.error(f"Failed to set status of purchase {purchase_id}: {e}")
            raise StorageFailure(f"Failed to set status of purchase {purchase_id}") from e

        logger.info(f"Purchase {purchase_id} status -> {status}")
        return OrderStatusOut.model_validate(row)

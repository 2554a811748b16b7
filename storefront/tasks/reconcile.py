# storefront/tasks/reconcile.py
from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal
from storefront.repos.purchase_repo import PurchaseRepo
from storefront.services.order_status_service import OrderStatusService
from storefront.domain.errors import StorageFailure
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def reconcile_order_status(db) -> list[int]:
    """Seed 'accepted' for every purchase committed without a status row."""
    missing = PurchaseRepo(db).ids_without_status()
    if not missing:
        return []

    logger.info(f"Found {len(missing)} purchase(s) without order status")
    service = OrderStatusService(db)
    seeded = []
    for purchase_id in missing:
        try:
            service.seed(purchase_id)
            seeded.append(purchase_id)
        except StorageFailure as e:
            logger.warning(f"Failed to seed status for purchase {purchase_id}: {e}")
    return seeded


@celery_app.task(name="storefront.tasks.reconcile.reconcile_order_status_task")
def reconcile_order_status_task():
    logger.info("Reconcile order status task started")

    db = SessionLocal()
    try:
        return reconcile_order_status(db)
    finally:
        db.close()

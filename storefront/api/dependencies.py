# storefront/api/dependencies.py
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.services.cart_service import CartService
from storefront.services.catalog_service import CatalogService
from storefront.services.duplicate_guard import build_duplicate_guard
from storefront.services.notification_service import NotificationService
from storefront.services.order_status_service import OrderStatusService
from storefront.services.purchase_service import PurchaseService


@lru_cache
def get_duplicate_guard():
    # one guard per process, shared by all requests
    return build_duplicate_guard()


def get_notifier() -> NotificationService:
    return NotificationService()


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    return CatalogService(db)


def get_cart_service(db: Session = Depends(get_db)) -> CartService:
    return CartService(db)


def get_order_status_service(db: Session = Depends(get_db)) -> OrderStatusService:
    return OrderStatusService(db)


def get_purchase_service(
    db: Session = Depends(get_db),
    guard=Depends(get_duplicate_guard),
    notifier: NotificationService = Depends(get_notifier),
) -> PurchaseService:
    return PurchaseService(db=db, guard=guard, notifier=notifier)

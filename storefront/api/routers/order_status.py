# storefront/api/routers/order_status.py
from fastapi import APIRouter, Depends

from storefront.api.dependencies import get_order_status_service
from storefront.domain.schemas import OrderStatusIn, OrderStatusOut
from storefront.services.order_status_service import OrderStatusService

router = APIRouter(prefix="/orderstatus", tags=["order status"])


@router.get("/{purchase_id}", response_model=OrderStatusOut)
def get_order_status(purchase_id: int, svc: OrderStatusService = Depends(get_order_status_service)):
    return svc.get_status(purchase_id)


@router.put("/{purchase_id}", response_model=OrderStatusOut)
def update_order_status(
    purchase_id: int,
    payload: OrderStatusIn,
    svc: OrderStatusService = Depends(get_order_status_service),
):
    return svc.update_status(purchase_id, payload.status)

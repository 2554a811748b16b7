# storefront/api/routers/purchases.py
from typing import List

from fastapi import APIRouter, Depends

from storefront.api.dependencies import get_purchase_service
from storefront.domain.schemas import PurchaseCreate, PurchaseCreated, PurchaseFromCart, PurchaseOut
from storefront.services.purchase_service import PurchaseService

router = APIRouter(prefix="/purchases", tags=["purchases"])


@router.post("", response_model=PurchaseCreated, status_code=201)
def create_purchase(payload: PurchaseCreate, svc: PurchaseService = Depends(get_purchase_service)):
    """
    Places an order for the listed variants. Prices and names are taken
    from the catalog at commit time.
    """
    purchase_id = svc.create_purchase(
        payload.user_id,
        payload.address_id,
        payload.payment_id,
        payload.items,
    )
    return {"purchase_id": purchase_id}


@router.post("/from-cart", response_model=PurchaseCreated, status_code=201)
def create_purchase_from_cart(payload: PurchaseFromCart, svc: PurchaseService = Depends(get_purchase_service)):
    purchase_id = svc.create_purchase_from_cart(payload.user_id, payload.address_id, payload.payment_id)
    return {"purchase_id": purchase_id}


@router.get("", response_model=List[PurchaseOut])
def list_purchases(svc: PurchaseService = Depends(get_purchase_service)):
    return svc.get_all_purchases()


@router.get("/user/{user_id}", response_model=List[PurchaseOut])
def list_user_purchases(user_id: int, svc: PurchaseService = Depends(get_purchase_service)):
    """Purchase history of a user, newest first."""
    return svc.get_purchases_by_user(user_id)


@router.get("/{purchase_id}", response_model=PurchaseOut)
def get_purchase(purchase_id: int, svc: PurchaseService = Depends(get_purchase_service)):
    return svc.get_purchase(purchase_id)

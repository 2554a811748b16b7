# storefront/api/routers/carts.py
from fastapi import APIRouter, Depends

from storefront.api.dependencies import get_cart_service
from storefront.domain.schemas import CartOut, ItemIn, QuantityIn
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("/{user_id}", response_model=CartOut)
def get_cart(user_id: int, svc: CartService = Depends(get_cart_service)):
    """Cart with a freshly computed total; empty if the user has none yet."""
    return svc.get_cart(user_id)


@router.post("/{user_id}/items", response_model=CartOut)
def add_item(user_id: int, payload: ItemIn, svc: CartService = Depends(get_cart_service)):
    return svc.add_item(user_id, payload.product_weight_id, payload.quantity)


@router.put("/{user_id}/items/{product_weight_id}", response_model=CartOut)
def update_item(
    user_id: int,
    product_weight_id: int,
    payload: QuantityIn,
    svc: CartService = Depends(get_cart_service),
):
    return svc.update_item_quantity(user_id, product_weight_id, payload.quantity)


@router.delete("/{user_id}/items/{product_weight_id}", response_model=CartOut)
def remove_item(user_id: int, product_weight_id: int, svc: CartService = Depends(get_cart_service)):
    return svc.remove_item(user_id, product_weight_id)


@router.post("/{user_id}/clear", response_model=CartOut)
def clear_cart(user_id: int, svc: CartService = Depends(get_cart_service)):
    return svc.clear_cart(user_id)

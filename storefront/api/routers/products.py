# storefront/api/routers/products.py
from fastapi import APIRouter, Depends

from storefront.api.dependencies import get_catalog_service
from storefront.domain.schemas import ProductOut, WeightOut
from storefront.services.catalog_service import CatalogService

router = APIRouter(prefix="/products", tags=["products"])


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, svc: CatalogService = Depends(get_catalog_service)):
    return svc.get_product_by_id(product_id)


@router.get("/weights/{weight_id}", response_model=WeightOut)
def get_product_weight(weight_id: int, svc: CatalogService = Depends(get_catalog_service)):
    return svc.get_product_weight(weight_id)

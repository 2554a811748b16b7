# storefront/services/catalog_service.py
from sqlalchemy.orm import Session

from storefront.domain.errors import NotFound, ProductNotFound
from storefront.domain.schemas import ProductOut, WeightOut
from storefront.repos.catalog_repo import CatalogRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CatalogService:
    """Read-only product/variant lookup used by cart and purchase."""

    def __init__(self, db: Session):
        self.repo = CatalogRepo(db)

    def get_product_by_id(self, product_id: int) -> ProductOut:
        product = self.repo.get_product(product_id)
        if not product:
            raise ProductNotFound(
                f"Product {product_id} not found",
                context={"product_id": product_id},
            )
        return ProductOut.model_validate(product)

    def get_product_weight(self, weight_id: int) -> WeightOut:
        weight = self.repo.get_weight(weight_id)
        if not weight:
            raise NotFound(
                f"Product weight {weight_id} not found",
                context={"product_weight_id": weight_id},
            )
        return WeightOut.model_validate(weight)

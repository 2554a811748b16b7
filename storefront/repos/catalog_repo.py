# storefront/repos/catalog_repo.py
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import select

from storefront.data.models.product import ProductModel
from storefront.data.models.product_weight import ProductWeightModel


class CatalogRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.execute(
            select(ProductModel)
            .options(selectinload(ProductModel.weights))
            .where(ProductModel.id == product_id)
        ).scalar_one_or_none()

    def get_weight(self, weight_id: int) -> ProductWeightModel | None:
        return self.db.get(ProductWeightModel, weight_id)

from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)

    weights = relationship(
        "ProductWeightModel",
        back_populates="product",
        order_by="ProductWeightModel.id",
    )

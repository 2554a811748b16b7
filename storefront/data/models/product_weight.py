from sqlalchemy import Column, Integer, ForeignKey, String, Numeric
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class ProductWeightModel(Base):
    """Purchasable variant of a product (size/weight option).

    Owned by catalog management; order placement only reads it and
    decrements ``stock``.
    """

    __tablename__ = "product_weights"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)

    weight = Column(String(50), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    measurement = Column(String(20), nullable=False, default="g")

    product = relationship("ProductModel", back_populates="weights")

from sqlalchemy import Column, Integer, ForeignKey, String, Numeric
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class PurchaseItemModel(Base):
    """Line of a purchase, frozen at commit time.

    Name, weight label and prices are copied from the catalog so later
    catalog edits never change an existing order.
    """

    __tablename__ = "purchase_items"

    id = Column(Integer, primary_key=True)
    purchase_id = Column(Integer, ForeignKey("purchases.id", ondelete="CASCADE"), nullable=False, index=True)

    product_id = Column(Integer, nullable=False)
    product_name = Column(String(255), nullable=False)
    product_weight_id = Column(Integer, nullable=False)
    weight = Column(String(50), nullable=False)
    measurement = Column(String(20), nullable=False)

    unit_price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)

    purchase = relationship("PurchaseModel", back_populates="items")

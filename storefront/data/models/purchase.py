from datetime import datetime, timezone

from sqlalchemy import Column, Integer, DateTime, Numeric
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class PurchaseModel(Base):
    __tablename__ = "purchases"

    id = Column(Integer, primary_key=True)
    # user, address and payment mode live in other services
    user_id = Column(Integer, nullable=False, index=True)
    address_id = Column(Integer, nullable=False)
    payment_id = Column(Integer, nullable=False)

    total_price = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    items = relationship(
        "PurchaseItemModel",
        back_populates="purchase",
        cascade="all, delete-orphan",
        order_by="PurchaseItemModel.id",
    )
    status = relationship("OrderStatusModel", uselist=False, back_populates="purchase")

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, DateTime
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.utils.settings import ORDER_STATUS_COLUMN_LENGTH


class OrderStatusModel(Base):
    __tablename__ = "order_status"

    purchase_id = Column(Integer, ForeignKey("purchases.id", ondelete="CASCADE"), primary_key=True)
    status = Column(String(ORDER_STATUS_COLUMN_LENGTH), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    purchase = relationship("PurchaseModel", back_populates="status")

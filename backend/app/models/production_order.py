"""
Production Order model

Production orders are the demand side of MRP: each released order asks for
a quantity of a finished item by a required date.
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Date, ForeignKey, Text
from sqlalchemy.orm import relationship
from datetime import datetime

from app.db.base import Base


class ProductionOrder(Base):
    """
    Production Order (Manufacturing Order).

    Lifecycle: draft → released → in_progress → completed
    Any non-terminal state may move to cancelled.
    Only 'released' orders generate material requirements.
    """
    __tablename__ = "production_orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(50), unique=True, nullable=False, index=True)

    item_id = Column(Integer, ForeignKey('items.id'), nullable=False, index=True)

    # Quantities
    quantity_ordered = Column(Numeric(18, 4), nullable=False)
    quantity_produced = Column(Numeric(18, 4), default=0, nullable=False)

    status = Column(String(50), default='draft', nullable=False, index=True)

    required_date = Column(Date, nullable=False, index=True)

    notes = Column(Text, nullable=True)

    # Metadata
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    created_by = Column(Integer, nullable=True)
    released_at = Column(DateTime, nullable=True)

    # Relationships
    item = relationship("Item", back_populates="production_orders")

    def __repr__(self):
        return f"<ProductionOrder {self.order_number}: {self.quantity_ordered} x item {self.item_id}>"

    @property
    def quantity_outstanding(self):
        """Quantity still to produce"""
        return (self.quantity_ordered or 0) - (self.quantity_produced or 0)

"""
Inventory models
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

from app.db.base import Base


class InventoryBalance(Base):
    """On-hand balance of one item in one warehouse"""
    __tablename__ = "inventory_balances"
    __table_args__ = (
        UniqueConstraint("item_id", "warehouse_code", name="uq_inventory_balance_item_warehouse"),
    )

    id = Column(Integer, primary_key=True, index=True)

    item_id = Column(Integer, ForeignKey('items.id'), nullable=False, index=True)
    warehouse_code = Column(String(50), nullable=False, default="MAIN")

    # Quantities
    quantity_on_hand = Column(Numeric(18, 4), default=0, nullable=False)
    quantity_reserved = Column(Numeric(18, 4), default=0, nullable=False)

    # Metadata
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    item = relationship("Item", back_populates="inventory_balances")

    def __repr__(self):
        return f"<InventoryBalance item {self.item_id} @ {self.warehouse_code}: {self.quantity_on_hand}>"

    @property
    def quantity_available(self):
        return (self.quantity_on_hand or 0) - (self.quantity_reserved or 0)
